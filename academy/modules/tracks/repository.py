"""Track repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.modules.tracks.models import Track


class TracksRepository:
    """Read access to tracks."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_track_by_id(self, track_id: UUID) -> Track | None:
        stmt = select(Track).where(Track.id == track_id)
        return await self.session.scalar(stmt)

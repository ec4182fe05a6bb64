"""Audit business logic layer."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.database import get_db_session
from academy.core.enums import POLICY_ADMIN_ROLES
from academy.modules.audit.models import AuditLog, OutboxEvent
from academy.modules.audit.repository import AuditRepository
from academy.modules.identity.models import User
from academy.shared.exceptions import Forbidden


class AuditService:
    """Read access to the audit trail and the outbox."""

    def __init__(self, repository: AuditRepository) -> None:
        self.repository = repository

    async def list_logs(
        self,
        actor: User,
        entity_type: str | None,
        entity_id: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[AuditLog], int]:
        """List audit logs (owner and manager only)."""
        if actor.role.name not in POLICY_ADMIN_ROLES:
            raise Forbidden("Only owner or manager can view audit logs")
        return await self.repository.list_audit_logs(entity_type, entity_id, limit=limit, offset=offset)

    async def list_pending_outbox(self, actor: User, limit: int) -> list[OutboxEvent]:
        if actor.role.name not in POLICY_ADMIN_ROLES:
            raise Forbidden("Only owner or manager can view outbox")
        return await self.repository.list_pending_outbox(limit)


async def get_audit_service(session: AsyncSession = Depends(get_db_session)) -> AuditService:
    """Dependency provider for audit service."""
    return AuditService(AuditRepository(session))

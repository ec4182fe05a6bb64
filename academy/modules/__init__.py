"""Domain modules package."""

from academy.modules.attendance import models as attendance_models  # noqa: F401
from academy.modules.audit import models as audit_models  # noqa: F401
from academy.modules.booking import models as booking_models  # noqa: F401
from academy.modules.identity import models as identity_models  # noqa: F401
from academy.modules.policy import models as policy_models  # noqa: F401
from academy.modules.scheduling import models as scheduling_models  # noqa: F401
from academy.modules.sessions import models as sessions_models  # noqa: F401
from academy.modules.tracks import models as tracks_models  # noqa: F401

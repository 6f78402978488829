"""Import every model so ``Base.metadata`` knows the full schema."""

from charity_hub.models.audit import AuditLog  # noqa: F401
from charity_hub.models.base import Base
from charity_hub.models.documents import Document  # noqa: F401
from charity_hub.models.messages import Message  # noqa: F401
from charity_hub.models.notifications import Notification  # noqa: F401
from charity_hub.models.privacy import AccountDeletionRequest, DataExportRequest  # noqa: F401
from charity_hub.models.shifts import Shift, ShiftAssignment  # noqa: F401
from charity_hub.models.support import HelpRequest, SupportTicket  # noqa: F401
from charity_hub.models.tasks import Task  # noqa: F401
from charity_hub.models.users import TokenBlacklist, User  # noqa: F401
from charity_hub.models.volunteers import VolunteerApplication, VolunteerProfile  # noqa: F401

metadata = Base.metadata

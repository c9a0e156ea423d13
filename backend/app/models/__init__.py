from sqlmodel import SQLModel

from app.models.allocation import LeaveAllocation
from app.models.audit import AuditLog
from app.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from app.models.complaint import Complaint
from app.models.enums import (
    AdminOverride,
    AuditAction,
    AuditEntityType,
    ComplaintCategory,
    ComplaintStatus,
    LeaveStatus,
    LeaveType,
    ReimbursementCategory,
    ReimbursementStatus,
    Role,
)
from app.models.leave import LeaveRequest
from app.models.message import Message
from app.models.reimbursement import Reimbursement
from app.models.team import Team, TeamMember
from app.models.user import User

__all__ = [
    "AdminOverride",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Complaint",
    "ComplaintCategory",
    "ComplaintStatus",
    "LeaveAllocation",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "Message",
    "Reimbursement",
    "ReimbursementCategory",
    "ReimbursementStatus",
    "Role",
    "SQLModel",
    "Team",
    "TeamMember",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
    "User",
]

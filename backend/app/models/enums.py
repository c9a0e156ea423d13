from __future__ import annotations

import enum


class Role(enum.StrEnum):
    """Account role; drives route access and case routing."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class LeaveType(enum.StrEnum):
    """Kind of leave being requested."""

    SICK = "sick"
    CASUAL = "casual"
    EARNED = "earned"
    UNPAID = "unpaid"
    OTHER = "other"


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class AdminOverride(enum.StrEnum):
    """Admin resolution of an escalated leave rejection."""

    NONE = "none"
    APPROVED = "approved"
    UPHELD = "upheld"


class ComplaintCategory(enum.StrEnum):
    """Subject area of a complaint."""

    WORKPLACE = "workplace"
    HARASSMENT = "harassment"
    WORKLOAD = "workload"
    SALARY = "salary"
    LEAVE = "leave"
    OTHER = "other"


class ComplaintStatus(enum.StrEnum):
    """State machine for complaints."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class ReimbursementCategory(enum.StrEnum):
    """Expense category of a reimbursement claim."""

    TRAVEL = "travel"
    FOOD = "food"
    MEDICAL = "medical"
    EQUIPMENT = "equipment"
    TRAINING = "training"
    OTHER = "other"


class ReimbursementStatus(enum.StrEnum):
    """Two-stage state machine for reimbursements.

    Employee claims: PENDING -> MANAGER_APPROVED -> ADMIN_APPROVED | REJECTED.
    Manager claims skip the manager stage: PENDING -> ADMIN_APPROVED | REJECTED.
    """

    PENDING = "pending"
    MANAGER_APPROVED = "manager_approved"
    ADMIN_APPROVED = "admin_approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    USER = "USER"
    TEAM = "TEAM"
    LEAVE = "LEAVE"
    ALLOCATION = "ALLOCATION"
    COMPLAINT = "COMPLAINT"
    REIMBURSEMENT = "REIMBURSEMENT"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    ESCALATE = "ESCALATE"
    OVERRIDE = "OVERRIDE"
    UPHOLD = "UPHOLD"
    FORWARD = "FORWARD"
    ACCEPT = "ACCEPT"
    WITHDRAW = "WITHDRAW"
    ADD_MEMBER = "ADD_MEMBER"
    REMOVE_MEMBER = "REMOVE_MEMBER"

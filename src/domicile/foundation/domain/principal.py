"""Principal value object representing an identified marketplace account.

Pure domain object with no external dependencies. Immutable (frozen dataclass).
Resolved from the identity directory for the user ID carried by the request.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Role(StrEnum):
    """Marketplace role of an account."""

    USER = "user"
    ADMIN = "admin"
    ROOTADMIN = "rootadmin"


class AccountStatus(StrEnum):
    """Lifecycle status of an account."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class ApprovalStatus(StrEnum):
    """Approval state of an admin account."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class Principal:
    """Identified account performing a request or receiving a notification.

    Attributes:
        user_id: Directory identifier of the account.
        role: USER, ADMIN or ROOTADMIN.
        status: ACTIVE or SUSPENDED.
        approval: Admin approval state. Only meaningful for ADMIN.
        email: Contact address. None if unknown.
        username: Display handle. None if unknown.
    """

    user_id: str
    role: Role = Role.USER
    status: AccountStatus = AccountStatus.ACTIVE
    approval: ApprovalStatus = ApprovalStatus.PENDING
    email: str | None = None
    username: str | None = None

    @property
    def is_elevated(self) -> bool:
        """True for an active root admin or an approved, active admin."""
        if self.status == AccountStatus.SUSPENDED:
            return False
        if self.role == Role.ROOTADMIN:
            return True
        return self.role == Role.ADMIN and self.approval == ApprovalStatus.APPROVED

"""Principals the authorization service can answer for.

A principal is either a stored ``User`` or a ``SystemContext``: the explicit
"no specific user" caller used by background jobs and device servers, which
is always treated as admin. Passing ``None`` is accepted for the same
purpose and is also treated as admin; prefer ``SystemContext`` so the
privileged path is visible at the call site.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from ..models.user import User


@dataclass(frozen=True)
class SystemContext:
    """Account-wide caller with unrestricted device access."""

    account_id: str
    user_id: Optional[str] = None
    preferred_device_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return True


Principal = Union["User", SystemContext, None]


def is_admin_user(user: Principal) -> bool:
    """True for the "admin" user, a SystemContext, or a missing user."""
    if user is None:
        return True
    return user.is_admin


def user_display_name(user: Principal) -> str:
    """Account/user label for log lines, e.g. ``[acme/bob] Bob Smith``."""
    if user is None:
        return "null"
    if isinstance(user, SystemContext):
        return f"[{user.account_id}/*] system"
    description = getattr(user, "description", "") or ""
    return f"[{user.account_id}/{user.user_id}] {description}".strip()

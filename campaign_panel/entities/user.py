# campaign_panel/entities/user.py
from dataclasses import dataclass
from enum import Enum

class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    VIEWER = "viewer"


def can_manage_user(actor_role: UserRole, target_role: UserRole) -> bool:
    """Admins manage everyone; managers manage viewers only."""
    if actor_role == UserRole.ADMIN:
        return True
    if actor_role == UserRole.MANAGER:
        return target_role == UserRole.VIEWER
    return False

@dataclass(frozen=True)
class AuthenticatedUser:
    id: int
    email: str
    role: UserRole
    token_version: int

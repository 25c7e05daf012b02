"""Session record and role checks.

Sessions are issued elsewhere (login is not part of this package); the
services only check what they are handed.
"""

from dataclasses import dataclass

from .errors import AuthenticationRequiredError, PermissionDeniedError
from .models import Role


@dataclass(frozen=True)
class Session:
    user_id: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def require_session(session: Session | None) -> Session:
    if session is None or not session.user_id:
        raise AuthenticationRequiredError("Unauthorized")
    return session


def require_admin(session: Session | None) -> Session:
    session = require_session(session)
    if not session.is_admin:
        raise PermissionDeniedError("Admin role required")
    return session

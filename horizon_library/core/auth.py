from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import AuthError, ForbiddenError
from .security import LIBRARIAN_ROLE, Principal, decode_token

# auto_error=False so a missing header ends up as our 401, not Starlette's 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if credentials is None or not credentials.credentials:
        raise AuthError("missing")
    return decode_token(credentials.credentials)


def require_roles(*roles: str) -> Callable[..., Principal]:
    allowed = frozenset(roles)

    def _authorize(principal: Principal = Depends(get_current_principal)) -> Principal:
        if allowed and principal.role not in allowed:
            raise ForbiddenError()
        return principal

    return _authorize


get_librarian = require_roles(LIBRARIAN_ROLE)

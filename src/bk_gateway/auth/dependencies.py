"""FastAPI dependencies: get_current_user / require_admin.

Usage in any protected router:
    from src.bk_gateway.auth.dependencies import CurrentUser, get_current_user

    @router.get("/protected")
    async def protected(user: CurrentUser = Depends(get_current_user)):
        ...
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.bk_common.enums import UserRole
from src.bk_common.errors import AdminRequiredError, InvalidCredentialsError
from src.bk_gateway.auth.jwt_handler import decode_token

# tokenUrl points Swagger UI at the external identity service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Extract and validate the JWT Bearer token. Raises HTTP 401 if invalid."""
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION
    try:
        role = UserRole(payload.get("role", UserRole.USER.value))
    except ValueError:
        raise _CREDENTIALS_EXCEPTION from None
    return CurrentUser(user_id=str(user_id), role=role)


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Verify the caller is an operator. Raises HTTP 403 (AppError 1006) otherwise."""
    if not current_user.is_admin:
        raise AdminRequiredError()
    return current_user

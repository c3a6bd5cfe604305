import logging
from collections.abc import Callable, Generator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.security import decode_token
from app.db.session import SessionLocal
from app.models.user import User, UserRole
from app.services.rate_limit import enforce_rate_limit

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active account.

    Tokens carry the role the account had at login. An admin who is demoted
    (or a student promoted) must log in again before the new role applies.
    """
    try:
        claims = decode_token(credentials.credentials)
        user_id = int(claims["sub"])
    except (JWTError, KeyError, TypeError, ValueError) as exc:
        raise _unauthorized("Could not validate credentials") from exc

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("Could not validate credentials")
    if claims.get("role") != user.role.value:
        logger.info("Rejected token for user %s: issued for role %s", user.id, claims.get("role"))
        raise _unauthorized("Token role no longer matches the account; log in again")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    return user


def require_roles(*roles: UserRole) -> Callable[..., User]:
    allowed = frozenset(roles)

    def role_checker(request: Request, current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            logger.info(
                "Denied %s %s to %s %s",
                request.method,
                request.url.path,
                current_user.role.value,
                current_user.id,
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return role_checker


require_admin = require_roles(UserRole.admin)
require_student = require_roles(UserRole.student)


def throttled(scope: str, role_checker: Callable[..., User]) -> Callable[..., User]:
    """A role gate that also spends one unit of the caller's ``scope`` allowance."""

    def dependency(current_user: User = Depends(role_checker)) -> User:
        enforce_rate_limit(scope, f"user:{current_user.id}")
        return current_user

    return dependency


# Admin changes to exams, rooms and class codes share one allowance.
schedule_writer = throttled("schedule.write", require_admin)
selection_writer = throttled("selection.write", require_student)

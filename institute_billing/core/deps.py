"""Dependencies for FastAPI routes."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

from institute_billing.core.permissions import Role, has_permission
from institute_billing.core.security import decode_access_token

# Tokens come from the host platform's login endpoint
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


class TokenUser(BaseModel):
    """Caller identity extracted from a verified access token."""

    id: str
    role: Role
    student_id: UUID | None = None

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT

    def can_view_student(self, student_id: UUID) -> bool:
        """Staff roles see every student, a student sees only themself."""
        if self.is_student:
            return self.student_id == student_id
        return has_permission(self.role, "billing:read")


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
) -> TokenUser:
    """Get current caller from JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    subject: str | None = payload.get("sub")
    if subject is None:
        raise credentials_exception

    try:
        role = Role(payload.get("role"))
        student_id = UUID(payload["student_id"]) if payload.get("student_id") else None
    except ValueError:
        raise credentials_exception

    if role == Role.STUDENT and student_id is None:
        raise credentials_exception

    return TokenUser(id=subject, role=role, student_id=student_id)


def require_permission(permission: str):
    """Dependency factory to check if caller has a specific permission."""

    async def permission_checker(
        current_user: Annotated[TokenUser, Depends(get_current_user)],
    ) -> TokenUser:
        if not has_permission(current_user.role, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return permission_checker


# Common dependency aliases
CurrentUser = Annotated[TokenUser, Depends(get_current_user)]
BillingWriter = Annotated[TokenUser, Depends(require_permission("billing:write"))]

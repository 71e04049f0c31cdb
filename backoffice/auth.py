from dataclasses import dataclass, field

from fastapi import Depends, HTTPException, Request, status

from backoffice.config import settings


@dataclass(frozen=True)
class Principal:
    username: str
    permissions: frozenset[str] = field(default_factory=frozenset)
    token: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.username == settings.admin_username


def has_permission(principal: Principal, permission: str | None) -> bool:
    if permission is None or principal.is_admin:
        return True
    return permission in principal.permissions


def get_current_principal(request: Request) -> Principal:
    principal = getattr(request.state, 'principal', None)
    if not principal:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return principal



def require_permission(permission: str):
    def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not has_permission(principal, permission):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
        return principal

    return _dep

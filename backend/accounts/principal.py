from __future__ import annotations

from dataclasses import dataclass

from accounts.models import User


@dataclass(frozen=True)
class Principal:
    """
    The authenticated actor behind a lifecycle operation.

    Views build one from ``request.user`` and hand it to the service layer;
    services never look at the request or any ambient auth state.
    """

    id: int
    role: str

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        role = User.ADMIN if user.is_superuser else user.role
        return cls(id=user.pk, role=role)

    @property
    def is_admin(self) -> bool:
        return self.role == User.ADMIN

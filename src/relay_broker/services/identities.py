"""User and admin registration."""

from dataclasses import dataclass
from typing import Protocol

from relay_broker.domain.errors import NotFoundError
from relay_broker.domain.models import Admin, User


class IdentityRepository(Protocol):
    """Persistence interface for relay parties."""

    def add_user(self, user: User) -> User:
        """Store a new user, failing on duplicates."""

    def get_user(self, user_id: int) -> User | None:
        """Return a user by id, if present."""

    def add_admin(self, admin: Admin) -> Admin:
        """Store a new admin, failing on duplicates."""

    def get_admin(self, admin_id: int) -> Admin | None:
        """Return an admin by id, if present."""

    def list_admins(self) -> list[Admin]:
        """Return all admins ordered by id."""


@dataclass
class IdentityService:
    """Application service for user and admin lifecycle actions."""

    repository: IdentityRepository

    def create_user(self, user_id: int) -> User:
        """Register a user and return it."""
        return self.repository.add_user(User(id=user_id))

    def get_user(self, user_id: int) -> User:
        user = self.repository.get_user(user_id)
        if user is None:
            raise NotFoundError("user not found")
        return user

    def create_admin(self, admin_id: int) -> Admin:
        """Register an admin and return it."""
        return self.repository.add_admin(Admin(id=admin_id))

    def get_admin(self, admin_id: int) -> Admin:
        admin = self.repository.get_admin(admin_id)
        if admin is None:
            raise NotFoundError("admin not found")
        return admin

    def list_admins(self) -> list[Admin]:
        return self.repository.list_admins()

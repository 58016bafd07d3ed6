"""User service - registration, lookup and upkeep of volunteers and admins."""

import logging
from typing import Any

from scheduling.domain import Role, User
from scheduling.domain.errors import ConflictError, NotFoundError, ValidationError
from scheduling.domain.phones import normalize_phone
from scheduling.services.event_service import parse_user_id
from scheduling.stores.interfaces import SchedulingStore

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset(
    {"name", "phone", "email", "is_active", "notifications_enabled"}
)


class UserService:
    """Service for registering and maintaining volunteers and admins."""

    def __init__(self, store: SchedulingStore) -> None:
        self._store = store

    def register_user(
        self,
        name: str,
        phone: str,
        role: Role = Role.PEER_MINISTER,
        email: str | None = None,
    ) -> User:
        """Create a user with a normalized phone number.

        Admins need an email; volunteers never carry one.

        Raises:
            ValidationError: If the name is blank, the phone is too short or
                an admin has no email.
            ConflictError: If the phone number is already registered.
        """
        if not name or not name.strip():
            raise ValidationError("Name is required", field="name")
        normalized = normalize_phone(phone)
        email = (email or "").strip().lower() or None
        if role.requires_email and email is None:
            raise ValidationError("Email is required for admins", field="email")
        if not role.requires_email:
            email = None

        if self._store.get_user_by_phone(normalized) is not None:
            raise ConflictError("A user with this phone number already exists")

        with self._store.atomic():
            user = self._store.create_user(name.strip(), normalized, role, email)
        logger.info("User registered: id=%s, role=%s", user.id, role.value)
        return user

    def get_user(self, user_id: str) -> User:
        user = self._store.get_user(parse_user_id(user_id))
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    def list_users(self, role: Role | None = None) -> list[User]:
        return self._store.list_users(role=role)

    def update_user(self, user_id: str, fields: dict[str, Any]) -> User:
        """Change a user's profile or status.

        Only the keys that are present are touched. A new phone number is
        normalized first; a phone or email held by someone else is a
        conflict. The role requirements of registration still apply.

        Raises:
            NotFoundError: If the user does not exist.
            ValidationError: If a field is blank or malformed.
            ConflictError: If the phone or email belongs to another user.
        """
        user = self.get_user(user_id)
        changes = {k: v for k, v in fields.items() if k in _UPDATABLE_FIELDS}

        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValidationError("Name is required", field="name")
            changes["name"] = name
        if "phone" in changes:
            changes["phone"] = normalize_phone(changes["phone"] or "")
            holder = self._store.get_user_by_phone(changes["phone"])
            if holder is not None and holder.id != user.id:
                raise ConflictError("Phone number already in use")
        if "email" in changes:
            email = (changes["email"] or "").strip().lower() or None
            if email is None and user.role.requires_email:
                raise ValidationError("Email is required for admins", field="email")
            if email is not None and not user.role.requires_email:
                raise ValidationError("Only admins have an email", field="email")
            if email is not None:
                holder = self._store.get_user_by_email(email)
                if holder is not None and holder.id != user.id:
                    raise ConflictError("Email already in use")
            changes["email"] = email

        if not changes:
            return user
        with self._store.atomic():
            updated = self._store.update_user(user.id, changes)
        if updated is None:
            raise NotFoundError("user", user_id)
        logger.info("User updated: id=%s, fields=%s", user.id, sorted(changes))
        return updated

    def deactivate_user(self, user_id: str) -> User:
        """Mark a user inactive. History is kept; reminders stop."""
        return self.update_user(user_id, {"is_active": False})

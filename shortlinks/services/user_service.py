"""
User Service

Registration and lookup. Password hashing and token issuance belong to the
authentication layer in front of this service; it receives a ready hash.
"""

import logging

from shortlinks.core.entities import User
from shortlinks.core.exceptions import NotFoundError, ValidationFailedError
from shortlinks.core.validators import validate_email
from shortlinks.repositories.base import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, users: UserRepository):
        self.users = users

    async def register(self, email: str, password_hash: str) -> User:
        """
        Register a new user.

        The email is trimmed but otherwise stored as given; lookups are
        case-sensitive.

        Raises:
            ValidationFailedError: If the email or hash is invalid
            DuplicateEmailError: If the email is already registered
        """
        errors = validate_email(email)
        if not password_hash:
            errors.append("Password hash cannot be empty")
        if errors:
            raise ValidationFailedError(errors)

        user = await self.users.create_user(
            User(email=email.strip(), password_hash=password_hash)
        )
        logger.info("Registered user %s", user.id)
        return user

    async def get(self, user_id: str) -> User:
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def delete(self, user_id: str) -> None:
        """Delete a user; their URLs become anonymous, their categories go."""
        await self.users.delete_user(user_id)
        logger.info("Deleted user %s", user_id)

"""User service for sign-in and profile management."""

import logging

from src.core import db_client
from src.core.errors import ConflictError, NotFoundError
from src.core.logging import span
from src.domain.create_models import UserCreate
from src.domain.update_models import ProfileUpdate
from src.domain.user import User


logger = logging.getLogger(__name__)


async def get_or_create_user(*, payload: UserCreate) -> User:
    """Resolve a user by email, creating the record on first sign-in.

    Args:
        payload: Normalized sign-in details

    Returns:
        The existing or newly created user

    Raises:
        ConflictError: If a concurrent sign-in created the same email first
    """
    with span("user_service.get_or_create_user"):
        existing = await db_client.get_first_record(
            collection="users",
            filter_query=f'email = "{db_client.sanitize_param(payload.email)}"',
        )
        if existing:
            return User(**existing)

        try:
            record = await db_client.create_record(collection="users", data=payload.model_dump())
        except db_client.DuplicateRecordError as e:
            raise ConflictError(f"User already exists: {payload.email}") from e

        logger.info("Created user on first sign-in", extra={"user_id": record["id"]})
        return User(**record)


async def get_user(*, user_id: str) -> User:
    """Get a user by ID.

    Raises:
        NotFoundError: If the user does not exist
    """
    try:
        record = await db_client.get_record(collection="users", record_id=user_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError(f"User not found: {user_id}") from e
    return User(**record)


async def update_profile(*, user_id: str, payload: ProfileUpdate) -> User:
    """Update the caller's display name or avatar."""
    with span("user_service.update_profile"):
        changes = payload.present_fields()
        if not changes:
            return await get_user(user_id=user_id)

        try:
            record = await db_client.update_record(collection="users", record_id=user_id, data=changes)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError(f"User not found: {user_id}") from e

        logger.info("Updated profile", extra={"user_id": user_id, "fields": sorted(changes)})
        return User(**record)

"""Users service: password and username changes on the `users/<id>` login record."""

import logging

from fastapi import status

from app.auth.security import hash_password, verify_password
from app.core.config import settings
from app.core.enums import NotificationType, UserRole
from app.core.exceptions import ConflictError, NotFoundError, ServiceError
from app.db.store import DocumentStore
from app.fees.updates import AtomicUpdate

from .schemas import CredentialChangeResponse, PasswordChange, UsernameChange

logger = logging.getLogger(__name__)


async def _get_user_or_404(store: DocumentStore, user_id: str) -> dict:
    user = await store.get(f"users/{user_id}")
    if not isinstance(user, dict):
        raise NotFoundError("User not found")
    return user


async def change_password(
    store: DocumentStore,
    user_id: str,
    payload: PasswordChange,
) -> CredentialChangeResponse:
    user = await _get_user_or_404(store, user_id)
    if not verify_password(payload.current_password, user.get("passwordHash") or ""):
        raise ServiceError("Current password is incorrect", status.HTTP_400_BAD_REQUEST)

    base = f"users/{user_id}"
    builder = AtomicUpdate()
    builder.set(f"{base}/passwordHash", hash_password(payload.new_password))
    builder.set(f"{base}/updatedAt", builder.now)
    builder.expect_value(f"{base}/passwordHash", user.get("passwordHash"))
    builder.notify(
        settings.admin_notification_user_id,
        UserRole.ADMIN,
        "Password Changed",
        f"{payload.role.value} user {user.get('username') or user_id} changed their password",
        NotificationType.INFO,
    )
    await builder.commit(store)
    logger.info("Password changed for user %s", user_id)
    return CredentialChangeResponse(message="Password updated successfully")


async def change_username(
    store: DocumentStore,
    user_id: str,
    payload: UsernameChange,
) -> CredentialChangeResponse:
    user = await _get_user_or_404(store, user_id)
    if not verify_password(payload.password, user.get("passwordHash") or ""):
        raise ServiceError("Password is incorrect", status.HTTP_400_BAD_REQUEST)

    taken = await store.find("users", "username", payload.new_username)
    if any(other_id != user_id for other_id in taken):
        raise ConflictError("Username is already taken")

    base = f"users/{user_id}"
    builder = AtomicUpdate()
    builder.set(f"{base}/username", payload.new_username)
    builder.set(f"{base}/updatedAt", builder.now)
    builder.expect_value(f"{base}/username", user.get("username"))
    builder.expect_value(f"{base}/passwordHash", user.get("passwordHash"))
    builder.notify(
        settings.admin_notification_user_id,
        UserRole.ADMIN,
        "Username Changed",
        f"{payload.role.value} user changed username from {user.get('username')} to {payload.new_username}",
        NotificationType.INFO,
    )
    await builder.commit(store)
    logger.info("User %s renamed to %s", user_id, payload.new_username)
    return CredentialChangeResponse(message="Username updated successfully")

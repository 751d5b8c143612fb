from __future__ import annotations

import asyncio
import logging
import uuid

from application.ports.identity_port import IdentityPort
from domain.curation.errors import ConfigurationError, TransportError

logger = logging.getLogger(__name__)


class FixedIdentity(IdentityPort):
    """A user id supplied by configuration."""

    def __init__(self, user_id: str) -> None:
        user_id = (user_id or "").strip()
        if not user_id:
            raise ValueError("user_id is required")
        self._user_id = user_id

    async def current_user_id(self) -> str:
        return self._user_id


class AnonymousIdentity(IdentityPort):
    """A random id created once per process, like an anonymous sign-in."""

    def __init__(self) -> None:
        self._user_id = f"anon-{uuid.uuid4().hex}"

    async def current_user_id(self) -> str:
        return self._user_id


class FirebaseTokenIdentity(IdentityPort):
    """Resolve the uid by verifying a Firebase ID token (custom-token sign-in)."""

    def __init__(self, id_token: str) -> None:
        self._id_token = (id_token or "").strip()
        self._user_id: str | None = None

    async def current_user_id(self) -> str:
        if self._user_id is not None:
            return self._user_id

        from firebase_admin import auth

        from infrastructure.persistence.firestore.client import get_firebase_app

        app = get_firebase_app()
        try:
            claims = await asyncio.to_thread(auth.verify_id_token, self._id_token, app)
        except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError) as exc:
            raise ConfigurationError(
                f"Firebase ID token rejected: {exc}",
                user_message="Sign-in failed. Please sign in again.",
            ) from exc
        except auth.CertificateFetchError as exc:
            raise TransportError(f"Firebase certificate fetch failed: {exc}") from exc
        self._user_id = str(claims["uid"])
        logger.info("Firebase identity verified uid=%s", self._user_id)
        return self._user_id


def create_identity(*, user_id: str = "", id_token: str = "") -> IdentityPort:
    """Configured uid first, then a Firebase token, then anonymous."""
    if (user_id or "").strip():
        return FixedIdentity(user_id)
    if (id_token or "").strip():
        return FirebaseTokenIdentity(id_token)
    return AnonymousIdentity()

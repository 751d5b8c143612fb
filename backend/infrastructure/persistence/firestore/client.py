from __future__ import annotations

import logging
import threading

import firebase_admin
from firebase_admin import credentials

from domain.curation.errors import ConfigurationError
from infrastructure.config.settings import FIREBASE_CREDENTIALS_PATH, FIREBASE_PROJECT_ID

logger = logging.getLogger(__name__)

_init_lock = threading.Lock()


def get_firebase_app(
    *,
    credentials_path: str | None = None,
    project_id: str | None = None,
) -> firebase_admin.App:
    """Return the default firebase-admin app, initializing it once per process.

    A service-account JSON path is used when set; otherwise Application Default
    Credentials apply (GOOGLE_APPLICATION_CREDENTIALS, metadata server, ...).
    """
    with _init_lock:
        try:
            return firebase_admin.get_app()
        except ValueError:
            pass

        path = (credentials_path if credentials_path is not None else FIREBASE_CREDENTIALS_PATH).strip()
        project = (project_id if project_id is not None else FIREBASE_PROJECT_ID).strip()
        try:
            cred = credentials.Certificate(path) if path else credentials.ApplicationDefault()
        except (OSError, ValueError) as exc:
            raise ConfigurationError(
                f"Firebase credentials could not be loaded: {exc}",
                user_message="Movie storage is not configured.",
            ) from exc
        options = {"projectId": project} if project else None
        app = firebase_admin.initialize_app(cred, options)
        logger.info("Firebase app initialized project=%s credentials=%s", project or "<default>", "file" if path else "adc")
        return app

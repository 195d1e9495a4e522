"""Firebase Admin initialization shared by the API and the admin scripts."""

import logging
from pathlib import Path
from typing import Optional

import firebase_admin
from firebase_admin import credentials

logger = logging.getLogger(__name__)


def get_firebase_app(credentials_path: Optional[str] = None, storage_bucket: Optional[str] = None):
    """Return the default Firebase app, initializing it on first use.

    Without a credentials path, Application Default Credentials are used.
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options = {"storageBucket": storage_bucket} if storage_bucket else None
    if credentials_path:
        path = Path(credentials_path)
        if not path.is_file():
            raise FileNotFoundError(f"Service account file not found: {path}")
        cred = credentials.Certificate(str(path))
    else:
        cred = credentials.ApplicationDefault()

    app = firebase_admin.initialize_app(cred, options)
    logger.info(f"Firebase Admin initialized (project: {app.project_id})")
    return app

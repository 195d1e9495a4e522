from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings


class AdminConfigError(Exception):
    """A required precondition for the admin scripts is missing."""


class AdminSettings(BaseSettings):
    database_url: str
    firebase_credentials_path: str = "firebase/serviceAccountKey.json"
    firebase_storage_bucket: Optional[str] = None
    batch_size: int = 500
    page_size: int = 500
    checkpoint_dir: str = ".checkpoints"

    class Config:
        env_file = ".env"
        extra = "ignore"


def load_admin_settings(env_file: str = ".env", credentials_path: Optional[str] = None) -> AdminSettings:
    """Load script settings; fail before any data operation if a precondition is missing."""
    overrides = {}
    if credentials_path:
        overrides["firebase_credentials_path"] = credentials_path
    try:
        admin_settings = AdminSettings(_env_file=env_file, **overrides)
    except ValidationError as e:
        missing = ", ".join(".".join(str(p) for p in err["loc"]).upper() for err in e.errors())
        raise AdminConfigError(f"Missing or invalid settings: {missing} (checked environment and {env_file})") from e

    if not admin_settings.database_url.strip():
        raise AdminConfigError("DATABASE_URL is empty")
    if not Path(admin_settings.firebase_credentials_path).is_file():
        raise AdminConfigError(
            f"Service account file not found: {admin_settings.firebase_credentials_path}"
        )
    return admin_settings

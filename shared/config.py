"""
Storage configuration.

Settings come from the environment (optionally a .env file) and are
validated once when the config object is built.
"""

import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from shared.constants import (
    DEFAULT_REGION,
    ENV_ACCESS_KEY_ID,
    ENV_SECRET_ACCESS_KEY,
    ENV_REGION,
    ENV_BUCKET_NAME,
    ENV_BASE_URL,
    ENV_ENDPOINT_URL,
)
from shared.exceptions import ConfigError


# field name -> environment variable, in reporting order
REQUIRED_SETTINGS = (
    ("access_key_id", ENV_ACCESS_KEY_ID),
    ("secret_access_key", ENV_SECRET_ACCESS_KEY),
    ("bucket_name", ENV_BUCKET_NAME),
    ("base_url", ENV_BASE_URL),
)


@dataclass(frozen=True)
class StorageConfig:
    """
    Immutable connection settings for the audio bucket.

    Attributes:
        access_key_id: Access key ID for the storage account
        secret_access_key: Secret access key
        bucket_name: Bucket holding the audio clips
        base_url: Public base URL used to build download links
        region: Storage region
        endpoint_url: Custom endpoint for S3-compatible services (None for AWS)
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    base_url: str
    region: str = DEFAULT_REGION
    endpoint_url: Optional[str] = None

    def __post_init__(self):
        missing = self.missing_settings()
        if missing:
            raise ConfigError(missing)
        # URLs are built as "{base_url}/{key}"
        object.__setattr__(self, 'base_url', self.base_url.rstrip('/'))

    def missing_settings(self) -> List[str]:
        """Return the environment variable names of every empty required setting."""
        return [env_name for attr, env_name in REQUIRED_SETTINGS if not getattr(self, attr)]

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 load_env_file: bool = True) -> 'StorageConfig':
        """
        Build a config from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)
            load_env_file: Load a .env file into os.environ first

        Raises:
            ConfigError: If any required variable is missing
        """
        if load_env_file:
            load_dotenv()
        env = os.environ if environ is None else environ

        return cls(
            access_key_id=env.get(ENV_ACCESS_KEY_ID, ""),
            secret_access_key=env.get(ENV_SECRET_ACCESS_KEY, ""),
            bucket_name=env.get(ENV_BUCKET_NAME, ""),
            base_url=env.get(ENV_BASE_URL, ""),
            region=env.get(ENV_REGION) or DEFAULT_REGION,
            endpoint_url=env.get(ENV_ENDPOINT_URL) or None,
        )

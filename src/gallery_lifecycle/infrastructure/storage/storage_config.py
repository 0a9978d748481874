"""Storage configuration for S3-compatible object storage.

Storage is optional: when credentials are missing, the cleanup steps that
need it are skipped and logged instead of failing the relational work.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ...config import STORAGE_DELETE_BATCH_LIMIT, Settings
from .s3_storage_adapter import S3StorageAdapter

logger = logging.getLogger(__name__)


@dataclass
class StorageConfig:
    """Configuration for S3-compatible object storage.

    Attributes:
        endpoint_url: S3 endpoint URL (R2/MinIO), None for AWS S3
        access_key: S3 access key ID
        secret_key: S3 secret access key
        bucket_name: Bucket holding event media
        region: Region name ("auto" for R2)
        batch_size: Keys per DeleteObjects request
    """
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    bucket_name: str
    region: str = "auto"
    batch_size: int = STORAGE_DELETE_BATCH_LIMIT


def load_storage_config(settings: Settings) -> Optional[StorageConfig]:
    """Build a StorageConfig from settings, or None when storage is not configured."""
    if not settings.storage_configured:
        return None

    config = StorageConfig(
        endpoint_url=settings.S3_ENDPOINT_URL,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
        batch_size=settings.STORAGE_DELETE_BATCH_SIZE,
    )
    validate_storage_config(config)
    return config


def validate_storage_config(config: StorageConfig) -> None:
    """Validate storage configuration.

    Raises:
        ValueError: If configuration is invalid
    """
    if not config.access_key:
        raise ValueError("Storage access_key is required")

    if not config.secret_key:
        raise ValueError("Storage secret_key is required")

    if not config.bucket_name:
        raise ValueError("Storage bucket_name is required")

    if config.endpoint_url and not config.endpoint_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid endpoint_url: {config.endpoint_url}. "
            "Must start with http:// or https://"
        )

    if not 1 <= config.batch_size <= STORAGE_DELETE_BATCH_LIMIT:
        raise ValueError(f"batch_size must be between 1 and {STORAGE_DELETE_BATCH_LIMIT}")


def build_storage_adapter(settings: Settings) -> Optional[S3StorageAdapter]:
    """Create the S3 adapter from settings, or None when not configured."""
    config = load_storage_config(settings)
    if config is None:
        logger.warning("Object storage not configured, storage cleanup will be skipped")
        return None

    return S3StorageAdapter(
        endpoint_url=config.endpoint_url,
        access_key=config.access_key,
        secret_key=config.secret_key,
        bucket_name=config.bucket_name,
        region=config.region,
        batch_size=config.batch_size,
    )

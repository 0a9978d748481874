"""S3 Storage Adapter - Implementation of ObjectStoragePort using boto3.

Provides the cleanup operations (list by prefix, batch delete, single delete)
for AWS S3, Cloudflare R2, MinIO and other S3-compatible services.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
from typing import List, Optional, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from ...config import STORAGE_DELETE_BATCH_LIMIT
from ...domain.storage.ports import BatchDeleteResult, ObjectStoragePort, StorageError

logger = logging.getLogger(__name__)

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


class S3StorageAdapter(ObjectStoragePort):
    """S3-compatible storage adapter using boto3.

    Example:
        config = load_storage_config(get_settings())
        storage = S3StorageAdapter(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )
        storage.delete_prefix("events/7c9e6679/")
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "auto",
        batch_size: int = STORAGE_DELETE_BATCH_LIMIT,
    ):
        """Initialize S3 storage adapter.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for R2/MinIO)
            access_key: S3 access key ID
            secret_key: S3 secret access key
            bucket_name: S3 bucket name
            region: Region name ("auto" for R2)
            batch_size: Keys per DeleteObjects request, capped at 1000

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")
        except Exception as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region
        self.batch_size = max(1, min(batch_size, STORAGE_DELETE_BATCH_LIMIT))

        logger.info(
            f"Initialized S3 storage adapter: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    def list_keys(self, prefix: str) -> List[str]:
        """List all keys under prefix, following continuation tokens."""
        keys: List[str] = []
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
                for obj in page.get("Contents", []):
                    keys.append(obj["Key"])
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 listing failed: prefix={prefix}, error={error_code}")
            raise StorageError(f"Failed to list objects under {prefix}: {error_code}")
        except BotoCoreError as e:
            logger.error(f"Unexpected error listing {prefix}: {e}")
            raise StorageError(f"Failed to list objects under {prefix}: {e}")

        logger.debug(f"Listed {len(keys)} objects under prefix={prefix}")
        return keys

    def delete_objects(self, keys: Sequence[str]) -> BatchDeleteResult:
        """Delete keys in chunks of batch_size using quiet mode.

        Quiet mode suppresses per-object success entries; failures still come
        back under ``Errors`` and are recorded per key.
        """
        result = BatchDeleteResult()
        unique_keys = list(dict.fromkeys(k for k in keys if k))

        for start in range(0, len(unique_keys), self.batch_size):
            chunk = unique_keys[start:start + self.batch_size]
            result.requested += len(chunk)
            try:
                response = self.s3_client.delete_objects(
                    Bucket=self.bucket_name,
                    Delete={
                        "Objects": [{"Key": key} for key in chunk],
                        "Quiet": True,
                    },
                )
            except (ClientError, BotoCoreError) as e:
                logger.error(
                    f"S3 batch delete failed: {len(chunk)} keys starting at {chunk[0]}",
                    exc_info=True,
                )
                result.errors.append(f"Batch delete of {len(chunk)} objects failed: {e}")
                continue

            failed = response.get("Errors", [])
            for error in failed:
                result.errors.append(
                    f"Failed to delete {error.get('Key')}: {error.get('Code')} {error.get('Message', '')}".strip()
                )
            result.deleted += len(chunk) - len(failed)
            logger.info(f"Deleted batch of {len(chunk) - len(failed)} objects from bucket={self.bucket_name}")

        return result

    def delete_object(self, key: str) -> bool:
        """Delete a single key; a missing key counts as deleted."""
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            logger.debug(f"Deleted object: storage_key={key}")
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in _MISSING_KEY_CODES:
                logger.debug(f"Object not found (already deleted): storage_key={key}")
                return True
            logger.error(f"S3 deletion failed: storage_key={key}, error={error_code}")
            raise StorageError(f"Failed to delete {key}: {error_code}")
        except BotoCoreError as e:
            logger.error(f"Unexpected error during deletion of {key}: {e}")
            raise StorageError(f"Failed to delete {key}: {e}")


from .s3_storage_adapter import S3StorageAdapter
from .storage_config import StorageConfig, build_storage_adapter, load_storage_config

__all__ = ["S3StorageAdapter", "StorageConfig", "build_storage_adapter", "load_storage_config"]

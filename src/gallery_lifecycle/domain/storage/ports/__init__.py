from .object_storage_port import BatchDeleteResult, ObjectStoragePort, StorageError, storage_key_from_url

__all__ = ["BatchDeleteResult", "ObjectStoragePort", "StorageError", "storage_key_from_url"]

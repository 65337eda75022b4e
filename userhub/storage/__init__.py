from .minio import MinioStorageHandler, StoredObject

__all__ = ["MinioStorageHandler", "StoredObject"]

from fragments_api.storage.interface import ArtifactStorage
from fragments_api.storage.filesystem import FilesystemArtifactStorage
from fragments_api.storage.s3 import S3ArtifactStorage
from fragments_api.config import settings

def get_storage() -> ArtifactStorage:
    """
    Factory function to create the appropriate storage implementation
    based on settings.

    Returns:
        A storage implementation (S3 or Filesystem)
    """
    # Determine which storage to use
    storage_type = settings.STORAGE_TYPE.lower()

    if storage_type == "s3":
        if not settings.S3_BUCKET:
            raise ValueError("S3_BUCKET must be set when using S3 storage")

        return S3ArtifactStorage(
            bucket_name=settings.S3_BUCKET,
            prefix=settings.S3_PREFIX,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=settings.AWS_REGION
        )
    elif storage_type == "filesystem":
        return FilesystemArtifactStorage(base_dir=settings.FRAGMENTS_STORAGE_DIR)
    else:
        raise ValueError(f"Unknown STORAGE_TYPE: {settings.STORAGE_TYPE}")

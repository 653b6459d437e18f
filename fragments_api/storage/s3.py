import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from fragments_api.domain.errors import NotFoundError, PersistenceError
from fragments_api.storage.filesystem import build_sidecar, parse_sidecar
from fragments_api.storage.interface import (
    BLOB_SUFFIX,
    METADATA_ERROR,
    SIDECAR_SUFFIX,
    ArtifactStorage,
    validate_artifact_id,
)

logger = logging.getLogger(__name__)

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


def _error_code(exc: ClientError) -> str:
    return exc.response.get('Error', {}).get('Code', '')


class S3ArtifactStorage(ArtifactStorage):
    """
    Implements fragments storage using AWS S3 (or any S3-compatible service).
    """

    def __init__(self, bucket_name: str, prefix: str = "fragments", client: Any = None,
                 aws_access_key_id: str = None, aws_secret_access_key: str = None,
                 region_name: str = None):
        """
        Initialize S3 storage.

        Args:
            bucket_name: S3 bucket name
            prefix: Key prefix under which blobs and sidecars are stored
            client: Preconfigured boto3 S3 client (created from the credentials if None)
            aws_access_key_id: AWS access key ID (if None, uses environment variables)
            aws_secret_access_key: AWS secret access key (if None, uses environment variables)
            region_name: AWS region name (if None, uses environment variables)
        """
        self.bucket_name = bucket_name
        self.prefix = prefix.strip("/")

        # If credentials are not provided, boto3 will look for them in environment variables
        self.s3_client = client or boto3.client(
            's3',
            aws_access_key_id=aws_access_key_id or None,
            aws_secret_access_key=aws_secret_access_key or None,
            region_name=region_name or None
        )

    def _key(self, artifact_id: str, suffix: str) -> str:
        name = f"{validate_artifact_id(artifact_id)}{suffix}"
        return f"{self.prefix}/{name}" if self.prefix else name

    def initialize(self, fail_fast: bool = True) -> None:
        """Ensure the S3 bucket exists, create it if it doesn't."""
        try:
            try:
                self.s3_client.head_bucket(Bucket=self.bucket_name)
            except ClientError as e:
                if _error_code(e) in ('404', 'NoSuchBucket', 'NotFound'):
                    # Bucket doesn't exist, create it
                    self.s3_client.create_bucket(Bucket=self.bucket_name)
                else:
                    raise
        except (ClientError, BotoCoreError) as exc:
            if fail_fast:
                raise PersistenceError(f"Could not prepare bucket {self.bucket_name}") from exc
            logger.error(f"Error preparing bucket {self.bucket_name}: {exc}")

    def save(self, artifact_id: str, data: bytes, metadata: Optional[Dict[str, Any]] = None) -> str:
        """
        Save fragments to S3.

        Returns:
            Storage path (s3://bucket/key) of the blob
        """
        blob_key = self._key(artifact_id, BLOB_SUFFIX)
        sidecar_key = self._key(artifact_id, SIDECAR_SUFFIX)

        try:
            self.s3_client.put_object(Bucket=self.bucket_name, Key=blob_key, Body=bytes(data))
        except (ClientError, BotoCoreError) as exc:
            raise PersistenceError(f"Could not write fragments {artifact_id}") from exc

        try:
            if metadata is None:
                self.s3_client.delete_object(Bucket=self.bucket_name, Key=sidecar_key)
            else:
                body = json.dumps(build_sidecar(metadata), indent=2).encode("utf-8")
                self.s3_client.put_object(
                    Bucket=self.bucket_name,
                    Key=sidecar_key,
                    Body=body,
                    ContentType="application/json"
                )
        except (ClientError, BotoCoreError, TypeError, ValueError) as exc:
            try:
                self.s3_client.delete_object(Bucket=self.bucket_name, Key=blob_key)
            except (ClientError, BotoCoreError) as cleanup_exc:
                logger.error(f"Could not remove blob for fragments {artifact_id}: {cleanup_exc}")
            raise PersistenceError(f"Could not write metadata for fragments {artifact_id}") from exc

        logger.info(f"Fragments saved: {artifact_id}")
        return f"s3://{self.bucket_name}/{blob_key}"

    def _get(self, key: str) -> bytes | None:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _error_code(e) in _MISSING_KEY_CODES:
                return None
            raise
        return response['Body'].read()

    def _read_sidecar(self, artifact_id: str) -> Tuple[Dict[str, Any], Optional[str]] | None:
        raw = self._get(self._key(artifact_id, SIDECAR_SUFFIX))
        if raw is None:
            return None
        return parse_sidecar(json.loads(raw.decode("utf-8")))

    def load(self, artifact_id: str) -> Tuple[bytes, Optional[Dict[str, Any]]]:
        data = self._get(self._key(artifact_id, BLOB_SUFFIX))
        if data is None:
            raise NotFoundError(f"Fragments not found: {artifact_id}")

        try:
            sidecar = self._read_sidecar(artifact_id)
        except (ClientError, ValueError) as exc:
            logger.warning(f"Could not read metadata for fragments {artifact_id}: {exc}")
            sidecar = None

        return data, sidecar[0] if sidecar else None

    def _list_keys(self) -> List[str]:
        paginator = self.s3_client.get_paginator('list_objects_v2')
        prefix = f"{self.prefix}/" if self.prefix else ""
        keys = []
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
            for entry in page.get("Contents", []):
                key = entry.get("Key")
                if key:
                    keys.append(key[len(prefix):])
        return keys

    def list_artifacts(self) -> List[Dict[str, Any]]:
        names = set(self._list_keys())
        ids = set()
        for name in names:
            for suffix in (BLOB_SUFFIX, SIDECAR_SUFFIX):
                if name.endswith(suffix) and "/" not in name:
                    ids.add(name[: -len(suffix)])

        entries = []
        for artifact_id in sorted(ids):
            try:
                validate_artifact_id(artifact_id)
            except NotFoundError:
                continue
            entry: Dict[str, Any] = {
                "id": artifact_id,
                "metadata": None,
                "saved_at": None,
                "has_data": f"{artifact_id}{BLOB_SUFFIX}" in names,
            }
            try:
                sidecar = self._read_sidecar(artifact_id)
            except (ClientError, ValueError):
                entry["error"] = METADATA_ERROR
            else:
                if sidecar:
                    entry["metadata"], entry["saved_at"] = sidecar
            entries.append(entry)
        return entries

    def exists(self, artifact_id: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=self._key(artifact_id, BLOB_SUFFIX))
            return True
        except ClientError as e:
            if _error_code(e) in _MISSING_KEY_CODES:
                return False
            raise

    def get_storage_stats(self) -> Dict[str, Any]:
        paginator = self.s3_client.get_paginator('list_objects_v2')
        prefix = f"{self.prefix}/" if self.prefix else ""
        count = 0
        total = 0
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
            for entry in page.get("Contents", []):
                if entry.get("Key", "").endswith(BLOB_SUFFIX):
                    count += 1
                    total += entry.get("Size", 0)
        return {
            "storage_type": "s3",
            "location": f"s3://{self.bucket_name}/{prefix}",
            "total_fragments": count,
            "total_size_bytes": total,
        }

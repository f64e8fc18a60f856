"""Where cover image bytes live.

Both backends expose the same two operations: ``store(data, suggested_name)``
returns a reference (the URL clients load the image from) and
``delete(reference)`` removes the file behind it. Names are generated, so two
stores never share a file.
"""
import logging
import os
import uuid
from functools import lru_cache
from typing import Optional, Protocol

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from horizon_library.core.config import Settings, get_settings
from horizon_library.core.errors import StorageError

logger = logging.getLogger(__name__)


class FileStorage(Protocol):
    def store(self, data: bytes, suggested_name: str) -> str: ...

    def delete(self, reference: str) -> None: ...


def _generated_name(suggested_name: str) -> str:
    ext = os.path.splitext(suggested_name or "")[1].lower()
    return f"{uuid.uuid4().hex}{ext}"


class LocalFileStorage:
    def __init__(self, directory: str, base_url: str = "/uploads/"):
        self.directory = os.path.abspath(directory)
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        os.makedirs(self.directory, exist_ok=True)

    def path_for(self, reference: str) -> str:
        if not reference.startswith(self.base_url):
            raise StorageError(f"Not a local upload reference: {reference}")
        name = reference[len(self.base_url):]
        # references are flat generated names; anything else is not ours
        if not name or os.path.basename(name) != name:
            raise StorageError(f"Not a local upload reference: {reference}")
        return os.path.join(self.directory, name)

    def store(self, data: bytes, suggested_name: str) -> str:
        name = _generated_name(suggested_name)
        dest_path = os.path.join(self.directory, name)
        try:
            with open(dest_path, "wb") as out:
                out.write(data)
        except OSError as e:
            raise StorageError(f"Could not write {name}: {e}") from e
        logger.info("Stored upload %s (%d bytes)", name, len(data))
        return f"{self.base_url}{name}"

    def delete(self, reference: str) -> None:
        path = self.path_for(reference)
        try:
            os.remove(path)
        except OSError as e:
            raise StorageError(f"Could not delete {reference}: {e}") from e
        logger.info("Deleted upload %s", reference)


class S3FileStorage:
    def __init__(self, client, bucket: str, public_base_url: str, prefix: str = "covers/"):
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.prefix = prefix

    def key_for(self, reference: str) -> str:
        base = self.public_base_url + "/"
        if not reference.startswith(base):
            raise StorageError(f"Not an S3 upload reference: {reference}")
        return reference[len(base):]

    def store(self, data: bytes, suggested_name: str) -> str:
        key = f"{self.prefix}{_generated_name(suggested_name)}"
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Could not upload {key}: {e}") from e
        logger.info("Stored upload s3://%s/%s (%d bytes)", self.bucket, key, len(data))
        return f"{self.public_base_url}/{key}"

    def delete(self, reference: str) -> None:
        key = self.key_for(reference)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Could not delete {key}: {e}") from e
        logger.info("Deleted upload s3://%s/%s", self.bucket, key)


def build_file_storage(settings: Settings) -> FileStorage:
    if settings.storage_backend == "s3":
        if not (settings.aws_access_key_id and settings.aws_secret_access_key and settings.s3_bucket and settings.aws_region):
            raise StorageError("S3 not configured")
        client = boto3.client(
            "s3",
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region,
            config=BotoConfig(signature_version="s3v4"),
        )
        public_base: Optional[str] = settings.s3_public_base_url
        if not public_base:
            public_base = f"https://{settings.s3_bucket}.s3.{settings.aws_region}.amazonaws.com"
        return S3FileStorage(client, settings.s3_bucket, public_base)
    return LocalFileStorage(settings.upload_dir, settings.static_base_url)


@lru_cache
def get_file_storage() -> FileStorage:
    return build_file_storage(get_settings())

"""S3 object storage, presigned download URLs and streaming download."""

import logging
from pathlib import Path
from typing import Protocol

import boto3
import requests
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


class StorageError(RuntimeError):
    pass


class Storage(Protocol):
    def generate_presigned_download_url(self, key: str) -> str: ...

    def upload(self, local_path: Path, key: str, public_read: bool = False) -> str: ...

    def delete(self, key: str) -> None: ...


def boto3_config() -> BotoConfig:
    return BotoConfig(
        retries={"max_attempts": 5, "mode": "standard"},
        connect_timeout=10,
        read_timeout=120,
    )


class S3Storage:
    """Single-bucket storage backed by boto3."""

    def __init__(self, bucket: str, client=None, url_ttl_seconds: int = 3600):
        self.bucket = bucket
        self.client = client or boto3.client("s3", config=boto3_config())
        self.url_ttl_seconds = url_ttl_seconds

    def generate_presigned_download_url(self, key: str) -> str:
        try:
            url = self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=self.url_ttl_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to presign s3://{self.bucket}/{key}: {e}") from e
        logger.debug("Presigned download URL for s3://%s/%s", self.bucket, key)
        return url

    def upload(self, local_path: Path, key: str, public_read: bool = False) -> str:
        local_path = Path(local_path)
        if not local_path.exists():
            raise StorageError(f"Local file not found: {local_path}")

        extra_args = {"ACL": "public-read"} if public_read else None
        logger.info("Uploading %s to s3://%s/%s", local_path, self.bucket, key)
        try:
            self.client.upload_file(str(local_path), self.bucket, key, ExtraArgs=extra_args)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload to s3://{self.bucket}/{key}: {e}") from e
        return key

    def delete(self, key: str) -> None:
        logger.info("Deleting s3://%s/%s", self.bucket, key)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete s3://{self.bucket}/{key}: {e}") from e


def download(url: str, output_path: Path, timeout: float = 60.0) -> Path:
    """Stream *url* to *output_path*."""
    try:
        with requests.get(url, stream=True, timeout=timeout) as resp:
            resp.raise_for_status()
            with open(output_path, "wb") as f:
                for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                    f.write(chunk)
    except requests.RequestException as e:
        raise StorageError(f"Download failed: {e}") from e
    logger.debug("Downloaded %d bytes to %s", output_path.stat().st_size, output_path)
    return output_path


def join_key(*parts: str) -> str:
    """Join key parts with '/', skipping empty parts and stray slashes."""
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


def edited_video_key(prefix: str, source_video_id: str, job_id: str) -> str:
    return join_key(prefix, "clips", source_video_id, f"{job_id}.mp4")


def thumbnail_key(prefix: str, source_video_id: str, job_id: str) -> str:
    return join_key(prefix, source_video_id, f"{job_id}.jpg")

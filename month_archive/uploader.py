#!/usr/bin/env python3
"""
S3 upload of finished archives.

One put_object per archive: private ACL, attachment disposition, server-side
encryption and a content type sniffed from the payload. The whole archive is
read into memory first, which is fine for a month of records; psutil is used
to warn when an archive gets large relative to free memory.
"""

import os
import time
from pathlib import Path
from typing import Optional, Union

import boto3
import psutil
from botocore.exceptions import BotoCoreError, ClientError

from .config import S3Config
from .errors import ErrorMessages, TransportError
from .logging_setup import get_archive_logger
from .models import UploadResult

logger = get_archive_logger(__name__)

SNIFF_LENGTH = 512

# Leading-byte signatures, checked in order
CONTENT_SIGNATURES = [
    (b"PK\x03\x04", "application/zip"),
    (b"PK\x05\x06", "application/zip"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"%PDF-", "application/pdf"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BZh", "application/x-bzip2"),
    (b"7z\xbc\xaf\x27\x1c", "application/x-7z-compressed"),
]

# Control bytes other than tab/newline/formfeed/carriage return/escape mark binary data
_BINARY_BYTES = set(range(0x00, 0x09)) | {0x0B} | set(range(0x0E, 0x1B)) | set(range(0x1C, 0x20))


def sniff_content_type(payload: bytes) -> str:
    """
    Guess a MIME type from the first bytes of a payload.

    Known signatures win; otherwise data without binary control bytes is
    treated as UTF-8 text.
    """
    head = payload[:SNIFF_LENGTH]
    for signature, content_type in CONTENT_SIGNATURES:
        if head.startswith(signature):
            return content_type

    if not head:
        return "text/plain; charset=utf-8"
    if any(b in _BINARY_BYTES for b in head):
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


def get_s3_client(region_name: str, profile_name: Optional[str] = None):
    """
    Build a boto3 S3 client.

    AWS_PROFILE in the environment takes precedence over profile_name.
    Credentials come from boto3's usual lookup chain.
    """
    profile_name = os.environ.get('AWS_PROFILE', profile_name)

    if profile_name:
        session = boto3.Session(profile_name=profile_name)
        return session.client('s3', region_name=region_name)
    return boto3.client('s3', region_name=region_name)


class S3Uploader:
    """Uploads archives to the configured bucket, one blocking call each."""

    def __init__(self, config: Optional[S3Config] = None, client=None):
        self.config = config or S3Config()
        self._client = client

    @property
    def client(self):
        # Created lazily so dry runs and skip-upload runs need no credentials
        if self._client is None:
            self._client = get_s3_client(self.config.region, self.config.profile)
        return self._client

    def _check_memory(self, local_path: Path, size: int) -> None:
        available = psutil.virtual_memory().available
        if size > available * self.config.memory_warning_fraction:
            logger.warning(
                f"{local_path} is {size} bytes, more than "
                f"{self.config.memory_warning_fraction:.0%} of available memory "
                f"({available} bytes); the whole archive is held in memory during upload")

    def upload(self, local_path: Union[str, Path], remote_key: str) -> UploadResult:
        """
        Upload one archive.

        Args:
            local_path: Archive on local disk
            remote_key: Key relative to the configured base path

        Raises:
            OSError: the archive cannot be read
            TransportError: S3 rejected the request or could not be reached
        """
        local_path = Path(local_path)
        key = self.config.object_key(remote_key)

        size = local_path.stat().st_size
        self._check_memory(local_path, size)
        payload = local_path.read_bytes()
        content_type = sniff_content_type(payload)

        put_args = {
            'Bucket': self.config.bucket,
            'Key': key,
            'Body': payload,
            'ContentLength': len(payload),
            'ContentType': content_type,
            'ACL': self.config.acl,
            'ContentDisposition': self.config.content_disposition,
        }
        if self.config.server_side_encryption:
            put_args['ServerSideEncryption'] = self.config.server_side_encryption

        logger.info(f"Uploading {local_path} to s3://{self.config.bucket}/{key} "
                    f"({len(payload)} bytes, {content_type})")
        start_time = time.time()

        try:
            self.client.put_object(**put_args)
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code')
            raise TransportError(ErrorMessages.format_error(
                'network', 'UPLOAD_FAILED', path=local_path,
                bucket=self.config.bucket, key=key, details=e), code=code) from e
        except BotoCoreError as e:
            raise TransportError(ErrorMessages.format_error(
                'network', 'UPLOAD_FAILED', path=local_path,
                bucket=self.config.bucket, key=key, details=e)) from e

        return UploadResult(
            success=True,
            s3_key=key,
            bucket=self.config.bucket,
            file_size=len(payload),
            content_type=content_type,
            upload_time=time.time() - start_time,
        )

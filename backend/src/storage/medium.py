"""
Wait Time Tracker - History Storage Media
Byte-oriented read/write targets for the snapshot history.

Media know nothing about snapshots: read() returns the stored bytes (or None
if nothing has been stored yet) and write() replaces them. Every failure is
raised as StoreReadFailure / StoreWriteFailure so the store can decide how
to recover.
"""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from threading import Lock
from typing import Optional

from utils.config import (
    HISTORY_FILE_PATH,
    HISTORY_S3_BUCKET,
    HISTORY_S3_KEY,
    HISTORY_STORE_BACKEND,
    ConfigurationError,
)


class StoreReadFailure(Exception):
    """Stored history exists but could not be read or decoded."""
    pass


class StoreWriteFailure(Exception):
    """History could not be written (read-only medium, permissions, network)."""
    pass


class StorageMedium(ABC):
    """Abstract durable target for serialized history."""

    @abstractmethod
    def read(self) -> Optional[bytes]:
        """
        Returns:
            Stored bytes, or None if nothing has been stored yet

        Raises:
            StoreReadFailure: If stored data exists but cannot be read
        """
        ...

    @abstractmethod
    def write(self, data: bytes) -> None:
        """
        Replace stored bytes.

        Raises:
            StoreWriteFailure: If the data could not be written
        """
        ...

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable location for logs."""
        ...


class FileStorageMedium(StorageMedium):
    """
    Local file medium.

    Writes go to a temp file in the same directory and are swapped in with
    os.replace, so a crash mid-write never leaves a truncated history.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    @property
    def location(self) -> str:
        return str(self.path)

    def read(self) -> Optional[bytes]:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreReadFailure(f"Cannot read {self.path}: {e}") from e

    def write(self, data: bytes) -> None:
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent),
                prefix=f".{self.path.name}.",
                suffix='.tmp'
            )
            with os.fdopen(fd, 'wb') as handle:
                handle.write(data)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise StoreWriteFailure(f"Cannot write {self.path}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)


class MemoryStorageMedium(StorageMedium):
    """In-process medium for tests and ephemeral deployments."""

    def __init__(self, data: Optional[bytes] = None, read_only: bool = False):
        self._data = data
        self._lock = Lock()
        self.read_only = read_only
        self.write_count = 0

    @property
    def location(self) -> str:
        return 'memory'

    def read(self) -> Optional[bytes]:
        with self._lock:
            return self._data

    def write(self, data: bytes) -> None:
        if self.read_only:
            raise StoreWriteFailure("Memory medium is read-only")
        with self._lock:
            self._data = data
            self.write_count += 1


class S3StorageMedium(StorageMedium):
    """
    Single S3 object medium.

    A missing object (NoSuchKey / 404) is a cold start, not an error.
    """

    def __init__(self, bucket: str, key: str, client=None):
        self.bucket = bucket
        self.key = key
        self._client = client

    @property
    def location(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    @property
    def client(self):
        if self._client is None:
            import boto3
            self._client = boto3.client('s3', region_name=os.getenv('AWS_REGION', 'us-west-2'))
        return self._client

    def read(self) -> Optional[bytes]:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self.key)
            return response['Body'].read()
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code')
            if code in ('NoSuchKey', '404', 'NotFound'):
                return None
            raise StoreReadFailure(f"Cannot read {self.location}: {e}") from e
        except BotoCoreError as e:
            raise StoreReadFailure(f"Cannot read {self.location}: {e}") from e

    def write(self, data: bytes) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=self.key,
                Body=data,
                ContentType='application/json'
            )
        except (BotoCoreError, ClientError) as e:
            raise StoreWriteFailure(f"Cannot write {self.location}: {e}") from e


def create_storage_medium(backend: Optional[str] = None) -> StorageMedium:
    """
    Build the medium selected by HISTORY_STORE_BACKEND.

    Raises:
        ConfigurationError: For an unknown backend or missing S3 bucket
    """
    backend = (backend or HISTORY_STORE_BACKEND).lower()
    if backend == 'file':
        return FileStorageMedium(HISTORY_FILE_PATH)
    if backend == 'memory':
        return MemoryStorageMedium()
    if backend == 's3':
        if not HISTORY_S3_BUCKET:
            raise ConfigurationError("HISTORY_S3_BUCKET is required for the s3 history backend")
        return S3StorageMedium(HISTORY_S3_BUCKET, HISTORY_S3_KEY)
    raise ConfigurationError(f"Unknown history store backend: {backend!r}")

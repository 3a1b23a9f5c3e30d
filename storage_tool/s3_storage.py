"""
S3 storage facade for soundboard audio clips.

Wraps a boto3 S3 client so the rest of the application can upload, list,
stream and prune .mp3 files without touching the SDK directly. Works with
AWS S3 and S3-compatible services (MinIO, Cloudflare R2) via endpoint_url.
"""

import io
import locale
import logging
import threading
import unicodedata
from datetime import datetime, timezone
from typing import Optional, Callable, Any, List, Union, BinaryIO, Iterator

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import BotoCoreError, ClientError

from shared.config import StorageConfig
from shared.constants import (
    AUDIO_EXTENSION,
    CACHE_CONTROL,
    CLEANUP_MIN_SIZE,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_STREAM_CHUNK_SIZE,
    LIST_MAX_KEYS,
    MULTIPART_CHUNK_SIZE,
    MULTIPART_THRESHOLD,
    NOT_FOUND_CODES,
    UPLOADED_BY,
)
from shared.exceptions import (
    CleanupError,
    DeleteError,
    ListError,
    StorageError,
    StreamError,
    UploadError,
)
from shared.models import AudioFile, BucketStats, FileInfo, UploadProgress

logger = logging.getLogger(__name__)


def sanitize_file_name(file_name: str) -> str:
    """
    Turn a user supplied name into a storage key.

    Path separators are stripped and the .mp3 extension is enforced.
    """
    sanitized = file_name.replace('/', '').replace('\\', '')
    if sanitized.endswith(AUDIO_EXTENSION):
        return sanitized
    return f"{sanitized}{AUDIO_EXTENSION}"


def is_not_found(exc: BaseException) -> bool:
    """True if a botocore error means the object does not exist."""
    if not isinstance(exc, ClientError):
        return False
    response = getattr(exc, 'response', {}) or {}
    status_code = (response.get('ResponseMetadata') or {}).get('HTTPStatusCode')
    error_code = str((response.get('Error') or {}).get('Code') or '')
    return status_code == 404 or error_code in NOT_FOUND_CODES


class AudioStream:
    """
    Single-consumer byte stream over an object body.

    Use as a context manager, or call close() when done, so the underlying
    HTTP connection goes back to the pool even if the body is not drained.
    """

    def __init__(self, key: str, body: Any, content_length: Optional[int] = None,
                 content_type: Optional[str] = None):
        self.key = key
        self.content_length = content_length
        self.content_type = content_type
        self._body = body
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self, amt: Optional[int] = None) -> bytes:
        if self._closed:
            raise StreamError(message=f"Stream for {self.key} is closed")
        try:
            return self._body.read(amt)
        except (BotoCoreError, OSError) as e:
            logger.error(f"Read failed for {self.key}: {e}")
            raise StreamError(e) from e

    def iter_chunks(self, chunk_size: int = DEFAULT_STREAM_CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the body in chunks, closing the stream once drained."""
        try:
            while True:
                chunk = self.read(chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._body.close()

    def __enter__(self) -> 'AudioStream':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_chunks()


class S3AudioStorage:
    """
    Facade over a single S3 bucket of .mp3 clips.

    Every key passed in (except to get_public_url) is sanitized first. Write
    and read failures are raised as StorageError subclasses; existence and
    info queries report a missing object as False/None instead.
    """

    def __init__(self, config: Optional[StorageConfig] = None, client: Any = None):
        self.config = config or StorageConfig.from_env()
        self.bucket_name = self.config.bucket_name
        self.base_url = self.config.base_url
        self.s3_client = client or self._create_client()
        self.transfer_config = TransferConfig(
            multipart_threshold=MULTIPART_THRESHOLD,
            multipart_chunksize=MULTIPART_CHUNK_SIZE,
        )

    def _create_client(self):
        client_kwargs = {
            'region_name': self.config.region,
            'aws_access_key_id': self.config.access_key_id,
            'aws_secret_access_key': self.config.secret_access_key,
        }
        if self.config.endpoint_url:
            client_kwargs['endpoint_url'] = self.config.endpoint_url
        return boto3.client('s3', **client_kwargs)

    def upload_file(self, file_name: str, data: Union[bytes, bytearray, BinaryIO],
                    content_type: str = DEFAULT_CONTENT_TYPE,
                    progress_callback: Optional[Callable[[UploadProgress], None]] = None) -> str:
        """
        Upload an audio clip and return its public URL.

        Args:
            file_name: Desired name, sanitized into the object key
            data: Raw bytes or a readable binary file object
            content_type: MIME type stored with the object
            progress_callback: Optional callback for upload progress

        Raises:
            UploadError: If the transfer fails
        """
        key = sanitize_file_name(file_name)
        try:
            if isinstance(data, (bytes, bytearray)):
                total_bytes = len(data)
                fileobj = io.BytesIO(data)
            else:
                total_bytes = _remaining_size(data)
                fileobj = data

            extra_args = {
                'ContentType': content_type,
                'CacheControl': CACHE_CONTROL,
                'Metadata': {
                    'uploaded-by': UPLOADED_BY,
                    'upload-date': datetime.now(timezone.utc).isoformat(),
                },
            }

            callback = None
            if progress_callback:
                # boto3 reports the bytes sent since the previous call
                # from several transfer threads at once
                sent = [0]
                sent_lock = threading.Lock()

                def callback(bytes_transferred):
                    with sent_lock:
                        sent[0] += bytes_transferred
                        uploaded = sent[0]
                    progress_callback(UploadProgress(
                        bytes_uploaded=uploaded,
                        total_bytes=total_bytes,
                        percentage=(uploaded / total_bytes * 100) if total_bytes > 0 else 0,
                        file_name=key
                    ))

            self.s3_client.upload_fileobj(
                fileobj, self.bucket_name, key,
                ExtraArgs=extra_args,
                Callback=callback,
                Config=self.transfer_config
            )
        except Exception as e:
            logger.error(f"Upload failed for {key}: {e}")
            raise UploadError(e) from e

        logger.info(f"Uploaded: {key}")
        return self.get_public_url(key)

    def delete_file(self, file_name: str) -> None:
        """
        Delete a clip. Deleting a key that does not exist is not an error.

        Raises:
            DeleteError: If the delete request fails
        """
        self._delete_key(sanitize_file_name(file_name))

    def _delete_key(self, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except Exception as e:
            logger.error(f"Delete failed for {key}: {e}")
            raise DeleteError(e) from e
        logger.info(f"Deleted: {key}")

    def list_files(self) -> List[AudioFile]:
        """
        List the .mp3 clips in the bucket, sorted by name.

        Only the first page of up to LIST_MAX_KEYS objects is read.

        Raises:
            ListError: If the listing request fails
        """
        try:
            response = self.s3_client.list_objects_v2(
                Bucket=self.bucket_name,
                Prefix='',
                MaxKeys=LIST_MAX_KEYS
            )
        except Exception as e:
            logger.error(f"List files failed: {e}")
            raise ListError(e) from e

        if response.get('IsTruncated'):
            logger.warning(f"Bucket {self.bucket_name} holds more than {LIST_MAX_KEYS} objects, listing is truncated")

        files = []
        for obj in response.get('Contents') or []:
            key = obj.get('Key')
            if not key or not key.endswith(AUDIO_EXTENSION):
                continue
            files.append(AudioFile(
                key=key,
                name=key,
                size=obj.get('Size') or 0,
                last_modified=obj.get('LastModified') or datetime.now(timezone.utc),
                url=self.get_public_url(key)
            ))

        files.sort(key=lambda f: _collation_key(f.name))
        logger.debug(f"Listed {len(files)} audio files in {self.bucket_name}")
        return files

    def file_exists(self, file_name: str) -> bool:
        """
        Check if a clip exists.

        Errors other than "not found" propagate unchanged.
        """
        key = sanitize_file_name(file_name)
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            if is_not_found(e):
                return False
            raise

    def get_file_stream(self, file_name: str) -> AudioStream:
        """
        Open a clip for streaming reads.

        The caller owns the returned stream and must drain or close it.

        Raises:
            StreamError: If the object cannot be fetched or has no body
        """
        key = sanitize_file_name(file_name)
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
        except Exception as e:
            logger.error(f"Get file stream failed for {key}: {e}")
            raise StreamError(e) from e

        body = response.get('Body')
        if body is None:
            logger.error(f"Get file stream failed for {key}: no file body received")
            raise StreamError(message="Failed to get file stream: no file body received")

        return AudioStream(
            key=key,
            body=body,
            content_length=response.get('ContentLength'),
            content_type=response.get('ContentType')
        )

    def get_public_url(self, key: str) -> str:
        """Public URL for an already sanitized key."""
        return f"{self.base_url}/{key}"

    def get_file_info(self, file_name: str) -> Optional[FileInfo]:
        """
        Get size and modification time of a clip.

        Returns:
            FileInfo, or None if the clip does not exist
        """
        key = sanitize_file_name(file_name)
        try:
            response = self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if is_not_found(e):
                return None
            raise

        return FileInfo(
            size=response.get('ContentLength') or 0,
            last_modified=response.get('LastModified') or datetime.now(timezone.utc),
            content_type=response.get('ContentType'),
            metadata=dict(response.get('Metadata') or {})
        )

    def get_bucket_stats(self) -> BucketStats:
        """
        Count the clips and sum their sizes.

        Returns empty stats if the listing fails.
        """
        try:
            files = self.list_files()
        except Exception as e:
            logger.error(f"Get bucket stats failed: {e}")
            return BucketStats()

        return BucketStats(
            file_count=len(files),
            total_size=sum(f.size for f in files)
        )

    def cleanup_files(self, min_size: int = CLEANUP_MIN_SIZE) -> List[str]:
        """
        Delete clips smaller than min_size bytes (likely corrupted uploads).

        Deletions made before a failure are not rolled back.

        Returns:
            Names of the deleted clips

        Raises:
            CleanupError: If listing or any deletion fails
        """
        cleaned = []
        try:
            for audio_file in self.list_files():
                if audio_file.size < min_size:
                    # listed keys are already in storage form, do not sanitize again
                    self._delete_key(audio_file.key)
                    cleaned.append(audio_file.name)
        except StorageError as e:
            logger.error(f"Cleanup failed after removing {len(cleaned)} files: {e}")
            raise CleanupError(e) from e

        if cleaned:
            logger.info(f"Cleaned up {len(cleaned)} files")
        return cleaned

    def test_connection(self) -> bool:
        """Check that the bucket is reachable with the configured credentials."""
        try:
            self.s3_client.list_objects_v2(Bucket=self.bucket_name, MaxKeys=1)
        except Exception as e:
            logger.error(f"Connection test failed: {e}")
            return False
        logger.info("Connection test successful")
        return True


def _remaining_size(fileobj: BinaryIO) -> int:
    """Bytes left between the current position and the end of a seekable file."""
    try:
        position = fileobj.tell()
        end = fileobj.seek(0, io.SEEK_END)
        fileobj.seek(position)
        return end - position
    except (AttributeError, OSError):
        return 0


def _collation_key(name: str):
    """
    Sort key close to a locale-aware string compare.

    Accents and case only break ties: "a" < "B" < "c" and "e" < "é" < "f",
    with lowercase before uppercase for otherwise equal names.
    """
    decomposed = unicodedata.normalize('NFKD', name)
    base = ''.join(c for c in decomposed if not unicodedata.combining(c)).casefold()
    return (locale.strxfrm(base), locale.strxfrm(name.casefold()), name.swapcase())

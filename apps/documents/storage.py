"""
Object storage for document files.

Two providers share one interface, selected by ``STORAGE_PROVIDER``:

- ``s3``: any S3 compatible store (AWS, MinIO, R2) through boto3, with
  presigned URLs generated by the client.
- ``local``: Django's FileSystemStorage under ``MEDIA_ROOT``. Presigned
  URLs point at ``/v1/documents/files/<token>`` where the token is a
  signed, time-limited reference to the key.

Provider errors are raised as StorageError.
"""
import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.core import signing
from django.core.files.base import ContentFile
from django.core.files.storage import FileSystemStorage
from django.urls import reverse

from apps.core.exceptions import StorageError

logger = logging.getLogger(__name__)

SIGNING_SALT = 'documents.storage'


def _expires(expires_in: Optional[int]) -> int:
    return int(expires_in or settings.PRESIGNED_URL_EXPIRES)


class S3Storage:
    """S3 compatible provider."""

    def __init__(self):
        self.bucket = settings.S3_BUCKET
        if not self.bucket:
            raise StorageError('S3 bucket is not configured')
        self.client = boto3.client(
            's3',
            endpoint_url=settings.S3_ENDPOINT_URL or None,
            region_name=settings.S3_REGION or None,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY or None,
            config=Config(signature_version=settings.S3_SIGNATURE_VERSION),
        )

    def upload(self, key: str, content: bytes, content_type: str) -> str:
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=content, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed", extra={'key': key, 'error': str(e)}, exc_info=True)
            raise StorageError('Could not store the file', {'key': key})
        return key

    def delete(self, key: str):
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError('Could not delete the file', {'key': key, 'error': str(e)})

    def download_url(self, key: str, expires_in: int, file_name: Optional[str] = None) -> str:
        params = {'Bucket': self.bucket, 'Key': key}
        if file_name:
            params['ResponseContentDisposition'] = f'inline; filename="{file_name}"'
        try:
            return self.client.generate_presigned_url('get_object', Params=params, ExpiresIn=expires_in)
        except (BotoCoreError, ClientError) as e:
            raise StorageError('Could not sign the download URL', {'key': key, 'error': str(e)})

    def upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        try:
            return self.client.generate_presigned_url(
                'put_object',
                Params={'Bucket': self.bucket, 'Key': key, 'ContentType': content_type},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError('Could not sign the upload URL', {'key': key, 'error': str(e)})


class LocalStorage:
    """Filesystem provider for development."""

    def __init__(self):
        self.storage = FileSystemStorage(location=settings.MEDIA_ROOT)

    def upload(self, key: str, content: bytes, content_type: str) -> str:
        try:
            if self.storage.exists(key):
                self.storage.delete(key)
            return self.storage.save(key, ContentFile(content))
        except OSError as e:
            logger.error("Local upload failed", extra={'key': key, 'error': str(e)}, exc_info=True)
            raise StorageError('Could not store the file', {'key': key})

    def delete(self, key: str):
        try:
            self.storage.delete(key)
        except OSError as e:
            raise StorageError('Could not delete the file', {'key': key, 'error': str(e)})

    def _signed_url(self, key: str, method: str, expires_in: int, file_name: Optional[str] = None) -> str:
        token = signing.dumps(
            {'key': key, 'method': method, 'name': file_name, 'expires_in': expires_in},
            salt=SIGNING_SALT,
        )
        return reverse('documents:document-file', kwargs={'token': token})

    def download_url(self, key: str, expires_in: int, file_name: Optional[str] = None) -> str:
        return self._signed_url(key, 'GET', expires_in, file_name)

    def upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        return self._signed_url(key, 'PUT', expires_in)


def get_storage():
    provider = settings.STORAGE_PROVIDER
    if provider == 's3':
        return S3Storage()
    if provider == 'local':
        return LocalStorage()
    raise StorageError(f"Unknown storage provider '{provider}'")


def upload_file(key: str, content: bytes, content_type: str = 'application/octet-stream') -> str:
    """Store ``content`` under ``key`` and return the key actually used."""
    stored_key = get_storage().upload(key, content, content_type)
    logger.info("File stored", extra={'key': stored_key, 'size': len(content)})
    return stored_key


def delete_file(key: str):
    get_storage().delete(key)
    logger.info("File deleted", extra={'key': key})


def get_presigned_download_url(key: str, expires_in: Optional[int] = None,
                               file_name: Optional[str] = None) -> str:
    return get_storage().download_url(key, _expires(expires_in), file_name=file_name)


def get_presigned_upload_url(key: str, content_type: str = 'application/octet-stream',
                             expires_in: Optional[int] = None) -> dict:
    expires = _expires(expires_in)
    return {
        'url': get_storage().upload_url(key, content_type, expires),
        'key': key,
        'method': 'PUT',
        'headers': {'Content-Type': content_type},
        'expires_in': expires,
    }


def read_signed_token(token: str, method: str) -> dict:
    """
    Validate a local provider token for ``method``.

    Raises:
        StorageError: Expired, tampered, or issued for another method
    """
    try:
        payload = signing.loads(token, salt=SIGNING_SALT)
        max_age = payload.get('expires_in', settings.PRESIGNED_URL_EXPIRES)
        signing.loads(token, salt=SIGNING_SALT, max_age=max_age)
    except signing.SignatureExpired:
        raise StorageError('Link has expired')
    except signing.BadSignature:
        raise StorageError('Invalid link')

    if payload.get('method') != method:
        raise StorageError('Invalid link')
    return payload


def open_local_file(key: str):
    return LocalStorage().storage.open(key, 'rb')


def save_local_file(key: str, content: bytes) -> str:
    return LocalStorage().upload(key, content, 'application/octet-stream')

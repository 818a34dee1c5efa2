import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional
from urllib.parse import quote

import requests

from zimshelf.exceptions import StorageException
from zimshelf.metrics import cdn_upload_duration_seconds

logger = logging.getLogger('main')

KIND_FILE = 'file'
KIND_THUMBNAIL = 'thumbnail'


class CdnProvider(ABC):
    """Accepts bytes, returns a durable public URL."""

    name = 'cdn'

    def __init__(self, upload_timeout: int = 600, thumbnail_timeout: int = 300):
        self.upload_timeout = upload_timeout
        self.thumbnail_timeout = thumbnail_timeout

    @abstractmethod
    def _upload(self, data: bytes, file_name: str, content_type: str, kind: str, timeout: int) -> str:
        pass

    def upload_file(self, data: bytes, file_name: str, content_type: str) -> str:
        return self._timed_upload(data, file_name, content_type, KIND_FILE, self.upload_timeout)

    def upload_thumbnail(self, data: bytes, file_name: str) -> str:
        return self._timed_upload(data, file_name, 'image/jpeg', KIND_THUMBNAIL, self.thumbnail_timeout)

    def _timed_upload(self, data, file_name, content_type, kind, timeout):
        start_time = time.time()
        try:
            url = self._upload(data, file_name, content_type, kind, timeout)
        except requests.RequestException as e:
            raise StorageException(f"{self.name.capitalize()} {kind} upload error: {e}") from e
        finally:
            cdn_upload_duration_seconds.labels(provider=self.name, kind=kind).observe(time.time() - start_time)
        logger.info(f"{self.name.capitalize()} {kind} upload successful: {url}")
        return url


class CatboxProvider(CdnProvider):
    name = 'catbox'

    def __init__(self, api_url: str, userhash: str = '', **kwargs):
        super().__init__(**kwargs)
        self.api_url = api_url
        self.userhash = userhash

    def _upload(self, data, file_name, content_type, kind, timeout):
        form = {'reqtype': 'fileupload'}
        if self.userhash:
            form['userhash'] = self.userhash
        response = requests.post(
            self.api_url,
            data=form,
            files={'fileToUpload': (file_name, data, content_type)},
            timeout=timeout,
        )
        response.raise_for_status()

        url = response.text.strip()
        if not url.startswith('http'):
            raise StorageException(f"Invalid response from Catbox: {url}")
        return url


class SupabaseProvider(CdnProvider):
    name = 'supabase'

    FOLDERS = {KIND_FILE: 'ebooks', KIND_THUMBNAIL: 'thumbnails'}

    def __init__(self, url: str, key: str, bucket: str, **kwargs):
        super().__init__(**kwargs)
        self.url = url.rstrip('/')
        self.key = key
        self.bucket = bucket

    def object_path(self, file_name: str, kind: str = KIND_FILE) -> str:
        return f"{self.FOLDERS[kind]}/{file_name}"

    def public_url(self, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{quote(path)}"

    def _upload(self, data, file_name, content_type, kind, timeout):
        path = self.object_path(file_name, kind)
        response = requests.post(
            f"{self.url}/storage/v1/object/{self.bucket}/{quote(path)}",
            data=data,
            headers={
                'Authorization': f"Bearer {self.key}",
                'apikey': self.key,
                'Content-Type': content_type,
                'x-upsert': 'true',
            },
            timeout=timeout,
        )
        if response.status_code >= 400:
            try:
                message = response.json().get('message') or response.text
            except ValueError:
                message = response.text
            raise StorageException(f"Supabase {kind} upload error: {message}")
        return self.public_url(path)


def create_storage_provider(storage_settings: Dict) -> Optional[CdnProvider]:
    """Build the provider named by storage_settings['provider']."""
    provider = storage_settings.get('provider', 'catbox')
    timeouts = {
        'upload_timeout': int(storage_settings.get('upload_timeout', 600)),
        'thumbnail_timeout': int(storage_settings.get('thumbnail_timeout', 300)),
    }

    if provider == 'catbox':
        return CatboxProvider(
            api_url=storage_settings['catbox_api_url'],
            userhash=storage_settings.get('catbox_userhash', ''),
            **timeouts,
        )
    if provider == 'supabase':
        return SupabaseProvider(
            url=storage_settings['supabase_url'],
            key=storage_settings['supabase_key'],
            bucket=storage_settings['supabase_bucket'],
            **timeouts,
        )

    logger.error(f"Unknown storage provider {provider}, uploads are disabled.")
    return None


def get_storage_provider() -> CdnProvider:
    from flask import current_app

    provider = current_app.extensions.get('zimshelf.cdn')
    if provider is None:
        raise StorageException("No storage provider configured")
    return provider

# 📄 File: gardenbeds/shared/infrastructure/storage/supabase_storage.py
#
# 🧭 Purpose (Layman Explanation):
# Puts garden photos into cloud storage, takes them out again, and works out the web address
# where each photo can be viewed.
#
# 🧪 Purpose (Technical Summary):
# Async wrapper around one Supabase Storage bucket: uploads with cache-control and no
# overwrite, batch removal, public URL derivation. Storage failures raise StorageError.
#
# 🔗 Dependencies:
# - supabase-py storage client (storage3)
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.modules.garden.infrastructure.database.media_repository
# - gardenbeds.modules.garden.infrastructure.database.bed_repository

import asyncio
from typing import List

from gardenbeds.shared.core.exceptions import StorageError
from gardenbeds.shared.utils.logging import get_logger

logger = get_logger(__name__)

CACHE_CONTROL_SECONDS = "3600"


class SupabaseBucket:
    """One storage bucket of the Supabase project."""

    def __init__(self, client, bucket_name: str):
        self._client = client
        self.bucket_name = bucket_name

    def _bucket(self):
        return self._client.storage.from_(self.bucket_name)

    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        """
        Upload ``content`` to ``path``. Existing objects are never overwritten.

        Returns:
            The storage path
        """
        try:
            await asyncio.to_thread(
                self._bucket().upload,
                path=path,
                file=content,
                file_options={
                    "content-type": content_type,
                    "cache-control": CACHE_CONTROL_SECONDS,
                    "upsert": "false",
                },
            )
        except Exception as e:
            logger.error(f"File upload failed: {e}", extra={'bucket': self.bucket_name, 'path': path})
            raise StorageError(f"Upload failed: {e}", bucket=self.bucket_name, path=path) from e

        logger.info(f"File uploaded successfully: {path}", extra={'bucket': self.bucket_name})
        return path

    async def remove(self, paths: List[str]) -> None:
        if not paths:
            return
        try:
            await asyncio.to_thread(self._bucket().remove, paths)
        except Exception as e:
            logger.error(f"File removal failed: {e}", extra={'bucket': self.bucket_name, 'paths': paths})
            raise StorageError(f"Remove failed: {e}", bucket=self.bucket_name, path=paths[0]) from e

    def public_url(self, path: str) -> str:
        """Public URL for ``path``. Computed locally, no request is made."""
        url = self._bucket().get_public_url(path)
        # Some client versions append an empty query string
        return url.rstrip("?")

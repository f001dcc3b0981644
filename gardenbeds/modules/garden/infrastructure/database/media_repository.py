# 📄 File: gardenbeds/modules/garden/infrastructure/database/media_repository.py
# 🧭 Purpose (Layman Explanation):
# Manages the photo galleries attached to pins and plants: uploading a photo, listing the
# photos with their web addresses, and deleting a photo together with its file.
#
# 🧪 Purpose (Technical Summary):
# Supabase repositories for pin_media and plant_media. Uploads write the file to storage under
# a generated name, then insert the metadata row (removing the file again if the insert
# fails). Public URLs are derived from storage paths when listing, never stored.
#
# 🔗 Dependencies:
# - uuid (generated object names)
# - gardenbeds.shared.infrastructure.storage.supabase_storage
# - gardenbeds.modules.garden.infrastructure.database.base_repository
#
# 🔄 Connected Modules / Calls From:
# - gardenbeds.modules.garden.application.data_service

import uuid
from typing import Any, Dict, List, Type

from pydantic import BaseModel

from gardenbeds.modules.garden.domain.models.media import MediaUpload, PinMedia, PlantMedia
from gardenbeds.shared.core.exceptions import GardenException
from gardenbeds.shared.infrastructure.storage.supabase_storage import SupabaseBucket
from gardenbeds.shared.utils.logging import get_logger

from . import cache_keys
from .base_repository import BaseRepository

logger = get_logger(__name__)


class _MediaRepository(BaseRepository):
    """Media rows whose files live in one storage bucket."""

    owner_column: str = ""
    model: Type[BaseModel] = BaseModel

    def __init__(self, *args, bucket: SupabaseBucket, **kwargs):
        super().__init__(*args, **kwargs)
        self._bucket = bucket

    def _storage_path(self, owner_id: str, upload: MediaUpload) -> str:
        raise NotImplementedError

    def _cache_key(self, owner_id: str) -> str:
        raise NotImplementedError

    def _row_payload(self, owner_id: str, storage_path: str, upload: MediaUpload) -> Dict[str, Any]:
        payload = {
            self.owner_column: owner_id,
            "storage_path": storage_path,
            "image_id": upload.image_id,
            "caption": upload.caption,
            "captured_at": upload.captured_at.isoformat() if upload.captured_at else None,
        }
        return {key: value for key, value in payload.items() if value is not None}

    def _with_url(self, row: Dict[str, Any]):
        return self.model.model_validate({**row, "url": self._bucket.public_url(row["storage_path"])})

    async def list_for(self, owner_id: str) -> List[Any]:
        async def load() -> List[Any]:
            rows = await self._fetch_many(
                self._table().select("*").eq(self.owner_column, owner_id).order("created_at", desc=True),
                f"get_{self.table}",
                f"Failed to fetch {self.table}"
            )
            return [self._with_url(row) for row in rows]

        return await self._cached(self._cache_key(owner_id), load, tags=(cache_keys.MEDIA_LIST,))

    async def upload(self, owner_id: str, upload: MediaUpload):
        """
        Store a file and record it.

        Returns:
            The created media row, with its public URL

        Raises:
            StorageError: If the file could not be stored
            DatabaseError: If the row could not be inserted (the stored file is removed)
        """
        storage_path = self._storage_path(owner_id, upload)
        await self._bucket.upload(storage_path, upload.content, upload.resolved_content_type)

        try:
            row = await self._insert(
                self._row_payload(owner_id, storage_path, upload),
                f"create_{self.table}",
                f"Failed to record {self.table}"
            )
        except GardenException:
            logger.warning(f"Removing orphaned upload: {storage_path}", extra={'bucket': self._bucket.bucket_name})
            await self._bucket.remove([storage_path])
            raise

        self._invalidate(cache_keys.MEDIA_LIST)
        return self._with_url(row)

    async def delete(self, media_id: str) -> None:
        """Remove the stored file, then the row. Unknown ids are a no-op."""
        row = await self._fetch_one(
            self._table().select("storage_path").eq("id", media_id),
            f"get_{self.table}_path",
            f"Failed to fetch {self.table}"
        )
        if not row:
            return

        await self._bucket.remove([row["storage_path"]])
        await self._execute(
            self._table().delete().eq("id", media_id),
            f"delete_{self.table}",
            f"Failed to delete {self.table}"
        )
        self._invalidate(cache_keys.MEDIA_LIST)


class PinMediaRepository(_MediaRepository):
    table = "pin_media"
    resource_name = "PinMedia"
    owner_column = "pin_id"
    model = PinMedia

    def _storage_path(self, owner_id: str, upload: MediaUpload) -> str:
        return f"pin/{owner_id}/{uuid.uuid4()}.{upload.extension}"

    def _cache_key(self, owner_id: str) -> str:
        return cache_keys.pin_media(owner_id)


class PlantMediaRepository(_MediaRepository):
    table = "plant_media"
    resource_name = "PlantMedia"
    owner_column = "plant_id"
    model = PlantMedia

    def _storage_path(self, owner_id: str, upload: MediaUpload) -> str:
        return f"{owner_id}/{uuid.uuid4()}.{upload.extension}"

    def _cache_key(self, owner_id: str) -> str:
        return cache_keys.plant_media(owner_id)

    def _row_payload(self, owner_id: str, storage_path: str, upload: MediaUpload) -> Dict[str, Any]:
        payload = super()._row_payload(owner_id, storage_path, upload)
        if upload.pin_id:
            payload["pin_id"] = upload.pin_id
        return payload

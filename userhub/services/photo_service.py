import asyncio
import time
from typing import Any, Dict, Optional

from userhub.core import NotFound, ValidationFailed, get_logger, get_userhub_config, operation
from userhub.storage import StoredObject

PHOTO_URL = "/users/me/profile/photo"
DEFAULT_PHOTO_TYPE = "image/jpeg"


class PhotoService:
    """Profile photos of the calling user, stored in object storage."""

    def __init__(self, user_repo, profile_repo, storage):
        self.user_repo = user_repo
        self.profile_repo = profile_repo
        self.storage = storage
        self.logger = get_logger("photos.service")

    async def _own_profile(self, user: Dict[str, Any]) -> Dict[str, Any]:
        current = await self.user_repo.get_by_id(user["_id"])
        if current is None or not current.get("user_info_id"):
            raise NotFound("User profile not found")
        profile = await self.profile_repo.get_by_id(current["user_info_id"])
        if profile is None:
            raise NotFound("User info not found")
        return profile

    @operation("Failed to update profile photo")
    async def update_self_photo(
        self,
        user: Dict[str, Any],
        *,
        filename: Optional[str],
        content_type: Optional[str],
        data: Optional[bytes],
    ) -> Dict[str, Any]:
        """Store a new photo and link it to the caller's profile.

        The superseded object is removed only once the profile points at the new one; a failed
        removal is only logged. If linking fails, the new object is removed again.
        """
        if not data:
            raise ValidationFailed("Photo file is required", field="file")
        max_bytes = get_userhub_config().USERHUB.MAX_UPLOAD_BYTES
        if len(data) > max_bytes:
            raise ValidationFailed(f"Photo exceeds the {max_bytes} byte limit", field="file")

        profile = await self._own_profile(user)
        original_name = filename or "photo"
        object_name = f"{int(time.time() * 1000)}-{original_name}"
        bucket = await asyncio.to_thread(self.storage.put_bytes, object_name, data, content_type)

        photo = {
            "bucket": bucket,
            "filename": object_name,
            "original_name": original_name,
            "mimetype": content_type,
        }
        try:
            await self.profile_repo.set_photo(profile["_id"], photo)
        except Exception:
            await self._remove_quietly(bucket, object_name, "Failed to remove unlinked profile photo")
            raise

        previous = profile.get("profile_photo") or {}
        if previous.get("bucket") and previous.get("filename"):
            await self._remove_quietly(
                previous["bucket"], previous["filename"], "Failed to remove previous profile photo"
            )
        self.logger.info("profile photo updated", profile_id=str(profile["_id"]), size=len(data))
        return {"photoUrl": PHOTO_URL}

    async def _remove_quietly(self, bucket: str, filename: str, message: str) -> None:
        try:
            await asyncio.to_thread(self.storage.delete, filename, bucket)
        except Exception as e:
            self.logger.warning(message, bucket=bucket, filename=filename, error=str(e))

    @operation("Failed to load profile photo")
    async def get_self_photo(self, user: Dict[str, Any]) -> StoredObject:
        """Open the caller's photo for streaming. The stored mimetype wins over the object's."""
        current = await self.user_repo.get_by_id(user["_id"])
        profile = None
        if current is not None and current.get("user_info_id"):
            profile = await self.profile_repo.get_by_id(current["user_info_id"])
        photo = (profile or {}).get("profile_photo") or {}
        if not photo.get("bucket") or not photo.get("filename"):
            raise NotFound("Profile photo not found")

        stored = await asyncio.to_thread(self.storage.get_object, photo["filename"], photo["bucket"])
        stored.content_type = photo.get("mimetype") or DEFAULT_PHOTO_TYPE
        stored.name = photo.get("original_name") or photo["filename"]
        return stored

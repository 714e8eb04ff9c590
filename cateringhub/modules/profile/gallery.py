from supabase import Client
from cateringhub.config import settings
from cateringhub.core.errors import internal, invalid_input, not_found
from cateringhub.core.membership import ProviderMembership, ensure_capability
from cateringhub.modules.profile.schemas import GalleryImageResponse
from typing import List, Optional
from fastapi import HTTPException, UploadFile
import logging
import uuid

logger = logging.getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class GalleryService:
    """Provider gallery images stored in Supabase Storage"""

    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.bucket = settings.storage_bucket

    def _images(self, provider_id: str) -> List[dict]:
        result = self.supabase.table("provider_gallery_images")\
            .select("*")\
            .eq("provider_id", provider_id)\
            .order("display_order")\
            .execute()
        return result.data or []

    def list_images(self, provider_id: str) -> List[GalleryImageResponse]:
        return [GalleryImageResponse(**row) for row in self._images(provider_id)]

    async def upload_image(
        self, membership: ProviderMembership, file: UploadFile, caption: Optional[str] = None
    ) -> GalleryImageResponse:
        ensure_capability(membership, "can_edit_profile", "You do not have permission to edit the gallery")

        content_type = (file.content_type or "").lower()
        if content_type not in settings.get_gallery_content_types():
            raise invalid_input("Invalid file type. Only JPEG, PNG, and WebP are allowed")

        limit = settings.gallery_max_file_size
        if file.size is not None and file.size > limit:
            raise invalid_input("File size exceeds 5MB limit")
        # Never buffer more than one byte past the limit
        content = await file.read(limit + 1)
        if len(content) > limit:
            raise invalid_input("File size exceeds 5MB limit")
        if not content:
            raise invalid_input("File is empty")

        provider_id = membership.provider_id
        images = self._images(provider_id)
        if len(images) >= settings.gallery_max_images:
            raise invalid_input(f"Gallery limit reached. Maximum {settings.gallery_max_images} images allowed")

        extension = CONTENT_TYPE_EXTENSIONS.get(content_type, "jpg")
        storage_path = f"gallery/{provider_id}/{uuid.uuid4()}.{extension}"
        storage = self.supabase.storage.from_(self.bucket)
        try:
            storage.upload(storage_path, content, file_options={"content-type": content_type})
            logger.info(f"Uploaded gallery image to Supabase Storage: {storage_path}")
        except Exception as e:
            logger.error(f"Supabase Storage upload failed: {e}")
            raise internal("Failed to upload image")

        display_order = max((row.get("display_order") or 0 for row in images), default=-1) + 1
        try:
            result = self.supabase.table("provider_gallery_images").insert({
                "provider_id": provider_id,
                "image_url": storage.get_public_url(storage_path),
                "storage_path": storage_path,
                "caption": caption,
                "display_order": display_order,
            }).execute()
            if not result.data:
                raise internal("Failed to save gallery image")
            return GalleryImageResponse(**result.data[0])
        except Exception as e:
            # Do not leave an orphaned object behind
            try:
                storage.remove([storage_path])
            except Exception as cleanup_error:
                logger.warning(f"Failed to remove orphaned gallery object {storage_path}: {cleanup_error}")
            if isinstance(e, HTTPException):
                raise
            logger.error(f"Error saving gallery image of provider {provider_id}: {e}")
            raise internal("Failed to save gallery image")

    def delete_image(self, membership: ProviderMembership, image_id: str) -> bool:
        ensure_capability(membership, "can_edit_profile", "You do not have permission to edit the gallery")
        provider_id = membership.provider_id
        try:
            row = next((r for r in self._images(provider_id) if r["id"] == image_id), None)
            if row is None:
                raise not_found("Image")

            self.supabase.table("provider_gallery_images")\
                .delete()\
                .eq("id", image_id)\
                .eq("provider_id", provider_id)\
                .execute()

            if row.get("storage_path"):
                try:
                    self.supabase.storage.from_(self.bucket).remove([row["storage_path"]])
                except Exception as e:
                    logger.warning(f"Failed to delete gallery object from Supabase Storage ({row['storage_path']}): {e}")
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting gallery image {image_id}: {e}")
            raise internal("Failed to delete image")

    def reorder(self, membership: ProviderMembership, image_ids: List[str]) -> List[GalleryImageResponse]:
        """Set display_order to each image's position in `image_ids`"""
        ensure_capability(membership, "can_edit_profile", "You do not have permission to edit the gallery")
        provider_id = membership.provider_id
        if len(set(image_ids)) != len(image_ids):
            raise invalid_input("Duplicate image ids in order")
        try:
            owned = {row["id"] for row in self._images(provider_id)}
            if not set(image_ids) <= owned:
                raise invalid_input("Some images do not belong to this provider")

            for position, image_id in enumerate(image_ids):
                self.supabase.table("provider_gallery_images")\
                    .update({"display_order": position})\
                    .eq("id", image_id)\
                    .eq("provider_id", provider_id)\
                    .execute()
            return self.list_images(provider_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error reordering gallery of provider {provider_id}: {e}")
            raise internal("Failed to reorder images")

    def set_featured(self, membership: ProviderMembership, image_id: Optional[str]) -> Optional[str]:
        """Point providers.featured_image_url at a gallery image; None clears it"""
        ensure_capability(membership, "can_edit_profile", "You do not have permission to edit the gallery")
        provider_id = membership.provider_id
        try:
            image_url = None
            if image_id:
                row = next((r for r in self._images(provider_id) if r["id"] == image_id), None)
                if row is None:
                    raise not_found(message="Image not found in gallery")
                image_url = row["image_url"]

            self.supabase.table("providers")\
                .update({"featured_image_url": image_url})\
                .eq("id", provider_id)\
                .execute()
            return image_url
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error setting featured image of provider {provider_id}: {e}")
            raise internal("Failed to set featured image")

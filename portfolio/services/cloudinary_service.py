"""
Cloudinary service for image upload and deletion.
Assets are stored under the path category[/subcategory]/timestamp_filename.
"""
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from portfolio.config import settings
import logging
import asyncio
import os
import re
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

# Configure Cloudinary with credentials from settings
cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
    secure=True  # Always use HTTPS for secure URLs
)


def storage_folder(category: str, subcategory: Optional[str] = None) -> str:
    """Folder for a category, nested under the subcategory when there is one."""
    return f"{category}/{subcategory}" if subcategory else category


def storage_filename(original_name: str, timestamp_ms: int) -> str:
    """Stored file name: the upload timestamp prefixed to the original name."""
    return f"{timestamp_ms}_{os.path.basename(original_name) or 'image'}"


def storage_public_id(filename: str) -> str:
    """Cloudinary public ids carry no extension."""
    return filename.rsplit(".", 1)[0] if "." in filename else filename


async def upload_image(
    file: Any,
    folder: str,
    public_id: Optional[str] = None,
    max_retries: int = 3
) -> Dict[str, Any]:
    """
    Upload image to Cloudinary with retry logic.

    Args:
        file: File object, file path, or bytes to upload
        folder: Cloudinary folder path (e.g. "store/prints")
        public_id: Optional public ID for the image inside the folder
        max_retries: Maximum number of retry attempts for transient failures

    Returns:
        dict: Upload result containing:
            - url: Secure HTTPS URL for the uploaded image
            - public_id: Cloudinary public ID (folder included)
            - format: Image format (jpg, png, webp, etc.)
            - bytes: File size in bytes

    Raises:
        CloudinaryError: If upload fails after all retries
    """
    for attempt in range(max_retries):
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                file,
                folder=folder,
                public_id=public_id,
                overwrite=False,
                resource_type="image",
            )

            logger.info(f"Successfully uploaded image: {result['public_id']}")

            return {
                "url": result["secure_url"],
                "public_id": result["public_id"],
                "format": result.get("format"),
                "bytes": result.get("bytes"),
            }

        except CloudinaryError as e:
            logger.warning(f"Cloudinary upload error (attempt {attempt + 1}/{max_retries}): {str(e)}")

            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)  # 1s, 2s, 4s backoff
                continue

            logger.error(f"Cloudinary upload failed after {max_retries} attempts: {str(e)}")
            raise


async def delete_image(public_id: str, max_retries: int = 3) -> Dict[str, Any]:
    """
    Delete image from Cloudinary with retry logic.

    A "not found" answer counts as success: the asset is gone either way.

    Args:
        public_id: Cloudinary public ID of the image to delete
        max_retries: Maximum number of retry attempts for transient failures

    Returns:
        dict: Deletion result from Cloudinary

    Raises:
        CloudinaryError: If deletion fails after all retries or Cloudinary
            reports anything other than "ok"/"not found"
    """
    for attempt in range(max_retries):
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                invalidate=True,  # Invalidate CDN cache
                resource_type="image",
            )
        except CloudinaryError as e:
            logger.warning(f"Cloudinary delete error (attempt {attempt + 1}/{max_retries}) for {public_id}: {str(e)}")

            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)
                continue

            logger.error(f"Cloudinary delete failed after {max_retries} attempts for {public_id}: {str(e)}")
            raise

        if result.get("result") in ("ok", "not found"):
            logger.info(f"Deleted image from Cloudinary: {public_id} (result: {result.get('result')})")
            return result

        raise CloudinaryError(f"Unexpected Cloudinary delete result for {public_id}: {result}")


def extract_public_id_from_url(cloudinary_url: str) -> str:
    """
    Extract Cloudinary public_id from a delivery URL.

    Cloudinary URLs look like:
    https://res.cloudinary.com/{cloud_name}/image/upload/v{version}/{public_id}.{format}

    Raises:
        ValueError: If URL format is invalid
    """
    match = re.search(r'/image/upload(?:/v\d+)?/(.+)$', cloudinary_url)
    if not match:
        raise ValueError(f"Invalid Cloudinary URL format: {cloudinary_url}")

    parts = match.group(1).split("/")
    # Strip the extension from the file name only, folders may contain dots
    parts[-1] = storage_public_id(parts[-1])
    return "/".join(parts)


def validate_cloudinary_config() -> bool:
    """
    Validate that Cloudinary is properly configured.

    Returns:
        bool: True if Cloudinary is configured, False otherwise
    """
    if not settings.CLOUDINARY_CLOUD_NAME:
        logger.warning("CLOUDINARY_CLOUD_NAME not configured")
        return False
    if not settings.CLOUDINARY_API_KEY:
        logger.warning("CLOUDINARY_API_KEY not configured")
        return False
    if not settings.CLOUDINARY_API_SECRET:
        logger.warning("CLOUDINARY_API_SECRET not configured")
        return False

    return True

"""
CMS API routes.
All endpoints require an administrator token (see portfolio.utils.jwt_auth).

Uploads and deletes span two stores (Cloudinary, then the record store)
without a transaction: an upload whose record write fails leaves an
unreferenced asset, and a delete whose record delete fails leaves a record
pointing at a missing asset. Both are logged, neither is repaired here.
"""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timezone
from typing import Optional, List
import asyncio
import logging
import time

from portfolio.database import get_db
from portfolio.models import ImageRecord, ImageCategory
from portfolio.schemas import (
    ImageResponse,
    ImageUpdate,
    MoveRequest,
    MoveResponse,
    FeaturedText,
    PurchaseUrl,
    BackgroundImage,
)
from portfolio.services.cloudinary_service import (
    upload_image,
    delete_image,
    extract_public_id_from_url,
    storage_folder,
    storage_filename,
    storage_public_id,
    validate_cloudinary_config,
)
from portfolio.services.image_ordering import plan_move
from portfolio.services.image_queries import get_images_by_category, get_image, find_orphaned_images
from portfolio.services.site_settings import SettingKey, save_setting, delete_setting, get_setting
from portfolio.utils.image_converter import prepare_upload
from portfolio.utils.jwt_auth import require_admin
from portfolio.utils.rate_limit import limiter, RATE_LIMITS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cms", tags=["CMS"], dependencies=[Depends(require_admin)])

BACKGROUND_FOLDER = "website-settings"


def _require_backend(db: Optional[AsyncSession]) -> AsyncSession:
    if db is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "Record store unavailable", "detail": "DATABASE_URL is not configured"}
        )
    return db


def _require_storage() -> None:
    if not validate_cloudinary_config():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "Object storage unavailable", "detail": "Cloudinary credentials are not configured"}
        )


def _clean(value) -> Optional[str]:
    if value is None or not isinstance(value, str):
        return None
    return value.strip() or None


async def _load_image(db: AsyncSession, image_id: str) -> ImageRecord:
    image = await get_image(db, image_id)
    if image is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Image not found", "detail": f"Image ID {image_id} does not exist"}
        )
    return image


@router.get("/images", response_model=List[ImageResponse])
async def get_cms_images(
    category: ImageCategory,
    subcategory: Optional[str] = None,
    db: Optional[AsyncSession] = Depends(get_db)
):
    """
    Images of one CMS tab, in the order the site displays them.
    """
    images = await get_images_by_category(_require_backend(db), category, subcategory)
    logger.info(f"Retrieved {len(images)} images for CMS tab {category.value}/{subcategory or '*'}")
    return [ImageResponse.model_validate(img) for img in images]


@router.get("/images/orphaned", response_model=List[ImageResponse])
async def get_orphaned_images(
    category: ImageCategory = ImageCategory.FEATURED,
    db: Optional[AsyncSession] = Depends(get_db)
):
    """
    Images that no subcategory tab shows (diagnostic, delete through the
    normal delete endpoint).
    """
    images = await find_orphaned_images(_require_backend(db), category)
    return [ImageResponse.model_validate(img) for img in images]


async def _upload_to_cloudinary(file: UploadFile, folder: str, timestamp_ms: int) -> dict:
    """
    Upload a single image to Cloudinary (no database operations).
    Can run concurrently with other uploads.

    Returns:
        dict: url, stored filename, original name, size and content type
    """
    original_name = file.filename or "image"
    content = await file.read()

    prepared = await asyncio.to_thread(
        prepare_upload, content, original_name, file.content_type or "application/octet-stream"
    )
    filename = storage_filename(prepared.filename, timestamp_ms)

    logger.info(f"Uploading {original_name} to {folder}/{filename}")
    result = await upload_image(prepared.data, folder=folder, public_id=storage_public_id(filename))

    return {
        "url": result["url"],
        "filename": filename,
        "original_name": original_name,
        "size": len(prepared.data),
        "content_type": prepared.content_type,
        "timestamp_ms": timestamp_ms,
    }


@router.post("/images", response_model=List[ImageResponse], status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def upload_cms_images(
    request: Request,
    db: Optional[AsyncSession] = Depends(get_db)
):
    """
    Upload one or more images into a category/subcategory.

    Multipart fields: ``files`` (repeated), ``category``, and optional
    ``subcategory``, ``customName``, ``price``, ``description`` applied to
    every file. Each new record gets ``sortOrder`` = its upload timestamp in
    milliseconds, so it lands after manually ordered images.

    Raises:
        HTTPException: 400 on bad input, 500 if every upload or the record
            write fails, 503 if a backend is not configured
    """
    db = _require_backend(db)
    _require_storage()

    form = await request.form()
    files = [f for f in form.getlist("files") if hasattr(f, "filename")]

    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "No files provided", "detail": "At least one image file is required"}
        )

    try:
        category = ImageCategory(form.get("category"))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Invalid category",
                "detail": f"category must be one of: {', '.join(c.value for c in ImageCategory)}"
            }
        )
    subcategory = _clean(form.get("subcategory"))

    for file in files:
        if not file.content_type or not file.content_type.startswith("image/"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": "Invalid file type", "detail": f"File '{file.filename}' is not a valid image file"}
            )

    # Step 1: push every file to Cloudinary concurrently
    folder = storage_folder(category.value, subcategory)
    base_timestamp = int(time.time() * 1000)
    upload_results = await asyncio.gather(
        *[_upload_to_cloudinary(file, folder, base_timestamp + i) for i, file in enumerate(files)],
        return_exceptions=True
    )

    successful_uploads = []
    errors = []
    for file, result in zip(files, upload_results):
        if isinstance(result, Exception):
            logger.error(f"Error uploading file {file.filename} to Cloudinary: {str(result)}")
            errors.append({"filename": file.filename, "error": str(result)})
        else:
            successful_uploads.append(result)

    if not successful_uploads:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "All uploads failed", "errors": errors}
        )

    # Step 2: write the records on the one session
    try:
        created_images = []
        for upload in successful_uploads:
            image = ImageRecord(
                url=upload["url"],
                filename=upload["filename"],
                original_name=upload["original_name"],
                category=category,
                subcategory=subcategory,
                custom_name=_clean(form.get("customName")),
                price=_clean(form.get("price")),
                description=_clean(form.get("description")),
                sort_order=upload["timestamp_ms"],
                uploaded_at=datetime.fromtimestamp(upload["timestamp_ms"] / 1000, tz=timezone.utc),
                size=upload["size"],
                content_type=upload["content_type"],
            )
            db.add(image)
            created_images.append(image)

        await db.commit()
        for image in created_images:
            await db.refresh(image)
    except Exception as e:
        await db.rollback()
        logger.error(
            f"Record write failed after upload, {len(successful_uploads)} asset(s) left without records: {str(e)}",
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to save image records", "detail": str(e)}
        )

    if errors:
        logger.warning(f"Partial upload success: {len(created_images)} succeeded, {len(errors)} failed")
    logger.info(f"Successfully uploaded {len(created_images)} image(s) to {folder}")

    return [ImageResponse.model_validate(img) for img in created_images]


@router.put("/images/{image_id}", response_model=ImageResponse)
async def update_cms_image(
    image_id: str,
    image_update: ImageUpdate,
    db: Optional[AsyncSession] = Depends(get_db)
):
    """
    Update the display metadata (customName, price, description) of an image.
    Fields left out of the payload keep their value; empty strings clear.

    Raises:
        HTTPException: 404 if image not found, 500 if update fails
    """
    db = _require_backend(db)
    image = await _load_image(db, image_id)

    try:
        for field in image_update.model_fields_set:
            setattr(image, field, getattr(image_update, field))
        await db.commit()
        await db.refresh(image)
    except Exception as e:
        await db.rollback()
        logger.error(f"Error updating image {image_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to update image", "detail": str(e)}
        )

    logger.info(f"Updated image {image_id}: {sorted(image_update.model_fields_set)}")
    return ImageResponse.model_validate(image)


@router.delete("/images/{image_id}")
@limiter.limit(RATE_LIMITS["delete"])
async def delete_cms_image(
    request: Request,
    image_id: str,
    confirm: bool = Query(False, description="Must be true; deletion cannot be undone"),
    db: Optional[AsyncSession] = Depends(get_db)
):
    """
    Delete an image: the Cloudinary asset first, then its record.

    If the asset delete fails nothing else happens and the record stays.
    If the record delete fails afterwards, the record is left pointing at a
    missing asset.

    Raises:
        HTTPException: 400 without confirm=true, 404 if image not found,
            502 if the asset delete fails, 500 if the record delete fails
    """
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Confirmation required", "detail": "Pass confirm=true to delete this image"}
        )

    db = _require_backend(db)
    image = await _load_image(db, image_id)

    try:
        public_id = extract_public_id_from_url(image.url)
    except ValueError as e:
        logger.warning(f"{str(e)}, skipping asset delete for image {image_id}")
        public_id = None

    if public_id:
        try:
            await delete_image(public_id)
        except Exception as e:
            logger.error(f"Asset delete failed for image {image_id} ({public_id}), record kept: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={"error": "Failed to delete image asset", "detail": str(e)}
            )

    try:
        await db.delete(image)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(
            f"Record delete failed for image {image_id} after its asset was removed; "
            f"the record now points at a missing asset: {str(e)}",
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to delete image record", "detail": str(e)}
        )

    logger.info(f"Deleted image {image_id}")
    return {"message": "Image deleted successfully", "image_id": image_id}


@router.post("/images/{image_id}/move", response_model=MoveResponse)
async def move_cms_image(
    image_id: str,
    move: MoveRequest,
    db: Optional[AsyncSession] = Depends(get_db)
):
    """
    Swap an image's sortOrder with its neighbour in the displayed list.

    The list is the image's category and subcategory in display order.
    Images without a sortOrder take their display index first. Moving the
    first image up or the last one down changes nothing.

    ``moved`` reports whether the displayed order changed. Swapping a ranked
    image with an unranked neighbour writes both sortOrders but can leave
    the order as it was.

    Raises:
        HTTPException: 404 if image not found, 409 if it is missing from
            its own list, 500 if the update fails
    """
    db = _require_backend(db)
    image = await _load_image(db, image_id)

    images = [
        img for img in await get_images_by_category(db, image.category, image.subcategory)
        if (img.subcategory or None) == (image.subcategory or None)
    ]
    index = next((i for i, img in enumerate(images) if img.id == image.id), None)
    if index is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "Image not listed", "detail": f"Image ID {image_id} is not in its displayed list"}
        )

    plan = plan_move(images, index, move.direction)
    if plan is None:
        return MoveResponse(moved=False, images=[ImageResponse.model_validate(img) for img in images])

    current, current_order, neighbour, neighbour_order = plan
    try:
        images[current].sort_order = current_order
        images[neighbour].sort_order = neighbour_order
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Error moving image {image_id} {move.direction}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to reorder image", "detail": str(e)}
        )

    logger.info(
        f"Moved image {image_id} {move.direction}: "
        f"sortOrder now {current_order}, neighbour {images[neighbour].id} now {neighbour_order}"
    )
    reordered = [
        img for img in await get_images_by_category(db, image.category, image.subcategory)
        if (img.subcategory or None) == (image.subcategory or None)
    ]
    return MoveResponse(
        moved=[img.id for img in reordered] != [img.id for img in images],
        images=[ImageResponse.model_validate(img) for img in reordered]
    )


async def _save(db: AsyncSession, key: SettingKey, value: dict) -> dict:
    try:
        return await save_setting(db, key, value)
    except Exception as e:
        await db.rollback()
        logger.error(f"Error saving setting {key.value}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to save setting", "detail": str(e)}
        )


@router.put("/settings/featured-text", response_model=FeaturedText)
async def update_featured_text(
    featured_text: FeaturedText,
    db: Optional[AsyncSession] = Depends(get_db)
):
    value = featured_text.model_dump()
    value["updatedAt"] = datetime.now(timezone.utc).isoformat()
    await _save(_require_backend(db), SettingKey.FEATURED_TEXT, value)
    return featured_text


@router.put("/settings/banner-purchase-url", response_model=PurchaseUrl)
async def update_banner_purchase_url(
    purchase_url: PurchaseUrl,
    db: Optional[AsyncSession] = Depends(get_db)
):
    await _save(_require_backend(db), SettingKey.BANNER_PURCHASE_URL, purchase_url.model_dump())
    return purchase_url


async def _discard_background_asset(url: str) -> None:
    try:
        await delete_image(extract_public_id_from_url(url))
    except Exception as e:
        logger.warning(f"Background asset not deleted ({url}): {str(e)}")


@router.post("/settings/background-image", response_model=BackgroundImage)
async def upload_background_image(
    file: UploadFile = File(...),
    db: Optional[AsyncSession] = Depends(get_db)
):
    """Replace the site-wide background image; the previous asset is removed best-effort."""
    db = _require_backend(db)
    _require_storage()
    previous = await get_setting(db, SettingKey.BACKGROUND_IMAGE)

    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid file type", "detail": f"File '{file.filename}' is not a valid image file"}
        )

    try:
        upload = await _upload_to_cloudinary(file, BACKGROUND_FOLDER, int(time.time() * 1000))
    except Exception as e:
        logger.error(f"Background image upload failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to upload background image", "detail": str(e)}
        )

    await _save(db, SettingKey.BACKGROUND_IMAGE, {"url": upload["url"]})
    if previous.get("url") and previous["url"] != upload["url"]:
        await _discard_background_asset(previous["url"])
    return BackgroundImage(url=upload["url"])


@router.delete("/settings/background-image")
async def remove_background_image(db: Optional[AsyncSession] = Depends(get_db)):
    """Drop the background image override; the asset is removed best-effort."""
    db = _require_backend(db)
    current = await get_setting(db, SettingKey.BACKGROUND_IMAGE)

    removed = await delete_setting(db, SettingKey.BACKGROUND_IMAGE)
    if current.get("url"):
        await _discard_background_asset(current["url"])

    return {"message": "Background image removed", "removed": removed}

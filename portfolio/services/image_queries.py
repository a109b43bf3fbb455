"""
Read access to the image record store.
All listing goes through get_images_by_category so every view filters and
orders the same way.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from portfolio.models import ImageRecord, ImageCategory
from portfolio.services.image_ordering import sort_images

logger = logging.getLogger(__name__)


async def get_images_by_category(
    db: Optional[AsyncSession],
    category: ImageCategory,
    subcategory: Optional[str] = None,
) -> List[ImageRecord]:
    """
    Fetch the images of a category (and subcategory, when given) in display order.

    Never raises: an unconfigured backend or a failed query is logged and
    reported as an empty list, which callers render as "no images".

    Args:
        db: Database session, or None when no backend is configured
        category: Section to list
        subcategory: Optional tag within the section

    Returns:
        List[ImageRecord]: Records ordered by sort_order, then newest upload
    """
    if db is None:
        logger.info(f"No record store configured, returning no images for {category.value}")
        return []

    try:
        query = (
            select(ImageRecord)
            .where(ImageRecord.category == category)
            .order_by(ImageRecord.uploaded_at.desc(), ImageRecord.id)
        )
        if subcategory:
            query = query.where(ImageRecord.subcategory == subcategory)

        result = await db.execute(query)
        images = sort_images(result.scalars().all())

        logger.debug(
            f"Retrieved {len(images)} images for {category.value}"
            f"{'/' + subcategory if subcategory else ''}"
        )
        return images

    except Exception as e:
        logger.error(
            f"Failed to load images for {category.value}/{subcategory or '*'}: {str(e)}",
            exc_info=True
        )
        return []


async def get_image(db: AsyncSession, image_id: str) -> Optional[ImageRecord]:
    result = await db.execute(select(ImageRecord).where(ImageRecord.id == image_id))
    return result.scalar_one_or_none()


def _looks_like_profile(image: ImageRecord) -> bool:
    names = (image.original_name or "", image.filename or "")
    return any("profile" in name.lower() for name in names)


async def find_orphaned_images(
    db: Optional[AsyncSession],
    category: ImageCategory = ImageCategory.FEATURED,
) -> List[ImageRecord]:
    """
    Diagnostic listing of images no subcategory view will ever show.

    Returns the category's records without a subcategory, plus records whose
    file name mentions "profile" (left over from the old profile slot),
    de-duplicated and in display order.
    """
    images = await get_images_by_category(db, category)

    orphaned = [img for img in images if not img.subcategory]
    orphaned_ids = {img.id for img in orphaned}
    orphaned.extend(
        img for img in images
        if img.id not in orphaned_ids and _looks_like_profile(img)
    )

    logger.info(f"Found {len(orphaned)} orphaned images in {category.value}")
    return sort_images(orphaned)

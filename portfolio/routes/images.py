"""
Public image routes for the gallery, store, collaborations and about pages.
Read paths never fail the page: any backend problem yields an empty list.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from portfolio.database import get_db
from portfolio.models import ImageCategory, KNOWN_SUBCATEGORIES
from portfolio.schemas import ImageResponse, CategoryInfo
from portfolio.services.image_ordering import get_random_images
from portfolio.services.image_queries import get_images_by_category

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/categories", response_model=List[CategoryInfo])
async def list_categories():
    """Sections of the site and the subcategories the CMS offers for each."""
    return [
        CategoryInfo(category=category, subcategories=KNOWN_SUBCATEGORIES[category])
        for category in ImageCategory
    ]


@router.get("/images", response_model=List[ImageResponse])
async def list_images(
    category: ImageCategory,
    subcategory: Optional[str] = None,
    db: Optional[AsyncSession] = Depends(get_db)
):
    """
    Images of a section in display order.

    Args:
        category: Section to list
        subcategory: Optional tag within the section (e.g. store/prints)

    Returns:
        List[ImageResponse]: Manually ordered images first, then newest uploads
    """
    images = await get_images_by_category(db, category, subcategory)
    return [ImageResponse.model_validate(img) for img in images]


@router.get("/images/random", response_model=List[ImageResponse])
async def random_images(
    category: ImageCategory,
    subcategory: Optional[str] = None,
    count: int = Query(1, ge=1, le=50),
    db: Optional[AsyncSession] = Depends(get_db)
):
    """Random selection from a section, used by the rotating hero slots."""
    images = await get_images_by_category(db, category, subcategory)
    return [ImageResponse.model_validate(img) for img in get_random_images(images, count)]

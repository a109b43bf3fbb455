"""
SQLAlchemy models for the application.
All database models inherit from Base (declarative base).
"""
import enum
import uuid

from sqlalchemy import Column, String, Text, DateTime, BigInteger, Integer, JSON, Enum
from sqlalchemy.sql import func
from portfolio.database import Base


class ImageCategory(str, enum.Enum):
    """Top-level site sections an image can belong to."""
    FEATURED = "featured"
    GALLERY = "gallery"
    STORE = "store"
    COLLABORATIONS = "collaborations"
    ABOUT = "about"


# Subcategories offered by the admin panel. Subcategory stays free text;
# this only feeds the category listing.
KNOWN_SUBCATEGORIES = {
    ImageCategory.FEATURED: ["hero-images", "showcase-pieces", "featured-collections", "spotlight-works"],
    ImageCategory.GALLERY: [],
    ImageCategory.STORE: ["original-works", "prints", "apparel", "commissions", "nfts"],
    ImageCategory.COLLABORATIONS: ["partnerships", "joint-projects", "gallery-collaborations", "artist-networks"],
    ImageCategory.ABOUT: ["studio-shots", "artist-portraits", "work-in-progress", "behind-scenes", "press-coverage"],
}


def _new_id() -> str:
    return str(uuid.uuid4())


class ImageRecord(Base):
    """
    Image metadata record.
    One flat collection for every section, discriminated by
    category/subcategory and ordered by sort_order then uploaded_at.
    """
    __tablename__ = "images"

    id = Column(String(36), primary_key=True, default=_new_id)
    url = Column(String, nullable=False)
    filename = Column(String, nullable=False)
    original_name = Column(String, nullable=True)
    category = Column(
        Enum(ImageCategory, name="image_category", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    subcategory = Column(String, nullable=True, index=True)
    custom_name = Column(String, nullable=True)
    price = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    sort_order = Column(BigInteger, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    size = Column(Integer, nullable=True)
    content_type = Column(String, nullable=True)


class SiteSetting(Base):
    """
    Singleton configuration documents keyed by a well-known id
    (featured caption text, banner purchase link, background image).
    """
    __tablename__ = "site_settings"

    key = Column(String(64), primary_key=True)
    value = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

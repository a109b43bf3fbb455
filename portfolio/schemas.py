"""
Pydantic schemas for request and response data validation.
JSON uses the camelCase field names the site frontend already reads
(customName, sortOrder, uploadedAt, ...).
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional, List, Literal

from portfolio.models import ImageCategory


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ImageResponse(CamelModel):
    """
    Image record as served to the gallery, store and CMS views.
    """
    id: str
    url: str
    filename: str
    original_name: Optional[str] = None
    category: ImageCategory
    subcategory: Optional[str] = None
    custom_name: Optional[str] = None
    price: Optional[str] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None
    uploaded_at: datetime
    size: Optional[int] = None
    content_type: Optional[str] = Field(default=None, alias="type")


class ImageUpdate(CamelModel):
    """
    Partial update of the editable display metadata.
    Only fields present in the payload are written; values are trimmed and
    an empty string clears the field.
    """
    custom_name: Optional[str] = None
    price: Optional[str] = None
    description: Optional[str] = None

    @field_validator("custom_name", "price", "description")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        v = v.strip()
        return v or None


class MoveRequest(BaseModel):
    """Move an image one slot up or down in its displayed list."""
    direction: Literal["up", "down"]


class MoveResponse(BaseModel):
    moved: bool
    images: List[ImageResponse]


class CategoryInfo(BaseModel):
    category: ImageCategory
    subcategories: List[str]


class FeaturedText(BaseModel):
    """Caption shown beside the featured piece."""
    title: str = "About This Piece"
    content: str = ""


class PurchaseUrl(BaseModel):
    url: str = ""

    @field_validator("url")
    @classmethod
    def strip_url(cls, v):
        return v.strip()


class BackgroundImage(BaseModel):
    url: Optional[str] = None


class LoginRequest(BaseModel):
    password: str


class GoogleLoginRequest(CamelModel):
    id_token: str


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    email: Optional[str] = None


class PrincipalResponse(CamelModel):
    email: Optional[str] = None
    is_admin: bool

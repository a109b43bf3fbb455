"""
Singleton site-settings documents (featured caption, banner purchase link,
background image) stored in the site_settings table.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Optional
import enum
import logging

from portfolio.models import SiteSetting

logger = logging.getLogger(__name__)


class SettingKey(str, enum.Enum):
    FEATURED_TEXT = "featured-text"
    BANNER_PURCHASE_URL = "banner-purchase-url"
    BACKGROUND_IMAGE = "background-image"


DEFAULT_FEATURED_CONTENT = (
    '"Art is Alchemy" represents the transformative power of artistic creation. '
    "This mixed media piece combines traditional techniques with modern experimentation, "
    "embodying the philosophy that art has the ability to transmute ordinary materials "
    "into something extraordinary."
)

SETTING_DEFAULTS: Dict[SettingKey, Dict[str, Any]] = {
    SettingKey.FEATURED_TEXT: {"title": "About This Piece", "content": DEFAULT_FEATURED_CONTENT},
    SettingKey.BANNER_PURCHASE_URL: {"url": ""},
    SettingKey.BACKGROUND_IMAGE: {"url": None},
}


async def get_setting(db: Optional[AsyncSession], key: SettingKey) -> Dict[str, Any]:
    """
    Read a settings document merged over its defaults.
    Read failures fall back to the defaults.
    """
    value = dict(SETTING_DEFAULTS[key])
    if db is None:
        return value

    try:
        result = await db.execute(select(SiteSetting).where(SiteSetting.key == key.value))
        row = result.scalar_one_or_none()
    except Exception as e:
        logger.error(f"Failed to load setting {key.value}: {str(e)}", exc_info=True)
        return value

    if row is not None and isinstance(row.value, dict):
        # Empty strings fall back, as the site has always treated them
        value.update({k: v for k, v in row.value.items() if v not in ("", None)})
    return value


async def save_setting(db: AsyncSession, key: SettingKey, value: Dict[str, Any]) -> Dict[str, Any]:
    """Replace a settings document. Errors propagate to the caller."""
    result = await db.execute(select(SiteSetting).where(SiteSetting.key == key.value))
    row = result.scalar_one_or_none()

    if row is None:
        row = SiteSetting(key=key.value, value=value)
        db.add(row)
    else:
        row.value = value

    await db.commit()
    logger.info(f"Saved setting {key.value}")
    return value


async def delete_setting(db: AsyncSession, key: SettingKey) -> bool:
    result = await db.execute(select(SiteSetting).where(SiteSetting.key == key.value))
    row = result.scalar_one_or_none()
    if row is None:
        return False

    await db.delete(row)
    await db.commit()
    logger.info(f"Removed setting {key.value}")
    return True

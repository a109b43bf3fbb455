"""
Public read access to the site-settings documents.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Optional

from portfolio.database import get_db
from portfolio.services.site_settings import SettingKey, get_setting

router = APIRouter()


@router.get("/settings/{key}")
async def read_setting(
    key: SettingKey,
    db: Optional[AsyncSession] = Depends(get_db)
) -> Dict[str, Any]:
    """Current value of a settings document, or its defaults."""
    return await get_setting(db, key)

"""Config store: one value per key in the ``app_config`` table."""

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.app_config import AppConfig

logger = logging.getLogger(__name__)

QR_CODE_KEY = "qr_code_path"


class ConfigStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when absent or unreadable."""
        try:
            result = await self.db.execute(select(AppConfig.value).where(AppConfig.key == key))
        except SQLAlchemyError as e:
            logger.warning(f"Error fetching config {key}: {e}")
            return None
        return result.scalar_one_or_none()

    async def set(self, key: str, value: str) -> bool:
        """Insert or replace ``key``. Returns False if the write failed."""
        try:
            await self.db.merge(AppConfig(key=key, value=value))
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error setting config {key}: {e}")
            await self.db.rollback()
            return False
        return True


async def get_config_store(db: AsyncSession = Depends(get_db)) -> ConfigStore:
    return ConfigStore(db)

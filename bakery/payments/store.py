"""Per-request snapshot of the store settings singleton"""

from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bakery.fulfillment.schedule import (
    ScheduleConfig,
    default_schedule_config,
    normalize_schedule_config,
)
from bakery.models.store_settings import STORE_SETTINGS_ID, StoreSettings

logger = structlog.get_logger()


@dataclass(frozen=True)
class StoreSettingsSnapshot:
    stripe_account_id: Optional[str]
    schedule: ScheduleConfig


async def get_or_create_store_settings(db: AsyncSession) -> StoreSettings:
    """Load the singleton row, creating it with defaults on first use"""
    row = await db.get(StoreSettings, STORE_SETTINGS_ID)
    if row is not None:
        return row

    try:
        async with db.begin_nested():
            row = StoreSettings(
                id=STORE_SETTINGS_ID,
                fulfillment_schedule=default_schedule_config().model_dump(),
            )
            db.add(row)
        await db.commit()
        return row
    except IntegrityError:
        # Another request created the row first.
        logger.info("Store settings created concurrently, re-reading")
        result = await db.execute(
            select(StoreSettings).where(StoreSettings.id == STORE_SETTINGS_ID)
        )
        return result.scalar_one()


async def load_store_settings(db: AsyncSession) -> StoreSettingsSnapshot:
    row = await get_or_create_store_settings(db)
    account_id = (row.stripe_account_id or "").strip() or None
    return StoreSettingsSnapshot(
        stripe_account_id=account_id,
        schedule=normalize_schedule_config(row.fulfillment_schedule),
    )

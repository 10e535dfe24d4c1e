"""Connected account onboarding (admin)"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from bakery.api.auth import AdminUser, get_current_admin
from bakery.api.deps import get_payment_processor
from bakery.config import settings
from bakery.database import get_db
from bakery.models.store_settings import STORE_SETTINGS_ID
from bakery.payments.audit import record_audit
from bakery.payments.processor import PaymentProcessor
from bakery.payments.store import get_or_create_store_settings

router = APIRouter()
logger = structlog.get_logger()


@router.post("/connect")
async def connect_stripe_account(
    admin: AdminUser = Depends(get_current_admin),
    processor: PaymentProcessor = Depends(get_payment_processor),
    db: AsyncSession = Depends(get_db),
):
    """Reuse or create the bakery's connected account and return an onboarding link"""
    store = await get_or_create_store_settings(db)
    existing_id = (store.stripe_account_id or "").strip() or None

    account_id = None
    if existing_id:
        account = await processor.retrieve_account(existing_id)
        account_id = account.id if account else None

    if account_id is None:
        account_id = await processor.create_account()
        store.stripe_account_id = account_id
        await db.commit()
        logger.info("Connected account stored", stripe_account_id=account_id, replaced=existing_id)
        await record_audit(
            db,
            action="stripe.account.create",
            entity_type="StoreSettings",
            entity_id=STORE_SETTINGS_ID,
            details={"stripe_account_id": account_id},
            actor_email=admin.email,
        )

    base_url = settings.public_base_url.rstrip("/")
    url = await processor.create_account_link(
        account_id,
        refresh_url=f"{base_url}/admin?stripe=refresh",
        return_url=f"{base_url}/admin?stripe=connected",
    )
    return {"stripeAccountId": account_id, "url": url}

"""Connected-account resolver"""

from typing import Optional

import structlog

from bakery.payments.errors import ProcessorError
from bakery.payments.processor import PaymentProcessor

logger = structlog.get_logger()


async def resolve_connected_account(
    processor: PaymentProcessor,
    account_id: Optional[str],
) -> Optional[str]:
    """Return an account id that can receive routed funds, or None.

    None means settle to the platform account. A missing, deleted or
    transfer-incapable account is an expected degraded state during
    onboarding and never raises.
    """
    if not account_id:
        return None

    try:
        account = await processor.retrieve_account(account_id)
    except ProcessorError as e:
        logger.warning(
            "Unable to validate connected account",
            stripe_account_id=account_id,
            error=e.message,
            code=e.code,
        )
        return None

    if account is None:
        logger.info("Connected account not found", stripe_account_id=account_id)
        return None

    if not account.transfers_active:
        logger.info("Connected account cannot receive transfers yet", stripe_account_id=account_id)
        return None

    return account.id

"""Best-effort audit trail writes"""

from typing import Any, Dict, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bakery.models.audit import AdminAuditLog

logger = structlog.get_logger()


async def record_audit(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: Optional[int],
    details: Dict[str, Any],
    actor_email: str = "system",
) -> bool:
    """Write an audit row in its own commit.

    Call only after the primary work is committed. Failures are logged
    and swallowed so they never undo or fail the caller's operation.
    """
    try:
        db.add(
            AdminAuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                details_json=details,
                actor_email=actor_email,
            )
        )
        await db.commit()
        return True
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to write audit entry", action=action, error=str(e))
        return False

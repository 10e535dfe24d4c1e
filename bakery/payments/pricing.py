"""Line-item price authority

Recomputes names, prices and quantities for a cart from the current
catalog. Client-submitted prices are never read.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bakery.models.menu import MenuItem
from bakery.payments.errors import CheckoutValidationError, ItemsUnavailableError


@dataclass(frozen=True)
class CartLine:
    menu_item_id: int
    variant_id: Optional[int]
    quantity: int


@dataclass(frozen=True)
class PricedLine:
    """Authoritative line sent to the processor and frozen into the order"""
    item_id: int
    name: str
    unit_amount_cents: int
    quantity: int

    def to_snapshot(self) -> dict:
        return {
            "id": self.item_id,
            "name": self.name,
            "price_cents": self.unit_amount_cents,
            "quantity": self.quantity,
        }


def merge_cart_lines(lines: Iterable[CartLine]) -> Dict[Tuple[int, Optional[int]], int]:
    """Sum quantities per (item, variant), keeping first-seen order"""
    merged: Dict[Tuple[int, Optional[int]], int] = {}
    for line in lines:
        key = (line.menu_item_id, line.variant_id)
        merged[key] = merged.get(key, 0) + line.quantity
    return merged


async def price_cart(db: AsyncSession, lines: Iterable[CartLine]) -> List[PricedLine]:
    """Price every distinct cart line from the catalog.

    Raises ItemsUnavailableError with the number of distinct lines that
    reference an inactive or unknown item or variant, or a variant-only
    item without a variant.
    """
    merged = merge_cart_lines(lines)
    if not merged:
        raise CheckoutValidationError("Your cart is empty.")

    item_ids = {item_id for item_id, _ in merged}
    result = await db.execute(
        select(MenuItem)
        .where(MenuItem.id.in_(item_ids))
        .options(selectinload(MenuItem.variants))
    )
    items = {item.id: item for item in result.scalars().all()}

    priced = []
    invalid = 0
    for (item_id, variant_id), quantity in merged.items():
        item = items.get(item_id)
        if item is None or not item.is_active:
            invalid += 1
            continue

        if variant_id is None:
            if item.requires_variant:
                invalid += 1
                continue
            priced.append(PricedLine(item.id, item.name, item.price_cents, quantity))
            continue

        variant = next((v for v in item.variants if v.id == variant_id), None)
        if variant is None or not variant.is_active:
            invalid += 1
            continue
        priced.append(
            PricedLine(item.id, f"{item.name} ({variant.label})", variant.price_cents, quantity)
        )

    if invalid:
        raise ItemsUnavailableError(invalid)
    return priced


def total_cents(lines: Iterable[PricedLine]) -> int:
    return sum(line.unit_amount_cents * line.quantity for line in lines)

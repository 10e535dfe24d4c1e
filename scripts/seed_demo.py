#!/usr/bin/env python3
"""
Seed script to create a demo bakery catalog and an accepted custom order
"""

import asyncio
from decimal import Decimal


async def seed_demo_data():
    """Seed demo data for development"""
    from bakery.database import SessionLocal, engine, Base
    from bakery.models.menu import MenuItem, MenuItemVariant
    from bakery.models.custom_order import CustomOrderRequest, CustomOrderStatus
    from bakery.payments.store import get_or_create_store_settings
    from sqlalchemy import select

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if the catalog already exists
        result = await db.execute(select(MenuItem).where(MenuItem.name == "Sourdough Loaf"))
        if result.scalar_one_or_none():
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo catalog...")

        menu_items = [
            {"name": "Sourdough Loaf", "category": "bread", "price_cents": 900},
            {"name": "Cinnamon Roll", "category": "pastry", "price_cents": 450},
            {"name": "Tres Leches Slice", "category": "cake", "price_cents": 650},
            {"name": "Guava Pastelito", "category": "pastry", "price_cents": 325},
        ]
        for i, item_data in enumerate(menu_items):
            db.add(MenuItem(sort_order=i, **item_data))

        # Cookies are only sold by the pack
        cookie = MenuItem(
            name="Chocolate Chip Cookie",
            category="cookie",
            price_cents=300,
            sort_order=len(menu_items),
        )
        cookie.variants = [
            MenuItemVariant(label="Half dozen", unit_count=6, price_cents=1500, sort_order=0),
            MenuItemVariant(label="Dozen", unit_count=12, price_cents=2800, sort_order=1),
        ]
        db.add(cookie)
        print(f"Created {len(menu_items) + 1} menu items")

        db.add(
            CustomOrderRequest(
                status=CustomOrderStatus.PENDING.value,
                customer_name="Ana Perez",
                customer_email="ana@example.com",
                desired_items="Two-tier birthday cake",
                request_details="Vanilla sponge, strawberry filling, serves 30",
                fulfillment_preference="pickup",
            )
        )
        await db.commit()

        store = await get_or_create_store_settings(db)
        print(f"Store settings ready (Stripe account: {store.stripe_account_id or 'not connected'})")

        print("\n✅ Demo data seeded successfully!")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())

"""Tests for the storefront checkout endpoint"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from bakery.models.audit import AdminAuditLog
from bakery.fulfillment.schedule import default_schedule_config
from bakery.payments.checkout import CheckoutSessionBuilder, FulfillmentRequest
from bakery.payments.errors import ProcessorError
from bakery.payments.metadata import SessionMetadata
from bakery.payments.pricing import CartLine
from bakery.payments.store import StoreSettingsSnapshot

from conftest import CONNECTED_ACCOUNT_ID, FakeDeliveryChecker, future_date


def checkout_body(items, **overrides):
    body = {
        "items": items,
        "fulfillment": "pickup",
        "scheduledDate": future_date(),
        "scheduledTimeSlot": "10:00",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_checkout_ignores_client_prices(client: AsyncClient, processor, store_settings, test_menu_items):
    """An attacker-supplied price never reaches the session"""
    croissant = test_menu_items["croissant"]
    response = await client.post(
        "/checkout",
        json=checkout_body([{"itemId": croissant.id, "quantity": 2, "price": "0.01", "name": "Free"}]),
    )

    assert response.status_code == 200
    assert response.json() == {"clientSecret": "cs_test_1_secret"}

    session = processor.sessions[0]
    line = session["line_items"][0]
    assert line.unit_amount_cents == 499
    assert line.name == "Butter Croissant"
    assert line.quantity == 2


@pytest.mark.asyncio
async def test_checkout_routes_to_connected_account(client: AsyncClient, processor, store_settings, test_menu_items):
    response = await client.post(
        "/checkout",
        json=checkout_body(
            [{"menuItemId": test_menu_items["sourdough"].id, "quantity": 1}],
            notes="  Please slice it  ",
        ),
    )

    assert response.status_code == 200
    session = processor.sessions[0]
    assert session["destination"] == CONNECTED_ACCOUNT_ID

    metadata = SessionMetadata.from_stripe(session["metadata"])
    assert metadata.payout_routing_mode == "connected_destination"
    assert metadata.fulfillment == "pickup"
    assert metadata.notes == "Please slice it"
    assert metadata.items[0].price_cents == 900


@pytest.mark.asyncio
async def test_checkout_rejects_unavailable_slot(client: AsyncClient, processor, store_settings, test_menu_items):
    response = await client.post(
        "/checkout",
        json=checkout_body(
            [{"itemId": test_menu_items["croissant"].id, "quantity": 1}],
            scheduledTimeSlot="03:00",
        ),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "That date/time slot is not available. Please choose another."
    assert processor.sessions == []


@pytest.mark.asyncio
async def test_checkout_rejects_date_outside_window(client: AsyncClient, processor, store_settings, test_menu_items):
    response = await client.post(
        "/checkout",
        json=checkout_body(
            [{"itemId": test_menu_items["croissant"].id, "quantity": 1}],
            scheduledDate=future_date(days=45),
        ),
    )

    assert response.status_code == 400
    assert processor.sessions == []


@pytest.mark.asyncio
async def test_checkout_rejects_far_delivery_address(
    client: AsyncClient, processor, delivery_checker, store_settings, test_menu_items
):
    delivery_checker.distance_miles = 6.2
    response = await client.post(
        "/checkout",
        json=checkout_body(
            [{"itemId": test_menu_items["croissant"].id, "quantity": 1}],
            fulfillment="delivery",
            deliveryAddress="100 Far Away Rd, Homestead, FL 33030",
        ),
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "6.2 miles" in detail
    assert "within 5 miles" in detail
    assert processor.sessions == []


@pytest.mark.asyncio
async def test_checkout_requires_delivery_address(client: AsyncClient, processor, store_settings, test_menu_items):
    response = await client.post(
        "/checkout",
        json=checkout_body(
            [{"itemId": test_menu_items["croissant"].id, "quantity": 1}],
            fulfillment="delivery",
        ),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Delivery address is required for delivery orders."


@pytest.mark.asyncio
async def test_checkout_delivery_within_radius(
    client: AsyncClient, processor, delivery_checker, store_settings, test_menu_items
):
    response = await client.post(
        "/checkout",
        json=checkout_body(
            [{"itemId": test_menu_items["croissant"].id, "quantity": 1}],
            fulfillment="delivery",
            deliveryAddress="  11200 SW 8th St, Miami, FL 33199  ",
        ),
    )

    assert response.status_code == 200
    assert delivery_checker.checked == ["11200 SW 8th St, Miami, FL 33199"]
    metadata = SessionMetadata.from_stripe(processor.sessions[0]["metadata"])
    assert metadata.delivery_address == "11200 SW 8th St, Miami, FL 33199"


@pytest.mark.asyncio
async def test_checkout_rejects_unavailable_items(client: AsyncClient, processor, store_settings, test_menu_items):
    response = await client.post(
        "/checkout",
        json=checkout_body(
            [
                {"itemId": test_menu_items["retired"].id, "quantity": 1},
                {"itemId": test_menu_items["cookie"].id, "quantity": 1},
            ]
        ),
    )

    assert response.status_code == 400
    assert response.json()["detail"].startswith("2 items are no longer available")
    assert processor.sessions == []


@pytest.mark.asyncio
async def test_checkout_falls_back_when_transfers_unavailable(
    client: AsyncClient, test_db, processor, store_settings, test_menu_items
):
    """A routing capability error retries once on the platform account"""
    processor.reject_routing = True
    response = await client.post(
        "/checkout",
        json=checkout_body([{"itemId": test_menu_items["croissant"].id, "quantity": 1}]),
    )

    assert response.status_code == 200
    assert [s["destination"] for s in processor.sessions] == [CONNECTED_ACCOUNT_ID, None]
    retry_metadata = SessionMetadata.from_stripe(processor.sessions[1]["metadata"])
    assert retry_metadata.payout_routing_mode == "platform_fallback"

    result = await test_db.execute(
        select(AdminAuditLog).where(AdminAuditLog.action == "checkout.payout.fallback")
    )
    entry = result.scalar_one()
    assert entry.entity_type == "StoreSettings"
    assert entry.details_json["reason"] == "transfer_capability_unavailable"
    assert entry.details_json["stripe_account_id"] == CONNECTED_ACCOUNT_ID
    assert entry.details_json["session_id"] == "cs_test_2"


@pytest.mark.asyncio
async def test_checkout_falls_back_when_account_missing(
    client: AsyncClient, test_db, processor, store_settings, test_menu_items
):
    processor.account = None
    response = await client.post(
        "/checkout",
        json=checkout_body([{"itemId": test_menu_items["croissant"].id, "quantity": 1}]),
    )

    assert response.status_code == 200
    assert [s["destination"] for s in processor.sessions] == [None]

    result = await test_db.execute(
        select(AdminAuditLog).where(AdminAuditLog.action == "checkout.payout.fallback")
    )
    entry = result.scalar_one()
    assert entry.details_json["reason"] == "connected_account_missing_or_inactive"


@pytest.mark.asyncio
async def test_checkout_without_connected_account_settles_to_platform(
    client: AsyncClient, test_db, processor, test_menu_items
):
    """No account on file is the normal pre-onboarding state, not a fallback"""
    response = await client.post(
        "/checkout",
        json=checkout_body([{"itemId": test_menu_items["croissant"].id, "quantity": 1}]),
    )

    assert response.status_code == 200
    assert processor.sessions[0]["destination"] is None

    result = await test_db.execute(select(AdminAuditLog))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_checkout_processor_failure_returns_502(client: AsyncClient, processor, store_settings, test_menu_items):
    processor.fail_sessions = True
    response = await client.post(
        "/checkout",
        json=checkout_body([{"itemId": test_menu_items["croissant"].id, "quantity": 1}]),
    )

    assert response.status_code == 502
    assert response.json()["detail"] == "Unable to create payment session."
    assert len(processor.sessions) == 1


@pytest.mark.asyncio
async def test_checkout_rejects_malformed_request(client: AsyncClient, store_settings):
    response = await client.post(
        "/checkout",
        json={"items": [], "scheduledDate": "tomorrow", "scheduledTimeSlot": "10:00"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_checkout_survives_failed_fallback_audit(
    client: AsyncClient, processor, store_settings, test_menu_items, broken_audit_log
):
    """An audit write failure never fails the checkout it describes"""
    processor.reject_routing = True
    response = await client.post(
        "/checkout",
        json=checkout_body([{"itemId": test_menu_items["croissant"].id, "quantity": 1}]),
    )

    assert response.status_code == 200
    assert response.json() == {"clientSecret": "cs_test_2_secret"}
    assert [s["destination"] for s in processor.sessions] == [CONNECTED_ACCOUNT_ID, None]


@pytest.mark.asyncio
async def test_session_failure_carries_processor_code(test_db, processor, test_menu_items):
    processor.fail_sessions = True
    builder = CheckoutSessionBuilder(
        db=test_db,
        processor=processor,
        store=StoreSettingsSnapshot(
            stripe_account_id=CONNECTED_ACCOUNT_ID, schedule=default_schedule_config()
        ),
        delivery_checker=FakeDeliveryChecker(),
    )

    with pytest.raises(ProcessorError) as exc_info:
        await builder.create_cart_session(
            [CartLine(test_menu_items["croissant"].id, None, 1)],
            FulfillmentRequest(
                fulfillment="pickup", scheduled_date=future_date(), scheduled_time_slot="10:00"
            ),
        )

    assert exc_info.value.code == "card_declined"
    assert exc_info.value.status_code == 502

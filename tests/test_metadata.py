"""Tests for checkout session metadata"""

import pytest

from bakery.payments.errors import SessionMetadataError
from bakery.payments.metadata import MAX_VALUE_LENGTH, SessionMetadata, SnapshotItem


def make_metadata(item_count: int = 1, **overrides) -> SessionMetadata:
    fields = dict(
        fulfillment="delivery",
        scheduled_date="2026-10-22",
        scheduled_time_slot="14:00",
        items=[
            SnapshotItem(id=i + 1, name=f"Seasonal Pastry Number {i + 1}", price_cents=450, quantity=1)
            for i in range(item_count)
        ],
        delivery_address="11200 SW 8th St, Miami, FL 33199",
    )
    fields.update(overrides)
    return SessionMetadata(**fields)


def test_large_snapshot_is_split_across_keys():
    metadata = make_metadata(item_count=40)
    flat = metadata.to_stripe()

    assert int(flat["items_count"]) > 1
    assert all(len(value) <= MAX_VALUE_LENGTH for value in flat.values())
    assert SessionMetadata.from_stripe(flat) == metadata


def test_optional_fields_omitted():
    flat = make_metadata(fulfillment="pickup", delivery_address=None).to_stripe()
    assert "delivery_address" not in flat
    assert "notes" not in flat
    assert "custom_order_request_id" not in flat
    assert flat["payout_routing_mode"] == "platform_fallback"


def test_notes_are_capped():
    metadata = make_metadata(notes="x" * 900)
    assert len(metadata.notes) == 500


def test_custom_order_id_is_parsed():
    flat = make_metadata(custom_order_request_id=42).to_stripe()
    assert flat["custom_order_request_id"] == "42"
    assert SessionMetadata.from_stripe(flat).custom_order_request_id == 42


@pytest.mark.parametrize(
    "mutate",
    [
        lambda m: m.clear(),
        lambda m: m.pop("version"),
        lambda m: m.update(version="0"),
        lambda m: m.pop("items_0"),
        lambda m: m.update(items_count="two"),
        lambda m: m.update(items_0="[{not json"),
        lambda m: m.update(fulfillment="drone"),
        lambda m: m.update(custom_order_request_id="forty-two"),
    ],
)
def test_malformed_metadata_rejected(mutate):
    flat = make_metadata().to_stripe()
    mutate(flat)
    with pytest.raises(SessionMetadataError):
        SessionMetadata.from_stripe(flat)

"""Versioned checkout-session metadata

Everything the webhook needs to build an order is frozen into the session
metadata at creation time. Stripe limits metadata values to 500
characters, so the items snapshot is split across numbered keys.
"""

import json
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from bakery.payments.errors import SessionMetadataError

METADATA_VERSION = "1"
MAX_VALUE_LENGTH = 500
ITEMS_KEY_PREFIX = "items_"
MAX_NOTES_LENGTH = 500
MAX_ADDRESS_LENGTH = 240

ROUTING_CONNECTED = "connected_destination"
ROUTING_PLATFORM = "platform_fallback"


class SnapshotItem(BaseModel):
    id: int
    name: str
    price_cents: int = Field(ge=0)
    quantity: int = Field(gt=0)


class SessionMetadata(BaseModel):
    """Typed form of the metadata attached to a checkout session"""
    version: Literal["1"] = METADATA_VERSION
    fulfillment: Literal["pickup", "delivery"]
    scheduled_date: str
    scheduled_time_slot: str
    items: List[SnapshotItem] = Field(min_length=1)
    delivery_address: Optional[str] = None
    notes: Optional[str] = None
    custom_order_request_id: Optional[int] = None
    payout_routing_mode: Literal["connected_destination", "platform_fallback"] = ROUTING_PLATFORM

    @field_validator("notes")
    @classmethod
    def _cap_notes(cls, value: Optional[str]) -> Optional[str]:
        return value[:MAX_NOTES_LENGTH] if value else None

    @field_validator("delivery_address")
    @classmethod
    def _cap_address(cls, value: Optional[str]) -> Optional[str]:
        return value[:MAX_ADDRESS_LENGTH] if value else None

    def to_stripe(self) -> Dict[str, str]:
        """Flatten into Stripe's string-only metadata"""
        data = {
            "version": self.version,
            "fulfillment": self.fulfillment,
            "scheduled_date": self.scheduled_date,
            "scheduled_time_slot": self.scheduled_time_slot,
            "payout_routing_mode": self.payout_routing_mode,
        }
        if self.delivery_address:
            data["delivery_address"] = self.delivery_address
        if self.notes:
            data["notes"] = self.notes
        if self.custom_order_request_id is not None:
            data["custom_order_request_id"] = str(self.custom_order_request_id)

        items = json.dumps(
            [item.model_dump() for item in self.items], separators=(",", ":")
        )
        chunks = [items[i:i + MAX_VALUE_LENGTH] for i in range(0, len(items), MAX_VALUE_LENGTH)]
        data["items_count"] = str(len(chunks))
        for index, chunk in enumerate(chunks):
            data[f"{ITEMS_KEY_PREFIX}{index}"] = chunk
        return data

    @classmethod
    def from_stripe(cls, metadata: Optional[Dict[str, str]]) -> "SessionMetadata":
        """Rebuild from webhook metadata, rejecting missing or unknown versions"""
        if not metadata:
            raise SessionMetadataError("Session has no metadata")
        if metadata.get("version") != METADATA_VERSION:
            raise SessionMetadataError(f"Unsupported metadata version: {metadata.get('version')!r}")

        try:
            chunk_count = int(metadata["items_count"])
            raw_items = "".join(
                metadata[f"{ITEMS_KEY_PREFIX}{index}"] for index in range(chunk_count)
            )
            items = json.loads(raw_items)
        except (KeyError, ValueError) as e:
            raise SessionMetadataError("Session items snapshot is missing or unreadable") from e

        try:
            return cls(
                version=metadata["version"],
                fulfillment=metadata.get("fulfillment"),
                scheduled_date=metadata.get("scheduled_date"),
                scheduled_time_slot=metadata.get("scheduled_time_slot"),
                items=items,
                delivery_address=metadata.get("delivery_address"),
                notes=metadata.get("notes"),
                custom_order_request_id=metadata.get("custom_order_request_id"),
                payout_routing_mode=metadata.get("payout_routing_mode", ROUTING_PLATFORM),
            )
        except ValidationError as e:
            raise SessionMetadataError(f"Invalid session metadata: {e.error_count()} error(s)") from e

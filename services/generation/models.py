"""Catalog and inventory records exchanged with Odoo."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Channel:
    """A sales channel backed by an Odoo warehouse."""

    id: int
    key: str
    name: str
    location_id: int


@dataclass(frozen=True)
class Variant:
    id: int
    sku: str


@dataclass(frozen=True)
class Product:
    """A current product template with its SKU-carrying variants."""

    id: int
    name: str
    variants: Tuple[Variant, ...] = ()


@dataclass(frozen=True)
class InventoryEntryDraft:
    """Stock quantity for one variant in one channel, not yet created in Odoo."""

    sku: str
    quantity: int
    channel: Channel
    product_id: int

    def to_dict(self) -> dict[str, object]:
        return {
            "sku": self.sku,
            "quantity": self.quantity,
            "channel_key": self.channel.key,
            "channel_id": self.channel.id,
        }


__all__ = ["Channel", "Variant", "Product", "InventoryEntryDraft"]

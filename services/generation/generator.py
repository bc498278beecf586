"""Deterministic inventory quantities for product variants."""
from __future__ import annotations

import hashlib
import logging
import random
from typing import List, Optional, Sequence

from .models import Channel, InventoryEntryDraft, Product

logger = logging.getLogger("inventory_generator.generator")

# bucket > 70 -> well stocked, bucket > 10 -> low stock, otherwise sold out
WELL_STOCKED_BUCKET = 70
LOW_STOCK_BUCKET = 10


def stable_hash(value: str) -> int:
    """Return a hash of ``value`` that does not change between interpreter runs."""

    digest = hashlib.sha1(value.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big")


def quantity_for(sku: str, channel_key: str) -> int:
    """Return the stock quantity for ``sku`` in the channel keyed ``channel_key``.

    The result only depends on the two strings, so regenerating a draft for the
    same pair always gives the same quantity.
    """

    rng = random.Random(stable_hash(sku) + stable_hash(channel_key))
    bucket = rng.randint(0, 99)
    if bucket > WELL_STOCKED_BUCKET:
        return rng.randint(11, 1000)
    if bucket > LOW_STOCK_BUCKET:
        return rng.randint(1, 10)
    return 0


def generate_drafts(
    product: Product,
    channels: Sequence[Channel],
    *,
    log: Optional[logging.Logger] = None,
) -> List[InventoryEntryDraft]:
    """Build one draft per channel and variant of ``product``, channel by channel."""

    (log or logger).info("Processing product %s", product.id)
    return [
        InventoryEntryDraft(
            sku=variant.sku,
            quantity=quantity_for(variant.sku, channel.key),
            channel=channel,
            product_id=variant.id,
        )
        for channel in channels
        for variant in product.variants
    ]


__all__ = ["generate_drafts", "quantity_for", "stable_hash"]

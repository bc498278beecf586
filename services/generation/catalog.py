"""Catalog and inventory data access in Odoo for the generation job."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from packages.odoo_client import OdooClient

from .models import Channel, InventoryEntryDraft, Product, Variant

CHANNEL_MODEL = "stock.warehouse"
PRODUCT_MODEL = "product.template"
VARIANT_MODEL = "product.product"
INVENTORY_MODEL = "stock.quant"

CURRENT_PRODUCT_DOMAIN = [("active", "=", True)]


class CatalogRepository:
    """Read channels and products from Odoo and create inventory entries."""

    def __init__(
        self,
        client: OdooClient,
        *,
        page_size: int = 50,
        adjustment_name: str = "Generated Inventory",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.client = client
        self.page_size = max(1, int(page_size))
        self.adjustment_name = adjustment_name
        self._logger = logger or logging.getLogger("inventory_generator.catalog")

    # Channels ---------------------------------------------------------------------
    def fetch_channels(self, keys: Sequence[str], *, timeout: float = 300.0) -> List[Channel]:
        """Return the channels whose key is in ``keys``.

        Raises ``OdooTimeoutError`` if paging through the results takes longer
        than ``timeout`` seconds.
        """
        records = self.client.search_read_all(
            CHANNEL_MODEL,
            [("code", "in", list(keys))],
            fields=["id", "code", "name", "lot_stock_id"],
            order="id asc",
            page_size=self.page_size,
            timeout=timeout,
        )
        channels: List[Channel] = []
        for record in records:
            location_id = _resolve_relational_id(record.get("lot_stock_id"))
            if location_id is None:
                self._logger.warning(
                    "Channel %s has no stock location; skipping", record.get("code")
                )
                continue
            channels.append(
                Channel(
                    id=int(record["id"]),
                    key=str(record.get("code") or ""),
                    name=str(record.get("name") or record.get("code") or ""),
                    location_id=location_id,
                )
            )
        found = {channel.key for channel in channels}
        missing = [key for key in keys if key not in found]
        if missing:
            self._logger.warning("No channel found for keys: %s", ", ".join(missing))
        return channels

    # Resume anchor ----------------------------------------------------------------
    def find_resume_anchor(self) -> Optional[Product]:
        """Return the product owning the most recently modified inventory entry.

        Returns ``None`` when there is no inventory yet, and also when the
        latest entry's SKU does not belong to any current product. In that case
        the whole catalog is processed again.
        """
        entries = self.client.search_read(
            INVENTORY_MODEL,
            [],
            fields=["id", "product_id"],
            limit=1,
            order="write_date desc, id desc",
        )
        if not entries:
            return None
        entry = entries[0]
        sku = self._sku_for_variant(_resolve_relational_id(entry.get("product_id")))
        if not sku:
            self._logger.warning(
                "Latest inventory entry %s has no SKU; processing the full catalog", entry.get("id")
            )
            return None
        templates = self.client.search_read(
            PRODUCT_MODEL,
            CURRENT_PRODUCT_DOMAIN + [("product_variant_ids.default_code", "=", sku)],
            fields=["id", "name"],
            limit=1,
            order="id asc",
        )
        if not templates:
            self._logger.warning(
                "No current product found for SKU %s; processing the full catalog", sku
            )
            return None
        template = templates[0]
        product_id = int(template["id"])
        variants = self._load_variants([product_id]).get(product_id, ())
        return Product(
            id=product_id,
            name=str(template.get("name") or f"Product {product_id}"),
            variants=tuple(variants),
        )

    def _sku_for_variant(self, variant_id: Optional[int]) -> Optional[str]:
        if variant_id is None:
            return None
        records = self.client.search_read(
            VARIANT_MODEL,
            [("id", "=", variant_id)],
            fields=["id", "default_code"],
            limit=1,
        )
        if not records:
            return None
        return records[0].get("default_code") or None

    # Products ---------------------------------------------------------------------
    def iter_products(self, after: Optional[Product] = None) -> Iterator[Product]:
        """Yield current products ordered by id, starting after ``after``."""

        last_id = after.id if after is not None else 0
        while True:
            page = self.client.search_read(
                PRODUCT_MODEL,
                CURRENT_PRODUCT_DOMAIN + [("id", ">", last_id)],
                fields=["id", "name"],
                limit=self.page_size,
                order="id asc",
            )
            if not page:
                return
            template_ids = [int(record["id"]) for record in page]
            variants = self._load_variants(template_ids)
            for record in page:
                product_id = int(record["id"])
                yield Product(
                    id=product_id,
                    name=str(record.get("name") or f"Product {product_id}"),
                    variants=tuple(variants.get(product_id, ())),
                )
            if len(page) < self.page_size:
                return
            last_id = template_ids[-1]

    def _load_variants(self, template_ids: Sequence[int]) -> Dict[int, List[Variant]]:
        if not template_ids:
            return {}
        records = self.client.search_read(
            VARIANT_MODEL,
            [("product_tmpl_id", "in", list(template_ids))],
            fields=["id", "default_code", "product_tmpl_id"],
            order="id asc",
        )
        output: Dict[int, List[Variant]] = {}
        for record in _sorted_by_id(records):
            template_id = _resolve_relational_id(record.get("product_tmpl_id"))
            if template_id is None:
                continue
            sku = record.get("default_code")
            if not sku:
                self._logger.debug("Variant %s has no SKU; not generating inventory", record.get("id"))
                continue
            output.setdefault(template_id, []).append(Variant(id=int(record["id"]), sku=str(sku)))
        return output

    # Inventory --------------------------------------------------------------------
    def create_inventory_entry(self, draft: InventoryEntryDraft) -> int:
        """Create a single stock quant for ``draft`` and return its id."""

        context = {
            "inventory_mode": True,
            "inventory_adjustment_name": self.adjustment_name,
        }
        values: Dict[str, object] = {
            "product_id": draft.product_id,
            "location_id": draft.channel.location_id,
            "quantity": float(draft.quantity),
        }
        return self.client.create(INVENTORY_MODEL, values, context=context)


def _sorted_by_id(records: Iterable[Mapping[str, object]]) -> List[Mapping[str, object]]:
    return sorted(records, key=lambda record: int(record["id"]))


def _resolve_relational_id(value: object) -> Optional[int]:
    if value in (None, False):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (list, tuple)) and value:
        first = value[0]
        if isinstance(first, int):
            return first
        try:
            return int(first)
        except (TypeError, ValueError):
            return None
    return None


__all__ = [
    "CHANNEL_MODEL",
    "INVENTORY_MODEL",
    "PRODUCT_MODEL",
    "VARIANT_MODEL",
    "CatalogRepository",
]

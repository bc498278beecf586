"""Shared fixtures: an in-memory stand-in for the Odoo XML-RPC client."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Set

import pytest

from packages.odoo_client import OdooRequestError


def _relational_id(value: object) -> object:
    if isinstance(value, (list, tuple)) and value:
        return value[0]
    return value


class FakeOdooClient:
    """Evaluates the small subset of Odoo domains the generation job uses."""

    def __init__(self) -> None:
        self.records: Dict[str, List[Dict[str, object]]] = {
            "stock.warehouse": [],
            "product.template": [],
            "product.product": [],
            "stock.quant": [],
        }
        self.search_calls: List[tuple[str, list, Optional[int], Optional[str]]] = []
        self.create_calls: List[Dict[str, object]] = []
        self.fail_create_calls: Set[int] = set()
        self.auth_calls = 0
        self._clock = 0

    # Builders -----------------------------------------------------------------
    def add_channel(self, channel_id: int, code: str, location_id: Optional[int] = None) -> None:
        location = location_id if location_id is not None else channel_id * 10
        self.records["stock.warehouse"].append(
            {"id": channel_id, "code": code, "name": f"Warehouse {code}", "lot_stock_id": [location, f"{code}/Stock"]}
        )

    def add_product(
        self, template_id: int, skus: Sequence[Optional[str]], *, active: bool = True
    ) -> List[int]:
        name = f"Product {template_id}"
        self.records["product.template"].append({"id": template_id, "name": name, "active": active})
        variant_ids: List[int] = []
        for index, sku in enumerate(skus):
            variant_id = template_id * 100 + index
            self.records["product.product"].append(
                {"id": variant_id, "default_code": sku or False, "product_tmpl_id": [template_id, name]}
            )
            variant_ids.append(variant_id)
        return variant_ids

    def add_quant(self, variant_id: int) -> int:
        self._clock += 1
        quant_id = len(self.records["stock.quant"]) + 1
        self.records["stock.quant"].append(
            {
                "id": quant_id,
                "product_id": [variant_id, f"Variant {variant_id}"],
                "write_date": f"2024-01-01 00:00:{self._clock:02d}",
            }
        )
        return quant_id

    # Client API -----------------------------------------------------------------
    def authenticate(self) -> int:
        self.auth_calls += 1
        return 2

    def search_read(
        self,
        model: str,
        domain: Iterable[Sequence[object]],
        fields: Optional[Iterable[str]] = None,
        limit: Optional[int] = None,
        order: Optional[str] = None,
        offset: Optional[int] = None,
    ) -> List[Dict[str, object]]:
        domain = list(domain)
        self.search_calls.append((model, domain, limit, order))
        matches = [dict(r) for r in self.records[model] if self._matches(model, r, domain)]
        matches = self._sort(matches, order)
        start = offset or 0
        end = start + limit if limit is not None else None
        return matches[start:end]

    def search_read_all(
        self,
        model: str,
        domain: Iterable[Sequence[object]],
        fields: Optional[Iterable[str]] = None,
        *,
        order: str = "id asc",
        page_size: int = 100,
        timeout: Optional[float] = None,
    ) -> List[Dict[str, object]]:
        return self.search_read(model, domain, fields, order=order)

    def create(self, model: str, values: Dict[str, object], *, context=None) -> int:
        self.create_calls.append({"model": model, "values": dict(values), "context": context})
        if len(self.create_calls) in self.fail_create_calls:
            raise OdooRequestError("ValidationError: rejected", code=1)
        assert model == "stock.quant"
        return self.add_quant(int(values["product_id"]))

    # Domain evaluation ----------------------------------------------------------
    def _matches(self, model: str, record: Dict[str, object], domain: List[Sequence[object]]) -> bool:
        for field, operator, value in domain:
            if field == "product_variant_ids.default_code":
                actual = [
                    v["default_code"]
                    for v in self.records["product.product"]
                    if _relational_id(v["product_tmpl_id"]) == record["id"]
                ]
                if value not in actual:
                    return False
                continue
            current = _relational_id(record.get(field))
            if operator == "=" and current != value:
                return False
            if operator == "in" and current not in value:
                return False
            if operator == ">" and not current > value:
                return False
        return True

    @staticmethod
    def _sort(records: List[Dict[str, object]], order: Optional[str]) -> List[Dict[str, object]]:
        if not order:
            return records
        for clause in reversed([part.strip() for part in order.split(",")]):
            name, _, direction = clause.partition(" ")
            records.sort(key=lambda r: r[name], reverse=direction.strip().lower() == "desc")
        return records


@pytest.fixture
def odoo() -> FakeOdooClient:
    return FakeOdooClient()

"""Create generated inventory entries in Odoo, one request per draft."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from packages.odoo_client import OdooRequestError

from .models import InventoryEntryDraft

CreateEntry = Callable[[InventoryEntryDraft], int]


class GenerationError(RuntimeError):
    """Raised when the generation job cannot complete."""


class SkipLimitExceeded(GenerationError):
    """Raised when more drafts failed than the writer is allowed to skip."""

    def __init__(self, skipped: List["SkippedDraft"], limit: int) -> None:
        last = skipped[-1]
        super().__init__(
            f"{len(skipped)} inventory entries failed (skip limit {limit}); "
            f"last failure for sku {last.draft.sku}, channel {last.draft.channel.id}: {last.error}"
        )
        self.skipped = list(skipped)
        self.limit = limit


@dataclass(frozen=True)
class WrittenEntry:
    draft: InventoryEntryDraft
    record_id: int


@dataclass(frozen=True)
class SkippedDraft:
    draft: InventoryEntryDraft
    error: str


@dataclass
class WriteReport:
    """Running totals for the writer over a whole job."""

    written: List[WrittenEntry] = field(default_factory=list)
    skipped: List[SkippedDraft] = field(default_factory=list)


class InventoryEntryWriter:
    """Submit drafts in order, tolerating up to ``skip_limit`` rejected requests per run."""

    def __init__(
        self,
        create_entry: CreateEntry,
        *,
        skip_limit: int = 1,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._create_entry = create_entry
        self.skip_limit = max(0, int(skip_limit))
        self.report = WriteReport()
        self._logger = logger or logging.getLogger("inventory_generator.writer")

    def write(self, drafts: Iterable[InventoryEntryDraft]) -> List[WrittenEntry]:
        written: List[WrittenEntry] = []
        for draft in drafts:
            self._logger.info(
                "attempting to create inventory entry sku %s, channel %s",
                draft.sku,
                draft.channel.id,
            )
            try:
                record_id = self._create_entry(draft)
            except OdooRequestError as exc:
                self._skip(draft, exc)
                continue
            entry = WrittenEntry(draft=draft, record_id=record_id)
            written.append(entry)
            self.report.written.append(entry)
        return written

    def _skip(self, draft: InventoryEntryDraft, exc: OdooRequestError) -> None:
        self.report.skipped.append(SkippedDraft(draft=draft, error=str(exc)))
        if len(self.report.skipped) > self.skip_limit:
            raise SkipLimitExceeded(self.report.skipped, self.skip_limit) from exc
        self._logger.warning(
            "Skipping inventory entry sku %s, channel %s (%d of %d allowed): %s",
            draft.sku,
            draft.channel.id,
            len(self.report.skipped),
            self.skip_limit,
            exc,
        )


__all__ = [
    "GenerationError",
    "InventoryEntryWriter",
    "SkipLimitExceeded",
    "SkippedDraft",
    "WriteReport",
    "WrittenEntry",
]

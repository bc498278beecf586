"""Read-generate-write loop for seeding inventory entries."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Protocol, Sequence, Tuple

from .config import GenerationConfig
from .generator import generate_drafts
from .models import Channel, InventoryEntryDraft, Product
from .writer import InventoryEntryWriter, SkippedDraft, WrittenEntry


class ResumeAnchorFinder(Protocol):
    def find_resume_anchor(self) -> Optional[Product]:
        ...


class CatalogSource(ResumeAnchorFinder, Protocol):
    """Everything the job needs from the backend."""

    def fetch_channels(self, keys: Sequence[str], *, timeout: float = ...) -> List[Channel]:
        ...

    def iter_products(self, after: Optional[Product] = None) -> Iterator[Product]:
        ...

    def create_inventory_entry(self, draft: InventoryEntryDraft) -> int:
        ...


class JobState(str, Enum):
    START = "START"
    LOOKUP_CHANNELS = "LOOKUP_CHANNELS"
    FIND_RESUME_POINT = "FIND_RESUME_POINT"
    PROCESSING = "PROCESSING"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass
class JobResult:
    """Summary of a single generation run."""

    state: JobState = JobState.START
    channels: Tuple[Channel, ...] = ()
    anchor_product_id: Optional[int] = None
    products_processed: int = 0
    drafts_generated: int = 0
    written: List[WrittenEntry] = field(default_factory=list)
    skipped: List[SkippedDraft] = field(default_factory=list)
    dry_run: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state is JobState.DONE


class InventoryGenerationJob:
    """Generate inventory for every product after the resume anchor.

    Products are handled one at a time: a product's drafts are all written
    before the next product is read. Fatal errors move the job to
    ``JobState.FAILED`` and are re-raised; the partial result stays on
    ``self.result``.
    """

    def __init__(
        self,
        catalog: CatalogSource,
        config: Optional[GenerationConfig] = None,
        *,
        resume_finder: Optional[ResumeAnchorFinder] = None,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.catalog = catalog
        self.config = config or GenerationConfig()
        self.resume_finder = resume_finder or catalog
        self.dry_run = dry_run
        self._logger = logger or logging.getLogger("inventory_generator.job")
        self.writer = self._new_writer()
        self.result = JobResult(dry_run=dry_run)

    @property
    def state(self) -> JobState:
        return self.result.state

    def run(self) -> JobResult:
        # skip budget and totals are per run
        self.writer = self._new_writer()
        self.result = JobResult(dry_run=self.dry_run)
        try:
            channels = self._lookup_channels()
            anchor = self._find_resume_point()
            self._transition(JobState.PROCESSING)
            for product in self.catalog.iter_products(after=anchor):
                self._process(product, channels)
        except Exception:
            self._transition(JobState.FAILED)
            raise
        self._transition(JobState.DONE)
        self._logger.info(
            "Generation complete: %d products, %d entries written, %d skipped",
            self.result.products_processed,
            len(self.result.written),
            len(self.result.skipped),
        )
        return self.result

    def _new_writer(self) -> InventoryEntryWriter:
        return InventoryEntryWriter(
            self.catalog.create_inventory_entry,
            skip_limit=self.config.writer.skip_limit,
            logger=self._logger.getChild("writer"),
        )

    def _lookup_channels(self) -> Tuple[Channel, ...]:
        self._transition(JobState.LOOKUP_CHANNELS)
        settings = self.config.channels
        channels = tuple(
            self.catalog.fetch_channels(settings.keys, timeout=settings.lookup_timeout_seconds)
        )
        self._logger.info(
            "Using %d channels: %s", len(channels), ", ".join(channel.key for channel in channels)
        )
        self.result.channels = channels
        return channels

    def _find_resume_point(self) -> Optional[Product]:
        self._transition(JobState.FIND_RESUME_POINT)
        anchor = self.resume_finder.find_resume_anchor()
        if anchor is None:
            self._logger.info("No resume point; processing all current products")
        else:
            self._logger.info("Resuming after product %s (%s)", anchor.id, anchor.name)
            self.result.anchor_product_id = anchor.id
        return anchor

    def _process(self, product: Product, channels: Sequence[Channel]) -> None:
        drafts = generate_drafts(product, channels, log=self._logger)
        self.result.drafts_generated += len(drafts)
        if self.dry_run:
            for draft in drafts:
                self._logger.info(
                    "dry run: sku %s, channel %s, quantity %d",
                    draft.sku,
                    draft.channel.id,
                    draft.quantity,
                )
        else:
            try:
                self.writer.write(drafts)
            finally:
                self.result.written = list(self.writer.report.written)
                self.result.skipped = list(self.writer.report.skipped)
        self.result.products_processed += 1

    def _transition(self, state: JobState) -> None:
        self._logger.debug("Job state %s -> %s", self.result.state.value, state.value)
        self.result.state = state


__all__ = [
    "CatalogSource",
    "InventoryGenerationJob",
    "JobResult",
    "JobState",
    "ResumeAnchorFinder",
]

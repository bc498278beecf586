"""Inventory entry generation for demo and test Odoo databases."""

from .catalog import CatalogRepository
from .config import DEFAULT_CHANNEL_KEYS, DEFAULT_CONFIG_PATH, GenerationConfig, load_config
from .generator import generate_drafts, quantity_for, stable_hash
from .job import InventoryGenerationJob, JobResult, JobState, ResumeAnchorFinder
from .models import Channel, InventoryEntryDraft, Product, Variant
from .writer import (
    GenerationError,
    InventoryEntryWriter,
    SkipLimitExceeded,
    SkippedDraft,
    WrittenEntry,
)

__all__ = [
    "DEFAULT_CHANNEL_KEYS",
    "DEFAULT_CONFIG_PATH",
    "CatalogRepository",
    "Channel",
    "GenerationConfig",
    "GenerationError",
    "InventoryEntryDraft",
    "InventoryEntryWriter",
    "InventoryGenerationJob",
    "JobResult",
    "JobState",
    "Product",
    "ResumeAnchorFinder",
    "SkipLimitExceeded",
    "SkippedDraft",
    "Variant",
    "WrittenEntry",
    "generate_drafts",
    "load_config",
    "quantity_for",
    "stable_hash",
]

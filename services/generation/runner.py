"""Command-line interface for the inventory generation job."""
from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path
from typing import Callable, Iterable, Optional

from packages.odoo_client import OdooClient, OdooClientError

from services.generation.catalog import CatalogRepository
from services.generation.config import DEFAULT_CONFIG_PATH, GenerationConfig, load_config
from services.generation.job import InventoryGenerationJob
from services.generation.writer import GenerationError, WrittenEntry

ClientFactory = Callable[[], OdooClient]


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")


def _load_config(args: argparse.Namespace) -> GenerationConfig:
    config_path = Path(args.config) if args.config else DEFAULT_CONFIG_PATH
    if config_path.exists():
        config = load_config(config_path)
    else:
        logging.getLogger("inventory_generator.runner").warning(
            "Configuration file %s not found; using defaults", config_path
        )
        config = GenerationConfig()
    if getattr(args, "page_size", None) is not None:
        config.reader.page_size = max(1, args.page_size)
    if getattr(args, "skip_limit", None) is not None:
        config.writer.skip_limit = max(0, args.skip_limit)
    return config


def _build_catalog(
    config: GenerationConfig, client_factory: ClientFactory, logger: logging.Logger
) -> CatalogRepository:
    client = client_factory()
    uid = client.authenticate()
    logger.info("Authenticated Odoo client (uid=%s)", uid)
    return CatalogRepository(
        client,
        page_size=config.reader.page_size,
        adjustment_name=config.writer.adjustment_name,
        logger=logger.getChild("catalog"),
    )


def write_summary(entries: Iterable[WrittenEntry], output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(["sku", "channel_key", "channel_id", "quantity", "record_id"])
        for entry in entries:
            row = entry.draft.to_dict()
            writer.writerow(
                [row["sku"], row["channel_key"], row["channel_id"], row["quantity"], entry.record_id]
            )


def cmd_run(args: argparse.Namespace, client_factory: ClientFactory) -> int:
    config = _load_config(args)
    _configure_logging(config.log_level)
    logger = logging.getLogger("inventory_generator.runner")

    try:
        catalog = _build_catalog(config, client_factory, logger)
        job = InventoryGenerationJob(
            catalog, config, dry_run=args.dry_run, logger=logger.getChild("job")
        )
        result = job.run()
    except OdooClientError:
        logger.exception("Inventory generation failed due to an Odoo error")
        return 1
    except GenerationError:
        logger.exception("Inventory generation failed")
        return 1
    except Exception:
        logger.exception("Inventory generation failed with an unexpected error")
        return 1

    if args.summary:
        summary_path = Path(args.summary)
        write_summary(result.written, summary_path)
        logger.info("Summary written to %s", summary_path)
    print(
        f"Processed {result.products_processed} products: "
        f"{len(result.written)} entries written, {len(result.skipped)} skipped."
    )
    return 0


def cmd_channels(args: argparse.Namespace, client_factory: ClientFactory) -> int:
    config = _load_config(args)
    _configure_logging(config.log_level)
    logger = logging.getLogger("inventory_generator.runner")

    try:
        catalog = _build_catalog(config, client_factory, logger)
        channels = catalog.fetch_channels(
            config.channels.keys, timeout=config.channels.lookup_timeout_seconds
        )
    except OdooClientError:
        logger.exception("Channel lookup failed due to an Odoo error")
        return 1
    except Exception:
        logger.exception("Channel lookup failed with an unexpected error")
        return 1

    print(f"Channels: {len(channels)}")
    for channel in channels:
        print(f"- {channel.key} id={channel.id} name={channel.name} location={channel.location_id}")
    return 0


def cmd_resume_point(args: argparse.Namespace, client_factory: ClientFactory) -> int:
    config = _load_config(args)
    _configure_logging(config.log_level)
    logger = logging.getLogger("inventory_generator.runner")

    try:
        catalog = _build_catalog(config, client_factory, logger)
        anchor = catalog.find_resume_anchor()
    except OdooClientError:
        logger.exception("Resume point lookup failed due to an Odoo error")
        return 1
    except Exception:
        logger.exception("Resume point lookup failed with an unexpected error")
        return 1

    if anchor is None:
        print("No resume point: the full catalog will be processed.")
    else:
        print(f"Resume after product {anchor.id} ({anchor.name})")
    return 0


def main(argv: list[str] | None = None, *, client_factory: Optional[ClientFactory] = None) -> int:
    parser = argparse.ArgumentParser(description="Generate demo inventory entries in Odoo")
    parser.add_argument(
        "command", choices=["run", "channels", "resume-point"], help="Command to execute"
    )
    parser.add_argument(
        "-c",
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to generation config file (default: %(default)s)",
    )
    parser.add_argument("--page-size", type=int, help="Override products fetched per page")
    parser.add_argument(
        "--skip-limit", type=int, help="Override number of failed entries tolerated per run"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Generate and log entries without creating them in Odoo",
    )
    parser.add_argument("--summary", help="Write a CSV summary of created entries to this path")
    args = parser.parse_args(argv)

    factory = client_factory or OdooClient
    if args.command == "run":
        return cmd_run(args, factory)
    if args.command == "channels":
        return cmd_channels(args, factory)
    if args.command == "resume-point":
        return cmd_resume_point(args, factory)
    parser.error(f"Unknown command {args.command}")
    return 1


if __name__ == "__main__":
    sys.exit(main())

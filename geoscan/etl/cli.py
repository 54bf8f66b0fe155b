"""CLI entry point for bulk point loads.

Usage:
    python -m geoscan.etl.cli --input capitals.json --table test-capitals --hash-key-length 3
    python -m geoscan.etl.cli --input capitals.json --table test-capitals --dry-run
    python -m geoscan.etl.cli --table test-capitals --write-indexes firestore.indexes.json
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from geoscan.config import GeoTableConfig
from geoscan.etl.loader import DEFAULT_BATCH_SIZE, load_points, read_records, to_request
from geoscan.persistence.firestore_indexes import write_index_file
from geoscan.persistence.memory_store import InMemoryPointStore
from geoscan.services.geo_data_manager import GeoDataManager

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="geoscan bulk loader")
    parser.add_argument("--input", type=Path, default=None, help="JSON array of point records")
    parser.add_argument("--table", type=str, required=True, help="Target table (collection) name")
    parser.add_argument("--hash-key-length", type=int, default=None, help="Partition key length")
    parser.add_argument("--hash-key-field", default="country", help="Record field used as hash key")
    parser.add_argument("--range-key-field", default="capital", help="Record field used as range key")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE)
    parser.add_argument("--pause", type=float, default=0.0, help="Seconds to wait between batches")
    parser.add_argument("--dry-run", action="store_true", help="Derive keys in memory and print them")
    parser.add_argument(
        "--write-indexes",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write the Firestore composite index definitions to PATH",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


async def run(args: argparse.Namespace) -> int:
    overrides = {}
    if args.hash_key_length is not None:
        overrides["hash_key_length"] = args.hash_key_length
    config = GeoTableConfig.from_env(table_name=args.table, **overrides)

    if args.write_indexes is not None:
        write_index_file(config, args.write_indexes)
    if args.input is None:
        return 0

    if args.dry_run:
        store = InMemoryPointStore(page_size=config.scan_page_size)
    else:
        from geoscan.persistence.firestore_store import FirestorePointStore

        store = FirestorePointStore(config)
    manager = GeoDataManager(config, store)

    # 1. Read and validate records
    logger.info("Reading records: %s", args.input)
    requests = [
        to_request(record, args.hash_key_field, args.range_key_field)
        for record in read_records(args.input)
    ]

    # 2. Write in batches
    result = await load_points(manager, requests, args.batch_size, args.pause)

    # 3. Report derived keys (dry run only)
    if args.dry_run:
        for request in requests:
            item = manager.build_item(request)
            print(f"{item.hash_key}\t{item.range_key}\t{item.geo_key}\t{item.geohash}")

    return 0 if result.complete else 1


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    if args.input is None and args.write_indexes is None:
        parser.error("one of --input or --write-indexes is required")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Generate SQL batch files from the cleaned permit dataset.

Failed batches are regenerated from the rows they covered originally;
permits appended since the last run become new pending batches.

Usage:
    python3 scripts/create_batches.py                      # Reconcile with defaults
    python3 scripts/create_batches.py --batch-size 100     # Bigger chunks for new batches
    python3 scripts/create_batches.py --status             # Show registry counts only
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

sys.path.insert(0, str(Path(__file__).parent.parent))
from services.permit_batches.config import load_settings
from services.permit_batches.dataset import load_dataset
from services.permit_batches.reconciler import BatchReconciler
from services.permit_batches.registry import BatchRegistry
from services.permit_batches.serializer import get_schema
from services.permit_batches.utils import PermitBatchError, setup_logging


def print_status(registry: BatchRegistry):
    counts = registry.counts()
    print(f"=== BATCH REGISTRY: {registry.path} ===")
    print(f"Batches: {len(registry)}  Rows: {registry.claimed_rows()}")
    for status, count in counts.items():
        print(f"  {status}: {count}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Generate SQL batch files from the permit dataset')
    parser.add_argument('--data-dir', help='Data directory (default: PERMIT_DATA_DIR or ./data)')
    parser.add_argument('--dataset', help='Dataset JSON file (default: <data-dir>/latest_cleaned.json)')
    parser.add_argument('--batch-size', type=int, help='Rows per new batch (default: PERMIT_BATCH_SIZE or 50)')
    parser.add_argument('--schema', choices=['v1', 'v2'], help='Target table schema')
    parser.add_argument('--status', action='store_true', help='Print registry status and exit')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        settings = load_settings()
        if args.data_dir:
            settings.data_dir = Path(args.data_dir)
            if not args.dataset:
                settings.dataset_file = settings.data_dir / "latest_cleaned.json"
        if args.dataset:
            settings.dataset_file = Path(args.dataset)

        registry = BatchRegistry.load(settings.registry_file)
        if args.status:
            print_status(registry)
            return 0

        permits = load_dataset(settings.dataset_file)
        print(f"Total permits to process: {len(permits)}")

        reconciler = BatchReconciler(
            registry,
            settings.batch_dir,
            chunk_size=args.batch_size if args.batch_size is not None else settings.batch_size,
            schema=get_schema(args.schema) if args.schema else settings.schema,
        )
        result = reconciler.reconcile(permits)
    except (PermitBatchError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Created {len(result.created)} new batch file(s) and updated {len(result.rewritten)} existing batch file(s).")
    return 0


if __name__ == "__main__":
    exit(main())

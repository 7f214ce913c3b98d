#!/usr/bin/env python3
"""
Geocode incoming permit files and append them to the cleaned dataset.

Each JSON file in <data-dir>/incoming/ is geocoded, copied to
<data-dir>/encoded/, removed from incoming/, and its permits are appended
to latest_cleaned.json.

Usage:
    export GOOGLE_MAPS_API_KEY=...
    python3 scripts/geocode_permits.py
    python3 scripts/geocode_permits.py --data-dir /srv/permits
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

sys.path.insert(0, str(Path(__file__).parent.parent))
from services.permit_batches.config import load_settings
from services.permit_batches.dataset import ingest_incoming
from services.permit_batches.geocoder import Geocoder
from services.permit_batches.utils import PermitBatchError, setup_logging


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Geocode incoming permit files')
    parser.add_argument('--data-dir', help='Data directory (default: PERMIT_DATA_DIR or ./data)')
    parser.add_argument('--delay', type=float, default=None, help='Seconds between geocode requests')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        settings = load_settings()
        if args.data_dir:
            settings.data_dir = Path(args.data_dir)
            settings.dataset_file = settings.data_dir / "latest_cleaned.json"
        api_key = settings.require_google_maps_api_key()
    except PermitBatchError as e:
        print(f"ERROR: {e}")
        return 1

    geocoder = Geocoder(api_key)
    if args.delay is not None:
        geocoder.request_delay = args.delay

    result = ingest_incoming(
        settings.incoming_dir,
        settings.encoded_dir,
        settings.dataset_file,
        geocoder,
    )

    print(f"Files geocoded: {result['files']}")
    print(f"Permits appended: {result['records']}")
    if result['failed_files']:
        print(f"Failed files (left in incoming/): {', '.join(result['failed_files'])}")
        return 1
    return 0


if __name__ == "__main__":
    exit(main())

#!/usr/bin/env python3
"""
Find (and optionally remove) assets left half-written across S3 and DynamoDB.

An upload that stored its payload but failed to write the record leaves
an orphaned object; a delete whose record removal failed leaves an
orphaned record. This script lists both stores and compares them.

Usage:
    python scripts/reconcile_assets.py            # report only
    python scripts/reconcile_assets.py --apply    # remove orphans

Requires:
    - .env file (or environment) with AWS_REGION, S3_BUCKET_NAME and
      DYNAMODB_TABLE_NAME
    - AWS credentials allowed to list/delete in both stores
"""

import argparse
import logging
import sys
from pathlib import Path

# Add the project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from multimedia.config.settings import Settings
from multimedia.core.assets.errors import AssetError
from multimedia.core.assets.reconcile import AssetReconciler, ReconciliationReport
from multimedia.infrastructure.aws import create_aws_uploader


def print_report(report: ReconciliationReport, applied: bool) -> None:
    print(f"\nOrphaned objects (no record): {len(report.orphaned_blobs)}")
    for key in report.orphaned_blobs:
        print(f"  {key}")

    print(f"\nOrphaned records (no object): {len(report.orphaned_records)}")
    for asset in report.orphaned_records:
        print(f"  {asset.id}  {asset.filename}")

    if applied:
        print(f"\nRemoved objects: {len(report.removed_blobs)}")
        print(f"Removed records: {len(report.removed_records)}")

    if report.failures:
        print(f"\nFailures: {len(report.failures)}")
        for target, error in report.failures.items():
            print(f"  [ERR] {target}: {error}")


def main():
    parser = argparse.ArgumentParser(description='Reconcile S3 objects with DynamoDB asset records')
    parser.add_argument('--apply', action='store_true', help='Remove orphans instead of only reporting them')
    parser.add_argument('--verbose', action='store_true', help='Log every store call')
    args = parser.parse_args()

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    settings = Settings()

    try:
        uploader = create_aws_uploader(
            table_name=settings.dynamodb_table_name,
            bucket=settings.s3_bucket_name,
            region=settings.aws_region,
            endpoint_url=settings.aws_endpoint_url,
        )
    except AssetError as e:
        print(f"ERROR: {e}")
        sys.exit(2)

    reconciler = AssetReconciler(uploader.storage, uploader.repository)

    print(f"Reconciling s3://{settings.s3_bucket_name} with table {settings.dynamodb_table_name}")

    try:
        report = reconciler.sweep(dry_run=not args.apply)
    except AssetError as e:
        print(f"ERROR listing stores: {e}")
        sys.exit(1)

    print_report(report, applied=args.apply)

    if report.is_consistent:
        print("\nStores are consistent.")
        sys.exit(0)

    sys.exit(0 if args.apply and not report.failures else 1)


if __name__ == '__main__':
    main()

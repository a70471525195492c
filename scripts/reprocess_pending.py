#!/usr/bin/env python3
"""
Reprocess tubuyaki that were saved as 'pending' or 'error'

Records end up pending when no ANTHROPIC_API_KEY was configured and in
error when the LLM call failed. Nothing retries them automatically; this
script is the explicit operator trigger. Each record is reprocessed with
its current raw text, oldest first.

Usage:
    python scripts/reprocess_pending.py
    python scripts/reprocess_pending.py --limit 50 --json
"""

import sys
import os
import argparse
import json

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from agents.tubuyaki_processor import TubuyakiProcessor
from processors.transform_engine import TransformEngine
import logging

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def print_result(result: dict):
    """Pretty print the batch result."""
    print("\n" + "="*60)
    print("RESULTS")
    print("="*60)

    if result['status'] == 'skipped':
        print("⚠️  ANTHROPIC_API_KEY not configured - nothing reprocessed")
    else:
        print(f"✓ Records processed: {result['records_processed']}")
        print(f"✓ Succeeded: {result['records_succeeded']}")
        print(f"✓ Failed: {result['records_failed']}")
        for item in result['results']:
            print(f"  - {item['id']}: {item['status']}")

    print("="*60 + "\n")


def main():
    parser = argparse.ArgumentParser(
        description='Reprocess pending/error tubuyaki',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--limit',
        type=int,
        default=10,
        help='Maximum number of records to reprocess (default 10)'
    )

    parser.add_argument(
        '--json',
        action='store_true',
        help='Output result as JSON'
    )

    args = parser.parse_args()

    try:
        processor = TubuyakiProcessor(
            engine=TransformEngine.from_settings(settings),
            credentials=settings.llm_credentials()
        )
        result = processor.reprocess_unprocessed(limit=args.limit)

        if args.json:
            print(json.dumps(result, indent=2))
        else:
            print_result(result)

        sys.exit(0)

    except Exception as e:
        logger.error(f"Failed to reprocess tubuyaki: {e}", exc_info=True)
        print(f"\n❌ Error: {e}\n")
        sys.exit(1)


if __name__ == '__main__':
    main()

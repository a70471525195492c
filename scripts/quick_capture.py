#!/usr/bin/env python3
"""
Capture a tubuyaki from the terminal

Manual text entry path for hosts without speech recognition. Text comes
from the arguments, or from stdin when no arguments are given.

Usage:
    python scripts/quick_capture.py 牛乳を買う
    echo "明日の会議の資料を作る" | python scripts/quick_capture.py
    python scripts/quick_capture.py --json 新しいアプリのアイデア
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
from models.tubuyaki import ProcessingOutcome
from services.capture import capture_manual_text
import logging

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def print_outcome(outcome: ProcessingOutcome):
    """Pretty print a saved tubuyaki."""
    record = outcome.record
    print("\n" + "="*60)
    print(f"{record.id}  [{record.status.value}]")
    print("="*60)

    if outcome.warning:
        print(f"⚠️  {outcome.warning}")
    if record.intent:
        print(f"Intent: {', '.join(record.intent)}")
    if record.summary_3lines:
        print(record.summary_3lines)
    if record.next_action:
        print(f"\n→ {record.next_action}")
    for i, idea in enumerate(record.ideas, 1):
        print(f"  {i}. {idea}")
    if outcome.confirm_question:
        print(f"\n? {outcome.confirm_question}")

    print("="*60 + "\n")


def main():
    parser = argparse.ArgumentParser(
        description='Capture a tubuyaki from the terminal',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('text', nargs='*', help='Text to capture (stdin if omitted)')
    parser.add_argument('--json', action='store_true', help='Output the record as JSON')
    args = parser.parse_args()

    text = " ".join(args.text) if args.text else sys.stdin.read()

    processor = TubuyakiProcessor(
        engine=TransformEngine.from_settings(settings),
        credentials=settings.llm_credentials()
    )
    outcomes = []

    try:
        delivered = capture_manual_text(text, lambda final_text: outcomes.append(processor.create(final_text)))
    except Exception as e:
        logger.error(f"Failed to save tubuyaki: {e}", exc_info=True)
        print(f"\n❌ Error: {e}\n")
        sys.exit(1)

    if not delivered:
        print("Nothing to capture: text is empty")
        sys.exit(1)

    if args.json:
        print(json.dumps(outcomes[0].to_api(), indent=2, ensure_ascii=False))
    else:
        print_outcome(outcomes[0])


if __name__ == '__main__':
    main()

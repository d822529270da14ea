#!/usr/bin/env python3
"""
Card Number Backfill

Renumbers every ID card whose number does not match PREFIX-YYYY-NNNNN,
oldest issue first, so the new numbers keep the original issue order.
Safe to re-run: well-formed cards are left alone.
"""
import sys
import os
import logging

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from membership_service.db.session import SessionLocal
from membership_service.services.membership.card_numbering import CardNumberingService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def main() -> int:
    db = SessionLocal()
    try:
        renumbered = CardNumberingService(db).backfill_card_numbers()
        for card_id, old_number, new_number in renumbered:
            print(f"{card_id}: {old_number} -> {new_number}")
        logger.info(f"Backfill finished, {len(renumbered)} card(s) renumbered")
        return 0
    except Exception as e:
        logger.error(f"Card number backfill failed: {e}", exc_info=True)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())

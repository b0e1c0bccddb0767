#!/usr/bin/env python3
"""
Event category backfill

Assigns a stored category to itinerary events created before categories
existed, using their free-text event_type tag. Safe to re-run: only rows
still marked uncategorized are considered.
"""
import logging

from rfq_service.db.session import SessionLocal
from rfq_service.services.classification import backfill_event_categories

logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def main():
    db = SessionLocal()
    try:
        updated = backfill_event_categories(db)
        logger.info(f"Backfill complete: {updated} events categorized")
    finally:
        db.close()


if __name__ == "__main__":
    main()

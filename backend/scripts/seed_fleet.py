"""
Create the database tables and load the demo fleet.

    python scripts/seed_fleet.py [--force]
"""

import argparse
import logging

from dotenv import load_dotenv

load_dotenv()

from beta_car_hire.core.database import create_tables, get_db_transaction
from beta_car_hire.services.fleet_seed import seed_demo_fleet

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("seed_fleet")


def main():
    parser = argparse.ArgumentParser(description="Seed the Beta Car Hire fleet with demo vehicles")
    parser.add_argument("--force", action="store_true", help="Insert the demo cars even if the fleet is not empty")
    args = parser.parse_args()

    create_tables()
    with get_db_transaction() as db:
        inserted = seed_demo_fleet(db, force=args.force)

    logger.info(f"Done ({inserted} cars inserted)")


if __name__ == "__main__":
    main()

"""
Demo fleet used to populate a fresh database.
"""

import logging

from sqlalchemy.orm import Session

from beta_car_hire.models import Car

logger = logging.getLogger(__name__)

DEMO_FLEET = [
    {"make": "Mercedes-Benz", "model": "S-Class", "year": "2024", "price": "250", "car_type": "Sedan"},
    {"make": "BMW", "model": "X7", "year": "2024", "price": "220", "car_type": "SUV"},
    {"make": "Tesla", "model": "Model S", "year": "2024", "price": "200", "car_type": "Sedan"},
    {"make": "Audi", "model": "A8", "year": "2024", "price": "240", "car_type": "Sedan"},
    {"make": "Land Rover", "model": "Range Rover Evoque", "year": "2023", "price": "180", "car_type": "SUV"},
    {"make": "Volkswagen", "model": "Golf", "year": "2023", "price": "80", "car_type": "Hatchback"},
]


def seed_demo_fleet(db: Session, force: bool = False) -> int:
    """
    Insert the demo fleet.

    Nothing is inserted when the cars table already has rows, unless
    ``force`` is set.

    Returns:
        Number of cars inserted
    """
    existing = db.query(Car).count()
    if existing and not force:
        logger.info(f"Fleet already has {existing} cars, skipping seed")
        return 0

    try:
        db.add_all(Car(**entry) for entry in DEMO_FLEET)
        db.commit()
    except Exception as e:
        logger.error(f"Seeding fleet failed: {e}")
        db.rollback()
        raise

    logger.info(f"Seeded {len(DEMO_FLEET)} demo cars")
    return len(DEMO_FLEET)

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from beta_car_hire.api.v1.auth import get_optional_user, require_fleet_admin
from beta_car_hire.core.database import get_db
from beta_car_hire.core.response_utils import create_success_response, ResponseTimer
from beta_car_hire.models import Car, User
from beta_car_hire.schemas import CarCreate, CarResponse, StandardResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/fleet", response_model=StandardResponse, status_code=status.HTTP_201_CREATED)
def add_car(
    car_data: CarCreate,
    current_user: User = Depends(require_fleet_admin),
    db: Session = Depends(get_db)
):
    """Add a car to the fleet."""
    with ResponseTimer() as timer:
        try:
            car = Car(**car_data.model_dump())
            db.add(car)
            db.commit()
            db.refresh(car)
        except Exception as e:
            db.rollback()
            logger.error(f"Error adding car: {e}")
            raise

        logger.info(f"Car {car.id} ({car.make} {car.model}) added by user {current_user.id}")

    return create_success_response(
        data=CarResponse.model_validate(car),
        status_code=status.HTTP_201_CREATED,
        message="Car added successfully",
        execution_time=timer.get_execution_time()
    )


@router.get("/fleet", response_model=StandardResponse)
def list_fleet(
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """List the whole fleet, newest first. Open to anonymous visitors."""
    with ResponseTimer() as timer:
        cars = db.query(Car).order_by(Car.created_at.desc()).all()

    return create_success_response(
        data=[CarResponse.model_validate(car) for car in cars],
        message=f"Retrieved {len(cars)} cars",
        execution_time=timer.get_execution_time()
    )


@router.get("/fleet/{car_id}", response_model=StandardResponse)
def get_car(car_id: str, db: Session = Depends(get_db)):
    """Get a single car."""
    car = db.get(Car, car_id)
    if car is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Car not found")

    return create_success_response(data=CarResponse.model_validate(car))

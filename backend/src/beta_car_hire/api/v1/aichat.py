import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from beta_car_hire.api.v1.auth import get_current_user
from beta_car_hire.api.v1.chat import load_owned_session
from beta_car_hire.core.constants import OPTION_MENU, PRICE_FORMAT_PROMPT, SENDER_ASSISTANT, SENDER_USER
from beta_car_hire.core.database import get_db
from beta_car_hire.core.response_utils import create_success_response, ResponseTimer
from beta_car_hire.models import User
from beta_car_hire.schemas import (
    AIChatRequest, ChatMessageResponse, RouteRequest, SessionRequest, StandardResponse, UpdateRentalRequest,
)
from beta_car_hire.services.booking_service import BookingError, BookingService
from beta_car_hire.services.chat_agent import ChatAgent, get_chat_agent
from beta_car_hire.services.chat_service import ChatService
from beta_car_hire.services.database_tools import execute_database_tool
from beta_car_hire.services.response_processor import clean_reply

logger = logging.getLogger(__name__)

router = APIRouter()

OPTION_ALIASES = {
    "1": "chat", "chat": "chat",
    "2": "booking", "booking": "booking",
    "3": "car", "car": "car",
    "4": "price", "price": "price",
    "5": "vehicle", "vehicle": "vehicle",
    "6": "rental", "update": "rental", "rental": "rental",
}


def _require(value: Optional[str], detail: str) -> str:
    if not value or not value.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
    return value


def _with_tool_result(text: str, tool_result: Any) -> str:
    if tool_result is None:
        return text
    if not isinstance(tool_result, str):
        tool_result = json.dumps(tool_result, default=str)
    return f"{text}\n\n{tool_result}"


@router.post("/chat", response_model=StandardResponse)
def chat(
    request_data: AIChatRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    agent: ChatAgent = Depends(get_chat_agent),
):
    """Plain conversational reply, without intent routing."""
    message = _require(request_data.message, "Message and session_id are required")
    session_id = _require(request_data.session_id, "Message and session_id are required")

    with ResponseTimer() as timer:
        session = load_owned_session(session_id, current_user, db)
        service = ChatService(db)

        user_message = service.add_message(session, SENDER_USER, message)
        reply = agent.process_message(db, session.id, current_user.id, message)
        ai_message = service.add_message(session, SENDER_ASSISTANT, reply)

    return create_success_response(
        data={
            "user_message": ChatMessageResponse.model_validate(user_message),
            "ai_message": ChatMessageResponse.model_validate(ai_message),
        },
        message="Message processed successfully",
        execution_time=timer.get_execution_time()
    )


@router.post("/route", response_model=StandardResponse)
def route_option(
    request_data: RouteRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    agent: ChatAgent = Depends(get_chat_agent),
):
    """Answer a numbered menu choice, running the matching tool where there is one."""
    option = _require(request_data.option, "Option and session_id are required")
    session_id = _require(request_data.session_id, "Option and session_id are required")
    session = load_owned_session(session_id, current_user, db)

    choice = OPTION_ALIASES.get(option.strip().lower())
    tool_result: Any = None

    if choice == "chat":
        response = "I'm here to help with any general inquiries about Beta Car Hire. What would you like to know?"
    elif choice == "booking":
        tool_result = execute_database_tool(db, "get_user_bookings", {"user_id": current_user.id})
        response = (
            "I'd be happy to help you make a booking! Let me check our available vehicles and dates for you."
            "\n\nI can see your booking history. Would you like to make a new booking? Please provide:\n"
            "1. Your preferred dates\n2. Type of vehicle you need\n3. Pickup location"
        )
    elif choice == "car":
        response = "Let me show you our luxury fleet! Here are our available vehicles:"
        tool_result = execute_database_tool(db, "search_cars", {})
    elif choice == "price":
        response = "I'll get you our current pricing information. Let me check our rates:"
        car_data = execute_database_tool(db, "search_cars", {})
        prompt = PRICE_FORMAT_PROMPT.format(car_data=json.dumps(car_data, default=str))
        tool_result = clean_reply(agent.process_message(db, session.id, current_user.id, prompt)).replace("*", "")
    elif choice == "vehicle":
        response = (
            "I can provide detailed information about any vehicle in our fleet. "
            "Which vehicle would you like to know more about?"
        )
    elif choice == "rental":
        response = (
            "I can help you update your rental dates or create a new booking. "
            "Let me check your current bookings first."
        )
        tool_result = execute_database_tool(db, "update_rental", {"user_id": current_user.id})
    else:
        response = OPTION_MENU

    ai_message = ChatService(db).add_message(session, SENDER_ASSISTANT, _with_tool_result(response, tool_result))
    logger.info(f"Session {session.id}: option {option!r} routed to {choice or 'menu'}")

    return create_success_response(
        data={
            "ai_message": ChatMessageResponse.model_validate(ai_message),
            "tool_result": tool_result,
        },
        message="Option processed successfully"
    )


@router.post("/booking", response_model=StandardResponse)
def booking_summary(
    request_data: SessionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Post the user's booking history into the chat."""
    session_id = _require(request_data.session_id, "session_id is required")
    session = load_owned_session(session_id, current_user, db)

    result = execute_database_tool(db, "get_user_bookings", {"user_id": current_user.id})
    ai_message = ChatService(db).add_message(
        session, SENDER_ASSISTANT, f"Booking information: {json.dumps(result, default=str)}"
    )

    return create_success_response(
        data={"ai_message": ChatMessageResponse.model_validate(ai_message), "result": result},
        message="Booking processed successfully"
    )


@router.post("/update-rental", response_model=StandardResponse)
def update_rental(
    request_data: UpdateRentalRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Move the dates of the active booking, or book a car when there is none."""
    session_id = _require(request_data.session_id, "session_id is required")
    session = load_owned_session(session_id, current_user, db)

    try:
        message = BookingService(db).update_rental(
            user_id=current_user.id,
            new_start_date=request_data.start_date,
            new_end_date=request_data.end_date,
            car_id=request_data.car_id,
            address_id=request_data.address_id,
        )
    except BookingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    ai_message = ChatService(db).add_message(session, SENDER_ASSISTANT, message)

    return create_success_response(
        data={"ai_message": ChatMessageResponse.model_validate(ai_message), "message": message},
        message="Rental update processed"
    )

"""
Runs the database tools an intent asks for and renders their results as text
for the model.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from beta_car_hire.core.constants import CAR_TYPES
from beta_car_hire.schemas import IntentEntities
from beta_car_hire.services.database_tools import CHAT_TOOLS, execute_database_tool

logger = logging.getLogger(__name__)

_NUMBER_PATTERN = re.compile(r"\d+(?:[.,]\d+)*")


def _normalise_car_type(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    lowered = value.replace(" ", "").lower()
    for car_type in CAR_TYPES:
        if car_type.lower() == lowered or f"{car_type.lower()}s" == lowered:
            return car_type
    return None


def _max_price(price_range: Optional[str]) -> Optional[float]:
    """Upper bound of a free-text price range such as '$100-200' or 'under 300'."""
    if not price_range:
        return None
    numbers = _NUMBER_PATTERN.findall(price_range)
    if not numbers:
        return None
    return float(numbers[-1].replace(",", ""))


def build_tool_params(tool_name: str, entities: Optional[IntentEntities], user_id: Optional[str] = None) -> Dict[str, Any]:
    """Map extracted entities onto the parameters a tool expects."""
    params: Dict[str, Any] = {}
    entities = entities or IntentEntities()

    if tool_name == "search_cars":
        car_type = _normalise_car_type(entities.car_type)
        if car_type:
            params["car_type"] = car_type
        max_price = _max_price(entities.price_range)
        if max_price is not None:
            params["max_price"] = max_price

    elif tool_name in ("check_availability", "get_car_details"):
        # Older prompts put the car id in car_type
        car_id = entities.car_id or entities.car_type
        if car_id:
            params["car_id"] = car_id

    elif tool_name in ("get_user_bookings", "get_user_info"):
        if user_id:
            params["user_id"] = user_id

    return params


def execute_tools(
    db: Session,
    tools: List[str],
    entities: Optional[IntentEntities],
    user_id: Optional[str] = None,
) -> Dict[str, Dict[str, Any]]:
    """
    Execute the requested chat tools.

    Unknown tool names are skipped. A tool that fails unexpectedly is recorded
    as an error entry so the remaining tools still run.
    """
    results: Dict[str, Dict[str, Any]] = {}

    for tool_name in tools:
        if tool_name not in CHAT_TOOLS:
            logger.warning(f"Tool {tool_name} not found in available tools")
            continue

        params = build_tool_params(tool_name, entities, user_id)
        try:
            results[tool_name] = execute_database_tool(db, tool_name, params)
            logger.info(f"Executed tool {tool_name} (success={results[tool_name].get('success')})")
        except Exception as e:
            logger.error(f"Tool {tool_name} execution error: {e}", exc_info=True)
            results[tool_name] = {"error": f"Failed to execute {tool_name}"}

    return results


def _format_date(value: Optional[str]) -> str:
    return value[:10] if value else "unknown"


def format_tool_results(results: Dict[str, Dict[str, Any]]) -> str:
    """Render tool results as the plain-text block handed to the model."""
    lines: List[str] = ["Here's what I found:", ""]

    for tool_name, result in results.items():
        error = result.get("error")

        if tool_name == "search_cars":
            if result.get("success") and "cars" in result:
                lines.append("Available Vehicles:")
                for index, car in enumerate(result["cars"], start=1):
                    lines.append(f"{index}. {car['make']} {car['model']} {car['year']} - ${car['price']}/day")
                    lines.append(f"   Type: {car['car_type']}")
                    lines.append(f"   Bookings: {car['booking_count']}")
                    lines.append("")
                lines.append(f"Total: {result['count']} vehicles found")
                lines.append("")
            elif error:
                lines.extend([f"Error searching cars: {error}", ""])

        elif tool_name == "get_user_bookings":
            if result.get("success") and "bookings" in result:
                lines.append("Your Bookings:")
                for index, booking in enumerate(result["bookings"], start=1):
                    car = booking["car"]
                    lines.append(f"{index}. {car['make']} {car['model']} {car['year']}")
                    lines.append(f"   Booking ID: {booking['id']}")
                    lines.append(f"   Created: {_format_date(booking.get('created_at'))}")
                    lines.append("")
                lines.append(f"Total: {result['count']} bookings")
                lines.append("")
            elif error:
                lines.extend([f"Error getting bookings: {error}", ""])

        elif tool_name == "check_availability":
            if result.get("success"):
                lines.append("Car Availability:")
                lines.append(f"{result['make']} {result['model']} {result['year']}")
                lines.append(f"Available: {'Yes' if result['available'] else 'No'}")
                lines.append(f"Total Bookings: {result['total_bookings']}")
                lines.append("")
            elif error:
                lines.extend([f"Error checking availability: {error}", ""])

        elif tool_name == "get_car_details":
            if result.get("success") and "car" in result:
                car = result["car"]
                lines.append(f"{car['make']} {car['model']} {car['year']} Details:")
                lines.append(f"Price: ${car['price']}/day")
                lines.append(f"Type: {car['car_type']}")
                lines.append(f"Bookings: {len(car['bookings'])}")
                lines.append("")
            elif error:
                lines.extend([f"Error getting car details: {error}", ""])

        elif tool_name == "get_user_info":
            if result.get("success") and "user" in result:
                user = result["user"]
                lines.append("User Information:")
                lines.append(f"Name: {user['first_name']} {user['last_name']}")
                lines.append(f"Email: {user['email']}")
                lines.append(f"Total Bookings: {user['total_bookings']}")
                lines.append("")
            elif error:
                lines.extend([f"Error getting user info: {error}", ""])

    return "\n".join(lines).strip()

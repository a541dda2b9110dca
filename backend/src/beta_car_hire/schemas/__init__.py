"""
Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel, Field, EmailStr, ConfigDict, field_validator
from typing import Optional, Dict, Any, Generic, TypeVar, List, Literal
from datetime import datetime

from beta_car_hire.models.base import utcnow

# Generic type for response data
T = TypeVar('T')

CarType = Literal["Sedan", "SUV", "Truck", "Van", "SportsCar", "Convertible", "Coupe", "Hatchback", "Wagon"]
Intent = Literal["general_chat", "car_inquiry", "pricing", "booking", "availability", "features", "support"]


class Metadata(BaseModel):
    """Standard metadata for API responses."""
    statusCode: int = Field(..., description="HTTP status code")
    errors: List[str] = Field(default_factory=list, description="List of error messages")
    executionTime: float = Field(..., description="Request execution time in seconds")
    timestamp: datetime = Field(default_factory=utcnow, description="Response timestamp")


class StandardResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""
    data: T = Field(..., description="Response data")
    message: Optional[str] = Field(None, description="Human readable outcome")
    metadata: Metadata = Field(..., description="Response metadata")
    success: int = Field(..., description="Success indicator (1 for success, 0 for failure)")


class ErrorResponse(BaseModel):
    """Error response schema."""
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")


# Users and authentication
class UserCreate(BaseModel):
    """Registration payload."""
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=8, max_length=128, description="Password")
    first_name: str = Field(..., min_length=3, max_length=100)
    last_name: str = Field(..., min_length=3, max_length=100)
    phone: str = Field(..., min_length=10, max_length=32)


class LoginRequest(BaseModel):
    """Schema for login requests."""
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class UserResponse(BaseModel):
    """Public view of a user; never carries the password hash."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    phone: str
    role: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    first_name: str
    last_name: str
    email: str


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


# Fleet
class CarCreate(BaseModel):
    """New fleet entry. Year and price are kept as entered."""
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: str = Field(..., min_length=1, max_length=4)
    price: str = Field(..., min_length=1, max_length=32)
    car_type: CarType


class CarResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    make: str
    model: str
    year: str
    price: str
    car_type: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Addresses and bookings
class AddressCreate(BaseModel):
    address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip: str = Field(..., min_length=1, max_length=20)


class AddressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    address: str
    city: str
    state: str
    zip: str


class BookingCreate(BaseModel):
    """
    Booking request. Dates are optional; missing ones default to a
    seven day rental starting now.
    """
    car_id: str = Field(..., min_length=1)
    address_id: str = Field(..., min_length=1)
    user_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class BookingCancel(BaseModel):
    booking_id: str = Field(..., min_length=1)


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    car_id: str
    address_id: str
    start_date: datetime
    end_date: datetime
    total_price: float
    status: str
    created_at: Optional[datetime] = None
    car: Optional[CarResponse] = None
    address: Optional[AddressResponse] = None


class BookingWithUser(BookingResponse):
    user: Optional[UserSummary] = None


class VerifyUserResponse(BaseModel):
    user: UserResponse
    bookings: List[BookingResponse] = Field(default_factory=list)


# Chat
class ChatMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    sender: str
    message: str
    created_at: Optional[datetime] = None


class ChatSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    messages: List[ChatMessageResponse] = Field(default_factory=list)


class ChatMessageCreate(BaseModel):
    message: str = Field(..., min_length=1, max_length=10000, description="Message content")

    @field_validator('message')
    @classmethod
    def validate_message(cls, v):
        if not v.strip():
            raise ValueError('Message is required and must be a non-empty string')
        return v


class DemoMessage(BaseModel):
    message: str = Field(..., min_length=1, max_length=10000)


class IntentTestRequest(BaseModel):
    message: str = Field(..., min_length=1)


class ToolTestRequest(BaseModel):
    tools: Any = None
    entities: Dict[str, Any] = Field(default_factory=dict)


class IntentEntities(BaseModel):
    """Entities the model may extract from a customer message."""
    car_type: Optional[str] = None
    car_id: Optional[str] = None
    date_mentioned: Optional[str] = None
    price_range: Optional[str] = None
    location: Optional[str] = None

    @field_validator('*', mode='before')
    @classmethod
    def coerce_to_text(cls, v):
        # Models occasionally answer with numbers where text is expected
        if v is None or isinstance(v, str):
            return v
        return str(v)


class IntentResult(BaseModel):
    intent: Intent = "general_chat"
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    entities: IntentEntities = Field(default_factory=IntentEntities)
    requires_tools: List[str] = Field(default_factory=list)


class DebugInfo(BaseModel):
    intent: str
    confidence: float
    entities: IntentEntities
    tools_executed: List[str] = Field(default_factory=list)
    has_tool_results: bool = False


class ChatReply(BaseModel):
    user_message: str
    ai_message: str
    message_id: str
    debug: Optional[DebugInfo] = None


# Option router ("aichat")
class AIChatRequest(BaseModel):
    message: Optional[str] = None
    session_id: Optional[str] = None


class RouteRequest(BaseModel):
    option: Optional[str] = None
    session_id: Optional[str] = None

    @field_validator('option', mode='before')
    @classmethod
    def coerce_option(cls, v):
        if v is None or isinstance(v, str):
            return v
        return str(v)


class SessionRequest(BaseModel):
    session_id: Optional[str] = None


class UpdateRentalRequest(BaseModel):
    session_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    car_id: Optional[str] = None
    address_id: Optional[str] = None

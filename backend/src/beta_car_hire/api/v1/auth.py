import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Request, Response
from fastapi.responses import JSONResponse
from jose import JWTError
from sqlalchemy.orm import Session

from beta_car_hire.core.config import get_config
from beta_car_hire.core.constants import LOGIN_GREETING
from beta_car_hire.core.database import get_db
from beta_car_hire.core.response_utils import create_success_response, create_error_response, ResponseTimer
from beta_car_hire.core.security import (
    verify_password, get_password_hash, create_access_token, decode_access_token,
    get_token_from_request, set_auth_cookies, clear_auth_cookies,
)
from beta_car_hire.models import Chat, ChatSession, User
from beta_car_hire.schemas import (
    UserCreate, UserResponse, LoginRequest, AuthResponse, StandardResponse, VerifyUserResponse, BookingResponse,
)
from beta_car_hire.services.booking_service import BookingService
from beta_car_hire.services.chat_service import ChatService

config = get_config()
logger = logging.getLogger(__name__)

router = APIRouter()
profile_router = APIRouter()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get user by email."""
    return db.query(User).filter(User.email == email.lower()).first()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Get current authenticated user.

    The token comes from the ``token`` cookie (or a bearer header). Session and
    chat claims, when present, must still point at records owned by the user.
    """
    token = get_token_from_request(request)
    if not token:
        raise _unauthorized("Access token required")

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise _unauthorized("Invalid or expired token")

    user = db.get(User, payload["sub"])
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("Account is deactivated")

    session_id = payload.get("session_id")
    if session_id:
        session = db.get(ChatSession, session_id)
        if session is None or session.user_id != user.id:
            raise _unauthorized("Invalid session")

    chat_id = payload.get("chat_id")
    if chat_id:
        chat = db.get(Chat, chat_id)
        if chat is None or chat.session_id != session_id:
            raise _unauthorized("Invalid chat session")

    return user


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """Get current user, or None for anonymous callers and unusable tokens."""
    if not get_token_from_request(request):
        return None
    try:
        return get_current_user(request, db)
    except HTTPException:
        return None


def require_fleet_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require fleet management rights."""
    if config.security.fleet_admin_only and not current_user.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


def _start_session(db: Session, user: User, response: Response) -> str:
    """Open a chat session with a greeting, issue a token and set the auth cookies."""
    session = ChatService(db).create_session(user, LOGIN_GREETING)
    greeting = session.messages[0]
    token = create_access_token(user.id, session_id=session.id, chat_id=greeting.id)
    set_auth_cookies(response, token, session.id, greeting.id)
    return token


@router.post("/register", response_model=StandardResponse, status_code=status.HTTP_201_CREATED)
def register_user(user_data: UserCreate, response: Response, db: Session = Depends(get_db)):
    """Register a new user and sign them in."""
    with ResponseTimer() as timer:
        if get_user_by_email(db, user_data.email):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

        try:
            user = User(
                email=user_data.email.lower(),
                hashed_password=get_password_hash(user_data.password),
                first_name=user_data.first_name,
                last_name=user_data.last_name,
                phone=user_data.phone,
            )
            db.add(user)
            db.flush()
            # Commits the user together with the first chat session
            token = _start_session(db, user, response)
        except Exception as e:
            db.rollback()
            logger.error(f"User registration failed: {e}")
            raise

        logger.info(f"User registered: {user.id}")

    return create_success_response(
        data=AuthResponse(token=token, user=UserResponse.model_validate(user)),
        status_code=status.HTTP_201_CREATED,
        message="User registered successfully",
        execution_time=timer.get_execution_time()
    )


@router.post("/login", response_model=StandardResponse)
def login(login_data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """Sign in with email and password."""
    with ResponseTimer() as timer:
        user = get_user_by_email(db, login_data.email)
        if user is None or not verify_password(login_data.password, user.hashed_password):
            logger.warning("Failed login attempt")
            raise _unauthorized("Invalid credentials")
        if not user.is_active:
            raise _unauthorized("Account is deactivated")

        token = _start_session(db, user, response)
        logger.info(f"User logged in: {user.id}")

    return create_success_response(
        data=AuthResponse(token=token, user=UserResponse.model_validate(user)),
        message="Login successful",
        execution_time=timer.get_execution_time()
    )


@router.get("/logout", response_model=StandardResponse)
def logout(request: Request):
    """Clear the auth cookies. An invalid token still gets its cookies cleared."""
    token = get_token_from_request(request)
    if not token:
        raise _unauthorized("No token found")

    try:
        payload = decode_access_token(token)
    except JWTError:
        message = "Invalid token, but cookies cleared"
        body = create_error_response(message=message, status_code=status.HTTP_401_UNAUTHORIZED)
        invalid = JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=body.model_dump(mode="json"))
        clear_auth_cookies(invalid)
        return invalid

    body = create_success_response(data={"user_id": payload["sub"]}, message="Logged out successfully")
    ok = JSONResponse(content=body.model_dump(mode="json"))
    clear_auth_cookies(ok)
    logger.info(f"User logged out: {payload['sub']}")
    return ok


@router.get("/verify-user", response_model=StandardResponse)
def verify_user(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Return the signed-in user with their bookings."""
    with ResponseTimer() as timer:
        bookings = BookingService(db).list_user_bookings(current_user.id)
        data = VerifyUserResponse(
            user=UserResponse.model_validate(current_user),
            bookings=[BookingResponse.model_validate(booking) for booking in bookings],
        )

    return create_success_response(
        data=data,
        message="User verified",
        execution_time=timer.get_execution_time()
    )


@profile_router.get("/profile", response_model=StandardResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    """Get current user profile."""
    return create_success_response(
        data=UserResponse.model_validate(current_user),
        message="Profile accessed successfully"
    )

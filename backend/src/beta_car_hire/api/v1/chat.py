import logging
import re

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from beta_car_hire.api.v1.auth import get_current_user
from beta_car_hire.core.constants import (
    DEMO_MESSAGE_REPLY, DEMO_OPTION_REPLY, ENHANCEMENT_PROMPT, SENDER_ASSISTANT, SENDER_USER, WELCOME_MESSAGE,
)
from beta_car_hire.core.database import get_db
from beta_car_hire.core.response_utils import create_success_response, ResponseTimer
from beta_car_hire.models import ChatSession, User
from beta_car_hire.schemas import (
    ChatMessageCreate, ChatMessageResponse, ChatReply, ChatSessionResponse, DebugInfo, DemoMessage,
    IntentEntities, IntentTestRequest, StandardResponse, ToolTestRequest,
)
from beta_car_hire.services.chat_agent import ChatAgent, get_chat_agent
from beta_car_hire.services.chat_service import ChatService, ChatSessionAccessError, ChatSessionNotFoundError
from beta_car_hire.services.database_tools import CHAT_TOOLS
from beta_car_hire.services.response_processor import clean_reply
from beta_car_hire.services.tool_executor import execute_tools, format_tool_results

logger = logging.getLogger(__name__)

router = APIRouter()


def load_owned_session(session_id: str, user: User, db: Session) -> ChatSession:
    """Fetch a chat session for its owner, mapping failures to 404/403."""
    try:
        return ChatService(db).get_owned_session(session_id, user)
    except ChatSessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ChatSessionAccessError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get("/sessions", response_model=StandardResponse)
def list_sessions(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """List the user's chat sessions, each with its first message."""
    with ResponseTimer() as timer:
        service = ChatService(db)
        sessions = []
        for session in service.list_sessions(current_user):
            first = service.first_message(session)
            sessions.append(ChatSessionResponse(
                id=session.id,
                user_id=session.user_id,
                created_at=session.created_at,
                updated_at=session.updated_at,
                messages=[ChatMessageResponse.model_validate(first)] if first else [],
            ))

    return create_success_response(
        data=sessions,
        message="Sessions retrieved",
        execution_time=timer.get_execution_time()
    )


@router.post("/session", response_model=StandardResponse, status_code=status.HTTP_201_CREATED)
def create_session(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Start a new chat session with the assistant's welcome message."""
    session = ChatService(db).create_session(current_user, WELCOME_MESSAGE)
    welcome = session.messages[0]

    return create_success_response(
        data={
            "session_id": session.id,
            "welcome_message": ChatMessageResponse.model_validate(welcome),
        },
        status_code=status.HTTP_201_CREATED,
        message="Chat session created"
    )


@router.get("/session/{session_id}/messages", response_model=StandardResponse)
def get_messages(session_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    session = load_owned_session(session_id, current_user, db)
    messages = ChatService(db).get_messages(session)

    return create_success_response(
        data=[ChatMessageResponse.model_validate(m) for m in messages],
        message="Messages fetched"
    )


@router.post("/session/{session_id}/message", response_model=StandardResponse)
def send_message(
    session_id: str,
    message_data: ChatMessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    agent: ChatAgent = Depends(get_chat_agent),
):
    """
    Answer a customer message.

    The message is stored, its intent classified, any tools the intent needs
    are run against the database and the model phrases the final reply, which
    is stored as an assistant message.
    """
    with ResponseTimer() as timer:
        session = load_owned_session(session_id, current_user, db)
        service = ChatService(db)
        message = message_data.message

        service.add_message(session, SENDER_USER, message)

        intent = agent.classify_intent(message, current_user.id)
        logger.info(f"Session {session_id}: intent={intent.intent} tools={intent.requires_tools}")

        tool_results = {}
        if intent.requires_tools:
            tool_results = execute_tools(db, intent.requires_tools, intent.entities, current_user.id)

        if tool_results:
            prompt = ENHANCEMENT_PROMPT.format(message=message, tool_output=format_tool_results(tool_results))
            reply = agent.process_message(db, session.id, current_user.id, prompt)
        else:
            reply = agent.process_message(db, session.id, current_user.id, message)

        ai_message = service.add_message(session, SENDER_ASSISTANT, clean_reply(reply))

    return create_success_response(
        data=ChatReply(
            user_message=message,
            ai_message=ai_message.message,
            message_id=ai_message.id,
            debug=DebugInfo(
                intent=intent.intent,
                confidence=intent.confidence,
                entities=intent.entities,
                tools_executed=list(tool_results.keys()),
                has_tool_results=bool(tool_results),
            ),
        ),
        message="Message processed successfully",
        execution_time=timer.get_execution_time()
    )


@router.post("/test-intent", response_model=StandardResponse)
def classify_only(
    request_data: IntentTestRequest,
    current_user: User = Depends(get_current_user),
    agent: ChatAgent = Depends(get_chat_agent),
):
    """Classify a message without storing anything."""
    intent = agent.classify_intent(request_data.message, current_user.id)
    return create_success_response(data={"message": request_data.message, "intent_analysis": intent})


@router.post("/test-tools", response_model=StandardResponse)
def run_tools(
    request_data: ToolTestRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Run chat tools directly and show the text the model would receive."""
    tools = request_data.tools
    if not isinstance(tools, list) or not all(isinstance(t, str) for t in tools):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="tools array is required")

    try:
        entities = IntentEntities.model_validate(request_data.entities)
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="entities must be an object")

    results = execute_tools(db, tools, entities, current_user.id)
    return create_success_response(data={
        "tools_executed": tools,
        "tool_results": results,
        "formatted_output": format_tool_results(results),
    })


@router.get("/health", response_model=StandardResponse)
def chat_health():
    return create_success_response(data={
        "status": "Chat system operational",
        "available_tools": list(CHAT_TOOLS),
        "features": ["intent_classification", "tool_execution", "conversational_ai"],
    })


@router.post("/demo", response_model=StandardResponse)
def demo_reply(request_data: DemoMessage):
    """Canned assistant reply for visitors who are not signed in. Nothing is stored."""
    text = request_data.message.strip()
    if re.fullmatch(r"[1-6]", text):
        reply = DEMO_OPTION_REPLY.format(option=text)
    else:
        reply = DEMO_MESSAGE_REPLY.format(message=text)

    return create_success_response(data={"user_message": text, "ai_message": reply})

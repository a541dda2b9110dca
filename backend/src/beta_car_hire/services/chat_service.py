"""
Chat Service for Beta Car Hire.

This module provides services for managing support chat sessions and messages.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from beta_car_hire.core.constants import SENDER_ASSISTANT, SENDER_USER
from beta_car_hire.models import Chat, ChatSession, User
from beta_car_hire.models.base import utcnow

logger = logging.getLogger(__name__)


class ChatSessionNotFoundError(LookupError):
    """Raised when a chat session does not exist."""


class ChatSessionAccessError(PermissionError):
    """Raised when a chat session belongs to another user."""


class ChatService:
    """Service for managing chat sessions and chat messages."""

    def __init__(self, db: Session):
        self.db = db

    def create_session(self, user: User, welcome_message: str) -> ChatSession:
        """Create a chat session seeded with exactly one assistant message."""
        try:
            session = ChatSession(user_id=user.id)
            self.db.add(session)
            self.db.flush()

            self.db.add(Chat(session_id=session.id, sender=SENDER_ASSISTANT, message=welcome_message))
            self.db.commit()
            self.db.refresh(session)

            logger.info(f"Created chat session {session.id} for user {user.id}")
            return session

        except Exception as e:
            logger.error(f"Error creating chat session: {e}")
            self.db.rollback()
            raise

    def list_sessions(self, user: User) -> List[ChatSession]:
        """Sessions of a user, newest first."""
        return (
            self.db.query(ChatSession)
            .filter(ChatSession.user_id == user.id)
            .order_by(ChatSession.created_at.desc())
            .all()
        )

    def get_owned_session(self, session_id: str, user: User) -> ChatSession:
        """
        Load a session and check that it belongs to the user.

        Raises:
            ChatSessionNotFoundError: If no such session exists
            ChatSessionAccessError: If the session belongs to another user
        """
        session = self.db.get(ChatSession, session_id)
        if session is None:
            raise ChatSessionNotFoundError("Chat session not found")
        if session.user_id != user.id:
            logger.warning(f"User {user.id} tried to access chat session {session_id}")
            raise ChatSessionAccessError("Access denied to this chat session")
        return session

    def get_messages(self, session: ChatSession) -> List[Chat]:
        """Messages of a session in the order they were written."""
        return (
            self.db.query(Chat)
            .filter(Chat.session_id == session.id)
            .order_by(Chat.created_at.asc())
            .all()
        )

    def first_message(self, session: ChatSession) -> Optional[Chat]:
        return (
            self.db.query(Chat)
            .filter(Chat.session_id == session.id)
            .order_by(Chat.created_at.asc())
            .first()
        )

    def add_message(self, session: ChatSession, sender: str, text: str) -> Chat:
        """Store a message and touch the session."""
        if sender not in (SENDER_USER, SENDER_ASSISTANT):
            raise ValueError(f"Unknown sender: {sender}")

        try:
            chat = Chat(session_id=session.id, sender=sender, message=text)
            self.db.add(chat)
            session.updated_at = utcnow()
            self.db.commit()
            self.db.refresh(chat)
            return chat

        except Exception as e:
            logger.error(f"Error adding message to session {session.id}: {e}")
            self.db.rollback()
            raise

    def recent_history(self, session_id: str, limit: int) -> List[Chat]:
        """The last ``limit`` messages of a session, oldest first."""
        recent = (
            self.db.query(Chat)
            .filter(Chat.session_id == session_id)
            .order_by(Chat.created_at.desc())
            .limit(limit)
            .all()
        )
        return list(reversed(recent))

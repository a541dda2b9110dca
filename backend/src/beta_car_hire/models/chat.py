"""
Chat session and chat message models for the support assistant.
"""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from beta_car_hire.core.constants import SENDER_USER
from .base import Base, generate_uuid, utcnow


class ChatSession(Base):
    """
    A conversation thread between one user and the assistant.
    """
    __tablename__ = "chat_sessions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="chat_sessions")
    messages = relationship(
        "Chat",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="Chat.created_at",
    )

    def __repr__(self):
        return f"<ChatSession(id={self.id}, user_id={self.user_id})>"


class Chat(Base):
    """
    One message in a chat session, from the user or the assistant.
    """
    __tablename__ = "chats"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    session_id = Column(String(36), ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    sender = Column(String(20), nullable=False, default=SENDER_USER)  # 'user' or 'assistant'
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    session = relationship("ChatSession", back_populates="messages")

    def __repr__(self):
        return f"<Chat(id={self.id}, session_id={self.session_id}, sender='{self.sender}')>"

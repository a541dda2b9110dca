"""
Database models.
"""

# Import all models to ensure they are registered with SQLAlchemy
from .base import Base
from .user import User
from .car import Car
from .address import Address
from .booking import Booking
from .chat import ChatSession, Chat

__all__ = ["Base", "User", "Car", "Address", "Booking", "ChatSession", "Chat"]

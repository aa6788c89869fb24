"""User model"""

from enum import Enum

from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class UserRole(str, Enum):
    """Account roles"""

    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


class User(Base, TimestampMixin):
    """User table for buyers, sellers and admins"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255))
    name = Column(String(255))
    role = Column(String(50), nullable=False, default=UserRole.BUYER.value)
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    items = relationship("Item", back_populates="seller", cascade="all, delete-orphan")
    interactions = relationship("Interaction", back_populates="user", cascade="all, delete-orphan")
    feed_entries = relationship("DailyFeedEntry", back_populates="user", cascade="all, delete-orphan")
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

"""
User Model

Stores catalog accounts and their role. Only researchers may write.
"""

from sqlalchemy import Column, Integer, String, DateTime
from exoatlas.db.base_class import Base
from datetime import datetime
import enum


class UserRole(str, enum.Enum):
    RESEARCHER = "researcher"
    VIEWER = "viewer"


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String(16), nullable=False, default=UserRole.VIEWER.value)

    created_at = Column(DateTime, default=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

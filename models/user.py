from sqlalchemy import Column, Integer, String, Text, DateTime, func
from sqlalchemy.orm import relationship
from database import Base

class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Accounts are created by the Google login flow; we only read them here
    google_id = Column(String(255), unique=True, nullable=False)
    email = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    picture_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    sync_items = relationship("SyncItem", back_populates="user", cascade="all, delete-orphan")
    sync_cursors = relationship("SyncCursor", back_populates="user", cascade="all, delete-orphan")
    bibles = relationship("UserBible", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f'<User {self.email} (ID: {self.id})>'

# models/user_bible.py
from sqlalchemy import Column, Integer, String, BigInteger, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship
from database import Base

class UserBible(Base):
    """A translation uploaded by a user. Chapter text lives in UserBibleChapter."""
    __tablename__ = 'user_bibles'

    id = Column(String(100), primary_key=True)  # generated on the device
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    mapping_id = Column(String(50), nullable=False)  # verse numbering scheme
    verse_counts = Column(JSON, nullable=True)
    uploaded_at = Column(BigInteger, nullable=False)
    deleted = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="bibles")
    chapters = relationship("UserBibleChapter", back_populates="bible", cascade="all, delete-orphan")

    def to_json(self):
        return {
            "id": self.id,
            "name": self.name,
            "mappingId": self.mapping_id,
            "verseCounts": self.verse_counts,
            "uploadedAt": self.uploaded_at,
            "deleted": bool(self.deleted)
        }

    def __repr__(self):
        return f'<UserBible {self.id} "{self.name}" User: {self.user_id}>'


class UserBibleChapter(Base):
    __tablename__ = 'user_bible_chapters'

    bible_id = Column(String(100), ForeignKey('user_bibles.id', ondelete='CASCADE'), primary_key=True)
    book_id = Column(Integer, primary_key=True)
    chapter = Column(Integer, primary_key=True)
    data = Column(JSON, nullable=False)

    bible = relationship("UserBible", back_populates="chapters")

    def to_json(self):
        return {
            "bookId": self.book_id,
            "chapter": self.chapter,
            "data": self.data
        }

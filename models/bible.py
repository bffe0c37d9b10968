from dataclasses import dataclass, field
from sqlalchemy import Column, Integer, String, Text, Index
from database import ReferenceBase

@dataclass(frozen=True)
class Book:
    id: int
    name: str
    short_name: str
    chapters: int
    testament: str
    aliases: frozenset = field(default_factory=frozenset, repr=False, compare=False)

    @property
    def slug(self):
        """ASCII-safe URL slug: 'Åp' -> 'ap', '1Krøn' -> '1kron'."""
        return self.short_name.lower().replace('å', 'a').replace('ø', 'o').replace('æ', 'ae')

    def to_json(self):
        return {
            "id": self.id,
            "name_no": self.name,
            "short_name": self.short_name,
            "testament": self.testament,
            "chapters": self.chapters
        }


class Verse(ReferenceBase):
    __tablename__ = 'verses'

    id = Column(Integer, primary_key=True)
    bible = Column(String(20), nullable=False, default='osnb1')
    book_id = Column(Integer, nullable=False)
    chapter = Column(Integer, nullable=False)
    verse = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)

    __table_args__ = (
        Index('idx_verses_lookup', 'bible', 'book_id', 'chapter', 'verse'),
    )

    def to_json(self):
        return {
            "id": self.id,
            "book_id": self.book_id,
            "chapter": self.chapter,
            "verse": self.verse,
            "text": self.text
        }

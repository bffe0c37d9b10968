# utils/bible_db.py
import logging
from sqlalchemy import func
from config import Config
from database import get_reference_session
from models.bible import Verse

logger = logging.getLogger(__name__)


def get_verse_count(book_id, chapter, bible=None):
    """Number of verses in a chapter of the reference corpus (0 when unknown)."""
    bible = bible or Config.DEFAULT_BIBLE
    with get_reference_session() as db:
        count = db.query(func.max(Verse.verse)).filter(
            Verse.bible == bible,
            Verse.book_id == book_id,
            Verse.chapter == chapter
        ).scalar()
    return count or 0


def get_chapter_verses(book_id, chapter, bible=None):
    bible = bible or Config.DEFAULT_BIBLE
    with get_reference_session() as db:
        verses = db.query(Verse).filter(
            Verse.bible == bible,
            Verse.book_id == book_id,
            Verse.chapter == chapter
        ).order_by(Verse.verse).all()
        return [v.to_json() for v in verses]

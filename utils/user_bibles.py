# utils/user_bibles.py
import logging
from models.user_bible import UserBible, UserBibleChapter

logger = logging.getLogger(__name__)


class BibleNotFound(Exception):
    """The bible doesn't exist or belongs to another user."""


def sync_user_bibles(db, user_id, bibles):
    """Merge the device's bible metadata into the server copy.

    Last write wins on ``uploaded_at``. Returns every bible the server knows
    for the user, tombstones included, so the device can drop deleted ones.
    """
    existing = {b.id: b for b in db.query(UserBible).filter(UserBible.user_id == user_id).all()}

    for bible in bibles:
        current = existing.get(bible.id)
        if current is None:
            if db.get(UserBible, bible.id) is not None:
                # Same id uploaded by someone else
                logger.warning(f"User {user_id} tried to sync bible {bible.id} owned by another user")
                raise BibleNotFound(bible.id)
            current = UserBible(
                id=bible.id,
                user_id=user_id,
                name=bible.name,
                mapping_id=bible.mapping_id,
                verse_counts=bible.verse_counts,
                uploaded_at=bible.uploaded_at,
                deleted=bible.deleted
            )
            db.add(current)
            existing[bible.id] = current
        elif bible.uploaded_at > current.uploaded_at:
            current.name = bible.name
            current.mapping_id = bible.mapping_id
            current.verse_counts = bible.verse_counts
            current.uploaded_at = bible.uploaded_at
            current.deleted = bible.deleted

    db.flush()
    return sorted(existing.values(), key=lambda b: b.uploaded_at)


def _owned_bible(db, user_id, bible_id):
    bible = db.query(UserBible).filter_by(id=bible_id, user_id=user_id).first()
    if not bible:
        raise BibleNotFound(bible_id)
    return bible


def save_chapters(db, user_id, bible_id, chapters):
    """Upsert uploaded chapters of an owned bible. Returns the number written."""
    _owned_bible(db, user_id, bible_id)
    # A chapter sent twice in one upload: the last copy wins
    latest = {(ch.book_id, ch.chapter): ch.data for ch in chapters}
    for (book_id, chapter), data in latest.items():
        row = db.get(UserBibleChapter, (bible_id, book_id, chapter))
        if row is None:
            db.add(UserBibleChapter(bible_id=bible_id, book_id=book_id, chapter=chapter, data=data))
        else:
            row.data = data
    db.flush()
    return len(latest)


def load_chapters(db, user_id, bible_id):
    _owned_bible(db, user_id, bible_id)
    rows = db.query(UserBibleChapter).filter_by(bible_id=bible_id).order_by(
        UserBibleChapter.book_id, UserBibleChapter.chapter
    ).all()
    return [row.to_json() for row in rows]

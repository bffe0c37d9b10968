# routes/bible.py
from flask import Blueprint, jsonify, request
import logging
from utils.books import all_books, get_book_by_id, get_book_by_slug
from utils.bible_db import get_chapter_verses

bible_bp = Blueprint('bible', __name__)
logger = logging.getLogger(__name__)


def _lookup_book(book):
    """Accept either a numeric id ('43') or a URL slug ('joh')."""
    if book.isdigit():
        return get_book_by_id(int(book))
    return get_book_by_slug(book)


@bible_bp.route('/books', methods=['GET'])
def get_books():
    # Static data, no database round trip needed
    return jsonify([book.to_json() for book in all_books()])


@bible_bp.route('/verses/<book>/<int:chapter>', methods=['GET'])
def get_verses(book, chapter):
    book_info = _lookup_book(book)
    if not book_info:
        return jsonify({"error": "Book not found"}), 404
    if chapter < 1 or chapter > book_info.chapters:
        return jsonify({"error": f"{book_info.name} har {book_info.chapters} kapitler"}), 404

    bible = request.args.get('bible')
    try:
        verses = get_chapter_verses(book_info.id, chapter, bible)
    except Exception as e:
        logger.error(f"Error fetching {book_info.short_name} {chapter}: {str(e)}", exc_info=True)
        return jsonify({"error": "Failed to fetch verses"}), 500

    if not verses:
        return jsonify({"error": "Chapter not found"}), 404

    return jsonify({
        "book": book_info.to_json(),
        "chapter": chapter,
        "verses": verses
    })

# routes/reference.py
from flask import Blueprint, jsonify, request
import logging
from utils.books import all_books, find_book
from utils.bible_db import get_verse_count
from utils.reference_parser import (
    parse_reference, looks_like_reference, get_book_suggestions, BookSuggestion
)

reference_bp = Blueprint('reference', __name__)
logger = logging.getLogger(__name__)


@reference_bp.route('', methods=['GET'])
def parse():
    """Parse a Bible reference typed into the search box."""
    query = request.args.get('q', '').strip()
    if not query:
        return jsonify({'success': False, 'error': 'Mangler søkeparameter'})

    if not looks_like_reference(query):
        return jsonify({'success': False, 'isReference': False, 'error': 'Ikke en bibelreferanse'})

    try:
        result = parse_reference(query, verse_count=get_verse_count)
    except Exception as e:
        logger.error(f"Error parsing reference '{query}': {str(e)}", exc_info=True)
        return jsonify({'error': 'Failed to parse reference'}), 500

    data = result.to_json()
    data['isReference'] = True
    return jsonify(data)


@reference_bp.route('/suggest', methods=['GET'])
def suggest():
    """Autocomplete: book suggestions for ?q=, or the verse count for ?book=&chapter=."""
    query = request.args.get('q', '').strip()
    book_id = request.args.get('book', type=int)
    chapter = request.args.get('chapter', type=int)

    if book_id and chapter:
        try:
            return jsonify({'verseCount': get_verse_count(book_id, chapter)})
        except Exception as e:
            logger.error(f"Error counting verses for {book_id}/{chapter}: {str(e)}", exc_info=True)
            return jsonify({'error': 'Failed to count verses'}), 500

    if not query:
        return jsonify({
            'suggestions': [BookSuggestion(book, book.short_name).to_json() for book in all_books()]
        })

    suggestions = get_book_suggestions(query)
    exact = find_book(query)
    if exact:
        if not suggestions:
            suggestions = [BookSuggestion(exact, query)]
        return jsonify({
            'suggestions': [s.to_json() for s in suggestions],
            'selectedBook': exact.to_json()
        })

    return jsonify({'suggestions': [s.to_json() for s in suggestions]})

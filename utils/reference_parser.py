# utils/reference_parser.py
"""Parse free-text Bible references such as "matt 6,9-13", "Joh 3:16" or "1 mos 1".

Parsing never raises for bad user input. Every call returns one of the result
types below, so callers can tell a resolved reference from an ambiguous book
name, a known book with a bad locator, or text that is not a reference at all.
"""
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from models.bible import Book
from utils.books import CATALOG

# First digit preceded by whitespace starts the locator ("1 mos 3,16" -> "1 mos" / "3,16")
_LOCATOR_BOUNDARY = re.compile(r'(?<=\s)\d')
_LOCATOR = re.compile(
    r'^(?P<chapter>\d+)'
    r'(?:\s*[,:.]\s*(?P<verse_start>\d+)|\s+(?P<verse_start_ws>\d+))?'
    r'(?:\s*[-–—]\s*(?P<verse_end>\d+))?$'
)

VerseCountLookup = Callable[[int, int], int]


@dataclass(frozen=True)
class ParsedReference:
    book: Book
    chapter: int
    verse_start: Optional[int] = None
    verse_end: Optional[int] = None

    @property
    def url(self):
        url = f"/{self.book.slug}/{self.chapter}"
        if self.verse_start:
            url += f"#v{self.verse_start}"
        return url

    def to_json(self):
        return {
            "book": self.book.to_json(),
            "chapter": self.chapter,
            "verseStart": self.verse_start,
            "verseEnd": self.verse_end,
            "url": self.url,
            "formatted": format_reference(self)
        }


@dataclass(frozen=True)
class BookSuggestion:
    book: Book
    matched_alias: str

    def to_json(self):
        return {"book": self.book.to_json(), "matchedAlias": self.matched_alias}


@dataclass(frozen=True)
class Resolved:
    reference: ParsedReference
    verse_count: Optional[int] = None
    success = True

    def to_json(self):
        data = {"success": True, "reference": self.reference.to_json()}
        if self.verse_count is not None:
            data["reference"]["verseCount"] = self.verse_count
        return data


@dataclass(frozen=True)
class Ambiguous:
    suggestions: List[BookSuggestion]
    error: str = 'Fant ikke bok'
    success = False

    def to_json(self):
        return {
            "success": False,
            "error": self.error,
            "suggestions": [s.to_json() for s in self.suggestions]
        }


@dataclass(frozen=True)
class PartialBook:
    """The book was recognised but the chapter/verse part was missing or out of range."""
    book: Book
    error: str
    chapter: Optional[int] = None
    verse_count: Optional[int] = None
    success = False

    @property
    def chapter_count(self):
        return self.book.chapters

    def to_json(self):
        partial = {"book": self.book.to_json(), "chapterCount": self.chapter_count}
        if self.chapter is not None:
            partial["chapter"] = self.chapter
        if self.verse_count is not None:
            partial["verseCount"] = self.verse_count
        return {"success": False, "error": self.error, "partial": partial}


@dataclass(frozen=True)
class Invalid:
    error: str
    suggestions: List[BookSuggestion] = field(default_factory=list)
    success = False

    def to_json(self):
        return {
            "success": False,
            "error": self.error,
            "suggestions": [s.to_json() for s in self.suggestions]
        }


def get_book_suggestions(text):
    """Ranked autocomplete suggestions for a partial book name."""
    return [BookSuggestion(book, alias) for book, alias in CATALOG.suggest(text)]


def _split(text):
    match = _LOCATOR_BOUNDARY.search(text)
    if not match:
        return text, ''
    return text[:match.start()].strip(), text[match.start():].strip()


def _resolve_book(book_part):
    book = CATALOG.find(book_part)
    if book:
        return book, None

    suggestions = get_book_suggestions(book_part)
    if suggestions:
        return None, Ambiguous(suggestions)
    return None, Invalid('Fant ikke bok')


def parse_reference(text, verse_count: Optional[VerseCountLookup] = None):
    """Parse ``text`` into a Resolved, Ambiguous, PartialBook or Invalid result.

    ``verse_count(book_id, chapter)`` bounds the verse numbers. Without it
    only the chapter is validated.
    """
    if text is None:
        raise TypeError("parse_reference() expects a string, got None")

    text = text.strip()
    if not text:
        return Invalid('Tom input')

    book_part, locator = _split(text)
    book, failure = _resolve_book(book_part)
    if failure:
        return failure

    if not locator:
        return PartialBook(book, 'Mangler kapittel')

    match = _LOCATOR.match(locator)
    if not match:
        return PartialBook(book, 'Ugyldig format')

    chapter = int(match.group('chapter'))
    if chapter < 1 or chapter > book.chapters:
        return PartialBook(book, f"{book.name} har {book.chapters} kapitler")

    verse_start = match.group('verse_start') or match.group('verse_start_ws')
    verse_end = match.group('verse_end')
    verse_start = int(verse_start) if verse_start else None
    verse_end = int(verse_end) if verse_end else verse_start

    if verse_start is None:
        if verse_end is not None:
            return PartialBook(book, 'Ugyldig format', chapter=chapter)
        return Resolved(ParsedReference(book, chapter))

    if verse_end < verse_start:
        return PartialBook(book, f"Ugyldig versområde {verse_start}-{verse_end}", chapter=chapter)

    count = None
    if verse_count is not None:
        # 0 means the corpus doesn't have the chapter, so verses can't be checked
        count = verse_count(book.id, chapter) or None
    if count:
        if verse_start < 1 or verse_start > count:
            return PartialBook(
                book,
                f"{book.name} {chapter} har {count} vers",
                chapter=chapter,
                verse_count=count
            )
        verse_end = min(verse_end, count)
    elif verse_start < 1:
        return PartialBook(book, f"Ugyldig vers {verse_start}", chapter=chapter)

    return Resolved(ParsedReference(book, chapter, verse_start, verse_end), verse_count=count)


def looks_like_reference(text):
    """Cheap pre-filter so free-text searches don't go through the full parser."""
    if not text or not text.strip():
        return False
    if any(ch.isdigit() for ch in text):
        return True
    first_word = text.strip().split()[0]
    return CATALOG.has_alias_prefix(first_word)


def format_reference(ref):
    """Canonical Norwegian display form: 'Johannes 3', 'Johannes 3:16', 'Johannes 3:16-18'."""
    result = f"{ref.book.name} {ref.chapter}"
    if ref.verse_start:
        result += f":{ref.verse_start}"
        if ref.verse_end and ref.verse_end != ref.verse_start:
            result += f"-{ref.verse_end}"
    return result

# utils/books.py
"""Static catalog of the 66 books with their Norwegian names and aliases.

The catalog is built once at import time and only exposes read-only views,
so it can be shared freely between requests.
"""
import re
from types import MappingProxyType
from models.bible import Book


def _numbered(number, *stems):
    """All the ways people write a numbered book: '1mos', '1 mos', '1.mos', '1. mos'."""
    variants = []
    for stem in stems:
        variants.extend([
            f'{number}{stem}',
            f'{number} {stem}',
            f'{number}.{stem}',
            f'{number}. {stem}',
        ])
    return variants


# (id, name, short name, testament, chapters, aliases)
_BOOK_TABLE = [
    # GT - Det gamle testamente
    (1, '1. Mosebok', '1Mos', 'OT', 50, _numbered(1, 'mos', 'mosebok') + ['genesis', 'gen']),
    (2, '2. Mosebok', '2Mos', 'OT', 40, _numbered(2, 'mos', 'mosebok') + ['exodus', '2m']),
    (3, '3. Mosebok', '3Mos', 'OT', 27, _numbered(3, 'mos', 'mosebok') + ['leviticus', '3m']),
    (4, '4. Mosebok', '4Mos', 'OT', 36, _numbered(4, 'mos', 'mosebok') + ['numbers', '4m']),
    (5, '5. Mosebok', '5Mos', 'OT', 34, _numbered(5, 'mos', 'mosebok') + ['deuteronomy', '5m']),
    (6, 'Josva', 'Jos', 'OT', 24, ['jos', 'josva', 'joshua']),
    (7, 'Dommerne', 'Dom', 'OT', 21, ['dom', 'dommerne', 'judges']),
    (8, 'Rut', 'Rut', 'OT', 4, ['rut', 'ruth']),
    (9, '1. Samuel', '1Sam', 'OT', 31, _numbered(1, 'sam', 'samuel')),
    (10, '2. Samuel', '2Sam', 'OT', 24, _numbered(2, 'sam', 'samuel')),
    (11, '1. Kongebok', '1Kong', 'OT', 22, _numbered(1, 'kong', 'kongebok') + ['1kings']),
    (12, '2. Kongebok', '2Kong', 'OT', 25, _numbered(2, 'kong', 'kongebok') + ['2kings']),
    (13, '1. Krønikebok', '1Krøn', 'OT', 29, _numbered(1, 'krøn', 'krønikebok', 'kron', 'kronikebok') + ['1chronicles']),
    (14, '2. Krønikebok', '2Krøn', 'OT', 36, _numbered(2, 'krøn', 'krønikebok', 'kron', 'kronikebok') + ['2chronicles']),
    (15, 'Esra', 'Esra', 'OT', 10, ['esr', 'esra', 'ezra']),
    (16, 'Nehemja', 'Neh', 'OT', 13, ['neh', 'nehemja', 'nehemiah']),
    (17, 'Ester', 'Est', 'OT', 10, ['est', 'ester', 'esther']),
    (18, 'Job', 'Job', 'OT', 42, ['job']),
    (19, 'Salmene', 'Sal', 'OT', 150, ['sal', 'salme', 'salmene', 'psalms', 'psalm', 'ps']),
    (20, 'Ordspråkene', 'Ordsp', 'OT', 31, ['ord', 'ordsp', 'ordspråkene', 'ordsprakene', 'proverbs', 'prov']),
    (21, 'Forkynneren', 'Fork', 'OT', 12, ['fork', 'forkynneren', 'ecclesiastes', 'eccl']),
    (22, 'Høysangen', 'Høys', 'OT', 8, ['høy', 'høysangen', 'hoy', 'hoysangen', 'song', 'sos']),
    (23, 'Jesaja', 'Jes', 'OT', 66, ['jes', 'jesaja', 'isaiah', 'isa']),
    (24, 'Jeremia', 'Jer', 'OT', 52, ['jer', 'jeremia', 'jeremiah']),
    (25, 'Klagesangene', 'Klag', 'OT', 5, ['klag', 'klagesangene', 'lamentations', 'lam']),
    (26, 'Esekiel', 'Esek', 'OT', 48, ['esek', 'esekiel', 'ezekiel', 'ezek']),
    (27, 'Daniel', 'Dan', 'OT', 12, ['dan', 'daniel']),
    (28, 'Hosea', 'Hos', 'OT', 14, ['hos', 'hosea']),
    (29, 'Joel', 'Joel', 'OT', 4, ['joel']),
    (30, 'Amos', 'Amos', 'OT', 9, ['amos', 'am']),
    (31, 'Obadja', 'Ob', 'OT', 1, ['ob', 'obadja', 'obadiah']),
    (32, 'Jona', 'Jona', 'OT', 4, ['jona', 'jonah']),
    (33, 'Mika', 'Mika', 'OT', 7, ['mika', 'micah', 'mic']),
    (34, 'Nahum', 'Nah', 'OT', 3, ['nah', 'nahum']),
    (35, 'Habakkuk', 'Hab', 'OT', 3, ['hab', 'habakkuk']),
    (36, 'Sefanja', 'Sef', 'OT', 3, ['sef', 'sefanja', 'zephaniah', 'zeph']),
    (37, 'Haggai', 'Hag', 'OT', 2, ['hag', 'haggai']),
    (38, 'Sakarja', 'Sak', 'OT', 14, ['sak', 'sakarja', 'zechariah', 'zech']),
    (39, 'Malaki', 'Mal', 'OT', 3, ['mal', 'malaki', 'malachi']),

    # NT - Det nye testamente
    (40, 'Matteus', 'Matt', 'NT', 28, ['matt', 'mat', 'matteus', 'matthew', 'mt']),
    (41, 'Markus', 'Mark', 'NT', 16, ['mark', 'markus', 'mk']),
    (42, 'Lukas', 'Luk', 'NT', 24, ['luk', 'lukas', 'luke', 'lk']),
    (43, 'Johannes', 'Joh', 'NT', 21, ['joh', 'johannes', 'john', 'jn']),
    (44, 'Apostlenes gjerninger', 'Apg', 'NT', 28, ['apg', 'apostlenes gjerninger', 'acts', 'ag']),
    (45, 'Romerne', 'Rom', 'NT', 16, ['rom', 'romerne', 'romans']),
    (46, '1. Korinterne', '1Kor', 'NT', 16, _numbered(1, 'kor', 'korinter', 'korinterne') + ['1corinthians']),
    (47, '2. Korinterne', '2Kor', 'NT', 13, _numbered(2, 'kor', 'korinter', 'korinterne') + ['2corinthians']),
    (48, 'Galaterne', 'Gal', 'NT', 6, ['gal', 'galaterne', 'galatians']),
    (49, 'Efeserne', 'Ef', 'NT', 6, ['ef', 'efeserne', 'ephesians', 'eph']),
    (50, 'Filipperne', 'Fil', 'NT', 4, ['fil', 'filipperne', 'philippians', 'phil']),
    (51, 'Kolosserne', 'Kol', 'NT', 4, ['kol', 'kolosserne', 'colossians', 'col']),
    (52, '1. Tessalonikerne', '1Tess', 'NT', 5, _numbered(1, 'tess', 'tessaloniker', 'tessalonikerne')),
    (53, '2. Tessalonikerne', '2Tess', 'NT', 3, _numbered(2, 'tess', 'tessaloniker', 'tessalonikerne')),
    (54, '1. Timoteus', '1Tim', 'NT', 6, _numbered(1, 'tim', 'timoteus')),
    (55, '2. Timoteus', '2Tim', 'NT', 4, _numbered(2, 'tim', 'timoteus')),
    (56, 'Titus', 'Tit', 'NT', 3, ['tit', 'titus']),
    (57, 'Filemon', 'Filem', 'NT', 1, ['filem', 'filemon', 'philemon', 'phlm']),
    (58, 'Hebreerne', 'Hebr', 'NT', 13, ['hebr', 'hebreerne', 'hebrews', 'heb']),
    (59, 'Jakob', 'Jak', 'NT', 5, ['jak', 'jakob', 'james', 'jas']),
    (60, '1. Peter', '1Pet', 'NT', 5, _numbered(1, 'pet', 'peter')),
    (61, '2. Peter', '2Pet', 'NT', 3, _numbered(2, 'pet', 'peter')),
    (62, '1. Johannes', '1Joh', 'NT', 5, _numbered(1, 'joh', 'johannes')),
    (63, '2. Johannes', '2Joh', 'NT', 1, _numbered(2, 'joh', 'johannes')),
    (64, '3. Johannes', '3Joh', 'NT', 1, _numbered(3, 'joh', 'johannes')),
    (65, 'Judas', 'Jud', 'NT', 1, ['jud', 'judas', 'jude']),
    (66, 'Åpenbaringen', 'Åp', 'NT', 22, ['åp', 'åpenb', 'åpenbaringen', 'ap', 'apenb', 'apenbaringen', 'revelation', 'rev']),
]


def normalize_book_query(text):
    """Lowercase, collapse whitespace and drop a trailing period ('Matt.' -> 'matt')."""
    text = re.sub(r'\s+', ' ', text.strip().lower())
    return text.rstrip('.').strip()


class BookCatalog:
    """Immutable lookup over a fixed set of books and their aliases."""

    def __init__(self, table):
        books = []
        alias_to_id = {}
        for book_id, name, short_name, testament, chapters, aliases in table:
            names = {normalize_book_query(a) for a in aliases}
            names.update({name.lower(), short_name.lower()})
            book = Book(book_id, name, short_name, chapters, testament, frozenset(names))
            books.append(book)
            names.add(book.slug)
            for alias in names:
                owner = alias_to_id.setdefault(alias, book_id)
                if owner != book_id:
                    raise ValueError(f"Alias '{alias}' maps to both book {owner} and {book_id}")

        self._books = tuple(sorted(books, key=lambda b: b.id))
        self._by_id = MappingProxyType({b.id: b for b in self._books})
        self._by_slug = MappingProxyType({b.slug: b for b in self._books})
        self._aliases = MappingProxyType(dict(sorted(alias_to_id.items())))

    @property
    def books(self):
        return self._books

    @property
    def aliases(self):
        """Read-only alias -> book id mapping."""
        return self._aliases

    def get_by_id(self, book_id):
        return self._by_id.get(book_id)

    def get_by_slug(self, slug):
        return self._by_slug.get(normalize_book_query(slug))

    def find(self, text):
        """Exact (case-insensitive) lookup by alias, short name or full name."""
        book_id = self._aliases.get(normalize_book_query(text))
        return self._by_id.get(book_id) if book_id else None

    def suggest(self, text):
        """Books having an alias that starts with ``text``.

        Returns (book, matched_alias) pairs, one per book, using the shortest
        matching alias. Shorter aliases are tighter matches and rank first;
        equal lengths fall back to canonical book order.
        """
        query = normalize_book_query(text)
        if not query:
            return []

        best = {}
        for alias, book_id in self._aliases.items():
            if not alias.startswith(query):
                continue
            current = best.get(book_id)
            if current is None or len(alias) < len(current):
                best[book_id] = alias

        ranked = sorted(best.items(), key=lambda item: (len(item[1]), item[0]))
        return [(self._by_id[book_id], alias) for book_id, alias in ranked]

    def has_alias_prefix(self, text):
        query = normalize_book_query(text)
        return bool(query) and any(alias.startswith(query) for alias in self._aliases)


CATALOG = BookCatalog(_BOOK_TABLE)


def all_books():
    return CATALOG.books

def get_book_by_id(book_id):
    return CATALOG.get_by_id(book_id)

def get_book_by_slug(slug):
    return CATALOG.get_by_slug(slug)

def find_book(text):
    return CATALOG.find(text)

import os
import time

# Must be set before config/database are imported
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['REFERENCE_DB_URL'] = 'sqlite://'
os.environ['JWT_SECRET'] = 'test-secret'

import jwt
import pytest

import database
from database import Base, ReferenceBase, SessionLocal, ReferenceSessionLocal
from models import User, Verse

# (book id, chapter) -> number of verses seeded into the reference corpus
SEEDED_CHAPTERS = {
    (1, 1): 31,    # 1. Mosebok 1
    (40, 6): 34,   # Matteus 6
    (43, 3): 36,   # Johannes 3
}


def verse_count_lookup(book_id, chapter):
    return SEEDED_CHAPTERS.get((book_id, chapter), 0)


@pytest.fixture(scope='session', autouse=True)
def reference_db():
    ReferenceBase.metadata.create_all(bind=database.reference_engine)
    db = ReferenceSessionLocal()
    for (book_id, chapter), count in SEEDED_CHAPTERS.items():
        for verse in range(1, count + 1):
            db.add(Verse(bible='osnb1', book_id=book_id, chapter=chapter, verse=verse, text=f"Vers {verse}"))
    db.commit()
    db.close()
    yield
    ReferenceBase.metadata.drop_all(bind=database.reference_engine)


@pytest.fixture(autouse=True)
def user_db():
    database.init_db()
    db = SessionLocal()
    db.add_all([
        User(id=1, google_id='g-1', email='kari@example.no', name='Kari'),
        User(id=2, google_id='g-2', email='ola@example.no', name='Ola'),
    ])
    db.commit()
    db.close()
    yield
    Base.metadata.drop_all(bind=database.engine)


@pytest.fixture
def client():
    from app import app
    from utils.rate_limit import limiter
    app.config['TESTING'] = True
    limiter.reset()
    with app.test_client() as client:
        yield client


def make_token(user_id, expires_in=3600, secret='test-secret'):
    return jwt.encode(
        {'userId': user_id, 'email': f'user{user_id}@example.no', 'exp': int(time.time()) + expires_in},
        secret,
        algorithm='HS256'
    )


@pytest.fixture
def auth_headers():
    def _headers(user_id=1):
        return {'Authorization': f'Bearer {make_token(user_id)}'}
    return _headers

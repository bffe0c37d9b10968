# config.py
import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent

load_dotenv()

class Config:
    # Read-only reference corpus (books, verses)
    SQLITE_DB_PATH = os.getenv('SQLITE_DB_PATH', os.path.join(BASE_DIR, 'bible.db'))
    REFERENCE_DB_URL = os.getenv('REFERENCE_DB_URL', f"sqlite:///{SQLITE_DB_PATH}")
    DEFAULT_BIBLE = os.getenv('DEFAULT_BIBLE', 'osnb1')

    # User accounts and sync data (MySQL in production)
    DATABASE_URL = os.getenv('DATABASE_URL', f"sqlite:///{os.path.join(BASE_DIR, 'userdata.db')}")

    JWT_SECRET = os.getenv('JWT_SECRET', 'dev-secret-change-in-production')
    JWT_ALGORITHM = 'HS256'

    MAX_SYNC_CHANGES = int(os.getenv('MAX_SYNC_CHANGES', 5000))
    SYNC_RATE_LIMIT = os.getenv('SYNC_RATE_LIMIT', '30 per minute')
    # Use redis://... when running several gunicorn workers
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    SYNC_RATE_LIMIT = os.getenv('SYNC_RATE_LIMIT', '30 per minute')
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')  # redis://... when running several workers
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

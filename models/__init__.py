# This file makes the models directory a Python package 
from .user import User
from .sync import SyncItem, SyncCursor
from .user_bible import UserBible, UserBibleChapter
from .bible import Book, Verse

__all__ = [
    'User',
    'SyncItem',
    'SyncCursor',
    'UserBible',
    'UserBibleChapter',
    'Book',
    'Verse',
]

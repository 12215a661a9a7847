"""
Database package for the Book Catalog admin shell.

This package provides:
- The backend gateway: session lifecycle, parameterized execution and the
  notice side channel (gateway.py)
- The stored routine definitions and call templates (routines.py)
"""

from . import routines
from .gateway import CatalogSession, NoticeObserver, NoticeSink, connect, open_session

__all__ = [
    "CatalogSession",
    "NoticeObserver",
    "NoticeSink",
    "connect",
    "open_session",
    "routines",
]

"""
Persistence layer for the Career Compass backend.
"""

from .document_store import DocumentNotFoundError, DocumentStore, SqliteDocumentStore

__all__ = ["DocumentNotFoundError", "DocumentStore", "SqliteDocumentStore"]

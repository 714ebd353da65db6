"""Filesystem storage for uploaded paper PDFs."""
from src.storage.file_store import FileStore, StoredFile

__all__ = ["FileStore", "StoredFile"]

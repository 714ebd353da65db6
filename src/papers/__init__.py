"""Paper submission, moderation and search."""
from src.papers.access import Requester
from src.papers.moderation import ModerationService
from src.papers.search import SearchService
from src.papers.service import PaperService, PaperUpload, parse_co_authors

__all__ = [
    "Requester",
    "PaperService",
    "PaperUpload",
    "ModerationService",
    "SearchService",
    "parse_co_authors",
]

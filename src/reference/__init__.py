"""Departments, faculties, categories and the public counters."""
from src.reference.service import ReferenceService

__all__ = ["ReferenceService"]

"""
Database models package
"""
from quizsync.models.quiz import Quiz

__all__ = ["Quiz"]

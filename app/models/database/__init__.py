"""Database models. Importing this package registers every table on the SQLModel metadata."""

from app.models.database.user import User
from app.models.database.dreams import Dream, DreamTag, DreamImage, DreamAnalysis

__all__ = [
    "User",
    "Dream",
    "DreamTag",
    "DreamImage",
    "DreamAnalysis",
]

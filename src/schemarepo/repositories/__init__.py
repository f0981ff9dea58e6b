from .base import Repository
from .filesystem import FileSystemRepository, FileSystemSubject
from .memory import InMemoryRepository, InMemorySubject

__all__ = [
    "Repository",
    "InMemoryRepository",
    "InMemorySubject",
    "FileSystemRepository",
    "FileSystemSubject",
]

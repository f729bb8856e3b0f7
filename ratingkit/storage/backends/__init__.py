from .memory import InMemoryBackend
from .json_file import JsonFileBackend
from .relational import SQLAlchemyBackend

__all__ = [
    "InMemoryBackend",
    "JsonFileBackend",
    "SQLAlchemyBackend",
]

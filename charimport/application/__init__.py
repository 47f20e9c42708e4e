"""Application layer services."""

from .import_service import (
    CharacterImportService,
    ImportFailed,
    ImportResult,
    ImportSession,
    ParsedCharacter,
)

__all__ = [
    "CharacterImportService",
    "ImportFailed",
    "ImportResult",
    "ImportSession",
    "ParsedCharacter",
]

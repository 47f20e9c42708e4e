"""Recoverable import problems.

These never abort an import; each one shrinks the output set and is reported
back to the caller alongside the records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class IssueKind(StrEnum):
    UNRESOLVED_REFERENCE = "unresolved_reference"
    UNSUPPORTED_COMPOSITE = "unsupported_composite"
    MERGE_FAILURE = "merge_failure"
    CATALOG_UNAVAILABLE = "catalog_unavailable"


@dataclass(frozen=True)
class ImportIssue:
    kind: IssueKind
    category: str
    name: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": str(self.kind),
            "category": self.category,
            "name": self.name,
            "message": self.message,
        }


class IssueLog:
    """Collects issues for one import run and logs each as a warning."""

    def __init__(self) -> None:
        self._issues: list[ImportIssue] = []

    def report(self, kind: IssueKind, category: str, name: str, message: str) -> ImportIssue:
        issue = ImportIssue(kind=kind, category=str(category), name=name, message=message)
        self._issues.append(issue)
        logger.warning("[Import] %s: %s", kind, message)
        return issue

    def unresolved(self, category: str, name: str) -> ImportIssue:
        return self.report(IssueKind.UNRESOLVED_REFERENCE, category, name, f"{category} not found: {name}")

    @property
    def issues(self) -> list[ImportIssue]:
        return list(self._issues)

    def __len__(self) -> int:
        return len(self._issues)

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class IssueKind(str, Enum):
    CONFIGURATION = "configuration"
    CORRELATION = "correlation"
    PARSE = "parse"
    VALIDATION = "validation"


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Issue:
    kind: IssueKind
    severity: Severity
    message: str
    sheet: Optional[str] = None
    row: Optional[int] = None

    def describe(self) -> str:
        location = ""
        if self.sheet and self.row is not None:
            location = f"[{self.sheet} row {self.row}] "
        elif self.sheet:
            location = f"[{self.sheet}] "
        return f"{location}{self.message}"

    def as_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "sheet": self.sheet,
            "row": self.row,
        }


@dataclass
class Outcome(Generic[T]):
    """
    Value produced by a library-level operation together with every data-quality
    problem found on the way. Only host-resource failures are raised as exceptions.
    """

    value: T
    issues: List[Issue] = field(default_factory=list)

    @property
    def warnings(self) -> List[Issue]:
        return [issue for issue in self.issues if issue.severity is Severity.WARNING]

    @property
    def errors(self) -> List[Issue]:
        return [issue for issue in self.issues if issue.severity is Severity.ERROR]

    @property
    def ok(self) -> bool:
        return not self.errors


class IssueCollector:
    """Accumulates issues and mirrors each one to the module logger."""

    def __init__(self, logger: logging.Logger, kind: IssueKind, sheet: Optional[str] = None):
        self.logger = logger
        self.kind = kind
        self.sheet = sheet
        self.issues: List[Issue] = []

    def warn(self, message: str, *, row: Optional[int] = None, kind: Optional[IssueKind] = None) -> None:
        issue = Issue(kind or self.kind, Severity.WARNING, message, self.sheet, row)
        self.logger.warning(issue.describe())
        self.issues.append(issue)

    def error(self, message: str, *, row: Optional[int] = None, kind: Optional[IssueKind] = None) -> None:
        issue = Issue(kind or self.kind, Severity.ERROR, message, self.sheet, row)
        self.logger.error(issue.describe())
        self.issues.append(issue)

    def extend(self, issues: List[Issue]) -> None:
        self.issues.extend(issues)

    def wrap(self, value: T) -> Outcome[T]:
        return Outcome(value, list(self.issues))

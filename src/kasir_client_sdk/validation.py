from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    reason: str


class ClientValidationError(ValueError):
    """Input rejected before any state was changed."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(self._format_message())

    @property
    def message(self) -> str:
        return str(self)

    def _format_message(self) -> str:
        if not self.issues:
            return "Validation failed"
        return "; ".join(issue.reason for issue in self.issues)

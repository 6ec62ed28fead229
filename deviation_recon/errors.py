"""
Error Taxonomy
Purpose: Typed failures surfaced by ingestion, transcription and loading
"""

from typing import Dict, List, Optional


class ReconciliationError(Exception):
    """Base class for every failure the engine reports to a caller"""

    reason = "ReconciliationError"


class MissingColumns(ReconciliationError):
    """One or more required header labels are absent"""

    reason = "MissingColumns"

    def __init__(self, pass_name: str, missing: List[str], suggestions: Optional[Dict[str, str]] = None):
        self.pass_name = pass_name
        self.missing = list(missing)
        self.suggestions = dict(suggestions or {})
        parts = []
        for label in self.missing:
            hint = self.suggestions.get(label)
            parts.append(f"'{label}' (did you mean '{hint}'?)" if hint else f"'{label}'")
        super().__init__(f"Missing columns in {pass_name}: {', '.join(parts)}")


class EmptyInput(ReconciliationError):
    """The grid holds no data rows"""

    reason = "EmptyInput"

    def __init__(self, pass_name: str):
        self.pass_name = pass_name
        super().__init__(f"No data found in {pass_name}")


class UnreadableSource(ReconciliationError):
    """The byte stream could not be parsed as a tabular artifact"""

    reason = "UnreadableSource"

    def __init__(self, source_name: str, cause: Optional[BaseException] = None):
        self.source_name = source_name
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Could not read {source_name}{detail}")

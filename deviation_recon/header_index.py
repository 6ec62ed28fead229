"""
Header Index
Purpose: Map normalized header labels to column positions for required-column
checks and cross-table column alignment
"""

from typing import Dict, Iterable, List, Optional, Sequence

from fuzzywuzzy import process
from loguru import logger

from deviation_recon.cell_values import Cell, coerce_cell
from deviation_recon.errors import MissingColumns

SUGGESTION_THRESHOLD = 80


def normalize_label(value) -> str:
    """Trim and case-fold a header label (cells are rendered as text first)"""
    if value is None:
        return ""
    cell = value if isinstance(value, Cell) else coerce_cell(value)
    return cell.as_text().strip().casefold()


class HeaderIndex:
    """Normalized label -> first matching column index for one header row"""

    def __init__(self, header_row: Sequence):
        self.labels: List[str] = [
            (h.as_text() if isinstance(h, Cell) else coerce_cell(h).as_text()).strip() for h in header_row
        ]
        self._positions: Dict[str, int] = {}
        self.duplicates: List[str] = []
        for idx, label in enumerate(self.labels):
            key = normalize_label(label)
            if not key:
                continue
            if key in self._positions:
                # first occurrence wins
                self.duplicates.append(label)
                continue
            self._positions[key] = idx
        if self.duplicates:
            logger.warning(f"⚠️ Duplicate header labels (first occurrence used): {self.duplicates}")

    def __len__(self) -> int:
        return len(self.labels)

    def __contains__(self, label: str) -> bool:
        return self.lookup(label) is not None

    def lookup(self, label: str) -> Optional[int]:
        """Column index for label, or None when the header has no such column"""
        return self._positions.get(normalize_label(label))

    def missing(self, required: Iterable[str]) -> List[str]:
        return [label for label in required if self.lookup(label) is None]

    def suggest(self, label: str) -> Optional[str]:
        """Closest present header for a missing label, used in diagnostics only"""
        choices = [h for h in self.labels if h]
        if not choices:
            return None
        best = process.extractOne(label, choices)
        if best and best[1] >= SUGGESTION_THRESHOLD:
            return best[0]
        return None

    def require(self, required: Iterable[str], pass_name: str) -> Dict[str, int]:
        """Resolve every required label or fail with MissingColumns"""
        required = list(required)
        missing = self.missing(required)
        if missing:
            suggestions = {}
            for label in missing:
                hint = self.suggest(label)
                if hint:
                    suggestions[label] = hint
            logger.error(f"❌ {pass_name}: missing columns {missing}")
            raise MissingColumns(pass_name, missing, suggestions)
        return {label: self.lookup(label) for label in required}

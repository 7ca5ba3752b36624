from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from online.backend.core.errors import SchemaMismatchError

"""
Engine - Shared Models.

Intent selects the request and output shape of a call. ProviderRequest is
what the engine hands to the provider client. Table is the canonical
header-plus-rows value returned by every operation.
"""

Cell = Union[str, int, float]

NO_DATA = "NO DATA"


class Intent(str, Enum):
    PHRASE_MATCH = "phrase-match"
    EXACT_MATCH = "exact-match"
    ASIN_LOOKUP = "asin-lookup"
    UNIVERSE_EXPAND = "universe-expand"
    HISTORY = "history"


SEARCH_INTENTS = (Intent.PHRASE_MATCH, Intent.EXACT_MATCH, Intent.ASIN_LOOKUP)


@dataclass(frozen=True)
class ProviderRequest:
    """A single JSON POST to the provider: endpoint path plus body."""

    endpoint: str
    payload: dict = field(default_factory=dict)

    def with_keywords(self, keywords: list[str]) -> "ProviderRequest":
        """Returns a copy of this request whose `keywords` field is replaced."""
        payload = deepcopy(self.payload)
        payload["keywords"] = list(keywords)
        return ProviderRequest(endpoint=self.endpoint, payload=payload)


@dataclass
class Table:
    """
    Header row plus data rows.

    Every data row must have the header's length. A table without data rows
    serializes to the single sentinel row [["NO DATA"]].
    """

    header: list[str]
    rows: list[list[Cell]] = field(default_factory=list)

    def __post_init__(self):
        width = len(self.header)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise SchemaMismatchError(
                    f"Row {index} has {len(row)} cells but the header has {width}"
                )

    @classmethod
    def no_data(cls) -> "Table":
        return cls(header=[NO_DATA], rows=[])

    @classmethod
    def from_rows(cls, rows: list[list[Any]]) -> "Table":
        """Rebuilds a table from its row-major wire form."""
        if not rows or rows == [[NO_DATA]]:
            return cls.no_data()
        return cls(header=[str(h) for h in rows[0]], rows=[list(r) for r in rows[1:]])

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def to_rows(self) -> list[list[Cell]]:
        """Row-major wire form, header first."""
        if self.is_empty:
            return [[NO_DATA]]
        return [list(self.header)] + [list(row) for row in self.rows]

    def __len__(self):
        return len(self.rows)

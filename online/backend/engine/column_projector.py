import re
from dataclasses import dataclass
from loguru import logger

from online.backend.core.errors import SchemaMismatchError
from online.backend.engine.models import Intent, Table

"""
Engine - Column Projector.

Selects, reorders and derives the display columns for each intent.

The keyword finder endpoints do not publish a field-order contract, so their
projections are positional. They are kept together in PROJECTIONS, versioned
by PROJECTION_VERSION, and checked against the table width before use. The
universe table is built from named provider fields (UNIVERSE_COLUMNS).
"""

PROJECTION_VERSION = 1

_WORD_START = re.compile(r"\b\w")


@dataclass(frozen=True)
class Projection:
    """
    Positional column selection.

    Attributes:
        columns: Source column indices, in output order.
        keep_rest: Append every source column after the highest selected index.
        leading_header: Replaces the first output header cell.
    """

    columns: tuple[int, ...]
    keep_rest: bool = False
    leading_header: str | None = None

    @property
    def min_width(self) -> int:
        return max(self.columns) + 1

    def apply(self, row: list) -> list:
        projected = [row[i] for i in self.columns]
        if self.keep_rest:
            projected.extend(row[self.min_width:])
        return projected


PROJECTIONS = {
    # The provider's third field is its relevancy rank
    Intent.PHRASE_MATCH: Projection(columns=(2, 0, 1), keep_rest=True, leading_header="Relevancy Rank"),
    Intent.EXACT_MATCH: Projection(columns=(1, 0, 11)),
    Intent.ASIN_LOOKUP: Projection(columns=(4, 1, 2)),
}


@dataclass(frozen=True)
class UniverseColumn:
    header: str
    field: str
    default: object = ""
    percent: bool = False

    def extract(self, record: dict):
        value = record.get(self.field)
        if self.percent:
            return self._share(value) / 100
        return self.default if value is None or value == "" else value

    def _share(self, value) -> float:
        if value is None or value == "":
            return 0
        if isinstance(value, bool):
            raise SchemaMismatchError(f"{self.field} must be numeric, got {value!r}")
        if isinstance(value, (int, float)):
            return value
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise SchemaMismatchError(f"{self.field} must be numeric, got {value!r}") from e


UNIVERSE_COLUMNS = (
    UniverseColumn("Search Term", "search_term"),
    UniverseColumn("Search Volume", "search_volume"),
    UniverseColumn("Level", "level"),
    UniverseColumn("Branded Keyword", "matched_brand"),
    UniverseColumn("ASIN1", "num_1_asin"),
    UniverseColumn("ASIN2", "num_2_asin"),
    UniverseColumn("ASIN3", "num_3_asin"),
    UniverseColumn("Click1", "num_1_click_share", percent=True),
    UniverseColumn("Click2", "num_2_click_share", percent=True),
    UniverseColumn("Click3", "num_3_click_share", percent=True),
    UniverseColumn("Conv1", "num_1_conversion_share", percent=True),
    UniverseColumn("Conv2", "num_2_conversion_share", percent=True),
    UniverseColumn("Conv3", "num_3_conversion_share", percent=True),
)


def prettify_header(header) -> str:
    """'search_volume_estimate' -> 'Search Volume Estimate'."""
    text = str(header).replace("_", " ").lower()
    return _WORD_START.sub(lambda m: m.group(0).upper(), text)


def project(intent: Intent, table: Table) -> Table:
    """Applies the intent's positional projection and prettifies the header."""
    if table.is_empty:
        return table

    intent = Intent(intent)
    projection = PROJECTIONS.get(intent)
    if projection is None:
        raise ValueError(f"No positional projection defined for {intent.value}")

    width = len(table.header)
    if width < projection.min_width:
        raise SchemaMismatchError(
            f"{intent.value} projection v{PROJECTION_VERSION} needs {projection.min_width} "
            f"columns but the provider returned {width}: {table.header}"
        )

    header = projection.apply(list(table.header))
    if projection.leading_header:
        header[0] = projection.leading_header

    rows = [projection.apply(row) for row in table.rows]
    logger.debug(f"Projected {intent.value} table to columns: {header}")
    return Table(header=[prettify_header(h) for h in header], rows=rows)


def filter_own_brand(records: list[dict], own_brand: str | None) -> list[dict]:
    """
    Drops records whose matched brand equals `own_brand`, ignoring case.
    Records without a matched brand always pass.
    """
    if not own_brand:
        return records

    target = own_brand.lower()
    kept = []
    for record in records:
        brand = record.get("matched_brand")
        if not brand or not str(brand).strip() or str(brand).lower() != target:
            kept.append(record)

    logger.info(f"Own brand filter '{own_brand}' removed {len(records) - len(kept)} keywords")
    return kept


def build_universe_table(records: list[dict], own_brand: str | None = None) -> Table:
    """Builds the fixed 13-column universe table from overview records."""
    records = filter_own_brand(records or [], own_brand)
    if not records:
        return Table.no_data()

    rows = [[column.extract(record) for column in UNIVERSE_COLUMNS] for record in records]
    return Table(header=[column.header for column in UNIVERSE_COLUMNS], rows=rows)

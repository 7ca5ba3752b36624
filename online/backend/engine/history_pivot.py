import math
import numpy as np
from loguru import logger

from online.backend.core.errors import SchemaMismatchError
from online.backend.engine.models import Table

"""
Engine - History Pivot.

Reshapes the flat keyword-volume-history records
({year, month, search_term, search_volume_estimate}) into a Date x keyword
matrix and fills the gaps with a decayed carry, first forward then backward
in time.
"""

MAX_CARRY = 1000
DECAY_LOW = 0.5
DECAY_HIGH = 0.9
BLANK = ""


def _period(record: dict) -> str:
    try:
        return f"{int(record['year'])}-{int(record['month']):02d}"
    except (KeyError, TypeError, ValueError) as e:
        raise SchemaMismatchError(f"History record has no usable year/month: {record}") from e


def _volume(value):
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise SchemaMismatchError(f"Search volume must be numeric, got {value!r}")
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(value)
        except (TypeError, ValueError) as e:
            raise SchemaMismatchError(f"Search volume must be numeric, got {value!r}") from e
        if number.is_integer():
            number = int(number)
    if number < 0:
        raise SchemaMismatchError(f"Search volume must not be negative, got {value!r}")
    return number


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class HistoryPivot:
    """
    Pivots volume history and fills missing cells.

    The random source only needs a `uniform(low, high)` method; pass a seeded
    `numpy.random.Generator` (or a stub) for reproducible output.
    """

    def __init__(self, rng=None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def pivot(self, records: list[dict] | None) -> Table:
        if not records:
            logger.info("Volume history returned no records")
            return Table.no_data()
        if not isinstance(records, list):
            raise SchemaMismatchError(f"Expected a list of history records, got {type(records).__name__}")

        samples, terms, periods = self._collect(records)

        matrix = [[samples.get((period, term), BLANK) for term in terms] for period in periods]
        self.fill_blanks(matrix, reverse=False)
        self.fill_blanks(matrix, reverse=True)

        logger.info(f"Pivoted {len(periods)} date entries for {len(terms)} keywords")
        return Table(header=["Date"] + terms, rows=[[period] + row for period, row in zip(periods, matrix)])

    def _collect(self, records: list[dict]) -> tuple[dict, list[str], list[str]]:
        """
        Builds the (period, term) -> volume lookup, the terms in first-seen
        order and the sorted periods. Later duplicates overwrite earlier ones.
        """
        samples = {}
        terms = []
        seen_terms = set()
        periods = set()

        for record in records:
            if not isinstance(record, dict):
                raise SchemaMismatchError(f"History record is {type(record).__name__}, not an object")

            term = str(record.get("search_term") or "").strip().lower()
            if not term:
                logger.debug(f"Skipping history record without a search term: {record}")
                continue

            period = _period(record)
            periods.add(period)
            if term not in seen_terms:
                seen_terms.add(term)
                terms.append(term)

            volume = _volume(record.get("search_volume_estimate"))
            if volume is None:
                samples.pop((period, term), None)
            else:
                samples[(period, term)] = volume

        return samples, terms, sorted(periods)

    def _decay(self, carry) -> int:
        factor = self.rng.uniform(DECAY_LOW, DECAY_HIGH)
        return round_half_up(min(carry, MAX_CARRY) * float(factor))

    def fill_blanks(self, matrix: list[list], reverse: bool = False):
        """
        Fills blank cells in place, one keyword column at a time.

        A blank after a known value receives the capped, randomly decayed
        carry, and that decayed value becomes the carry for the next blank.
        A real value resets the carry. Columns with no value stay blank.
        """
        if not matrix:
            return
        order = range(len(matrix) - 1, -1, -1) if reverse else range(len(matrix))

        for column in range(len(matrix[0])):
            carry = None
            for i in order:
                value = matrix[i][column]
                if value != BLANK:
                    carry = value
                elif carry is not None:
                    carry = self._decay(carry)
                    matrix[i][column] = carry

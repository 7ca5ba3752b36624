from loguru import logger

from online.backend.core.errors import SchemaMismatchError
from online.backend.engine.models import Intent, Table

"""
Engine - Result Normalizer.

Converts a provider JSON response (an array of objects, or the exact-match
`{"overview": [...]}` wrapper) into a Table whose header is the field names
of the first record.
"""


def unwrap_records(intent: Intent, response) -> list | None:
    """Returns the record array carried by a provider response."""
    if intent == Intent.EXACT_MATCH and isinstance(response, dict) and "overview" in response:
        return response["overview"]
    return response


def _cell(value):
    # Null provider values become blank cells so every cell is a string or number
    return "" if value is None else value


def normalize(intent: Intent, response) -> Table:
    """
    Builds a Table from a provider response.

    The header follows the provider's field order on the first record. Every
    other record must carry exactly the same field set; values are read by
    field name, so a record listing the same fields in another order still
    lines up. A differing field set raises SchemaMismatchError.
    """
    records = unwrap_records(intent, response)

    if not records:
        logger.info(f"{Intent(intent).value}: provider returned no records")
        return Table.no_data()

    if not isinstance(records, list):
        raise SchemaMismatchError(f"Expected a list of records, got {type(records).__name__}")

    first = records[0]
    if not isinstance(first, dict):
        raise SchemaMismatchError(f"Record 0 is {type(first).__name__}, not an object")

    header = list(first.keys())
    expected = set(header)
    rows = []

    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise SchemaMismatchError(f"Record {index} is {type(record).__name__}, not an object")

        fields = set(record.keys())
        if fields != expected:
            missing = sorted(expected - fields)
            extra = sorted(fields - expected)
            raise SchemaMismatchError(
                f"Record {index} does not match the first record's fields "
                f"(missing={missing}, unexpected={extra})"
            )

        rows.append([_cell(record[name]) for name in header])

    logger.debug(f"Normalized {len(rows)} records with columns: {header}")
    return Table(header=header, rows=rows)

import csv
import time
import pandas as pd

"""
Interaction Layer - CSV Export.

Renders a Table's wire form (header row first) as CSV with every cell
double-quoted, matching what the spreadsheet users paste from.
"""


def table_to_csv(rows: list[list]) -> str:
    if not rows:
        return ""
    frame = pd.DataFrame(rows)
    return frame.to_csv(index=False, header=False, quoting=csv.QUOTE_ALL, lineterminator="\n").rstrip("\n")


def export_filename(mode: str) -> str:
    # e.g. keyword-history-1718035200000.csv
    return f"keyword-{mode}-{int(time.time() * 1000)}.csv"

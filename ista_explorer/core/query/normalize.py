from typing import Any, Dict, List, Optional, Sequence

from ista_explorer.core.schemas import (
    ColumnDescriptor,
    ResultTable,
    Row,
    SchemaInference,
)


# -----------------------------------------------------------------------------
# NORMALIZE MODULE
# Purpose: turn the records a query returned into a {columns, rows} table.
# There is no declared schema. By default the columns are whatever keys the
# FIRST record has; later records are trusted to look the same and are never
# padded or coerced.
# -----------------------------------------------------------------------------

PAGE_SIZE_OPTIONS = (5, 10, 20, 50, 100)
DEFAULT_PAGE_SIZE = 10


def infer_columns(
    records: Sequence[Dict[str, Any]],
    inference: SchemaInference = SchemaInference.FIRST_ROW,
) -> List[ColumnDescriptor]:
    """
    Derive the column list from the records, in key order.

    Example:
        records = [{"a": 1, "b": 2}, {"b": 3, "c": 4}]
        FIRST_ROW -> [a, b]
        UNION     -> [a, b, c]
    """
    if not records:
        return []

    if inference == SchemaInference.UNION:
        # dict keeps first-seen order and drops repeats
        names: Dict[str, None] = {}
        for record in records:
            for key in record.keys():
                names.setdefault(key, None)
        return [ColumnDescriptor(name=name) for name in names]

    return [ColumnDescriptor(name=key) for key in records[0].keys()]


def normalize(
    records: Sequence[Dict[str, Any]],
    inference: SchemaInference = SchemaInference.FIRST_ROW,
) -> Optional[ResultTable]:
    """
    Build a ResultTable from raw records.

    Returns None when there are no records (an empty result is not a table
    with zero columns). Row ids are the zero-based record positions, so two
    calls on the same input give the same table.

    Args:
        records: Records exactly as the gateway returned them
        inference: Column policy, first record only or union of all keys

    Returns:
        ResultTable, or None for an empty result
    """
    if not records:
        return None

    columns = infer_columns(records, inference)
    rows = [Row(id=index, cells=dict(record)) for index, record in enumerate(records)]

    return ResultTable(columns=columns, rows=rows)


def paginate(rows: Sequence[Row], page: int = 0, page_size: int = DEFAULT_PAGE_SIZE) -> List[Row]:
    """
    Slice an already fetched row list for display.

    Pages are zero-based. A page past the end is just empty.
    """
    if page_size not in PAGE_SIZE_OPTIONS:
        raise ValueError(
            f"page_size must be one of {', '.join(str(s) for s in PAGE_SIZE_OPTIONS)}"
        )
    if page < 0:
        raise ValueError("page must be >= 0")

    start = page * page_size
    return list(rows[start : start + page_size])

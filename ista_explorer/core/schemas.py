from typing import Optional, List, Dict, Any
from enum import Enum

from pydantic import BaseModel, Field


# =========================
# Enums
# =========================
class OutcomeKind(str, Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    REJECTED = "rejected"
    FAILED = "failed"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class SchemaInference(str, Enum):
    """How the column set of a result table is derived from its records."""

    # Columns come from the first record only (later records may differ)
    FIRST_ROW = "first_row"
    # Ordered union of every record's keys, in first-seen order
    UNION = "union"


# =========================
# QUERY
# =========================
class QueryRequest(BaseModel):
    text: str


class ColumnDescriptor(BaseModel):
    name: str


class Row(BaseModel):
    # Position of the record in its result, only meaningful inside one table
    id: int
    cells: Dict[str, Any]


class ResultTable(BaseModel):
    columns: List[ColumnDescriptor]
    rows: List[Row]


class QueryOutcome(BaseModel):
    kind: OutcomeKind
    table: Optional[ResultTable] = None
    reason: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, table: ResultTable) -> "QueryOutcome":
        return cls(kind=OutcomeKind.SUCCESS, table=table)

    @classmethod
    def empty(cls) -> "QueryOutcome":
        return cls(kind=OutcomeKind.EMPTY)

    @classmethod
    def rejected(cls, reason: str) -> "QueryOutcome":
        return cls(kind=OutcomeKind.REJECTED, reason=reason)

    @classmethod
    def failed(cls, message: str) -> "QueryOutcome":
        return cls(kind=OutcomeKind.FAILED, message=message)


class Notification(BaseModel):
    message: str
    severity: Severity


class ControllerState(BaseModel):
    outcome: QueryOutcome
    loading: bool
    columns: List[ColumnDescriptor] = []
    rows: List[Row] = []
    total_rows: int = 0
    page: int = 0
    page_size: Optional[int] = None


class SampleQuery(BaseModel):
    label: str
    sql: str


# =========================
# DASHBOARD
# =========================
class AggregatePoint(BaseModel):
    category: Any
    value: Any


class SlotSnapshot(BaseModel):
    name: str
    title: str
    category_label: str
    value_label: str
    loaded: bool
    points: List[AggregatePoint] = Field(default_factory=list)

import logging
from collections import deque
from typing import Callable, List, Optional

from ista_explorer.core.errors import QueryExecutionError
from ista_explorer.core.query import policy
from ista_explorer.core.query.gateway import QueryGateway, execute_with_deadline
from ista_explorer.core.query.normalize import normalize, paginate
from ista_explorer.core.schemas import (
    ColumnDescriptor,
    ControllerState,
    Notification,
    QueryOutcome,
    Row,
    SchemaInference,
    Severity,
)


# -----------------------------------------------------------------------------
# CONTROLLER MODULE
# Purpose: own the state of the user query slot (outcome, loading flag and the
# table on display) and report what happened to the user.
# Only the most recent submission may change state: every submit() takes a
# sequence token, responses carrying an older token are dropped.
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)

NO_ROWS_MESSAGE = "No rows returned"

Listener = Callable[[Notification], None]


class QueryController:
    """Lifecycle of ad-hoc user queries."""

    def __init__(
        self,
        gateway: QueryGateway,
        timeout: Optional[float] = None,
        inference: SchemaInference = SchemaInference.FIRST_ROW,
        history: int = 50,
    ):
        self.gateway = gateway
        self.timeout = timeout
        self.inference = inference

        self.outcome: QueryOutcome = QueryOutcome.empty()
        self.loading: bool = False
        self.columns: List[ColumnDescriptor] = []
        self.rows: List[Row] = []

        self.notifications: deque = deque(maxlen=history)
        self._listeners: List[Listener] = []
        self._sequence = 0

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def notify(self, message: str, severity: Severity) -> None:
        notification = Notification(message=message, severity=severity)
        self.notifications.append(notification)
        for listener in self._listeners:
            listener(notification)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def _next_token(self) -> int:
        self._sequence += 1
        return self._sequence

    def _is_latest(self, token: int) -> bool:
        return token == self._sequence

    async def submit(self, text: str) -> QueryOutcome:
        """
        Run one user query and update the displayed state.

        Steps:
            1. Policy check (rejected text never reaches the gateway)
            2. Gateway call with deadline
            3. Failure  -> keep the table on display, report the error
               No rows  -> clear the table, report it as info
               Rows     -> replace the table

        Returns:
            The outcome of this submission. If a newer submission was made
            while this one was waiting, the outcome is returned but not applied.
        """
        token = self._next_token()
        text = (text or "").strip()

        decision = policy.check(text)
        if not decision.allowed:
            logger.info(f"Query #{token} rejected by read-only policy")
            self.loading = False
            self.outcome = QueryOutcome.rejected(decision.reason)
            self.notify(decision.reason, Severity.WARNING)
            return self.outcome

        self.loading = True
        logger.info(f"Query #{token} dispatched")

        try:
            records = await execute_with_deadline(self.gateway, text, self.timeout)
            table = normalize(records, self.inference)
        except QueryExecutionError as e:
            return self._fail(token, e.message)
        except Exception as e:
            # Anything else is still a failed query, never a stuck loading flag
            logger.exception(f"Query #{token} raised {type(e).__name__}")
            return self._fail(token, str(e) or type(e).__name__)

        outcome = QueryOutcome.success(table) if table else QueryOutcome.empty()

        if not self._is_latest(token):
            logger.debug(f"Discarding stale response of query #{token}")
            return outcome

        self.loading = False
        self.outcome = outcome

        if table is None:
            self.columns = []
            self.rows = []
            logger.info(f"Query #{token} returned no rows")
            self.notify(NO_ROWS_MESSAGE, Severity.INFO)
        else:
            self.columns = table.columns
            self.rows = table.rows
            logger.info(
                f"Query #{token} returned {len(table.rows)} rows, {len(table.columns)} columns"
            )

        return outcome

    def _fail(self, token: int, message: str) -> QueryOutcome:
        outcome = QueryOutcome.failed(message)
        if not self._is_latest(token):
            logger.debug(f"Discarding stale failure of query #{token}")
            return outcome

        logger.warning(f"Query #{token} failed: {message}")
        self.loading = False
        self.outcome = outcome
        self.notify(message, Severity.ERROR)
        return outcome

    # ------------------------------------------------------------------
    # Consumers
    # ------------------------------------------------------------------

    def snapshot(self, page: Optional[int] = None, page_size: Optional[int] = None) -> ControllerState:
        """Current state for display, rows optionally cut to one page."""
        rows = self.rows
        if page_size is not None:
            rows = paginate(self.rows, page or 0, page_size)

        return ControllerState(
            outcome=self.outcome,
            loading=self.loading,
            columns=self.columns,
            rows=rows,
            total_rows=len(self.rows),
            page=page or 0,
            page_size=page_size,
        )

import re
from dataclasses import dataclass
from typing import Optional


# -----------------------------------------------------------------------------
# POLICY MODULE
# Purpose: only let read-only statements through to the query engine.
# This is a prefix check on the raw text, not a parser. Writes hidden in
# subqueries, CTEs or procedure calls are not detected, so it must never be
# treated as a security boundary (use a read-only database role for that).
# -----------------------------------------------------------------------------

REJECTION_REASON = "Only SELECT allowed"

SELECT_ONLY = re.compile(r"^select\b", re.IGNORECASE)

# A ";" followed by anything other than whitespace means a second statement
MULTIPLE_STATEMENTS = re.compile(r";\s*\S")


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: Optional[str] = None


ALLOWED = PolicyDecision(allowed=True)


def check(text: str) -> PolicyDecision:
    """
    Decide whether user query text may be sent to the query engine.

    Allowed: text that, once trimmed, starts with the SELECT keyword
    (any case) and holds a single statement. A trailing ";" is fine.

    Example:
        check("select * from ista.tourist limit 10;")  -> allowed
        check("DROP TABLE ista.tourist;")               -> rejected
        check("-- hi\\nSELECT 1")                        -> rejected
        check("SELECT 1; DELETE FROM ista.tourist")     -> rejected
    """
    trimmed = (text or "").strip()

    if not SELECT_ONLY.match(trimmed):
        return PolicyDecision(allowed=False, reason=REJECTION_REASON)

    if MULTIPLE_STATEMENTS.search(trimmed):
        return PolicyDecision(allowed=False, reason=REJECTION_REASON)

    return ALLOWED

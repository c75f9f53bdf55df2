"""Edge condition evaluation against a source panel's output.

Supported single clauses (prefix is case-insensitive):

- ``contains:X``   - X occurs in the output (case-insensitive)
- ``not:X``        - X does not occur in the output
- ``regex:X``      - case-insensitive regex search; invalid pattern is false
- ``startsWith:X`` / ``endsWith:X`` - case-insensitive prefix/suffix
- ``equals:X``     - trimmed output equals X exactly
- ``length>N``     - output length comparison (>, <, >=, <=, ==, !=)
- anything else    - case-insensitive substring check

Compound conditions join clauses with a literal `` AND `` (all must hold) or
`` OR `` (any holds). Mixing both is unsupported; AND wins.
"""

import logging
import operator
import re
from collections.abc import Callable

logger = logging.getLogger(__name__)

AND_SEPARATOR = " AND "
OR_SEPARATOR = " OR "

_LENGTH_RE = re.compile(r"^length\s*([><=!]+)\s*(\d+)$")

_LENGTH_OPS: dict[str, Callable[[int, int], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
}


def _value_after(clause: str, prefix: str) -> str:
    return clause[len(prefix):].strip()


def evaluate_single_condition(clause: str, source_output: str) -> bool:
    """Evaluate one clause of a (possibly compound) condition."""
    trimmed = clause.strip()
    if not trimmed:
        return True

    lower = source_output.lower()
    cond_lower = trimmed.lower()

    if cond_lower.startswith("contains:"):
        return _value_after(cond_lower, "contains:") in lower
    if cond_lower.startswith("not:"):
        return _value_after(cond_lower, "not:") not in lower
    if cond_lower.startswith("regex:"):
        pattern = _value_after(trimmed, "regex:")
        try:
            return re.search(pattern, source_output, re.IGNORECASE) is not None
        except re.error as e:
            logger.debug("Invalid regex condition %r: %s", pattern, e)
            return False
    if cond_lower.startswith("startswith:"):
        return lower.startswith(_value_after(cond_lower, "startswith:"))
    if cond_lower.startswith("endswith:"):
        return lower.endswith(_value_after(cond_lower, "endswith:"))
    if cond_lower.startswith("equals:"):
        return source_output.strip() == _value_after(trimmed, "equals:")

    match = _LENGTH_RE.match(cond_lower)
    if match:
        op = _LENGTH_OPS.get(match.group(1))
        if op is None:
            return True
        return op(len(source_output), int(match.group(2)))

    return cond_lower in lower


def evaluate_condition(condition: str | None, source_output: str) -> bool:
    """Return True if source_output satisfies the edge condition.

    Absent or blank conditions always pass.
    """
    if condition is None or not condition.strip():
        return True

    trimmed = condition.strip()
    if AND_SEPARATOR in trimmed:
        return all(
            evaluate_single_condition(part, source_output)
            for part in trimmed.split(AND_SEPARATOR)
        )
    if OR_SEPARATOR in trimmed:
        return any(
            evaluate_single_condition(part, source_output)
            for part in trimmed.split(OR_SEPARATOR)
        )
    return evaluate_single_condition(trimmed, source_output)

import json
import pandas as pd
from normalizer import canonical_course

# Prerequisites arrive as JSON text: an array of AND groups, each an array of
# OR alternatives.
#   [["ACCT 2120"],["BSNS 2120","BUSA 2120"]]
#   means ACCT 2120 AND (BSNS 2120 OR BUSA 2120)

OR_JOIN = " OR "
AND_JOIN = " AND "


def _is_formula(value) -> bool:
    if not isinstance(value, list):
        return False
    # Empty groups or codes could never be met; reject them like any bad shape.
    return all(
        isinstance(group, list)
        and group
        and all(isinstance(code, str) and code.strip() for code in group)
        for group in value
    )


def parse_prerequisite(raw) -> list[list[str]] | None:
    """
    Parses a raw prerequisite value into a list of AND groups (lists of OR codes).

    Returns None ("no prerequisites") for:
      None / "" / NaN catalog cells
      text that is not valid JSON
      any shape other than a list of non-empty lists of non-empty strings

    Malformed catalog data never blocks planning, so nothing here raises.
    A formula with zero groups is returned as [] and is vacuously satisfied.
    """
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return None

    if isinstance(raw, list):
        parsed = raw
    else:
        s = str(raw).strip()
        if not s:
            return None
        try:
            parsed = json.loads(s)
        except (TypeError, ValueError, RecursionError):
            return None

    if not _is_formula(parsed):
        return None
    return [list(group) for group in parsed]


def prereq_course_codes(formula: list[list[str]] | None) -> list[str]:
    """Flattens a formula into its course codes, ignoring AND/OR structure."""
    if not formula:
        return []
    return [code for group in formula for code in group if code]


def _group_met(group: list[str], taken: set) -> bool:
    return any(canonical_course(code) in taken for code in group)


def list_unmet_groups(formula: list[list[str]] | None, taken: set) -> list[list[str]]:
    """
    Returns the AND groups that none of the taken courses satisfy, in formula
    order. Codes are returned verbatim (not canonicalized) for display.
    `taken` holds canonical keys.
    """
    if not formula:
        return []
    return [list(group) for group in formula if not _group_met(group, taken)]


def is_prerequisite_satisfied(formula: list[list[str]] | None, taken: set) -> bool:
    return not list_unmet_groups(formula, taken)


def format_group(group: list[str]) -> str:
    if len(group) == 1:
        return group[0]
    return "(" + OR_JOIN.join(group) + ")"


def format_missing(groups: list[list[str]]) -> str:
    """
    Human-readable summary of unmet groups, e.g.
      "ACCT 2120 AND (BSNS 2120 OR BUSA 2120)"
    """
    return AND_JOIN.join(format_group(g) for g in groups)

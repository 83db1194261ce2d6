import re

# Planner display names look like "ACCT 2120 001": subject, 3-4 digit number, section.
PLANNER_NAME = re.compile(r'^([A-Za-z]+)\s+(\d{3,4})(?!\d)')
WHITESPACE = re.compile(r'\s+')


def canonical_course(code: str) -> str:
    """
    Normalizes a course reference to canonical 'SUBJECT NUMBER' form.
    The section or any other trailing token is discarded:
      'csci 1011 001' -> 'CSCI 1011'
      'csci'          -> 'CSCI'        (fewer than two tokens: whole input)
    """
    trimmed = (code or "").strip()
    parts = WHITESPACE.split(trimmed)
    if len(parts) < 2:
        return trimmed.upper()
    return f"{parts[0].upper()} {parts[1]}"


def canonical_from_planner_name(name: str) -> str:
    """Canonical key for a planner display name; falls back to canonical_course()."""
    m = PLANNER_NAME.match((name or "").strip())
    if not m:
        return canonical_course(name)
    return f"{m.group(1).upper()} {m.group(2)}"


def canonical_keys(names) -> set[str]:
    return {canonical_from_planner_name(n) for n in names if n}

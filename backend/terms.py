import re
from datetime import date

SEASONS = ("Winter", "Spring", "Summer", "Fall")
SEASON_ORDER = {season: rank for rank, season in enumerate(SEASONS)}
_UNKNOWN_SEASON_RANK = len(SEASONS)

SEM_RE = re.compile(r"^(Winter|Spring|Summer|Fall)\s+(\d{4})$", re.IGNORECASE)

DEFAULT_TERM = "Fall"


def season_rank(term) -> int:
    """Rank within a year: Winter=0, Spring=1, Summer=2, Fall=3. Unknown labels sort last."""
    return SEASON_ORDER.get(term, _UNKNOWN_SEASON_RANK)


def semester_sort_key(semester: dict) -> tuple[int, int]:
    return int(semester.get("year") or 0), season_rank(semester.get("term"))


def sort_semesters(semesters: list[dict]) -> list[dict]:
    """
    Chronological order by (year, season). Derived fresh on every call and
    independent of list order; ties (duplicate terms, unknown seasons) keep
    their input order.
    """
    return sorted(semesters, key=semester_sort_key)


def semester_title(term: str, year: int) -> str:
    return f"{term} {year}"


def normalize_semester_label(label: str) -> str:
    m = SEM_RE.match((label or "").strip())
    if not m:
        return label
    term = m.group(1).capitalize()
    year = int(m.group(2))
    return f"{term} {year}"


def parse_semester_title(title: str, default_year: int | None = None) -> tuple[str, int]:
    """
    'Fall 2026' -> ('Fall', 2026). Backend titles are free text: the first
    token is taken as the term and the second as the year, falling back to
    'Fall' and the current year when either is missing.
    """
    if default_year is None:
        default_year = date.today().year
    parts = (title or "").split()
    term = parts[0] if parts else DEFAULT_TERM
    try:
        year = int(parts[1]) if len(parts) > 1 else default_year
    except ValueError:
        year = default_year
    if year <= 0:
        year = default_year
    return term, year


def default_followup_semester(term: str, year: int) -> tuple[str, int]:
    """
    Default term to add after (term, year):
    - Summer YYYY -> Fall YYYY
    - Fall YYYY   -> Spring YYYY+1
    - Winter YYYY -> Spring YYYY
    - Spring YYYY -> Fall YYYY (skip Summer by default)
    """
    if term == "Fall":
        return "Spring", year + 1
    if term == "Winter":
        return "Spring", year
    return DEFAULT_TERM, year

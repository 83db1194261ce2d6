"""
Plan recomputation and editing.

A plan is a list of semester dicts:

    {"id": "s1", "title": "Fall 2024", "term": "Fall", "year": 2024,
     "courses": [{"id": "c1", "name": "CSCI 1011 001", "credits": 3,
                  "prerequisite": '[["MATH 1011"]]',
                  "unmetPrereqs": ["MATH 1011"]}]}

unmetPrereqs is always derived by recompute_prereq_statuses(); every edit
below returns a new, recomputed plan and never mutates its input.
"""

import json
from datetime import date

from normalizer import canonical_from_planner_name
from prereq_parser import list_unmet_groups, parse_prerequisite, OR_JOIN
from terms import (
    DEFAULT_TERM,
    default_followup_semester,
    parse_semester_title,
    semester_title,
    sort_semesters,
)

MAX_SEMESTER_CREDITS = 21


class PlanEditError(ValueError):
    """Raised when a plan edit cannot be applied. error_code mirrors the API envelope."""

    def __init__(self, error_code: str, message: str, **details):
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.details = details


def _copy_course(course: dict) -> dict:
    copied = dict(course)
    copied.pop("unmetPrereqs", None)
    return copied


def _copy_semester(semester: dict) -> dict:
    copied = dict(semester)
    copied["courses"] = [_copy_course(c) for c in semester.get("courses") or []]
    return copied


def recompute_prereq_statuses(semesters: list[dict]) -> list[dict]:
    """
    Recomputes unmetPrereqs for every course using chronological validation.

    Only courses placed in strictly earlier semesters satisfy a prerequisite.
    Courses in the same semester or a later one never count, even if present.
    Returns the semesters sorted by term/year.
    """
    ordered = sort_semesters(semesters)

    # Snapshot of courses taken strictly before each semester, by sorted position
    # so duplicate semester ids never share a snapshot.
    taken_before: list[frozenset] = []
    cumulative: set[str] = set()
    for semester in ordered:
        taken_before.append(frozenset(cumulative))
        for course in semester.get("courses") or []:
            cumulative.add(canonical_from_planner_name(course.get("name", "")))

    result = []
    for semester, prior in zip(ordered, taken_before):
        updated = _copy_semester(semester)
        for course in updated["courses"]:
            formula = parse_prerequisite(course.get("prerequisite"))
            unmet = list_unmet_groups(formula, prior)
            if unmet:
                course["unmetPrereqs"] = [OR_JOIN.join(g) for g in unmet]
        result.append(updated)
    return result


def calculate_total_credits(semester: dict) -> int:
    return sum(int(c.get("credits") or 0) for c in semester.get("courses") or [])


def find_semester(semesters: list[dict], semester_id) -> dict | None:
    for semester in semesters:
        if semester.get("id") == semester_id:
            return semester
    return None


def find_course(semesters: list[dict], course_id) -> tuple[dict | None, dict | None]:
    for semester in semesters:
        for course in semester.get("courses") or []:
            if course.get("id") == course_id:
                return semester, course
    return None, None


def _require_semester(semesters: list[dict], semester_id) -> dict:
    semester = find_semester(semesters, semester_id)
    if semester is None:
        raise PlanEditError("SEMESTER_NOT_FOUND", f"Semester not found: {semester_id}")
    return semester


def next_semester(semesters: list[dict], current_year: int | None = None) -> tuple[str, int]:
    """Term/year for a newly added semester, following the chronologically last one."""
    if current_year is None:
        current_year = date.today().year
    ordered = sort_semesters(semesters)
    if not ordered:
        return DEFAULT_TERM, current_year
    last = ordered[-1]
    return default_followup_semester(last.get("term"), last.get("year") or current_year)


def add_semester(
    semesters: list[dict],
    semester_id: str,
    term: str | None = None,
    year: int | None = None,
) -> list[dict]:
    if term is None or year is None:
        default_term, default_year = next_semester(semesters)
        term = term or default_term
        year = year or default_year
    new_semester = {
        "id": semester_id,
        "title": semester_title(term, year),
        "term": term,
        "year": year,
        "courses": [],
    }
    return recompute_prereq_statuses([*semesters, new_semester])


def rename_semester(semesters: list[dict], semester_id, term: str, year: int) -> list[dict]:
    _require_semester(semesters, semester_id)
    updated = [
        {**s, "term": term, "year": year, "title": semester_title(term, year)}
        if s.get("id") == semester_id else s
        for s in semesters
    ]
    return recompute_prereq_statuses(updated)


def delete_semester(semesters: list[dict], semester_id) -> list[dict]:
    _require_semester(semesters, semester_id)
    return recompute_prereq_statuses([s for s in semesters if s.get("id") != semester_id])


def add_course(
    semesters: list[dict],
    semester_id,
    name: str,
    credits: int,
    prerequisite: str | None = None,
    course_id=None,
    allow_overload: bool = False,
) -> tuple[list[dict], dict]:
    """
    Adds a course to a semester and returns (recomputed plan, added course).

    Raises PlanEditError for an unknown semester, a course already in the
    semester, or a credit load above MAX_SEMESTER_CREDITS unless the student
    confirmed the overload. Without a backend id a local placeholder is used.
    """
    semester = _require_semester(semesters, semester_id)
    courses = semester.get("courses") or []

    if any(c.get("name") == name for c in courses):
        raise PlanEditError("DUPLICATE_COURSE", "This course already exists in the semester.")

    current_credits = calculate_total_credits(semester)
    if current_credits + credits > MAX_SEMESTER_CREDITS and not allow_overload:
        raise PlanEditError(
            "CREDIT_LIMIT_EXCEEDED",
            f"Adding {name} brings {semester.get('title')} to "
            f"{current_credits + credits} credits (limit {MAX_SEMESTER_CREDITS}).",
            current_credits=current_credits,
            requested_credits=credits,
        )

    if course_id is None:
        course_id = _placeholder_course_id(semesters)
    new_course = {
        "id": course_id,
        "name": name,
        "credits": credits,
        "prerequisite": prerequisite,
    }
    target = {**semester, "courses": [*courses, new_course]}
    updated = [target if s is semester else s for s in semesters]
    recomputed = recompute_prereq_statuses(updated)
    # recompute keeps sort_semesters() order, so the target's sorted position locates it
    # even when another semester shares its id.
    position = next(i for i, s in enumerate(sort_semesters(updated)) if s is target)
    added = recomputed[position]["courses"][-1]
    return recomputed, added


def _placeholder_course_id(semesters: list[dict]) -> str:
    """Smallest positive integer id, as text, not yet used by any course in the plan."""
    used = {str(c.get("id")) for s in semesters for c in s.get("courses") or []}
    n = 1
    while str(n) in used:
        n += 1
    return str(n)


def remove_course(semesters: list[dict], semester_id, course_id) -> list[dict]:
    _require_semester(semesters, semester_id)
    updated = [
        {**s, "courses": [c for c in s.get("courses") or [] if c.get("id") != course_id]}
        if s.get("id") == semester_id else s
        for s in semesters
    ]
    return recompute_prereq_statuses(updated)


def prerequisite_text(raw) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw
    return json.dumps(raw)


def semesters_from_backend(records: list[dict], current_year: int | None = None) -> list[dict]:
    """
    Maps persisted semester records ({"id", "title", "plannedCourses": [...]})
    into plan semesters. Structured prerequisites are re-encoded as JSON text.
    """
    semesters = []
    for record in records or []:
        term, year = parse_semester_title(record.get("title", ""), current_year)
        courses = []
        for pc in record.get("plannedCourses") or []:
            parts = [str(pc.get("subject") or ""), str(pc.get("courseNumber") or "")]
            section = str(pc.get("section") or "").strip()
            if section:
                parts.append(section)
            courses.append({
                "id": pc.get("id"),
                "name": " ".join(p for p in parts if p),
                "credits": int(pc.get("credits") or 0),
                "prerequisite": prerequisite_text(pc.get("prerequisite")),
            })
        semesters.append({
            "id": record.get("id"),
            "title": record.get("title") or semester_title(term, year),
            "term": term,
            "year": year,
            "courses": courses,
        })
    return recompute_prereq_statuses(semesters)

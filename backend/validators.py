"""
Pure input-validation helpers for the plan endpoints.
No Flask or data-loader imports.

Each validator returns (error_code, message) on invalid input and
(None, None) on success.
"""

from typing import Optional, Tuple

from terms import SEASONS

MIN_YEAR = 1900
MAX_YEAR = 2200

ValidationResult = Tuple[Optional[str], Optional[str]]
_OK: ValidationResult = (None, None)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_id(value) -> bool:
    return (isinstance(value, str) and value.strip() != "") or _is_int(value)


def validate_term(term, year) -> ValidationResult:
    if term not in SEASONS:
        return "INVALID_INPUT", f"term must be one of {', '.join(SEASONS)}."
    if not _is_int(year) or not (MIN_YEAR <= year <= MAX_YEAR):
        return "INVALID_INPUT", f"year must be an integer between {MIN_YEAR} and {MAX_YEAR}."
    return _OK


def validate_course(course, where: str) -> ValidationResult:
    if not isinstance(course, dict):
        return "INVALID_INPUT", f"{where} must be an object."
    if not _is_id(course.get("id")):
        return "INVALID_INPUT", f"{where}.id must be a non-empty string or integer."
    if not isinstance(course.get("name"), str) or not course["name"].strip():
        return "INVALID_INPUT", f"{where}.name must be a non-empty string."
    credits = course.get("credits", 0)
    if not _is_int(credits) or credits < 0:
        return "INVALID_INPUT", f"{where}.credits must be a non-negative integer."
    prereq = course.get("prerequisite")
    # Prerequisite content is never rejected here; the parser fails open.
    if prereq is not None and not isinstance(prereq, (str, list)):
        return "INVALID_INPUT", f"{where}.prerequisite must be a string, list or null."
    return _OK


def validate_plan(semesters, max_semesters: int) -> ValidationResult:
    """
    Shape check for a plan payload. Season labels are not restricted here:
    unknown seasons are legal and sort after the known ones.
    """
    if not isinstance(semesters, list):
        return "INVALID_INPUT", "semesters must be a list."
    if len(semesters) > max_semesters:
        return "INVALID_INPUT", f"A plan may contain at most {max_semesters} semesters."
    for i, semester in enumerate(semesters):
        where = f"semesters[{i}]"
        if not isinstance(semester, dict):
            return "INVALID_INPUT", f"{where} must be an object."
        if not _is_id(semester.get("id")):
            return "INVALID_INPUT", f"{where}.id must be a non-empty string or integer."
        if not isinstance(semester.get("term"), str):
            return "INVALID_INPUT", f"{where}.term must be a string."
        if not _is_int(semester.get("year")):
            return "INVALID_INPUT", f"{where}.year must be an integer."
        courses = semester.get("courses", [])
        if not isinstance(courses, list):
            return "INVALID_INPUT", f"{where}.courses must be a list."
        for j, course in enumerate(courses):
            error = validate_course(course, f"{where}.courses[{j}]")
            if error[0]:
                return error
    return _OK


def validate_new_course(body: dict) -> ValidationResult:
    name = body.get("name")
    if not isinstance(name, str) or not name.strip():
        return "INVALID_INPUT", "name is required."
    credits = body.get("credits")
    if not _is_int(credits) or credits < 0:
        return "INVALID_INPUT", "credits must be a non-negative integer."
    prereq = body.get("prerequisite")
    if prereq is not None and not isinstance(prereq, (str, list)):
        return "INVALID_INPUT", "prerequisite must be a string, list or null."
    course_id = body.get("course_id")
    if course_id is not None and not _is_id(course_id):
        return "INVALID_INPUT", "course_id must be a non-empty string or integer."
    allow_overload = body.get("allow_overload", False)
    if not isinstance(allow_overload, bool):
        return "INVALID_INPUT", "allow_overload must be a boolean."
    return _OK

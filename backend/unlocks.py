from normalizer import canonical_course, canonical_from_planner_name
from prereq_parser import parse_prerequisite, prereq_course_codes


def _empty_relationships() -> dict:
    return {"prerequisites": set(), "postrequisites": set()}


def relationships_of(semesters: list[dict], focus_course_id) -> dict:
    """
    Hover highlighting for one course instance in the plan.

    Returns:
      {
        "prerequisites":  {"MATH 1011", ...},  # canonical codes in the focus course's formula
        "postrequisites": {"c7", ...},         # ids of other courses listing the focus course
      }

    Any OR-group membership counts as a link, even when a sibling alternative
    would satisfy that course instead. Recomputed on every call; no index.
    """
    if focus_course_id is None:
        return _empty_relationships()

    all_courses = [c for s in semesters for c in s.get("courses") or []]
    target = next((c for c in all_courses if c.get("id") == focus_course_id), None)
    if target is None:
        return _empty_relationships()

    target_key = canonical_from_planner_name(target.get("name", ""))
    prerequisites = {
        canonical_course(code)
        for code in prereq_course_codes(parse_prerequisite(target.get("prerequisite")))
    }

    postrequisites = set()
    for other in all_courses:
        if other.get("id") == focus_course_id:
            continue
        codes = prereq_course_codes(parse_prerequisite(other.get("prerequisite")))
        if any(canonical_course(code) == target_key for code in codes):
            postrequisites.add(str(other.get("id")))

    return {"prerequisites": prerequisites, "postrequisites": postrequisites}

"""
Tests for plan payload validation.

Covers validators.py directly with synthetic payloads; no Flask app or
catalog file needed.
"""

import pytest

# conftest.py already adds backend/ to sys.path
from validators import validate_plan, validate_course, validate_term, validate_new_course


def _sem(**overrides):
    sem = {"id": "s1", "term": "Fall", "year": 2024, "courses": []}
    sem.update(overrides)
    return sem


def _course(**overrides):
    course = {"id": "c1", "name": "CSCI 1011 001", "credits": 3, "prerequisite": None}
    course.update(overrides)
    return course


class TestValidatePlan:
    def test_valid(self):
        assert validate_plan([_sem(courses=[_course()])], 24) == (None, None)

    def test_empty_plan(self):
        assert validate_plan([], 24) == (None, None)

    def test_not_a_list(self):
        code, msg = validate_plan({"id": "s1"}, 24)
        assert code == "INVALID_INPUT"
        assert "list" in msg

    def test_too_many_semesters(self):
        code, _ = validate_plan([_sem(id=str(i)) for i in range(3)], 2)
        assert code == "INVALID_INPUT"

    def test_missing_id(self):
        code, msg = validate_plan([_sem(id="")], 24)
        assert code == "INVALID_INPUT"
        assert "semesters[0].id" in msg

    def test_integer_ids_allowed(self):
        assert validate_plan([_sem(id=3, courses=[_course(id=4)])], 24) == (None, None)

    def test_bool_id_rejected(self):
        code, _ = validate_plan([_sem(id=True)], 24)
        assert code == "INVALID_INPUT"

    def test_unknown_season_allowed(self):
        assert validate_plan([_sem(term="Quarter")], 24) == (None, None)

    def test_year_must_be_int(self):
        code, _ = validate_plan([_sem(year="2024")], 24)
        assert code == "INVALID_INPUT"

    def test_courses_must_be_list(self):
        code, _ = validate_plan([_sem(courses="CSCI 1011")], 24)
        assert code == "INVALID_INPUT"

    def test_courses_default_to_empty(self):
        sem = _sem()
        del sem["courses"]
        assert validate_plan([sem], 24) == (None, None)

    def test_bad_course_reports_path(self):
        code, msg = validate_plan([_sem(courses=[_course(), _course(name="")])], 24)
        assert code == "INVALID_INPUT"
        assert "semesters[0].courses[1].name" in msg


class TestValidateCourse:
    def test_negative_credits(self):
        code, _ = validate_course(_course(credits=-1), "c")
        assert code == "INVALID_INPUT"

    def test_malformed_prerequisite_text_is_accepted(self):
        assert validate_course(_course(prerequisite="not json"), "c") == (None, None)

    def test_structured_prerequisite_accepted(self):
        assert validate_course(_course(prerequisite=[["MATH 1011"]]), "c") == (None, None)

    def test_numeric_prerequisite_rejected(self):
        code, _ = validate_course(_course(prerequisite=5), "c")
        assert code == "INVALID_INPUT"

    def test_stale_unmet_field_ignored(self):
        assert validate_course(_course(unmetPrereqs=["X"]), "c") == (None, None)


class TestValidateTerm:
    @pytest.mark.parametrize("term", ["Winter", "Spring", "Summer", "Fall"])
    def test_seasons(self, term):
        assert validate_term(term, 2025) == (None, None)

    def test_unknown_season(self):
        code, _ = validate_term("fall", 2025)
        assert code == "INVALID_INPUT"

    def test_year_range(self):
        assert validate_term("Fall", 1800)[0] == "INVALID_INPUT"
        assert validate_term("Fall", None)[0] == "INVALID_INPUT"


class TestValidateNewCourse:
    def test_valid(self):
        assert validate_new_course({"name": "CSCI 1011 001", "credits": 3}) == (None, None)

    def test_missing_credits(self):
        assert validate_new_course({"name": "CSCI 1011 001"})[0] == "INVALID_INPUT"

    def test_blank_course_id(self):
        body = {"name": "CSCI 1011 001", "credits": 3, "course_id": " "}
        assert validate_new_course(body)[0] == "INVALID_INPUT"

    def test_allow_overload_boolean(self):
        body = {"name": "CSCI 1011 001", "credits": 3, "allow_overload": True}
        assert validate_new_course(body) == (None, None)

    @pytest.mark.parametrize("flag", ["false", "true", 0, 1, None])
    def test_allow_overload_non_boolean_rejected(self, flag):
        body = {"name": "CSCI 1011 001", "credits": 3, "allow_overload": flag}
        assert validate_new_course(body)[0] == "INVALID_INPUT"

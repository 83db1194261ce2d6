import pytest
from normalizer import canonical_course, canonical_from_planner_name, canonical_keys


class TestCanonicalCourse:
    def test_section_dropped(self):
        assert canonical_course("CSCI 1011 001") == "CSCI 1011"

    def test_lowercase_subject_upper_cased(self):
        assert canonical_course("csci 1011 001") == "CSCI 1011"

    def test_round_trip_with_and_without_section(self):
        assert canonical_course("csci 1011 001") == canonical_course("CSCI 1011") == "CSCI 1011"

    def test_extra_whitespace(self):
        assert canonical_course("  acct   2120\t002 ") == "ACCT 2120"

    def test_single_token_fallback(self):
        assert canonical_course(" csci1011 ") == "CSCI1011"

    def test_empty(self):
        assert canonical_course("") == ""

    def test_number_kept_verbatim(self):
        # Only the subject is upper-cased
        assert canonical_course("math 101a") == "MATH 101a"


class TestCanonicalFromPlannerName:
    def test_standard_display_name(self):
        assert canonical_from_planner_name("ACCT 2120 001") == "ACCT 2120"

    def test_lowercase(self):
        assert canonical_from_planner_name("acct 2120 001") == "ACCT 2120"

    def test_three_digit_number(self):
        assert canonical_from_planner_name("ENG 101 A") == "ENG 101"

    def test_five_digits_falls_back(self):
        assert canonical_from_planner_name("ENG 10101 A") == "ENG 10101"

    def test_non_matching_falls_back(self):
        assert canonical_from_planner_name("Independent Study") == "INDEPENDENT Study"

    def test_matches_prereq_token_key(self):
        assert canonical_from_planner_name("CSCI 1011 002") == canonical_course("CSCI 1011")


def test_canonical_keys_skips_blanks():
    assert canonical_keys(["CSCI 1011 001", "", "math 1011"]) == {"CSCI 1011", "MATH 1011"}

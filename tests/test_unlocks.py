import pytest
from unlocks import relationships_of


@pytest.fixture
def plan():
    return [
        {"id": "s1", "term": "Fall", "year": 2024, "courses": [
            {"id": "math", "name": "MATH 1011 001", "credits": 3, "prerequisite": None},
            {"id": "bsns", "name": "BSNS 2120 001", "credits": 3, "prerequisite": '[["math 1011"]]'},
        ]},
        {"id": "s2", "term": "Spring", "year": 2025, "courses": [
            {"id": "acct", "name": "ACCT 3140 001", "credits": 3,
             "prerequisite": '[["ACCT 2120 001"],["BSNS 2120","BUSA 2120"]]'},
            {"id": 7, "name": "BUSA 2120 001", "credits": 3, "prerequisite": '[["MATH 1011"]]'},
            {"id": "broken", "name": "CSCI 2020 001", "credits": 3, "prerequisite": "see department"},
        ]},
    ]


class TestRelationshipsOf:
    def test_prerequisites_flattened_and_canonical(self, plan):
        related = relationships_of(plan, "acct")
        assert related["prerequisites"] == {"ACCT 2120", "BSNS 2120", "BUSA 2120"}

    def test_postrequisites_any_group_membership(self, plan):
        related = relationships_of(plan, "bsns")
        # BSNS 2120 is only one OR alternative for ACCT 3140, still linked
        assert related["postrequisites"] == {"acct"}
        assert related["prerequisites"] == {"MATH 1011"}

    def test_postrequisite_ids_are_strings(self, plan):
        related = relationships_of(plan, "math")
        assert related["postrequisites"] == {"bsns", "7"}

    def test_integer_focus_id(self, plan):
        related = relationships_of(plan, 7)
        assert related["prerequisites"] == {"MATH 1011"}
        assert related["postrequisites"] == {"acct"}

    def test_no_prerequisites(self, plan):
        related = relationships_of(plan, "math")
        assert related["prerequisites"] == set()

    def test_malformed_prerequisite_contributes_nothing(self, plan):
        assert relationships_of(plan, "broken") == {"prerequisites": set(), "postrequisites": set()}

    def test_unknown_focus(self, plan):
        assert relationships_of(plan, "nope") == {"prerequisites": set(), "postrequisites": set()}

    def test_none_focus(self, plan):
        assert relationships_of(plan, None) == {"prerequisites": set(), "postrequisites": set()}

    def test_focus_excluded_from_own_postrequisites(self):
        plan = [{"id": "s", "term": "Fall", "year": 2024, "courses": [
            {"id": "self", "name": "CSCI 1011 001", "credits": 3, "prerequisite": '[["CSCI 1011"]]'},
        ]}]
        related = relationships_of(plan, "self")
        assert related["prerequisites"] == {"CSCI 1011"}
        assert related["postrequisites"] == set()

    def test_same_course_other_instance_is_postrequisite(self):
        # A second section listing the course as a prerequisite is still "another instance"
        plan = [{"id": "s", "term": "Fall", "year": 2024, "courses": [
            {"id": "a", "name": "CSCI 1011 001", "credits": 3, "prerequisite": None},
            {"id": "b", "name": "CSCI 1012 001", "credits": 3, "prerequisite": '[["CSCI 1011"]]'},
            {"id": "c", "name": "CSCI 1012 002", "credits": 3, "prerequisite": '[["CSCI 1011"]]'},
        ]}]
        assert relationships_of(plan, "a")["postrequisites"] == {"b", "c"}

import pytest

from gradebook.errors import NotFoundError, ValidationError
from gradebook.grading.grade_scale import create_band
from gradebook.grading.ledger import create_score
from gradebook.grading.results import (
    class_statistics, component_breakdown, get_multi_term_result, get_own_scores, get_student_subjects,
    get_students_with_results, subject_position,
)
from gradebook.grading.schemes import create_scheme

from .conftest import CA_EXAM, submission


@pytest.fixture
def graded(seed, english_scheme):
    for sid, (ca, exam) in zip(seed.student_ids, [(20, 40), (20, 50), (20, 60)]):
        create_score(english_scheme.id, sid, seed.class_id, seed.teacher_id,
                     seed.school_id, submission(ca, exam))
    return english_scheme


@pytest.fixture
def bands(seed):
    create_band(seed.school_id, "A", 80, 100)
    create_band(seed.school_id, "B", 70, 79)
    create_band(seed.school_id, "C", 50, 69)


def test_class_statistics():
    assert class_statistics([60, 70, 80]) == {"average": 70, "lowest": 60, "highest": 80, "count": 3}
    assert class_statistics([]) == {"average": None, "lowest": None, "highest": None, "count": 0}
    assert class_statistics([10, 10, 11])["average"] == 10.33


def test_subject_position_shares_rank_on_ties():
    totals = [90, 80, 80, 70]
    assert subject_position(90, totals) == 1
    assert subject_position(80, totals) == 2
    assert subject_position(70, totals) == 4
    assert subject_position(None, totals) is None


def test_component_breakdown_keeps_stale_components(english_scheme):
    class Record:
        component_scores = [{"component_name": "CA", "score": 25}, {"component_name": "Quiz", "score": 5}]

    rows = component_breakdown(english_scheme, Record())
    assert rows == [
        {"component_name": "CA", "weight": 30, "score": 25},
        {"component_name": "Exam", "weight": 70, "score": None},
        {"component_name": "Quiz", "weight": None, "score": 5},
    ]


def test_score_flows_from_scheme_to_report(seed, english_scheme, bands):
    create_score(english_scheme.id, seed.student_ids[0], seed.class_id, seed.teacher_id,
                 seed.school_id, submission(25, 65))
    data = get_own_scores(seed.school_id, seed.class_id, seed.student_ids[0])
    [english] = data["subjects"]
    assert english["subject"]["name"] == "English Language"
    assert english["total_score"] == 90
    assert english["class_average"] == 90
    assert english["letter_grade"] == "A"
    assert [c["score"] for c in english["components"]] == [25, 65]


def test_own_scores_average_covers_graded_students_only(seed, graded, bands):
    data = get_own_scores(seed.school_id, seed.class_id, seed.student_ids[1])
    [english] = data["subjects"]
    assert english["total_score"] == 70
    assert english["class_average"] == 70
    assert english["letter_grade"] == "B"
    assert english["teacher"]["user_id"] == seed.teacher_id


def test_own_scores_for_unknown_class(seed):
    with pytest.raises(NotFoundError):
        get_own_scores(seed.school_id, seed.foreign_class_id, seed.student_ids[0])


def test_ungraded_student_has_no_subjects(seed, graded):
    data = get_own_scores(seed.school_id, seed.class_id, seed.student_ids[4])
    assert data["subjects"] == []


def test_class_results_fill_nulls_for_ungraded(seed, graded):
    data = get_students_with_results(seed.school_id, seed.session_id, seed.term1_id, seed.class_id)
    assert len(data["students"]) == 6
    by_student = {row["student"]["user_id"]: row for row in data["students"]}

    graded_row = {s["subject"]["name"]: s for s in by_student[seed.student_ids[0]]["subjects"]}
    assert graded_row["English Language"]["total_score"] == 60
    assert graded_row["Mathematics"]["scheme_id"] is None
    assert graded_row["Mathematics"]["total_score"] is None

    ungraded = {s["subject"]["name"]: s for s in by_student[seed.student_ids[5]]["subjects"]}
    assert ungraded["English Language"]["scheme_id"] == graded.id
    assert ungraded["English Language"]["score_id"] is None
    assert ungraded["English Language"]["scores"] == []


def test_class_results_require_session_and_term(seed):
    with pytest.raises(ValidationError):
        get_students_with_results(seed.school_id, None, seed.term1_id, seed.class_id)


def test_multi_term_result_for_one_term(seed, graded, bands):
    data = get_multi_term_result(seed.student_ids[0], seed.school_id)
    [session] = data["sessions"]
    assert session["session"]["name"] == "2024/2025"
    [term] = session["terms"]
    assert term["name"] == "First Term"
    assert term["next_term_start_date"] == "2025-01-06"
    assert term["student_count"] == 6
    [english] = term["scores"]
    assert english["total_score"] == 60
    assert english["class_average"] == 70
    assert english["lowest_score"] == 60
    assert english["highest_score"] == 80
    assert english["subject_position"] == 3
    assert english["letter_grade"] == "C"


def test_multi_term_result_orders_sessions_and_skips_empty_terms(seed, graded):
    history = create_scheme(seed.school_id, seed.class_id, seed.history_id, seed.teacher_id, CA_EXAM)
    create_score(history.id, seed.student_ids[0], seed.class_id, seed.teacher_id,
                 seed.school_id, submission(30, 55))

    data = get_multi_term_result(seed.student_ids[0], seed.school_id)
    assert [s["session"]["name"] for s in data["sessions"]] == ["2023/2024", "2024/2025"]
    old_terms = data["sessions"][0]["terms"]
    assert [t["name"] for t in old_terms] == ["Third Term"]
    assert old_terms[0]["total_score"] == 85
    assert old_terms[0]["next_term_start_date"] is None
    assert [t["name"] for t in data["sessions"][1]["terms"]] == ["First Term"]


def test_student_without_scores_has_empty_report(seed, graded):
    data = get_multi_term_result(seed.student_ids[3], seed.school_id)
    assert data["sessions"] == []


def test_multi_term_result_unknown_student(seed):
    with pytest.raises(NotFoundError):
        get_multi_term_result(seed.admin_id, seed.school_id)


def test_overall_position_ranks_term_totals(seed, graded):
    maths = create_scheme(seed.school_id, seed.class_id, seed.maths_id, seed.teacher_id, CA_EXAM)
    for sid, (ca, exam) in zip(seed.student_ids, [(20, 30), (5, 5)]):
        create_score(maths.id, sid, seed.class_id, seed.teacher_id, seed.school_id, submission(ca, exam))

    # term totals: 110, 80, 80
    first = get_multi_term_result(seed.student_ids[0], seed.school_id)["sessions"][0]["terms"][0]
    second = get_multi_term_result(seed.student_ids[1], seed.school_id)["sessions"][0]["terms"][0]
    third = get_multi_term_result(seed.student_ids[2], seed.school_id)["sessions"][0]["terms"][0]
    assert first["total_score"] == 110
    assert first["overall_position"] == 1
    assert second["overall_position"] == 2
    assert third["overall_position"] == 2


def test_student_subjects_flat_listing(seed, graded, bands):
    rows = get_student_subjects(seed.student_ids[2], seed.school_id)
    assert len(rows) == 1
    assert rows[0]["subject"]["name"] == "English Language"
    assert rows[0]["teacher"]["user_id"] == seed.teacher_id
    assert rows[0]["total_score"] == 80
    assert rows[0]["letter_grade"] == "A"
    assert get_student_subjects(seed.student_ids[4], seed.school_id) == []


def test_student_subjects_requires_approved_student(seed):
    with pytest.raises(NotFoundError):
        get_student_subjects(seed.teacher_id, seed.school_id)

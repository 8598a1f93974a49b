import pytest
from sqlalchemy.exc import OperationalError

from gradebook.errors import AuthorizationError, ConflictError, NotFoundError, TransactionError, ValidationError
from gradebook.extensions import db
from gradebook.grading.ledger import create_score, get_scores_for_class, update_score
from gradebook.models import ClassEnrollment, SchoolClass, ScoreRecord

from .conftest import submission


def _create(seed, scheme, student_id, ca, exam):
    return create_score(scheme.id, student_id, seed.class_id, seed.teacher_id,
                        seed.school_id, submission(ca, exam))


def test_create_score_computes_total(seed, english_scheme):
    record = _create(seed, english_scheme, seed.student_ids[0], 25, 65)
    assert record.total_score == 90
    assert record.component_scores == [
        {"component_name": "CA", "score": 25.0},
        {"component_name": "Exam", "score": 65.0},
    ]
    assert record.teacher_id == seed.teacher_id


@pytest.mark.parametrize("second", [(25, 65), (0, 0), (30, 70)])
def test_second_create_for_same_student_conflicts(seed, english_scheme, second):
    _create(seed, english_scheme, seed.student_ids[0], 25, 65)
    with pytest.raises(ConflictError):
        _create(seed, english_scheme, seed.student_ids[0], *second)
    assert ScoreRecord.query.count() == 1


def test_student_must_be_enrolled(seed, english_scheme):
    with pytest.raises(NotFoundError):
        _create(seed, english_scheme, seed.outsider_id, 25, 65)


def test_unknown_scheme_is_not_found(seed):
    with pytest.raises(NotFoundError):
        create_score(9999, seed.student_ids[0], seed.class_id, seed.teacher_id,
                     seed.school_id, submission(1, 2))


def test_invalid_submission_is_not_saved(seed, english_scheme):
    with pytest.raises(ValidationError):
        create_score(english_scheme.id, seed.student_ids[0], seed.class_id, seed.teacher_id,
                     seed.school_id, {"scores": [{"component_name": "CA", "score": 25}]})
    assert ScoreRecord.query.count() == 0


def test_update_overwrites_scores_and_total(seed, english_scheme):
    _create(seed, english_scheme, seed.student_ids[0], 25, 65)
    record = update_score(english_scheme.id, seed.student_ids[0], seed.class_id, submission(10, 50))
    assert record.total_score == 60
    assert ScoreRecord.query.count() == 1


def test_update_without_existing_record_is_not_found(seed, english_scheme):
    with pytest.raises(NotFoundError):
        update_score(english_scheme.id, seed.student_ids[0], seed.class_id, submission(10, 50))


def test_update_fails_closed_when_scheme_has_diverged(seed, english_scheme):
    _create(seed, english_scheme, seed.student_ids[0], 25, 65)
    # legacy data: components renamed underneath existing rows
    english_scheme.components = [{"name": "Test", "weight": 30}, {"name": "Exam", "weight": 70}]
    db.session.commit()
    with pytest.raises(ValidationError):
        update_score(english_scheme.id, seed.student_ids[0], seed.class_id, submission(10, 50))
    db.session.expire_all()
    assert ScoreRecord.query.one().total_score == 90


def test_class_scores_include_ungraded_students(seed, english_scheme):
    _create(seed, english_scheme, seed.student_ids[0], 25, 65)
    data = get_scores_for_class(english_scheme.id)
    rows = {r["student"]["user_id"]: r for r in data["students"]}
    assert set(rows) == set(seed.student_ids)
    assert rows[seed.student_ids[0]]["total_score"] == 90
    ungraded = rows[seed.student_ids[1]]
    assert ungraded["score_id"] is None
    assert ungraded["total_score"] is None
    assert ungraded["scores"] == []
    assert data["scheme"]["components"][0]["name"] == "CA"


@pytest.fixture
def second_class(seed):
    klass = SchoolClass(school_id=seed.school_id, name="JSS 2", grade_level="Junior")
    db.session.add(klass)
    db.session.flush()
    db.session.add(ClassEnrollment(class_id=klass.id, student_id=seed.outsider_id,
                                   session_id=seed.session_id, term_id=seed.term1_id))
    db.session.commit()
    return klass.id


def test_score_must_target_the_schemes_class(seed, english_scheme, second_class):
    with pytest.raises(NotFoundError):
        create_score(english_scheme.id, seed.outsider_id, second_class, seed.teacher_id,
                     seed.school_id, submission(25, 65))
    assert ScoreRecord.query.count() == 0


def test_student_enrolled_elsewhere_cannot_be_scored(seed, english_scheme, second_class):
    with pytest.raises(NotFoundError):
        _create(seed, english_scheme, seed.outsider_id, 25, 65)
    assert ScoreRecord.query.count() == 0


def test_score_under_another_teachers_scheme_is_refused(seed, english_scheme):
    with pytest.raises(AuthorizationError):
        create_score(english_scheme.id, seed.student_ids[0], seed.class_id, seed.pending_teacher_id,
                     seed.school_id, submission(25, 65))


def test_update_with_mismatched_class_is_not_found(seed, english_scheme, second_class):
    _create(seed, english_scheme, seed.student_ids[0], 25, 65)
    with pytest.raises(NotFoundError):
        update_score(english_scheme.id, seed.student_ids[0], second_class, submission(10, 50))


def test_failed_commit_surfaces_transaction_error(seed, english_scheme, monkeypatch):
    def broken_commit(*args, **kwargs):
        raise OperationalError("INSERT INTO score_record", {}, Exception("database is locked"))

    monkeypatch.setattr(db.session(), "commit", broken_commit)
    with pytest.raises(TransactionError):
        _create(seed, english_scheme, seed.student_ids[0], 25, 65)
    monkeypatch.undo()

    assert ScoreRecord.query.count() == 0

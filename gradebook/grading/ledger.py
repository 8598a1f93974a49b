"""Score ledger: one aggregated score row per (scheme, student, class)."""
import logging

from ..errors import AuthorizationError, ConflictError, NotFoundError
from ..extensions import db
from ..models import ScoreRecord, User
from . import directory
from .schemes import get_scheme_by_id
from .transactions import commit
from .validator import validate_submission

logger = logging.getLogger(__name__)


def find_record(scheme_id, student_id, class_id, lock=False):
    q = ScoreRecord.query.filter_by(scheme_id=scheme_id, student_id=student_id, class_id=class_id)
    if lock:
        q = q.with_for_update()
    return q.one_or_none()


def _check_scheme_scope(scheme, class_id, school_id=None, teacher_id=None):
    if class_id != scheme.class_id or (school_id is not None and school_id != scheme.school_id):
        raise NotFoundError("Grading scheme not found for this class")
    if teacher_id is not None and teacher_id != scheme.teacher_id:
        raise AuthorizationError("Grading scheme belongs to another teacher")


def create_score(scheme_id, student_id, class_id, teacher_id, school_id, submission) -> ScoreRecord:
    scheme = get_scheme_by_id(scheme_id)
    _check_scheme_scope(scheme, class_id, school_id, teacher_id)
    validated = validate_submission(scheme, submission)
    if not directory.is_enrolled(student_id, scheme.class_id):
        raise NotFoundError(f"Student not found in this class: {student_id}")
    if find_record(scheme.id, student_id, class_id) is not None:
        raise ConflictError(
            f"Scores already assigned for student {student_id}. Use the update path.",
            details=[{"student_id": student_id, "scheme_id": scheme.id}],
        )

    record = ScoreRecord(
        scheme_id=scheme.id, student_id=student_id, class_id=class_id,
        teacher_id=teacher_id, school_id=school_id,
        component_scores=validated.component_scores(), total_score=validated.total_score,
    )
    db.session.add(record)
    commit("create score", conflict_message=f"Scores already assigned for student {student_id}")
    logger.info("Created score %s for scheme=%s student=%s", record.id, scheme.id, student_id)
    return record


def update_score(scheme_id, student_id, class_id, submission) -> ScoreRecord:
    scheme = get_scheme_by_id(scheme_id)
    _check_scheme_scope(scheme, class_id)
    record = find_record(scheme.id, student_id, class_id)
    if record is None:
        raise NotFoundError(
            f"No scores found for student {student_id} in this class. Use the create path.")

    # validated against the scheme as it is now; a diverged scheme fails here
    validated = validate_submission(scheme, submission)
    record.component_scores = validated.component_scores()
    record.total_score = validated.total_score
    commit("update score")
    logger.info("Updated score %s for scheme=%s student=%s", record.id, scheme.id, student_id)
    return record


def get_scores_for_class(scheme_id):
    """Every enrolled student with their score row, or nulls when ungraded."""
    scheme = get_scheme_by_id(scheme_id)
    subject = scheme.subject
    enrolled = directory.list_enrolled(
        scheme.class_id,
        session_id=subject.session_id if subject else None,
        term_id=subject.term_id if subject else None,
    )
    records = {r.student_id: r for r in ScoreRecord.query.filter_by(
        scheme_id=scheme.id, class_id=scheme.class_id).all()}

    student_ids = list(enrolled) + [sid for sid in records if sid not in enrolled]
    students = {u.id: u for u in User.query.filter(User.id.in_(student_ids)).all()} if student_ids else {}

    rows = []
    for sid in student_ids:
        record = records.get(sid)
        student = students.get(sid)
        rows.append({
            "student": student.identity() if student else {"user_id": sid},
            "score_id": record.id if record else None,
            "scores": [dict(s) for s in record.component_scores] if record else [],
            "total_score": record.total_score if record else None,
            "updated_at": record.updated_at.isoformat() if record and record.updated_at else None,
        })
    return {"scheme": scheme.to_dict(), "students": rows}


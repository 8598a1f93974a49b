import logging

from ..errors import AuthorizationError, ConflictError, NotFoundError
from ..extensions import db
from ..models import GradingScheme, ScoreRecord
from . import directory
from .transactions import commit
from .validator import validate_component_shape

logger = logging.getLogger(__name__)


def _has_scores(scheme_id) -> bool:
    return ScoreRecord.query.filter_by(scheme_id=scheme_id).first() is not None


def check_owner(school_id, class_id, subject_id, teacher_id):
    if not directory.class_exists(school_id, class_id):
        raise NotFoundError("Class not found in this school")
    if not directory.is_approved_teacher(teacher_id, school_id):
        raise AuthorizationError("Teacher not found or not authorized")
    if not directory.subject_belongs_to(subject_id, class_id, teacher_id, school_id):
        raise NotFoundError("Subject not found for this class and teacher")
    if not directory.is_approved(subject_id):
        raise AuthorizationError("Subject is not approved")


def create_scheme(school_id, class_id, subject_id, teacher_id, components) -> GradingScheme:
    parsed = validate_component_shape(components)
    check_owner(school_id, class_id, subject_id, teacher_id)

    existing = GradingScheme.query.filter_by(
        school_id=school_id, class_id=class_id, subject_id=subject_id, teacher_id=teacher_id
    ).first()
    if existing is not None:
        raise ConflictError(
            "Grading scheme already exists for this class, subject and teacher",
            details=[{"scheme_id": existing.id}],
        )

    scheme = GradingScheme(
        school_id=school_id, class_id=class_id, subject_id=subject_id,
        teacher_id=teacher_id, components=[c.to_dict() for c in parsed],
    )
    db.session.add(scheme)
    commit("create grading scheme",
           conflict_message="Grading scheme already exists for this class, subject and teacher")
    logger.info("Created grading scheme %s for class=%s subject=%s teacher=%s",
                scheme.id, class_id, subject_id, teacher_id)
    return scheme


def get_scheme(school_id, class_id, subject_id, teacher_id) -> GradingScheme:
    scheme = GradingScheme.query.filter_by(
        school_id=school_id, class_id=class_id, subject_id=subject_id, teacher_id=teacher_id
    ).one_or_none()
    if scheme is None:
        raise NotFoundError("Grading scheme not found for this class, subject and teacher")
    return scheme


def get_scheme_by_id(scheme_id) -> GradingScheme:
    scheme = db.session.get(GradingScheme, scheme_id)
    if scheme is None:
        raise NotFoundError(f"Grading scheme {scheme_id} not found")
    return scheme


def update_scheme(scheme_id, components) -> GradingScheme:
    # weights may change freely; component names are frozen once scores exist
    parsed = validate_component_shape(components)
    scheme = get_scheme_by_id(scheme_id)

    new_names = {c.name for c in parsed}
    if new_names != set(scheme.component_names) and _has_scores(scheme.id):
        raise ConflictError(
            "Cannot change component names while scores exist for this scheme",
            details=[{"scheme_id": scheme.id,
                      "current": scheme.component_names,
                      "requested": [c.name for c in parsed]}],
        )

    scheme.components = [c.to_dict() for c in parsed]
    commit("update grading scheme")
    logger.info("Updated grading scheme %s", scheme.id)
    return scheme


def delete_scheme(scheme_id) -> None:
    scheme = get_scheme_by_id(scheme_id)
    if _has_scores(scheme.id):
        raise ConflictError("Cannot delete a grading scheme that has scores",
                            details=[{"scheme_id": scheme.id}])
    db.session.delete(scheme)
    commit("delete grading scheme")
    logger.info("Deleted grading scheme %s", scheme_id)

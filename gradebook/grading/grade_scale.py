import logging
from typing import Iterable, Optional

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import GradeBand, School
from .transactions import commit
from .validator import is_finite_number

logger = logging.getLogger(__name__)


def list_bands(school_id):
    # insertion order is the tie-break for overlapping legacy bands
    return GradeBand.query.filter_by(school_id=school_id).order_by(GradeBand.id.asc()).all()


def resolve_from_bands(bands: Iterable[GradeBand], score) -> Optional[str]:
    if score is None:
        return None
    for band in bands:
        if band.contains(score):
            return band.letter_grade
    return None


def resolve_letter_grade(school_id, score) -> Optional[str]:
    return resolve_from_bands(list_bands(school_id), score)


def _check_band(letter_grade, min_score, max_score):
    errors = []
    if not isinstance(letter_grade, str) or not letter_grade.strip():
        errors.append({"field": "letter_grade", "reason": "Letter grade is required"})
    for field, value in (("min_score", min_score), ("max_score", max_score)):
        if not is_finite_number(value):
            errors.append({"field": field, "reason": "must be a number"})
    if not errors and (min_score < 0 or max_score < min_score):
        errors.append({"field": "min_score", "reason": "Invalid score range"})
    if errors:
        raise ValidationError("Invalid grade band", details=errors)
    return letter_grade.strip()


def _check_unique(school_id, letter_grade, min_score, max_score, exclude_id=None):
    q = GradeBand.query.filter_by(school_id=school_id)
    if exclude_id is not None:
        q = q.filter(GradeBand.id != exclude_id)
    if q.filter(GradeBand.letter_grade == letter_grade).first() is not None:
        raise ConflictError("Letter grade already exists for this school",
                            details=[{"letter_grade": letter_grade}])
    overlap = q.filter(GradeBand.min_score <= max_score, GradeBand.max_score >= min_score).first()
    if overlap is not None:
        raise ValidationError("Score range overlaps with existing grade band",
                              details=[{"band_id": overlap.id, "letter_grade": overlap.letter_grade}])


def create_band(school_id, letter_grade, min_score, max_score) -> GradeBand:
    letter_grade = _check_band(letter_grade, min_score, max_score)
    if db.session.get(School, school_id) is None:
        raise NotFoundError("School not found")
    _check_unique(school_id, letter_grade, min_score, max_score)

    band = GradeBand(school_id=school_id, letter_grade=letter_grade,
                     min_score=min_score, max_score=max_score)
    db.session.add(band)
    commit("create grade band", conflict_message="Letter grade already exists for this school")
    logger.info("Created grade band %s (%s) for school %s", band.id, letter_grade, school_id)
    return band


def get_band(band_id, school_id=None) -> GradeBand:
    band = db.session.get(GradeBand, band_id)
    if band is None or (school_id is not None and band.school_id != school_id):
        raise NotFoundError("Grade band not found")
    return band


def update_band(band_id, letter_grade, min_score, max_score, school_id=None) -> GradeBand:
    letter_grade = _check_band(letter_grade, min_score, max_score)
    band = get_band(band_id, school_id)
    _check_unique(band.school_id, letter_grade, min_score, max_score, exclude_id=band.id)

    band.letter_grade = letter_grade
    band.min_score = min_score
    band.max_score = max_score
    commit("update grade band", conflict_message="Letter grade already exists for this school")
    return band


def delete_band(band_id, school_id=None) -> None:
    band = get_band(band_id, school_id)
    db.session.delete(band)
    commit("delete grade band")

from .bulk import BatchMode, BatchState, BulkScoreTransaction, bulk_create_scores, bulk_edit_scores
from .grade_scale import resolve_letter_grade
from .ledger import create_score, get_scores_for_class, update_score
from .results import (
    get_multi_term_result, get_own_scores, get_student_subjects, get_students_with_results,
)
from .schemes import create_scheme, delete_scheme, get_scheme, update_scheme
from .validator import validate_component_shape, validate_submission

__all__ = [
    "BatchMode", "BatchState", "BulkScoreTransaction",
    "bulk_create_scores", "bulk_edit_scores", "resolve_letter_grade",
    "create_score", "update_score", "get_scores_for_class",
    "get_own_scores", "get_student_subjects", "get_students_with_results", "get_multi_term_result",
    "create_scheme", "update_scheme", "get_scheme", "delete_scheme",
    "validate_component_shape", "validate_submission",
]

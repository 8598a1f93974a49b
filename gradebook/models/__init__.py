from ..extensions import db
from .school import School, AcademicSession, Term
from .classes import SchoolClass, Subject
from .enrollment import ClassEnrollment
from .grading import GradingScheme, ScoreRecord, GradeBand
from .user import User

__all__ = [
    "School", "AcademicSession", "Term", "SchoolClass", "Subject",
    "ClassEnrollment", "GradingScheme", "ScoreRecord", "GradeBand", "User",
]

from datetime import date
from types import SimpleNamespace

import pytest
from flask import g
from werkzeug.security import generate_password_hash

from gradebook import create_app
from gradebook.extensions import db
from gradebook.models import (
    AcademicSession, ClassEnrollment, School, SchoolClass, Subject, Term, User,
)


@pytest.fixture
def app():
    app = create_app("config.TestConfig")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


def _user(username, role, school, approved=True, first="", last=""):
    u = User(username=username, password_hash=generate_password_hash("secret-pass"),
             role=role, school=school, is_approved=approved,
             first_name=first or username.title(), last_name=last or "Doe")
    db.session.add(u)
    return u


@pytest.fixture
def seed(app):
    school = School(name="Green Hill Academy")
    other_school = School(name="Riverside College")
    db.session.add_all([school, other_school])

    admin = _user("admin", "admin", school)
    teacher = _user("tobi", "teacher", school)
    pending_teacher = _user("pending", "teacher", school, approved=False)
    students = [_user(f"student{i}", "student", school) for i in range(1, 7)]
    outsider = _user("outsider", "student", school)

    old_session = AcademicSession(school=school, name="2023/2024",
                                  start_date=date(2023, 9, 4), end_date=date(2024, 7, 19))
    session = AcademicSession(school=school, name="2024/2025", is_active=True,
                              start_date=date(2024, 9, 2), end_date=date(2025, 7, 18))
    db.session.add_all([old_session, session])
    db.session.flush()
    old_term = Term(school_id=school.id, session=old_session, name="Third Term",
                    start_date=date(2024, 4, 22), end_date=date(2024, 7, 19))
    term1 = Term(school_id=school.id, session=session, name="First Term", is_active=True,
                 start_date=date(2024, 9, 2), end_date=date(2024, 12, 13))
    term2 = Term(school_id=school.id, session=session, name="Second Term",
                 start_date=date(2025, 1, 6), end_date=date(2025, 4, 4))
    db.session.add_all([old_term, term1, term2])

    klass = SchoolClass(school=school, name="JSS 1", grade_level="Junior")
    foreign_class = SchoolClass(school=other_school, name="SS 3", grade_level="Senior")
    db.session.add_all([klass, foreign_class])
    db.session.flush()

    def subject(name, term, approved=True, teacher_id=None):
        s = Subject(school_id=school.id, class_id=klass.id, teacher_id=teacher_id or teacher.id,
                    session_id=term.session_id, term_id=term.id, name=name, is_approved=approved)
        db.session.add(s)
        return s

    english = subject("English Language", term1)
    maths = subject("Mathematics", term1)
    basic_science = subject("Basic Science", term2)
    history = subject("History", old_term)
    unapproved = subject("French", term1, approved=False)
    db.session.flush()

    for s in students:
        db.session.add(ClassEnrollment(class_id=klass.id, student_id=s.id,
                                       session_id=session.id, term_id=term1.id))
        db.session.add(ClassEnrollment(class_id=klass.id, student_id=s.id,
                                       session_id=session.id, term_id=term2.id))
    db.session.add(ClassEnrollment(class_id=klass.id, student_id=students[0].id,
                                   session_id=old_session.id, term_id=old_term.id))
    db.session.commit()

    return SimpleNamespace(
        school_id=school.id, other_school_id=other_school.id,
        admin_id=admin.id, teacher_id=teacher.id, pending_teacher_id=pending_teacher.id,
        student_ids=[s.id for s in students], outsider_id=outsider.id,
        class_id=klass.id, foreign_class_id=foreign_class.id,
        session_id=session.id, old_session_id=old_session.id,
        term1_id=term1.id, term2_id=term2.id, old_term_id=old_term.id,
        english_id=english.id, maths_id=maths.id, basic_science_id=basic_science.id,
        history_id=history.id, unapproved_subject_id=unapproved.id,
    )


CA_EXAM = [{"name": "CA", "weight": 30}, {"name": "Exam", "weight": 70}]


def submission(ca, exam):
    return {"scores": [{"component_name": "CA", "score": ca},
                       {"component_name": "Exam", "score": exam}]}


@pytest.fixture
def english_scheme(seed):
    from gradebook.grading.schemes import create_scheme
    return create_scheme(seed.school_id, seed.class_id, seed.english_id, seed.teacher_id, CA_EXAM)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, user_id):
    # the app context is shared with requests, so drop any cached user
    g.pop("_login_user", None)
    with client.session_transaction() as sess:
        sess["_user_id"] = str(user_id)
        sess["_fresh"] = True

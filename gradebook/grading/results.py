from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import AcademicSession, GradingScheme, ScoreRecord, Subject, User
from . import directory
from .grade_scale import list_bands, resolve_from_bands


def class_statistics(totals: Iterable[float]) -> Dict[str, Optional[float]]:
    values = [float(t) for t in totals if t is not None]
    if not values:
        return {"average": None, "lowest": None, "highest": None, "count": 0}
    return {
        "average": round(sum(values) / len(values), 2),
        "lowest": min(values),
        "highest": max(values),
        "count": len(values),
    }


def subject_position(total, totals) -> Optional[int]:
    """1-based rank of ``total`` among ``totals``; ties share the better rank."""
    if total is None:
        return None
    return 1 + sum(1 for t in totals if t > total)


def totals_by_subject(class_id, subject_ids=None) -> Dict[int, List[float]]:
    q = (db.session.query(GradingScheme.subject_id, ScoreRecord.total_score)
         .join(ScoreRecord, ScoreRecord.scheme_id == GradingScheme.id)
         .filter(ScoreRecord.class_id == class_id))
    if subject_ids is not None:
        q = q.filter(GradingScheme.subject_id.in_(list(subject_ids)))
    grouped = defaultdict(list)
    for subject_id, total in q.all():
        grouped[subject_id].append(total)
    return grouped


def component_breakdown(scheme: Optional[GradingScheme], record: Optional[ScoreRecord]) -> List[dict]:
    achieved = {s["component_name"]: s["score"] for s in (record.component_scores if record else [])}
    rows = []
    for comp in (scheme.components if scheme else []):
        rows.append({
            "component_name": comp["name"],
            "weight": comp["weight"],
            "score": achieved.pop(comp["name"], None),
        })
    # scored under an earlier component list
    for name, score in achieved.items():
        rows.append({"component_name": name, "weight": None, "score": score})
    return rows


def _subject_summary(subject: Optional[Subject]):
    if subject is None:
        return {"subject_id": None, "name": "Unknown"}
    return {"subject_id": subject.id, "name": subject.name}


def get_own_scores(school_id, class_id, student_id):
    school_class = directory.get_class(school_id, class_id)
    if school_class is None:
        raise NotFoundError("Class not found in this school")

    records = (ScoreRecord.query
               .join(GradingScheme, ScoreRecord.scheme_id == GradingScheme.id)
               .filter(ScoreRecord.school_id == school_id,
                       ScoreRecord.class_id == class_id,
                       ScoreRecord.student_id == student_id)
               .order_by(GradingScheme.subject_id.asc(), ScoreRecord.id.asc())
               .all())

    totals = totals_by_subject(class_id, {r.scheme.subject_id for r in records})
    bands = list_bands(school_id)
    subjects = []
    for record in records:
        scheme = record.scheme
        stats = class_statistics(totals.get(scheme.subject_id, []))
        subjects.append({
            "subject": _subject_summary(scheme.subject),
            "teacher": scheme.teacher.identity() if scheme.teacher else None,
            "scheme_id": scheme.id,
            "score_id": record.id,
            "components": component_breakdown(scheme, record),
            "total_score": record.total_score,
            "class_average": stats["average"],
            "letter_grade": resolve_from_bands(bands, record.total_score),
        })
    return {"class": school_class.summary(), "student_id": student_id, "subjects": subjects}


def get_student_subjects(student_id, school_id):
    student = User.query.filter_by(id=student_id, school_id=school_id, role="student",
                                   is_approved=True).one_or_none()
    if student is None:
        raise NotFoundError("Student not found or not authorized")

    records = (ScoreRecord.query
               .join(GradingScheme, ScoreRecord.scheme_id == GradingScheme.id)
               .filter(ScoreRecord.school_id == school_id, ScoreRecord.student_id == student_id)
               .order_by(ScoreRecord.class_id.asc(), GradingScheme.subject_id.asc(), ScoreRecord.id.asc())
               .all())
    bands = list_bands(school_id)
    rows = []
    for record in records:
        scheme = record.scheme
        school_class = directory.get_class(school_id, record.class_id)
        rows.append({
            "class": school_class.summary() if school_class else {"class_id": record.class_id},
            "score_id": record.id,
            "teacher": record.teacher.identity() if record.teacher else None,
            "subject": _subject_summary(scheme.subject),
            "scores": [dict(s) for s in record.component_scores],
            "total_score": record.total_score,
            "letter_grade": resolve_from_bands(bands, record.total_score),
            "created_at": record.created_at.isoformat() if record.created_at else None,
            "updated_at": record.updated_at.isoformat() if record.updated_at else None,
        })
    return rows


def get_students_with_results(school_id, session_id, term_id, class_id):
    if session_id is None or term_id is None:
        raise ValidationError("session_id and term_id are required")
    school_class = directory.get_class(school_id, class_id)
    if school_class is None:
        raise NotFoundError("Class not found in this school")

    student_ids = directory.list_enrolled(class_id, session_id=session_id, term_id=term_id)
    subjects = (Subject.query
                .filter_by(school_id=school_id, class_id=class_id,
                           session_id=session_id, term_id=term_id)
                .order_by(Subject.id.asc()).all())
    schemes = {}
    for scheme in GradingScheme.query.filter(
            GradingScheme.class_id == class_id,
            GradingScheme.subject_id.in_([s.id for s in subjects])).all():
        schemes.setdefault(scheme.subject_id, scheme)

    records = {}
    if schemes and student_ids:
        for r in ScoreRecord.query.filter(
                ScoreRecord.class_id == class_id,
                ScoreRecord.scheme_id.in_([s.id for s in schemes.values()]),
                ScoreRecord.student_id.in_(student_ids)).all():
            records[(r.student_id, r.scheme_id)] = r

    students = {u.id: u for u in User.query.filter(User.id.in_(student_ids)).all()} if student_ids else {}
    rows = []
    for sid in student_ids:
        entries = []
        for subject in subjects:
            scheme = schemes.get(subject.id)
            record = records.get((sid, scheme.id)) if scheme else None
            entries.append({
                "subject": _subject_summary(subject),
                "teacher": subject.teacher.identity() if subject.teacher else None,
                "scheme_id": scheme.id if scheme else None,
                "score_id": record.id if record else None,
                "scores": [dict(s) for s in record.component_scores] if record else [],
                "total_score": record.total_score if record else None,
            })
        student = students.get(sid)
        rows.append({
            "student": student.identity() if student else {"user_id": sid},
            "subjects": entries,
        })
    return {
        "class": school_class.summary(),
        "session_id": session_id,
        "term_id": term_id,
        "students": rows,
    }


def _next_term_start(terms, term):
    later = [t.start_date for t in terms if t.start_date > term.end_date]
    return min(later).isoformat() if later else None


def get_multi_term_result(student_id, school_id):
    student = User.query.filter_by(id=student_id, school_id=school_id, role="student").one_or_none()
    if student is None:
        raise NotFoundError("Student not found in this school")

    rows = (db.session.query(ScoreRecord, GradingScheme, Subject)
            .join(GradingScheme, ScoreRecord.scheme_id == GradingScheme.id)
            .join(Subject, GradingScheme.subject_id == Subject.id)
            .filter(ScoreRecord.student_id == student_id, ScoreRecord.school_id == school_id)
            .order_by(Subject.id.asc(), ScoreRecord.id.asc())
            .all())
    by_term = defaultdict(list)
    for record, scheme, subject in rows:
        by_term[subject.term_id].append((record, scheme, subject))

    bands = list_bands(school_id)
    sessions = (AcademicSession.query.filter_by(school_id=school_id)
                .order_by(AcademicSession.start_date.asc(), AcademicSession.id.asc()).all())
    report = []
    for session in sessions:
        terms = sorted(session.terms, key=lambda t: (t.start_date, t.id))
        term_entries = []
        for term in terms:
            entries = by_term.get(term.id)
            if not entries:
                continue
            term_entries.append(_term_result(student_id, session, term, terms, entries, bands))
        if term_entries:
            report.append({
                "session": {"session_id": session.id, "name": session.name},
                "terms": term_entries,
            })
    return {"student": student.identity(), "sessions": report}


def _term_result(student_id, session, term, terms, entries, bands):
    class_id = entries[0][0].class_id
    subjects = {}
    for record, scheme, subject in entries:
        item = subjects.setdefault(subject.id, {
            "subject": subject, "scheme": scheme, "record": record,
            "class_id": record.class_id, "total_score": 0.0,
        })
        item["total_score"] += record.total_score

    scores = []
    for subject_id, item in subjects.items():
        class_totals = _student_totals(subject_id, item["class_id"])
        stats = class_statistics(class_totals.values())
        total = item["total_score"]
        scores.append({
            "subject_id": subject_id,
            "subject_name": item["subject"].name,
            "total_score": total,
            "class_average": stats["average"],
            "lowest_score": stats["lowest"],
            "highest_score": stats["highest"],
            "subject_position": subject_position(total, list(class_totals.values())),
            "letter_grade": resolve_from_bands(bands, total),
            "components": component_breakdown(item["scheme"], item["record"]),
        })

    term_totals = _term_totals(term.id, class_id)
    school_class = directory.get_class(session.school_id, class_id)
    return {
        "term_id": term.id,
        "name": term.name,
        "start_date": term.start_date.isoformat(),
        "end_date": term.end_date.isoformat(),
        "next_term_start_date": _next_term_start(terms, term),
        "class": school_class.summary() if school_class else {"class_id": class_id},
        "scores": scores,
        "total_score": sum(s["total_score"] for s in scores),
        "overall_position": subject_position(term_totals.get(student_id), list(term_totals.values())),
        "student_count": len(directory.list_enrolled(class_id, session_id=session.id, term_id=term.id)),
    }


def _student_totals(subject_id, class_id) -> Dict[int, float]:
    q = (db.session.query(ScoreRecord.student_id, ScoreRecord.total_score)
         .join(GradingScheme, ScoreRecord.scheme_id == GradingScheme.id)
         .filter(GradingScheme.subject_id == subject_id, ScoreRecord.class_id == class_id))
    totals = defaultdict(float)
    for sid, total in q.all():
        totals[sid] += total
    return totals


def _term_totals(term_id, class_id) -> Dict[int, float]:
    q = (db.session.query(ScoreRecord.student_id, ScoreRecord.total_score)
         .join(GradingScheme, ScoreRecord.scheme_id == GradingScheme.id)
         .join(Subject, GradingScheme.subject_id == Subject.id)
         .filter(Subject.term_id == term_id, ScoreRecord.class_id == class_id))
    totals = defaultdict(float)
    for sid, total in q.all():
        totals[sid] += total
    return totals

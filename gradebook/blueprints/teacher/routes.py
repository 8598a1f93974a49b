from flask import request
from flask_login import login_required, current_user
from ...grading import bulk, ledger, results, schemes
from ...grading.directory import current_context
from ...grading.schemas import SchemePayload, ScoreBatchPayload, Submission, parse_payload
from ..auth.routes import role_required
from .. import send_response
from . import bp

def current_scheme(class_id, subject_id):
    return schemes.get_scheme(current_user.school_id, class_id, subject_id, current_user.id)

@bp.post("/classes/<int:class_id>/subjects/<int:subject_id>/scheme")
@login_required
@role_required("teacher")
def create_scheme(class_id, subject_id):
    payload = parse_payload(SchemePayload, request.get_json(silent=True))
    scheme = schemes.create_scheme(current_user.school_id, class_id, subject_id,
                                   current_user.id, payload.components)
    return send_response(scheme.to_dict(), "Grading scheme created", 201)

@bp.put("/classes/<int:class_id>/subjects/<int:subject_id>/scheme")
@login_required
@role_required("teacher")
def update_scheme(class_id, subject_id):
    payload = parse_payload(SchemePayload, request.get_json(silent=True))
    scheme = schemes.update_scheme(current_scheme(class_id, subject_id).id, payload.components)
    return send_response(scheme.to_dict(), "Grading scheme updated")

@bp.get("/classes/<int:class_id>/subjects/<int:subject_id>/scheme")
@login_required
@role_required("teacher")
def get_scheme(class_id, subject_id):
    return send_response(current_scheme(class_id, subject_id).to_dict(), "Grading scheme retrieved")

@bp.delete("/classes/<int:class_id>/subjects/<int:subject_id>/scheme")
@login_required
@role_required("teacher")
def delete_scheme(class_id, subject_id):
    schemes.delete_scheme(current_scheme(class_id, subject_id).id)
    return send_response(message="Grading scheme deleted")

@bp.post("/classes/<int:class_id>/subjects/<int:subject_id>/scores")
@login_required
@role_required("teacher")
def bulk_create(class_id, subject_id):
    payload = parse_payload(ScoreBatchPayload, request.get_json(silent=True))
    records = bulk.bulk_create_scores(current_scheme(class_id, subject_id).id, payload.scores)
    return send_response([r.to_dict() for r in records], "Student scores created successfully", 201)

@bp.patch("/classes/<int:class_id>/subjects/<int:subject_id>/scores")
@login_required
@role_required("teacher")
def bulk_edit(class_id, subject_id):
    payload = parse_payload(ScoreBatchPayload, request.get_json(silent=True))
    records = bulk.bulk_edit_scores(current_scheme(class_id, subject_id).id, payload.scores)
    return send_response([r.to_dict() for r in records], "Student scores updated successfully")

@bp.get("/classes/<int:class_id>/subjects/<int:subject_id>/scores")
@login_required
@role_required("teacher")
def class_scores(class_id, subject_id):
    data = ledger.get_scores_for_class(current_scheme(class_id, subject_id).id)
    return send_response(data, "Student scores retrieved successfully")

@bp.post("/classes/<int:class_id>/subjects/<int:subject_id>/scores/<int:student_id>")
@login_required
@role_required("teacher")
def create_score(class_id, subject_id, student_id):
    submission = parse_payload(Submission, request.get_json(silent=True))
    record = ledger.create_score(current_scheme(class_id, subject_id).id, student_id, class_id,
                                 current_user.id, current_user.school_id, submission)
    return send_response(record.to_dict(), "Student score created", 201)

@bp.put("/classes/<int:class_id>/subjects/<int:subject_id>/scores/<int:student_id>")
@login_required
@role_required("teacher")
def update_score(class_id, subject_id, student_id):
    submission = parse_payload(Submission, request.get_json(silent=True))
    record = ledger.update_score(current_scheme(class_id, subject_id).id, student_id, class_id, submission)
    return send_response(record.to_dict(), "Student score updated")

@bp.get("/classes/<int:class_id>/results")
@login_required
@role_required("teacher")
def class_results(class_id):
    ctx = current_context(current_user.school_id)
    session_id = request.args.get("session_id", type=int) or ctx.session_id
    term_id = request.args.get("term_id", type=int) or ctx.term_id
    data = results.get_students_with_results(current_user.school_id, session_id, term_id, class_id)
    return send_response(data, "Class results retrieved successfully")

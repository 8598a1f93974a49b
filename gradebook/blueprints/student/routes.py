from flask_login import login_required, current_user
from ...grading import results
from ..auth.routes import role_required
from .. import send_response
from . import bp

@bp.get("/classes/<int:class_id>/scores")
@login_required
@role_required("student")
def own_scores(class_id):
    data = results.get_own_scores(current_user.school_id, class_id, current_user.id)
    return send_response(data, "Scores retrieved successfully")

@bp.get("/results")
@login_required
@role_required("student")
def multi_term_result():
    data = results.get_multi_term_result(current_user.id, current_user.school_id)
    return send_response(data, "Results retrieved successfully")

@bp.get("/scores")
@login_required
@role_required("student")
def all_scores():
    data = results.get_student_subjects(current_user.id, current_user.school_id)
    return send_response(data, "Scores retrieved successfully")

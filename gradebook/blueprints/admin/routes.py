from flask import request
from flask_login import login_required, current_user
from ...errors import ValidationError
from ...grading import grade_scale
from ...grading.schemas import GradeBandPayload, parse_payload
from ..auth.routes import role_required
from .. import send_response
from . import bp

@bp.get("/grade-bands")
@login_required
@role_required("admin")
def grade_bands():
    bands = grade_scale.list_bands(current_user.school_id)
    return send_response([b.to_dict() for b in bands], "Grade bands retrieved")

@bp.post("/grade-bands")
@login_required
@role_required("admin")
def create_grade_band():
    p = parse_payload(GradeBandPayload, request.get_json(silent=True))
    band = grade_scale.create_band(current_user.school_id, p.letter_grade, p.min_score, p.max_score)
    return send_response(band.to_dict(), "Grade band created", 201)

@bp.put("/grade-bands/<int:band_id>")
@login_required
@role_required("admin")
def update_grade_band(band_id):
    p = parse_payload(GradeBandPayload, request.get_json(silent=True))
    band = grade_scale.update_band(band_id, p.letter_grade, p.min_score, p.max_score,
                                   school_id=current_user.school_id)
    return send_response(band.to_dict(), "Grade band updated")

@bp.delete("/grade-bands/<int:band_id>")
@login_required
@role_required("admin")
def delete_grade_band(band_id):
    grade_scale.delete_band(band_id, school_id=current_user.school_id)
    return send_response(message="Grade band deleted")

@bp.get("/grade-bands/resolve")
@login_required
@role_required("admin", "teacher", "student")
def resolve_grade():
    score = request.args.get("score", type=float)
    if score is None:
        raise ValidationError("score query parameter must be a number")
    letter = grade_scale.resolve_letter_grade(current_user.school_id, score)
    return send_response({"score": score, "letter_grade": letter}, "Grade resolved")

from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError

Percent = Annotated[float, Field(ge=0, le=100, allow_inf_nan=False, strict=True)]
FiniteNumber = Annotated[float, Field(allow_inf_nan=False, strict=True)]


class ComponentIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: StrictStr
    weight: Percent


class SchemePayload(BaseModel):
    components: List[ComponentIn]


class ComponentScoreIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    component_name: StrictStr
    score: Percent


class Submission(BaseModel):
    scores: List[ComponentScoreIn]


class ScoreEntry(Submission):
    student_id: StrictInt


class ScoreBatchPayload(BaseModel):
    scores: List[Any] = Field(default_factory=list)


class GradeBandPayload(BaseModel):
    letter_grade: StrictStr
    min_score: FiniteNumber
    max_score: FiniteNumber


def describe_errors(exc: PydanticValidationError) -> List[dict]:
    return [
        {"field": ".".join(str(p) for p in err["loc"]), "reason": err["msg"]}
        for err in exc.errors()
    ]


def parse_payload(model, data, message="Invalid request body"):
    if data is None:
        raise ValidationError(message, details=[{"field": "body", "reason": "JSON body required"}])
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(message, details=describe_errors(exc)) from exc


def parse_score_entry(raw) -> ScoreEntry:
    if isinstance(raw, ScoreEntry):
        return raw
    return parse_payload(ScoreEntry, raw, message="Invalid score entry")


def raw_student_id(raw) -> Optional[object]:
    if isinstance(raw, ScoreEntry):
        return raw.student_id
    if isinstance(raw, dict):
        return raw.get("student_id")
    return None

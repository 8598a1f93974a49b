import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence, Tuple

from ..errors import ValidationError

REQUIRED_WEIGHT_TOTAL = Decimal(100)
MIN_SCORE = 0
MAX_SCORE = 100


@dataclass(frozen=True)
class Component:
    name: str
    weight: float

    def to_dict(self):
        return {"name": self.name, "weight": self.weight}


@dataclass(frozen=True)
class ValidatedSubmission:
    scores: Tuple[Tuple[str, float], ...]
    total_score: float

    def component_scores(self) -> List[Dict]:
        return [{"component_name": name, "score": score} for name, score in self.scores]


def is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints past float range
        return False


def _field(item, key):
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def validate_component_shape(components: Sequence) -> List[Component]:
    if not isinstance(components, (list, tuple)) or not components:
        raise ValidationError("Components must be a non-empty array",
                              details=[{"field": "components", "reason": "empty"}])

    errors = []
    seen = set()
    parsed = []
    for i, item in enumerate(components):
        name = _field(item, "name")
        weight = _field(item, "weight")
        if not isinstance(name, str) or not name.strip():
            errors.append({"field": f"components[{i}].name", "reason": "must be a non-empty string"})
        elif name in seen:
            errors.append({"field": f"components[{i}].name", "reason": f"duplicate component '{name}'"})
        else:
            seen.add(name)
        if not is_finite_number(weight):
            errors.append({"field": f"components[{i}].weight", "reason": "must be a number"})
        elif not MIN_SCORE <= weight <= MAX_SCORE:
            errors.append({"field": f"components[{i}].weight", "reason": "must be between 0 and 100"})
        else:
            parsed.append(Component(name=name, weight=weight))

    if not errors:
        # Decimal(str(x)) keeps 33.3 + 33.3 + 33.4 exact
        total = sum((Decimal(str(c.weight)) for c in parsed), Decimal(0))
        if total != REQUIRED_WEIGHT_TOTAL:
            errors.append({"field": "components", "reason": f"weights must sum to 100 (got {total})"})

    if errors:
        raise ValidationError("Invalid grading components", details=errors)
    return parsed


def component_names(scheme_or_components) -> List[str]:
    components = getattr(scheme_or_components, "components", scheme_or_components)
    return [_field(c, "name") for c in components or []]


def validate_submission(scheme, submission) -> ValidatedSubmission:
    """Name sets must match exactly; total_score is the plain sum."""
    items = _field(submission, "scores") if not isinstance(submission, (list, tuple)) else submission
    if not isinstance(items, (list, tuple)) or not items:
        raise ValidationError("Scores must be a non-empty array",
                              details=[{"field": "scores", "reason": "empty"}])

    expected = component_names(scheme)
    errors = []
    submitted = []
    seen = set()
    for i, item in enumerate(items):
        name = _field(item, "component_name")
        score = _field(item, "score")
        if not isinstance(name, str) or not name.strip():
            errors.append({"field": f"scores[{i}].component_name", "reason": "must be a non-empty string"})
            continue
        if name in seen:
            errors.append({"field": f"scores[{i}].component_name", "reason": f"duplicate component '{name}'"})
            continue
        seen.add(name)
        if not is_finite_number(score):
            errors.append({"field": f"scores[{i}].score", "reason": f"score for '{name}' must be a number"})
        elif not MIN_SCORE <= score <= MAX_SCORE:
            errors.append({"field": f"scores[{i}].score", "reason": f"score for '{name}' must be between 0 and 100"})
        submitted.append((name, score))

    missing = [n for n in expected if n not in seen]
    unknown = sorted(seen - set(expected))
    if missing:
        errors.append({"field": "scores", "reason": "missing components: " + ", ".join(missing)})
    if unknown:
        errors.append({"field": "scores", "reason": "unknown components: " + ", ".join(unknown)})

    if errors:
        raise ValidationError("Scores must match grading components: " + ", ".join(expected),
                              details=errors)

    by_name = dict(submitted)
    ordered = tuple((name, float(by_name[name])) for name in expected)
    return ValidatedSubmission(scores=ordered, total_score=sum(score for _, score in ordered))


def summarize_errors(errors: Iterable[Dict]) -> str:
    return "; ".join(f"{e['field']}: {e['reason']}" for e in errors)

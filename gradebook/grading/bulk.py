import enum
import logging
from typing import List, Sequence

from ..errors import BatchConflictError, BatchValidationError, ValidationError
from ..extensions import db
from ..models import ScoreRecord
from . import directory
from .schemas import parse_score_entry, raw_student_id
from .schemes import get_scheme_by_id
from .transactions import atomic
from .validator import summarize_errors, validate_submission

logger = logging.getLogger(__name__)


class BatchMode(str, enum.Enum):
    CREATE = "create"
    EDIT = "edit"


class BatchState(str, enum.Enum):
    VALIDATING = "validating"
    ALL_VALID = "all_valid"
    ABORTED = "aborted"
    WRITING = "writing"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class BulkScoreTransaction:
    def __init__(self, scheme, mode):
        # plain values only; a rollback expires the ORM row
        self.scheme_id = scheme.id
        self.class_id = scheme.class_id
        self.teacher_id = scheme.teacher_id
        self.school_id = scheme.school_id
        self.components = [dict(c) for c in scheme.components or []]
        self.mode = BatchMode(mode)
        self.state = BatchState.VALIDATING
        self.failures = []
        self.prepared = []

    def _transition(self, state):
        logger.info("Score batch for scheme %s (%s): %s -> %s",
                    self.scheme_id, self.mode.value, self.state.value, state.value)
        self.state = state

    def _fail(self, index, student_id, reason):
        self.failures.append({"index": index, "student_id": student_id, "reason": reason})

    def validate(self, entries: Sequence):
        if self.state is not BatchState.VALIDATING:
            raise RuntimeError(f"batch already {self.state.value}")
        if not entries:
            self._transition(BatchState.ABORTED)
            raise ValidationError("Score batch must contain at least one entry")

        parsed = []
        seen = set()
        for i, raw in enumerate(entries):
            try:
                entry = parse_score_entry(raw)
            except ValidationError as exc:
                self._fail(i, raw_student_id(raw), summarize_errors(exc.details) or exc.message)
                continue
            if entry.student_id in seen:
                self._fail(i, entry.student_id, "duplicate student in batch")
                continue
            seen.add(entry.student_id)
            parsed.append((i, entry))

        enrolled = directory.enrolled_among({e.student_id for _, e in parsed}, self.class_id)
        for i, entry in parsed:
            if entry.student_id not in enrolled:
                self._fail(i, entry.student_id, "student not enrolled in this class")
                continue
            try:
                validated = validate_submission(self.components, entry)
            except ValidationError as exc:
                self._fail(i, entry.student_id, summarize_errors(exc.details) or exc.message)
                continue
            self.prepared.append((entry.student_id, validated))

        if self.failures:
            self.failures.sort(key=lambda f: f["index"])
            self._transition(BatchState.ABORTED)
            logger.warning("Score batch for scheme %s rejected: %d of %d entries invalid",
                           self.scheme_id, len(self.failures), len(entries))
            raise BatchValidationError(
                f"{len(self.failures)} score entries failed validation; nothing was saved",
                self.failures,
            )
        self._transition(BatchState.ALL_VALID)
        return self.prepared

    def _lock_existing(self, student_ids):
        rows = (ScoreRecord.query
                .filter(ScoreRecord.scheme_id == self.scheme_id,
                        ScoreRecord.class_id == self.class_id,
                        ScoreRecord.student_id.in_(student_ids))
                .order_by(ScoreRecord.id.asc())
                .with_for_update()
                .all())
        return {r.student_id: r for r in rows}

    def _check_homogeneous(self, existing):
        if self.mode is BatchMode.CREATE:
            clashes = [sid for sid, _ in self.prepared if sid in existing]
            reason = "scores already exist for this student; use bulk edit"
        else:
            clashes = [sid for sid, _ in self.prepared if sid not in existing]
            reason = "no scores exist for this student; use bulk create"
        if clashes:
            raise BatchConflictError(
                f"{len(clashes)} score entries conflict with existing records; nothing was saved",
                [{"student_id": sid, "reason": reason} for sid in clashes],
            )

    def write(self) -> List[ScoreRecord]:
        if self.state is not BatchState.ALL_VALID:
            raise RuntimeError(f"cannot write a batch in state {self.state.value}")
        self._transition(BatchState.WRITING)
        results = []
        try:
            with atomic(f"apply {self.mode.value} score batch",
                        conflict_message="Concurrent score write for the same students"):
                existing = self._lock_existing([sid for sid, _ in self.prepared])
                self._check_homogeneous(existing)
                for student_id, validated in self.prepared:
                    if self.mode is BatchMode.CREATE:
                        record = ScoreRecord(
                            scheme_id=self.scheme_id, student_id=student_id, class_id=self.class_id,
                            teacher_id=self.teacher_id, school_id=self.school_id,
                            component_scores=validated.component_scores(),
                            total_score=validated.total_score,
                        )
                        db.session.add(record)
                    else:
                        record = existing[student_id]
                        record.component_scores = validated.component_scores()
                        record.total_score = validated.total_score
                    results.append(record)
                db.session.flush()
        except Exception:
            self._transition(BatchState.ROLLED_BACK)
            raise
        self._transition(BatchState.COMMITTED)
        return results

    def run(self, entries) -> List[ScoreRecord]:
        self.validate(entries)
        return self.write()


def apply_batch(scheme_id, entries, mode) -> List[ScoreRecord]:
    # one scheme snapshot for every entry of the batch
    scheme = get_scheme_by_id(scheme_id)
    return BulkScoreTransaction(scheme, mode).run(entries)


def bulk_create_scores(scheme_id, entries) -> List[ScoreRecord]:
    return apply_batch(scheme_id, entries, BatchMode.CREATE)


def bulk_edit_scores(scheme_id, entries) -> List[ScoreRecord]:
    return apply_batch(scheme_id, entries, BatchMode.EDIT)

"""
Grading and submission of class materials.

One submission exists per (student, material). Status only moves forward:
pending -> submitted -> graded. Re-grading keeps it graded.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from app.core.database import execute, fetch_all, fetch_one
from app.core.exceptions import Conflict, Forbidden, InvalidScore, NotFound, ValidationError
from app.schemas.grades import BulkGradeError, BulkGradeResult, Submission
from app.services import audit
from app.services.ownership import Access, OwnershipResolver

logger = logging.getLogger(__name__)

TABLE = "student_submissions"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _number(value, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidScore(f"{name} must be a number")
    if not math.isfinite(value):
        raise InvalidScore(f"{name} must be a finite number")
    return float(value)


def validate_score(score, max_score=None, stored_max_score=None) -> tuple[float, float]:
    """Check a grade and return (score, effective max score)."""
    score = _number(score, "Score")
    if score < 0:
        raise InvalidScore("Score cannot be negative")

    if max_score is not None:
        max_score = _number(max_score, "Max score")
        if max_score <= 0:
            raise InvalidScore("Max score must be greater than 0")
        effective_max = max_score
    elif stored_max_score is not None:
        effective_max = float(stored_max_score)
    else:
        raise InvalidScore("Max score is required for a submission without one")

    if score > effective_max:
        raise InvalidScore(f"Score cannot exceed max score ({effective_max:g})")
    return score, effective_max


class GradingService:
    def __init__(self, db, ownership: OwnershipResolver | None = None):
        self.db = db
        self.ownership = ownership or OwnershipResolver(db)

    def _write_grade(self, submission: dict, teacher_id: str, score, max_score, feedback) -> Submission:
        score, _ = validate_score(score, max_score, submission.get("max_score"))

        update_data = {
            "score": score,
            "is_graded": True,
            "status": "graded",
            "graded_at": _now(),
            "graded_by": teacher_id,
        }
        if max_score is not None:
            update_data["max_score"] = float(max_score)
        if feedback is not None:
            # Empty string clears existing feedback
            update_data["feedback"] = feedback or None

        result = execute(
            self.db.table(TABLE)
            .update(update_data)
            .eq("id", submission["id"])
        )
        if not result.data:
            raise NotFound("Submission not found")
        return Submission(**result.data[0])

    def grade_submission(
        self,
        submission_id: str,
        teacher: dict,
        score,
        max_score=None,
        feedback: Optional[str] = None,
    ) -> Submission:
        teacher_id = teacher["teacher_id"]
        submission = self.ownership.submission(submission_id)
        if self.ownership.submission_access(teacher_id, submission) is Access.DENIED:
            logger.warning("Teacher %s denied grading submission %s", teacher_id, submission_id)
            raise Forbidden()

        graded = self._write_grade(submission, teacher_id, score, max_score, feedback)
        logger.info("Submission %s graded %s/%s by teacher %s", submission_id, graded.score, graded.max_score, teacher_id)

        audit.record_event(
            self.db,
            teacher,
            action="Graded submission",
            action_type="update",
            resource_type="submission",
            resource_id=submission_id,
            metadata={"score": graded.score, "max_score": graded.max_score},
        )
        return graded

    def grade_submissions_bulk(self, material_id: str, teacher: dict, items: list[dict]) -> BulkGradeResult:
        """
        Grade many submissions of one material in a single request.

        Ownership is checked once for the material's class. Each item is
        validated on its own: a bad score or an unknown submission is
        reported in `errors` and does not stop the remaining items.
        """
        teacher_id = teacher["teacher_id"]
        material = self.ownership.material(material_id)
        if self.ownership.class_access(teacher_id, material["class_id"]) is Access.DENIED:
            logger.warning("Teacher %s denied bulk grading material %s", teacher_id, material_id)
            raise Forbidden()

        rows = fetch_all(
            self.db.table(TABLE)
            .select("*")
            .eq("material_id", material_id)
        )
        by_id = {row["id"]: row for row in rows}

        saved, errors = [], []
        for item in items:
            submission_id = item.get("submission_id")
            submission = by_id.get(submission_id)
            try:
                if submission is None:
                    raise NotFound("Submission not found")
                saved.append(self._write_grade(
                    submission, teacher_id, item.get("score"), item.get("max_score"), item.get("feedback"),
                ))
            except (ValidationError, NotFound) as e:
                errors.append(BulkGradeError(submission_id=str(submission_id), error_code=e.error_code, message=e.message))

        logger.info("Bulk graded material %s: %d saved, %d errors", material_id, len(saved), len(errors))
        if saved:
            audit.record_event(
                self.db,
                teacher,
                action="Bulk graded submissions",
                action_type="update",
                resource_type="material",
                resource_id=material_id,
                metadata={"saved": len(saved), "errors": len(errors)},
            )
        return BulkGradeResult(saved=saved, errors=errors)

    def submit(self, material_id: str, student_id: str, file_url: Optional[str] = None) -> Submission:
        material = self.ownership.material(material_id)
        if not self.ownership.is_enrolled(student_id, material["class_id"]):
            raise Forbidden("Not enrolled in this class")

        existing = fetch_one(
            self.db.table(TABLE)
            .select("id")
            .eq("material_id", material_id)
            .eq("student_id", student_id)
            .maybe_single()
        )
        if existing:
            raise Conflict("You have already submitted this material")

        data = {
            "material_id": material_id,
            "student_id": student_id,
            "file_url": file_url,
            "max_score": material.get("max_score"),
            "is_graded": False,
            "status": "submitted",
            "submitted_at": _now(),
        }
        result = execute(self.db.table(TABLE).insert(data))
        logger.info("Student %s submitted material %s", student_id, material_id)
        return Submission(**result.data[0])

    def list_material_submissions(self, teacher_id: str, class_id: str, material_id: str) -> list[Submission]:
        self.ownership.require_class_owner(teacher_id, class_id)
        material = self.ownership.material(material_id)
        if material["class_id"] != class_id:
            raise NotFound("Material not found")

        rows = fetch_all(
            self.db.table(TABLE)
            .select("*")
            .eq("material_id", material_id)
            .order("submitted_at", desc=True)
        )
        return [Submission(**row) for row in rows]

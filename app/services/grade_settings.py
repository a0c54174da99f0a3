"""
Per-class weights for the quiz, assignment and exam categories.

Weights are non-negative integers that always total 100. A class without a
stored row gets the 30/30/40 default, written on first read through
get_or_create().
"""

import logging
from datetime import datetime, timezone

from app.core.database import execute, fetch_one
from app.core.exceptions import InvalidWeights
from app.schemas.grades import ClassGradeSettings
from app.services import audit
from app.services.ownership import OwnershipResolver

logger = logging.getLogger(__name__)

TABLE = "grade_computation_settings"
COLUMNS = "class_id, quiz_percentage, assignment_percentage, exam_percentage"

DEFAULT_WEIGHTS = {
    "quiz_percentage": 30,
    "assignment_percentage": 30,
    "exam_percentage": 40,
}


def validate_weights(quiz, assignment, exam) -> None:
    weights = {"quiz": quiz, "assignment": assignment, "exam": exam}
    for name, value in weights.items():
        # bool is an int subclass; True must not pass as a weight of 1
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidWeights(f"{name.capitalize()} percentage must be a whole number")
        if value < 0:
            raise InvalidWeights(f"{name.capitalize()} percentage cannot be negative")
    if quiz + assignment + exam != 100:
        raise InvalidWeights(details={"total": quiz + assignment + exam})


class GradeSettingsService:
    def __init__(self, db, ownership: OwnershipResolver | None = None):
        self.db = db
        self.ownership = ownership or OwnershipResolver(db)

    def get_or_create(self, class_id: str) -> ClassGradeSettings:
        """Stored settings for the class, inserting the default row when absent."""
        row = fetch_one(
            self.db.table(TABLE)
            .select(COLUMNS)
            .eq("class_id", class_id)
            .maybe_single()
        )
        if row:
            return ClassGradeSettings(**row)

        logger.info("Creating default grade settings for class %s", class_id)
        defaults = {"class_id": class_id, **DEFAULT_WEIGHTS}
        execute(self.db.table(TABLE).upsert(defaults, on_conflict="class_id"))
        return ClassGradeSettings(**defaults)

    def get_settings(self, class_id: str, teacher_id: str) -> ClassGradeSettings:
        self.ownership.require_class_owner(teacher_id, class_id)
        return self.get_or_create(class_id)

    def set_settings(self, class_id: str, teacher: dict, weights: dict) -> ClassGradeSettings:
        quiz = weights.get("quiz_percentage")
        assignment = weights.get("assignment_percentage")
        exam = weights.get("exam_percentage")
        validate_weights(quiz, assignment, exam)
        self.ownership.require_class_owner(teacher["teacher_id"], class_id)

        row = {
            "class_id": class_id,
            "quiz_percentage": quiz,
            "assignment_percentage": assignment,
            "exam_percentage": exam,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        execute(self.db.table(TABLE).upsert(row, on_conflict="class_id"))
        logger.info("Grade settings for class %s set to %s/%s/%s", class_id, quiz, assignment, exam)

        audit.record_event(
            self.db,
            teacher,
            action="Updated grade computation settings",
            action_type="update",
            resource_type="grade_settings",
            resource_id=class_id,
            metadata={"quiz": quiz, "assignment": assignment, "exam": exam},
        )
        return ClassGradeSettings(class_id=class_id, quiz_percentage=quiz, assignment_percentage=assignment, exam_percentage=exam)

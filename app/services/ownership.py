"""
Ownership checks shared by every grading operation.

A teacher may act on a class, its materials and their submissions only
when group_classes.teacher_id matches. Submissions resolve their class
through material_id -> class_materials.class_id.
"""

from enum import Enum

from app.core.database import fetch_one
from app.core.exceptions import NotFound


class Access(str, Enum):
    ALLOWED = "allowed"
    DENIED = "denied"


class OwnershipResolver:
    def __init__(self, db):
        self.db = db

    def _row(self, table: str, row_id: str, columns: str = "*") -> dict | None:
        return fetch_one(
            self.db.table(table)
            .select(columns)
            .eq("id", row_id)
            .maybe_single()
        )

    def class_access(self, teacher_id: str, class_id: str) -> Access:
        klass = self._row("group_classes", class_id, "id, teacher_id")
        if klass and klass.get("teacher_id") == teacher_id:
            return Access.ALLOWED
        return Access.DENIED

    def require_class_owner(self, teacher_id: str, class_id: str) -> None:
        if self.class_access(teacher_id, class_id) is Access.DENIED:
            raise NotFound("Class not found or access denied")

    def material(self, material_id: str) -> dict:
        material = self._row("class_materials", material_id)
        if not material:
            raise NotFound("Material not found")
        return material

    def submission(self, submission_id: str) -> dict:
        submission = self._row("student_submissions", submission_id)
        if not submission:
            raise NotFound("Submission not found")
        return submission

    def submission_access(self, teacher_id: str, submission: dict) -> Access:
        material = self._row("class_materials", submission["material_id"], "id, class_id")
        if not material:
            return Access.DENIED
        return self.class_access(teacher_id, material["class_id"])

    def is_enrolled(self, student_id: str, class_id: str) -> bool:
        enrollment = fetch_one(
            self.db.table("class_students")
            .select("id")
            .eq("class_id", class_id)
            .eq("student_id", student_id)
            .maybe_single()
        )
        return enrollment is not None

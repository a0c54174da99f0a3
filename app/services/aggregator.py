"""
Overall grade computation.

Each category average is the mean of score / max_score * 100 over the
student's graded submissions of that material type. Categories with no
graded work are left out and the remaining weights are renormalized, so
an ungraded category neither helps nor hurts:

    overall = sum(avg_c * w_c) / sum(w_c)   over categories with an average

With quiz 90%, exam 70% and weights 30/30/40 (no assignments graded) the
overall grade is (90*30 + 70*40) / 70 = 78.57. A student with nothing
graded has an overall of None.

Averages are rounded to 2 decimals for display only; the overall is
weighted from the unrounded averages and rounded once at the end.
"""

from collections import defaultdict
from typing import Iterable, Optional

from app.core.database import fetch_all, fetch_one
from app.core.exceptions import NotFound
from app.schemas.grades import (
    AggregatedGrade,
    ClassGradeSettings,
    ClassGradeSummary,
    Gradebook,
    GradebookRow,
)
from app.services.grade_settings import GradeSettingsService
from app.services.ownership import OwnershipResolver

CATEGORIES = ("quiz", "assignment", "exam")


def percentage(submission: dict) -> Optional[float]:
    score = submission.get("score")
    max_score = submission.get("max_score")
    if not submission.get("is_graded") or score is None or not max_score or max_score <= 0:
        return None
    return score / max_score * 100


def _mean_percentage(submissions: Iterable[dict]) -> Optional[float]:
    pcts = [p for p in (percentage(s) for s in submissions) if p is not None]
    if not pcts:
        return None
    return sum(pcts) / len(pcts)


def _rounded(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(value, 2)


def category_average(submissions: Iterable[dict]) -> Optional[float]:
    return _rounded(_mean_percentage(submissions))


def combine(averages: dict, settings: ClassGradeSettings) -> Optional[float]:
    """Weighted overall from unrounded category averages; only the result is rounded."""
    weights = {
        "quiz": settings.quiz_percentage,
        "assignment": settings.assignment_percentage,
        "exam": settings.exam_percentage,
    }
    represented = [c for c in CATEGORIES if averages.get(c) is not None and weights[c] > 0]
    total_weight = sum(weights[c] for c in represented)
    if not total_weight:
        return None
    overall = sum(averages[c] * weights[c] for c in represented) / total_weight
    return round(min(max(overall, 0.0), 100.0), 2)


def aggregate(student_id: str, class_id: str, materials: list[dict], submissions: list[dict],
              settings: ClassGradeSettings) -> AggregatedGrade:
    """Pure aggregation over already-fetched rows."""
    material_types = {m["id"]: m.get("material_type") for m in materials}
    by_category = defaultdict(list)
    for sub in submissions:
        category = material_types.get(sub.get("material_id"))
        if category in CATEGORIES:
            by_category[category].append(sub)

    averages = {c: _mean_percentage(by_category[c]) for c in CATEGORIES}
    return AggregatedGrade(
        student_id=student_id,
        class_id=class_id,
        quiz_average=_rounded(averages["quiz"]),
        assignment_average=_rounded(averages["assignment"]),
        exam_average=_rounded(averages["exam"]),
        overall=combine(averages, settings),
    )


class GradeAggregator:
    def __init__(self, db, ownership: OwnershipResolver | None = None,
                 settings_service: GradeSettingsService | None = None):
        self.db = db
        self.ownership = ownership or OwnershipResolver(db)
        self.settings_service = settings_service or GradeSettingsService(db, self.ownership)

    def _class(self, class_id: str) -> dict:
        klass = fetch_one(
            self.db.table("group_classes")
            .select("*")
            .eq("id", class_id)
            .maybe_single()
        )
        if not klass:
            raise NotFound("Class not found")
        return klass

    def _materials(self, class_id: str) -> list[dict]:
        return fetch_all(
            self.db.table("class_materials")
            .select("id, class_id, material_type")
            .eq("class_id", class_id)
        )

    def _graded_submissions(self, material_ids: list[str], student_ids: list[str] | None = None) -> list[dict]:
        if not material_ids:
            return []
        query = (
            self.db.table("student_submissions")
            .select("id, material_id, student_id, score, max_score, is_graded")
            .in_("material_id", material_ids)
            .eq("is_graded", True)
        )
        if student_ids is not None:
            query = query.in_("student_id", student_ids)
        return fetch_all(query)

    def compute_overall_grade(self, student_id: str, class_id: str) -> AggregatedGrade:
        self._class(class_id)
        materials = self._materials(class_id)
        submissions = self._graded_submissions([m["id"] for m in materials], [student_id])
        settings = self.settings_service.get_or_create(class_id)
        return aggregate(student_id, class_id, materials, submissions, settings)

    def class_gradebook(self, teacher_id: str, class_id: str) -> Gradebook:
        self.ownership.require_class_owner(teacher_id, class_id)
        settings = self.settings_service.get_or_create(class_id)

        enrollments = fetch_all(
            self.db.table("class_students")
            .select("student_id")
            .eq("class_id", class_id)
        )
        student_ids = [e["student_id"] for e in enrollments]
        if not student_ids:
            return Gradebook(settings=settings, students=[])

        students = fetch_all(
            self.db.table("students")
            .select("id, student_name")
            .in_("id", student_ids)
        )
        names = {s["id"]: s.get("student_name") or "" for s in students}

        materials = self._materials(class_id)
        submissions = self._graded_submissions([m["id"] for m in materials], student_ids)
        subs_by_student = defaultdict(list)
        for sub in submissions:
            subs_by_student[sub["student_id"]].append(sub)

        rows = []
        for sid in student_ids:
            grade = aggregate(sid, class_id, materials, subs_by_student[sid], settings)
            rows.append(GradebookRow(**grade.model_dump(), student_name=names.get(sid, "")))
        rows.sort(key=lambda r: r.student_name.lower())
        return Gradebook(settings=settings, students=rows)

    def student_summary(self, student_id: str) -> list[ClassGradeSummary]:
        enrollments = fetch_all(
            self.db.table("class_students")
            .select("class_id")
            .eq("student_id", student_id)
        )
        summaries = []
        for enrollment in enrollments:
            class_id = enrollment["class_id"]
            klass = fetch_one(
                self.db.table("group_classes")
                .select("id, class_name, subject")
                .eq("id", class_id)
                .maybe_single()
            ) or {}
            grade = self.compute_overall_grade(student_id, class_id) if klass else AggregatedGrade(
                student_id=student_id, class_id=class_id
            )
            summaries.append(ClassGradeSummary(
                **grade.model_dump(),
                class_name=klass.get("class_name") or "Unknown Class",
                subject=klass.get("subject") or "",
            ))
        return summaries

"""
Student router — Submit materials, view own grades.
All queries use students.id resolved from the authenticated profile.
"""

from fastapi import APIRouter, Depends
from app.core.security import current_student
from app.core.database import get_supabase
from app.core.exceptions import Forbidden
from app.schemas.grades import SubmissionCreate
from app.services.aggregator import GradeAggregator
from app.services.grading import GradingService
from app.services.ownership import OwnershipResolver
from app.utils.response import success_response

router = APIRouter(prefix="/api/student", tags=["Student"])


@router.post("/materials/{material_id}/submit", status_code=201)
async def submit_material(
    material_id: str,
    body: SubmissionCreate,
    student: dict = Depends(current_student),
):
    service = GradingService(get_supabase())
    submission = service.submit(material_id, student["student_id"], file_url=body.file_url)
    return success_response(data=submission.model_dump(), message="Submission received")


@router.get("/grades")
async def get_my_grades(
    student: dict = Depends(current_student),
):
    """Overall grade for every class the student is enrolled in."""
    summaries = GradeAggregator(get_supabase()).student_summary(student["student_id"])
    return success_response(data=[s.model_dump() for s in summaries])


@router.get("/grades/{class_id}")
async def get_my_class_grade(
    class_id: str,
    student: dict = Depends(current_student),
):
    db = get_supabase()
    ownership = OwnershipResolver(db)
    if not ownership.is_enrolled(student["student_id"], class_id):
        raise Forbidden("Not enrolled in this class")

    grade = GradeAggregator(db, ownership).compute_overall_grade(student["student_id"], class_id)
    return success_response(data=grade.model_dump())

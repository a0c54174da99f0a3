"""
Teacher router — Grade settings, gradebook, submission grading.
All ownership checks go through OwnershipResolver using teachers.id.
"""

from fastapi import APIRouter, Depends
from app.core.security import current_teacher
from app.core.database import get_supabase
from app.core.exceptions import NotFound
from app.schemas.grades import BulkGradeRequest, GradeSettingsUpdate, SubmissionGrade
from app.services.aggregator import GradeAggregator
from app.services.grade_settings import GradeSettingsService
from app.services.grading import GradingService
from app.services.ownership import OwnershipResolver
from app.utils.response import success_response

router = APIRouter(prefix="/api/teacher", tags=["Teacher"])


# ===== GRADE SETTINGS =====

@router.get("/grades/{class_id}/settings")
async def get_grade_settings(
    class_id: str,
    teacher: dict = Depends(current_teacher),
):
    service = GradeSettingsService(get_supabase())
    settings = service.get_settings(class_id, teacher["teacher_id"])
    return success_response(data=settings.model_dump())


@router.put("/grades/{class_id}/settings")
async def update_grade_settings(
    class_id: str,
    body: GradeSettingsUpdate,
    teacher: dict = Depends(current_teacher),
):
    service = GradeSettingsService(get_supabase())
    settings = service.set_settings(class_id, teacher, body.model_dump())
    return success_response(data=settings.model_dump(), message="Grade settings updated")


# ===== GRADEBOOK =====

@router.get("/grades/{class_id}")
async def get_class_grades(
    class_id: str,
    teacher: dict = Depends(current_teacher),
):
    gradebook = GradeAggregator(get_supabase()).class_gradebook(teacher["teacher_id"], class_id)
    return success_response(data=gradebook.model_dump())


@router.get("/grades/{class_id}/students/{student_id}")
async def get_student_grade(
    class_id: str,
    student_id: str,
    teacher: dict = Depends(current_teacher),
):
    db = get_supabase()
    ownership = OwnershipResolver(db)
    ownership.require_class_owner(teacher["teacher_id"], class_id)
    if not ownership.is_enrolled(student_id, class_id):
        raise NotFound("Student not enrolled in this class")

    grade = GradeAggregator(db, ownership).compute_overall_grade(student_id, class_id)
    return success_response(data=grade.model_dump())


# ===== SUBMISSIONS =====

@router.get("/classes/{class_id}/materials/{material_id}/submissions")
async def get_material_submissions(
    class_id: str,
    material_id: str,
    teacher: dict = Depends(current_teacher),
):
    service = GradingService(get_supabase())
    submissions = service.list_material_submissions(teacher["teacher_id"], class_id, material_id)
    return success_response(data=[s.model_dump() for s in submissions])


@router.patch("/submissions/{submission_id}/grade")
async def grade_submission(
    submission_id: str,
    body: SubmissionGrade,
    teacher: dict = Depends(current_teacher),
):
    service = GradingService(get_supabase())
    graded = service.grade_submission(
        submission_id,
        teacher,
        score=body.score,
        max_score=body.max_score,
        feedback=body.feedback,
    )
    return success_response(data=graded.model_dump(), message="Submission graded")


@router.patch("/materials/{material_id}/grades")
async def grade_material_bulk(
    material_id: str,
    body: BulkGradeRequest,
    teacher: dict = Depends(current_teacher),
):
    service = GradingService(get_supabase())
    result = service.grade_submissions_bulk(
        material_id,
        teacher,
        [item.model_dump() for item in body.scores],
    )
    message = f"Graded {len(result.saved)} submission(s)"
    if result.errors:
        message += f", {len(result.errors)} failed"
    return success_response(data=result.model_dump(), message=message)

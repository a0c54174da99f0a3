"""
Pydantic schemas for grade settings, submissions and aggregated grades.
"""

from pydantic import BaseModel, ConfigDict
from typing import Any, Optional, List, Literal


MaterialType = Literal["quiz", "assignment", "exam"]
SubmissionStatus = Literal["pending", "submitted", "graded"]


# ---- Grade settings ----
class ClassGradeSettings(BaseModel):
    class_id: str
    quiz_percentage: int
    assignment_percentage: int
    exam_percentage: int


# Numeric request fields are typed Any so JSON true or "85" reach
# validate_weights / validate_score untouched instead of being coerced.
class GradeSettingsUpdate(BaseModel):
    quiz_percentage: Any
    assignment_percentage: Any
    exam_percentage: Any


# ---- Submissions ----
class Submission(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    material_id: str
    student_id: str
    score: Optional[float] = None
    max_score: Optional[float] = None
    is_graded: bool = False
    status: SubmissionStatus = "pending"
    submitted_at: Optional[str] = None
    graded_at: Optional[str] = None
    graded_by: Optional[str] = None
    feedback: Optional[str] = None
    file_url: Optional[str] = None


class SubmissionGrade(BaseModel):
    score: Any
    max_score: Any = None
    feedback: Optional[str] = None


class BulkGradeItem(SubmissionGrade):
    submission_id: str


class BulkGradeRequest(BaseModel):
    scores: List[BulkGradeItem]


class BulkGradeError(BaseModel):
    submission_id: str
    error_code: str
    message: str


class SubmissionCreate(BaseModel):
    file_url: Optional[str] = None


# ---- Aggregated grades ----
class AggregatedGrade(BaseModel):
    student_id: str
    class_id: str
    quiz_average: Optional[float] = None
    assignment_average: Optional[float] = None
    exam_average: Optional[float] = None
    overall: Optional[float] = None


class GradebookRow(AggregatedGrade):
    student_name: str = ""


class ClassGradeSummary(AggregatedGrade):
    class_name: str = ""
    subject: str = ""


class BulkGradeResult(BaseModel):
    saved: List[Submission]
    errors: List[BulkGradeError]


class Gradebook(BaseModel):
    settings: ClassGradeSettings
    students: List[GradebookRow]

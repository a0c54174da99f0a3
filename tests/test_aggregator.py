import pytest

from app.core.exceptions import NotFound
from app.schemas.grades import ClassGradeSettings
from app.services.aggregator import GradeAggregator, aggregate, category_average, combine, percentage
from app.services.grading import GradingService


def settings(q=30, a=30, e=40):
    return ClassGradeSettings(class_id="c1", quiz_percentage=q, assignment_percentage=a, exam_percentage=e)


def graded(score, max_score=100):
    return {"score": score, "max_score": max_score, "is_graded": True}


def test_percentage_ignores_ungraded_and_zero_max():
    assert percentage(graded(45, 50)) == 90
    assert percentage({"score": 45, "max_score": 50, "is_graded": False}) is None
    assert percentage(graded(None)) is None
    assert percentage(graded(5, 0)) is None


def test_category_average_is_mean_of_percentages():
    assert category_average([graded(9, 10), graded(35, 50)]) == 80.0
    assert category_average([graded(1, 3)]) == 33.33
    assert category_average([]) is None


def test_missing_category_is_excluded_and_renormalized():
    # quiz 90, exam 70, nothing graded for assignments
    overall = combine({"quiz": 90.0, "assignment": None, "exam": 70.0}, settings())
    assert overall == 78.57


def test_all_categories_present_uses_weights_directly():
    assert combine({"quiz": 80.0, "assignment": 90.0, "exam": 70.0}, settings()) == 79.0


def test_zero_weight_category_does_not_count():
    assert combine({"quiz": 50.0, "assignment": None, "exam": 100.0}, settings(0, 30, 70)) == 100.0


def test_nothing_graded_has_no_overall():
    assert combine({"quiz": None, "assignment": None, "exam": None}, settings()) is None


def test_aggregate_partitions_by_material_type():
    materials = [
        {"id": "q1", "material_type": "quiz"},
        {"id": "q2", "material_type": "quiz"},
        {"id": "x1", "material_type": "exam"},
        {"id": "l1", "material_type": "lesson"},
    ]
    submissions = [
        {"material_id": "q1", **graded(100)},
        {"material_id": "q2", **graded(80)},
        {"material_id": "x1", **graded(35, 50)},
        {"material_id": "l1", **graded(0)},
    ]
    grade = aggregate("s1", "c1", materials, submissions, settings())

    assert grade.quiz_average == 90.0
    assert grade.assignment_average is None
    assert grade.exam_average == 70.0
    assert grade.overall == 78.57


def test_compute_overall_grade_end_to_end(db, teacher):
    grading = GradingService(db)
    grading.grade_submission("sub-quiz", teacher, score=90, max_score=100)
    grading.grade_submission("sub-exam", teacher, score=70, max_score=100)

    grade = GradeAggregator(db).compute_overall_grade("s1", "c1")

    assert grade.quiz_average == 90.0
    assert grade.exam_average == 70.0
    assert grade.assignment_average is None
    assert grade.overall == 78.57


def test_compute_ignores_other_classes(db, other_teacher):
    GradingService(db).grade_submission("sub-bio", other_teacher, score=20)

    assert GradeAggregator(db).compute_overall_grade("s1", "c1").overall is None
    assert GradeAggregator(db).compute_overall_grade("s1", "c2").overall == 100.0


def test_compute_unknown_class(db):
    with pytest.raises(NotFound):
        GradeAggregator(db).compute_overall_grade("s1", "missing")


def test_class_gradebook_lists_enrolled_students_by_name(db, teacher):
    GradingService(db).grade_submission("sub-quiz", teacher, score=45, max_score=50)

    gradebook = GradeAggregator(db).class_gradebook("t1", "c1")

    assert [row.student_name for row in gradebook.students] == ["Alice Cruz", "Bob Reyes"]
    alice, bob = gradebook.students
    assert alice.overall == 90.0
    assert bob.overall is None
    assert gradebook.settings.exam_percentage == 40


def test_class_gradebook_requires_owner(db):
    with pytest.raises(NotFound):
        GradeAggregator(db).class_gradebook("t2", "c1")


def test_student_summary_covers_each_enrolled_class(db, teacher):
    GradingService(db).grade_submission("sub-exam", teacher, score=60)

    summary = {s.class_id: s for s in GradeAggregator(db).student_summary("s1")}

    assert set(summary) == {"c1", "c2"}
    assert summary["c1"].class_name == "Algebra 1"
    assert summary["c1"].overall == 60.0
    assert summary["c2"].overall is None


def test_overall_weighted_from_unrounded_averages():
    materials = [
        {"id": "q", "material_type": "quiz"},
        {"id": "x", "material_type": "exam"},
    ]
    submissions = [
        {"material_id": "q", **graded(2, 3)},
        {"material_id": "x", **graded(90.0064)},
    ]
    result = aggregate("s1", "c1", materials, submissions, settings(30, 0, 70))

    assert result.quiz_average == 66.67
    assert result.exam_average == 90.01
    # 66.666..*0.3 + 90.0064*0.7 = 83.00448; weighting the displayed 66.67 and 90.01 would give 83.01
    assert result.overall == 83.0

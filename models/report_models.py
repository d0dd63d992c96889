"""
Data Models for Performance Reports
===================================

Outputs of a report computation: the flat quiz/student report and the per-class
topic matrix. Rollups are plain dataclasses built by the analytics package.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional

from models.course_models import ClassInfo, CourseLevel, ScoreCategory, Student, Topic


@dataclass
class CategoryCounts:
    below_expectation: int = 0
    approaching: int = 0
    meeting: int = 0
    exceeding: int = 0
    no_attempt: int = 0

    def add(self, category: ScoreCategory):
        key = category.report_key
        setattr(self, key, getattr(self, key) + 1)

    def total(self) -> int:
        return (self.below_expectation + self.approaching + self.meeting
                + self.exceeding + self.no_attempt)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class GlobalStats:
    total_attempts: int = 0
    completed_attempts: int = 0
    passed_attempts: int = 0
    failed_attempts: int = 0
    average_score: float = 0.0
    average_percentage: float = 0.0
    total_students: int = 0
    unique_quizzes: int = 0
    score_categories: CategoryCounts = field(default_factory=CategoryCounts)


@dataclass
class QuizRollup:
    quiz_id: str
    quiz_title: str
    topic_name: Optional[str] = None
    course_name: Optional[str] = None
    level_name: Optional[str] = None
    total_attempts: int = 0
    passed_attempts: int = 0
    failed_attempts: int = 0
    average_score: float = 0.0
    average_percentage: float = 0.0
    pass_rate: float = 0.0
    total_students: int = 0
    best_score: float = 0.0
    worst_score: float = 0.0
    score_categories: CategoryCounts = field(default_factory=CategoryCounts)


@dataclass
class StudentRollup:
    student_id: str
    student_name: str = ""
    student_username: str = ""
    class_name: Optional[str] = None
    school_name: Optional[str] = None
    total_attempts: int = 0
    passed_attempts: int = 0
    highest_score: float = 0.0
    highest_percentage: float = 0.0
    score_category: ScoreCategory = ScoreCategory.NONE
    total_points: float = 0.0
    quizzes_completed: int = 0
    quizzes_passed: int = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["score_category"] = self.score_category.report_key
        return data


@dataclass
class PerformanceReport:
    stats: GlobalStats = field(default_factory=GlobalStats)
    quiz_data: List[QuizRollup] = field(default_factory=list)
    student_data: List[StudentRollup] = field(default_factory=list)
    rejected_records: int = 0
    warnings: List[str] = field(default_factory=list)
    partial: bool = False
    generation: int = 0

    def to_dict(self) -> dict:
        return {
            "stats": asdict(self.stats),
            "quiz_data": [asdict(q) for q in self.quiz_data],
            "student_data": [s.to_dict() for s in self.student_data],
        }


@dataclass(frozen=True)
class MatrixCell:
    percentage: float
    category: ScoreCategory
    passed: bool
    quiz_id: Optional[str] = None


@dataclass
class LevelMatrix:
    level: CourseLevel
    topics: List[Topic] = field(default_factory=list)
    students: List[Student] = field(default_factory=list)
    cells: Dict[str, Dict[str, MatrixCell]] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return f"{self.level.course_name} - {self.level.name}"

    def cell(self, student_id: str, topic_id: str) -> Optional[MatrixCell]:
        return self.cells.get(student_id, {}).get(topic_id)


@dataclass
class TopicMatrix:
    class_id: str
    class_info: Optional[ClassInfo] = None
    levels: List[LevelMatrix] = field(default_factory=list)
    unresolved_topics: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    partial: bool = False
    generation: int = 0

    def level(self, level_id: str) -> Optional[LevelMatrix]:
        return next((lm for lm in self.levels if lm.level.id == level_id), None)

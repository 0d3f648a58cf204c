"""Schema package exports."""

from .progress import CourseOutline, CourseProgress, LessonProgressRecord, ModuleProgress, OutlineLesson, OutlineModule
from .quiz import LessonDetail, QuizAttempt, QuizQuestion, QuizResult, QuizResultItem, QuizSettings
from .requests import AnswerEntry, CompleteLessonRequest, SubmissionRequest

__all__ = [
  "AnswerEntry",
  "CompleteLessonRequest",
  "CourseOutline",
  "CourseProgress",
  "LessonDetail",
  "LessonProgressRecord",
  "ModuleProgress",
  "OutlineLesson",
  "OutlineModule",
  "QuizAttempt",
  "QuizQuestion",
  "QuizResult",
  "QuizResultItem",
  "QuizSettings",
  "SubmissionRequest",
]

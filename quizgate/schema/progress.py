"""Wire structures for course progress snapshots and course outlines."""

from __future__ import annotations

import msgspec


class LessonProgressRecord(msgspec.Struct, rename="camel", kw_only=True, frozen=True):
  lesson_id: str
  lesson_title: str
  lesson_type: str
  completed: bool
  pass_mark_percentage: float | None = None
  order: int | None = None


class ModuleProgress(msgspec.Struct, rename="camel", kw_only=True, frozen=True):
  module_id: str
  module_title: str = ""
  total_lessons: int = 0
  completed_lessons: int = 0
  order: int | None = None
  lessons: list[LessonProgressRecord] = msgspec.field(default_factory=list)


class CourseProgress(msgspec.Struct, rename="camel", kw_only=True, frozen=True):
  """Per-learner progress for one course, modules in display order."""

  course_id: str
  course_title: str = ""
  total_lessons: int = 0
  completed_lessons: int = 0
  progress_percentage: float = 0
  modules: list[ModuleProgress] = msgspec.field(default_factory=list)


class OutlineLesson(msgspec.Struct, kw_only=True, frozen=True):
  id: str
  title: str
  order: int = 0


class OutlineModule(msgspec.Struct, kw_only=True, frozen=True):
  id: str
  title: str = ""
  order: int = 0
  lessons: list[OutlineLesson] = msgspec.field(default_factory=list)


class CourseOutline(msgspec.Struct, kw_only=True, frozen=True):
  """Course structure used for previous/next lesson navigation."""

  id: str
  title: str = ""
  description: str | None = None
  modules: list[OutlineModule] = msgspec.field(default_factory=list)

from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..extractor import ExtractionError, extract
from ..generation import LessonGenerator, get_generator
from ..models import Lesson, STATUS_GENERATED
from ..schemas import LessonDetail, LessonSummary

router = APIRouter(prefix="/api/lessons", tags=["lessons"])

INCOMPATIBLE_CONTENT = "content is in an incompatible format"


@router.get("", response_model=List[LessonSummary])
async def list_lessons(limit: int = Query(default=100, ge=1, le=1000), db: Session = Depends(get_db)):
	return (
		db.query(Lesson)
		.order_by(Lesson.created_at.desc())
		.limit(limit)
		.all()
	)


@router.get("/{lesson_id}", response_model=LessonDetail)
async def get_lesson(lesson_id: str, db: Session = Depends(get_db)):
	row = db.get(Lesson, lesson_id)
	if row is None:
		raise HTTPException(status_code=404, detail="Lesson not found")
	detail = LessonDetail.model_validate(row)
	if row.status != STATUS_GENERATED:
		return detail
	# Prefer the normalized copy; fall back to the raw content for older rows
	for source in (row.lesson_json, row.content):
		if not source:
			continue
		try:
			detail.lesson = extract(source)
			return detail
		except ExtractionError:
			continue
	detail.content_error = INCOMPATIBLE_CONTENT
	return detail


@router.post("/{lesson_id}/cancel")
async def cancel_lesson(lesson_id: str, generator: LessonGenerator = Depends(get_generator)):
	if not generator.cancel(lesson_id):
		raise HTTPException(status_code=404, detail="No generation in progress for this lesson")
	return {"success": True, "lessonId": lesson_id, "message": "Cancellation requested"}

from __future__ import annotations
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..errors import LessonError
from ..generation import LessonGenerator, get_generator
from ..models import STATUS_GENERATED
from ..schemas import ErrorResponse, GenerateRequest, GenerateResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generate"])


def _error(status_code: int, message: str) -> JSONResponse:
	return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@router.post(
	"/generate",
	response_model=GenerateResponse,
	responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate(req: GenerateRequest, generator: LessonGenerator = Depends(get_generator)):
	try:
		lesson = await generator.submit(req.outline)
	except LessonError as e:
		return _error(e.status_code, e.message)
	except Exception as e:
		logger.exception("Error in generate API")
		return _error(500, str(e) or "Unknown error")
	if generator.detached:
		return GenerateResponse(lessonId=lesson.id, message="Lesson generation started")
	if lesson is None or lesson.status != STATUS_GENERATED:
		message = (lesson.error_message if lesson is not None else None) or "Lesson generation failed"
		return _error(500, message)
	return GenerateResponse(lessonId=lesson.id, message="Lesson generated")

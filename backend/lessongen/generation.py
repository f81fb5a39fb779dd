"""Lesson generation orchestration.

Each submission creates one ``lessons`` row in state ``generating`` and makes a
single attempt to fill it. The row ends as ``generated`` (content stored) or
``failed`` (error_message stored); both are terminal. Generation failures are
recorded on the row rather than raised, except when the row itself could not
be created.
"""
from __future__ import annotations
import asyncio
import logging
from datetime import datetime
from typing import Any, Optional, Protocol

from fastapi import Request
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .errors import GenerationError, PersistenceError, ValidationError
from .formats import LessonFormat, get_format
from .models import Lesson, STATUS_FAILED, STATUS_GENERATED, STATUS_GENERATING
from .schemas import LessonContent
from .settings import Settings
from .tasks import TaskRegistry

logger = logging.getLogger(__name__)

TITLE_LENGTH = 50


class CompletionClient(Protocol):
	async def generate(
		self,
		prompt: str,
		*,
		system: Optional[str] = None,
		temperature: Optional[float] = None,
		max_output_tokens: Optional[int] = None,
	) -> str: ...


def title_from_outline(outline: str) -> str:
	outline = outline.strip()
	if len(outline) > TITLE_LENGTH:
		return outline[:TITLE_LENGTH] + "..."
	return outline


class LessonGenerator:
	def __init__(
		self,
		client: Optional[CompletionClient],
		session_factory: sessionmaker,
		config: Settings,
		*,
		registry: Optional[TaskRegistry] = None,
		lesson_format: Optional[LessonFormat] = None,
	) -> None:
		self.client = client
		self.session_factory = session_factory
		self.config = config
		self.registry = registry or TaskRegistry()
		self.format = lesson_format or get_format(config.response_format)

	@property
	def detached(self) -> bool:
		return self.config.generation_mode == "detached"

	def create_lesson(self, outline: Optional[str]) -> Lesson:
		if not outline or not outline.strip():
			raise ValidationError("Outline is required")
		outline = outline.strip()
		lesson = Lesson(title=title_from_outline(outline), outline=outline, status=STATUS_GENERATING)
		db = self.session_factory()
		try:
			db.add(lesson)
			db.commit()
			db.refresh(lesson)
		except SQLAlchemyError as err:
			db.rollback()
			logger.error("Database error creating lesson: %s", err)
			raise PersistenceError("Failed to create lesson in database") from err
		finally:
			db.close()
		return lesson

	async def submit(self, outline: Optional[str]) -> Optional[Lesson]:
		lesson = self.create_lesson(outline)
		if self.detached:
			self.registry.spawn(lesson.id, self.generate(lesson.id, lesson.outline))
			return lesson
		return await self.generate(lesson.id, lesson.outline)

	async def generate(self, lesson_id: str, outline: str) -> Optional[Lesson]:
		"""Run the single generation attempt for ``lesson_id`` and return the final row."""
		logger.info("Generating lesson %s (%s)", lesson_id, self.format.kind.value)
		try:
			completion = await self._complete(outline)
			validated = self.format.validate(completion)
			self._warn_on_quiz_mismatches(lesson_id, validated.lesson_json)
			lesson = self._update(
				lesson_id,
				status=STATUS_GENERATED,
				content=validated.content,
				lesson_json=validated.lesson_json,
				error_message=None,
			)
			if lesson.status == STATUS_GENERATED:
				logger.info("Lesson %s generated", lesson_id)
			return lesson
		except asyncio.CancelledError:
			logger.info("Lesson %s generation cancelled", lesson_id)
			self._mark_failed(lesson_id, "Generation cancelled")
			raise
		except Exception as err:
			message = getattr(err, "message", None) or str(err) or "Unknown error during generation"
			logger.error("Error generating lesson %s: %s", lesson_id, message)
			return self._mark_failed(lesson_id, message)

	async def _complete(self, outline: str) -> str:
		if self.client is None:
			raise GenerationError("Content generator is not configured")
		try:
			completion = await self.client.generate(
				self.format.build_prompt(outline),
				system=self.format.system_prompt,
				temperature=self.config.generation_temperature,
				max_output_tokens=self.config.generation_max_tokens,
			)
		except Exception as err:
			raise GenerationError(f"Content generator request failed: {err}") from err
		if not completion or not completion.strip():
			raise GenerationError("Content generator returned an empty completion")
		return completion

	def _warn_on_quiz_mismatches(self, lesson_id: str, lesson_json: Optional[str]) -> None:
		if not lesson_json:
			return
		content = LessonContent.model_validate_json(lesson_json)
		for index, item in enumerate(content.quiz or []):
			if item.answer not in item.choices:
				logger.warning("Lesson %s quiz item %d: answer is not one of the choices", lesson_id, index)

	def _update(self, lesson_id: str, **fields: Any) -> Lesson:
		"""Apply ``fields`` only while the row is still ``generating``.

		A row already moved to a terminal state (stale sweep, cancellation) is
		left as it is and returned unchanged.
		"""
		db = self.session_factory()
		try:
			res = db.execute(
				update(Lesson)
				.where(Lesson.id == lesson_id, Lesson.status == STATUS_GENERATING)
				.values(updated_at=datetime.utcnow(), **fields)
			)
			db.commit()
			lesson = db.get(Lesson, lesson_id)
			if lesson is None:
				raise PersistenceError(f"Lesson {lesson_id} no longer exists")
			if not res.rowcount:
				logger.warning("Lesson %s already %s; keeping its status", lesson_id, lesson.status)
			return lesson
		except SQLAlchemyError as err:
			db.rollback()
			raise PersistenceError("Failed to update lesson in database") from err
		finally:
			db.close()

	def _mark_failed(self, lesson_id: str, message: str) -> Optional[Lesson]:
		try:
			return self._update(lesson_id, status=STATUS_FAILED, error_message=message)
		except PersistenceError as err:
			# Left in "generating"; the stale sweep will fail it later
			logger.error("Could not mark lesson %s failed: %s", lesson_id, err)
			return None

	def cancel(self, lesson_id: str) -> bool:
		return self.registry.cancel(lesson_id)

	async def aclose(self) -> None:
		await self.registry.shutdown()
		close = getattr(self.client, "aclose", None)
		if close is not None:
			await close()


def get_generator(request: Request) -> LessonGenerator:
	return request.app.state.generator

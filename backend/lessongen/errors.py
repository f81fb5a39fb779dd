from __future__ import annotations


class LessonError(Exception):
	"""Base class for errors surfaced by the lesson pipeline."""

	status_code = 500

	def __init__(self, message: str) -> None:
		super().__init__(message)
		self.message = message


class ValidationError(LessonError):
	"""User-correctable input problem, e.g. a blank outline."""

	status_code = 400


class PersistenceError(LessonError):
	"""The store was unreachable or rejected a write."""


class GenerationError(LessonError):
	"""The generator failed, returned nothing usable, or its output failed validation."""

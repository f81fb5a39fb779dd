from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Section(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	heading: str = ""
	# Lightweight markup (bold/italic/lists), rendered by the client only
	body_markdown: str = Field(default="", alias="bodyMarkdown")


class QuizItem(BaseModel):
	question: str
	choices: List[str] = Field(default_factory=list)
	# Not checked against choices
	answer: str
	explanation: Optional[str] = None


class LessonContent(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	title: str = Field(min_length=1)
	subtitle: Optional[str] = None
	sections: List[Section]
	quiz: Optional[List[QuizItem]] = None

	def to_json(self) -> str:
		return self.model_dump_json(by_alias=True, exclude_none=True)


class GenerateRequest(BaseModel):
	outline: Optional[str] = None


class GenerateResponse(BaseModel):
	success: bool = True
	lessonId: str
	message: Optional[str] = None


class ErrorResponse(BaseModel):
	success: bool = False
	error: str


class LessonSummary(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: str
	title: str
	outline: str
	status: str
	error_message: Optional[str] = None
	created_at: datetime


class LessonDetail(LessonSummary):
	content: Optional[str] = None
	lesson: Optional[LessonContent] = None
	content_error: Optional[str] = None

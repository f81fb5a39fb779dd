from __future__ import annotations
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import GenerationError
from .extractor import ExtractionError, extract


class ResponseFormat(str, Enum):
	STRUCTURED_JSON = "structured_json"
	REACT_COMPONENT = "react_component"


@dataclass
class ValidatedCompletion:
	# Text written to the record's content column
	content: str
	# Normalized LessonContent JSON when the format produces one
	lesson_json: Optional[str] = None


JSON_SYSTEM_PROMPT = (
	"You are an expert educational content creator. "
	"Respond with a single JSON object only. No markdown, no code fences, no commentary."
)

JSON_SCHEMA_EXAMPLE = """{
  "title": "Lesson title",
  "subtitle": "Optional one-line subtitle",
  "sections": [
    {"heading": "Section heading", "bodyMarkdown": "Section text. **Bold**, _italic_ and - bullet lists are allowed."}
  ],
  "quiz": [
    {
      "question": "Question text?",
      "choices": ["Choice A", "Choice B", "Choice C", "Choice D"],
      "answer": "Choice A",
      "explanation": "Why Choice A is correct."
    }
  ]
}"""


def build_json_prompt(outline: str) -> str:
	return (
		f'Create an educational lesson for this outline: "{outline}"\n\n'
		"Requirements:\n"
		"- Write clear, engaging explanations with concrete examples.\n"
		"- Split the lesson into sections, each with a heading and a bodyMarkdown field.\n"
		"- If the outline asks for a quiz or questions, include a quiz array; "
		"every answer must be copied exactly from its choices.\n"
		"- Omit the quiz array when no quiz is requested.\n\n"
		"Return ONLY a JSON object matching this schema:\n"
		f"{JSON_SCHEMA_EXAMPLE}"
	)


REACT_SYSTEM_PROMPT = (
	"You are an expert TypeScript and React developer who creates educational content. "
	"Generate clean, working, executable code only. Never use markdown code fences or explanations."
)


def build_react_prompt(outline: str) -> str:
	return (
		"You are an expert educational content creator and TypeScript developer.\n\n"
		f'Generate a complete, interactive React component for this lesson: "{outline}"\n\n'
		"CRITICAL REQUIREMENTS:\n"
		"1. Generate ONLY TypeScript/React code - no markdown, no explanations, no code fences\n"
		"2. Export a default function component\n"
		"3. Use proper TypeScript types\n"
		"4. Use Tailwind CSS classes for styling\n"
		"5. Make it educational, interactive, and engaging\n"
		"6. Include clear explanations and examples\n"
		"7. Add interactive elements where appropriate (quizzes, exercises, etc.)\n"
		"8. Use modern React patterns (hooks, functional components)\n\n"
		"Generate the complete TypeScript code now:"
	)


_FENCE_RE = re.compile(r"```(?:typescript|tsx|javascript|jsx)?\n?")


def clean_generated_code(code: str) -> str:
	code = _FENCE_RE.sub("", code).strip()
	if "import" not in code:
		code = f'import {{ useState }} from "react";\n\n{code}'
	return code


def is_valid_react_component(code: str) -> bool:
	if "export default" not in code:
		return False
	has_function = "function" in code or "const" in code or "=>" in code
	return has_function and "return" in code


class LessonFormat:
	kind: ResponseFormat
	system_prompt: str

	def build_prompt(self, outline: str) -> str:
		raise NotImplementedError

	def validate(self, completion: str) -> ValidatedCompletion:
		raise NotImplementedError


class StructuredJSONFormat(LessonFormat):
	kind = ResponseFormat.STRUCTURED_JSON
	system_prompt = JSON_SYSTEM_PROMPT

	def build_prompt(self, outline: str) -> str:
		return build_json_prompt(outline)

	def validate(self, completion: str) -> ValidatedCompletion:
		try:
			content = extract(completion, strict_sections=True)
		except ExtractionError as err:
			raise GenerationError("Generated content is not valid JSON or is missing required fields") from err
		serialized = content.to_json()
		return ValidatedCompletion(content=serialized, lesson_json=serialized)


class ReactComponentFormat(LessonFormat):
	kind = ResponseFormat.REACT_COMPONENT
	system_prompt = REACT_SYSTEM_PROMPT

	def build_prompt(self, outline: str) -> str:
		return build_react_prompt(outline)

	def validate(self, completion: str) -> ValidatedCompletion:
		code = clean_generated_code(completion)
		if not is_valid_react_component(code):
			raise GenerationError("Generated code is not a valid React component")
		return ValidatedCompletion(content=code)


def get_format(kind: ResponseFormat | str) -> LessonFormat:
	kind = ResponseFormat(kind)
	if kind is ResponseFormat.REACT_COMPONENT:
		return ReactComponentFormat()
	return StructuredJSONFormat()

"""Test doubles shared by the unit and API suites."""
import asyncio
import json


class FakeClient:
	"""Stands in for GeminiClient; replays a canned completion."""

	def __init__(self, reply="", *, error=None, delay=0.0):
		self.reply = reply
		self.error = error
		self.delay = delay
		self.calls = []
		self.closed = False

	async def generate(self, prompt, *, system=None, temperature=None, max_output_tokens=None):
		self.calls.append(
			{"prompt": prompt, "system": system, "temperature": temperature, "max_output_tokens": max_output_tokens}
		)
		if self.delay:
			await asyncio.sleep(self.delay)
		if self.error is not None:
			raise self.error
		return self.reply

	async def aclose(self):
		self.closed = True


def lesson_json(title="Photosynthesis", sections=None, **extra):
	if sections is None:
		sections = [
			{"heading": "What it is", "bodyMarkdown": "Plants turn **light** into sugar."},
			{"heading": "Why it matters", "bodyMarkdown": "- Oxygen\n- Food chains"},
		]
	payload = {"title": title, "sections": sections}
	payload.update(extra)
	return json.dumps(payload)

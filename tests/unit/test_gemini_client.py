"""
Unit tests for the Gemini client, using httpx.MockTransport instead of the network.
"""
import json

import httpx
import pytest

from lessongen.gemini_client import GeminiClient


def _gemini_reply(*texts):
	return {"candidates": [{"content": {"parts": [{"text": t} for t in texts]}}]}


class TestGeminiClient:
	def test_requires_api_key(self, make_settings):
		with pytest.raises(ValueError):
			GeminiClient(make_settings())

	@pytest.mark.asyncio
	async def test_ai_studio_request(self, make_settings):
		seen = {}

		def handler(request: httpx.Request) -> httpx.Response:
			seen["url"] = request.url
			seen["body"] = json.loads(request.content)
			return httpx.Response(200, json=_gemini_reply("Hello", " there"))

		client = GeminiClient(make_settings(gemini_api_key="k1"), transport=httpx.MockTransport(handler))
		text = await client.generate("Teach me", system="JSON only", temperature=0.2, max_output_tokens=100)
		await client.aclose()

		assert text == "Hello there"
		assert seen["url"].host == "generativelanguage.googleapis.com"
		assert seen["url"].params["key"] == "k1"
		assert "gemini-2.5-flash:generateContent" in seen["url"].path
		body = seen["body"]
		assert body["contents"][0]["parts"][0]["text"] == "Teach me"
		assert body["systemInstruction"] == {"parts": [{"text": "JSON only"}]}
		assert body["generationConfig"] == {"temperature": 0.2, "maxOutputTokens": 100}

	@pytest.mark.asyncio
	async def test_vertex_uses_header_auth(self, make_settings):
		seen = {}

		def handler(request: httpx.Request) -> httpx.Response:
			seen["request"] = request
			return httpx.Response(200, json=_gemini_reply("ok"))

		config = make_settings(gemini_api_key="k2", gemini_provider="vertex", vertex_project="proj")
		client = GeminiClient(config, transport=httpx.MockTransport(handler))
		assert await client.generate("hi") == "ok"
		await client.aclose()

		request = seen["request"]
		assert request.headers["x-goog-api-key"] == "k2"
		assert "key" not in request.url.params
		assert "/projects/proj/" in request.url.path
		assert "generationConfig" not in json.loads(request.content)

	@pytest.mark.asyncio
	async def test_http_error_without_fallback(self, make_settings):
		transport = httpx.MockTransport(lambda request: httpx.Response(503, json={"error": "busy"}))
		client = GeminiClient(make_settings(gemini_api_key="k"), transport=transport)
		with pytest.raises(httpx.HTTPStatusError):
			await client.generate("hi")
		await client.aclose()

	@pytest.mark.asyncio
	async def test_unexpected_payload(self, make_settings):
		transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"promptFeedback": {}}))
		client = GeminiClient(make_settings(gemini_api_key="k"), transport=transport)
		with pytest.raises(RuntimeError, match="Unexpected Gemini response"):
			await client.generate("hi")
		await client.aclose()

	@pytest.mark.asyncio
	async def test_openrouter_fallback(self, make_settings):
		seen = {}

		def handler(request: httpx.Request) -> httpx.Response:
			if request.url.host == "openrouter.ai":
				seen["headers"] = request.headers
				seen["body"] = json.loads(request.content)
				return httpx.Response(200, json={"choices": [{"message": {"content": "from fallback"}}]})
			return httpx.Response(500, json={"error": "down"})

		config = make_settings(gemini_api_key="k", openrouter_api_key="or-key")
		client = GeminiClient(config, transport=httpx.MockTransport(handler))
		text = await client.generate("Teach me", system="JSON only", temperature=0.5, max_output_tokens=64)
		await client.aclose()

		assert text == "from fallback"
		assert seen["headers"]["authorization"] == "Bearer or-key"
		body = seen["body"]
		assert body["messages"] == [
			{"role": "system", "content": "JSON only"},
			{"role": "user", "content": "Teach me"},
		]
		assert body["temperature"] == 0.5
		assert body["max_tokens"] == 64

	@pytest.mark.asyncio
	async def test_fallback_failure_mentions_both(self, make_settings):
		transport = httpx.MockTransport(lambda request: httpx.Response(500, json={}))
		config = make_settings(gemini_api_key="k", openrouter_api_key="or-key")
		client = GeminiClient(config, transport=transport)
		with pytest.raises(RuntimeError, match="fallback via OpenRouter also failed"):
			await client.generate("hi")
		await client.aclose()

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..generation import LessonGenerator, get_generator

router = APIRouter(tags=["health"])

PROBE_PROMPT = "Say hello in exactly 3 words"


@router.get("/health")
def health():
	return {"status": "ok"}


@router.get("/api/test-ai")
async def test_ai(generator: LessonGenerator = Depends(get_generator)):
	if generator.client is None:
		return JSONResponse(status_code=500, content={"success": False, "error": "Content generator is not configured"})
	try:
		text = await generator.client.generate(PROBE_PROMPT, temperature=0.7, max_output_tokens=100)
	except Exception as e:
		return JSONResponse(status_code=500, content={"success": False, "error": str(e) or "Unknown error"})
	return {"success": True, "response": text}

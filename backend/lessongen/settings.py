from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")
	gemini_timeout_seconds: float = Field(default=60.0, validation_alias="GEMINI_TIMEOUT_SECONDS")

	# OpenRouter fallback configuration (optional)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="meta-llama/llama-3.3-70b-instruct", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="Lesson Generator", validation_alias="OPENROUTER_TITLE")

	# Generation pipeline
	response_format: Literal["structured_json", "react_component"] = Field(
		default="structured_json", validation_alias="LESSON_RESPONSE_FORMAT"
	)
	# "detached" returns as soon as the record exists; "sync" waits for the completion
	generation_mode: Literal["detached", "sync"] = Field(default="detached", validation_alias="GENERATION_MODE")
	generation_temperature: float = Field(default=0.7, validation_alias="GENERATION_TEMPERATURE")
	generation_max_tokens: int = Field(default=4096, validation_alias="GENERATION_MAX_TOKENS")

	# Records stuck in "generating" longer than this are marked failed by the sweeper
	stale_generation_seconds: int = Field(default=600, validation_alias="STALE_GENERATION_SECONDS")
	sweep_interval_seconds: int = Field(default=300, validation_alias="SWEEP_INTERVAL_SECONDS")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

settings = Settings()

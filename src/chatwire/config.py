import os
from typing import Literal

from pydantic import BaseModel, Field


class StreamingConfig(BaseModel):
    """How assistant text is cut into frames and paced.

    Passed explicitly to the encoder when a stream starts.

    Args:
        delay_per_frame_ms: Pause between consecutive text frames of one
            event. ``0`` disables pacing.
        chunk_granularity: ``"character"`` sends one frame per character;
            ``"auto"`` splits code by line and prose by word.
    """

    delay_per_frame_ms: int = Field(default=0, ge=0)
    chunk_granularity: Literal["character", "auto"] = "auto"

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls) -> "StreamingConfig":
        return cls(
            delay_per_frame_ms=int(os.getenv("STREAMING_DELAY_MS", "0") or 0),
            chunk_granularity=(
                "character"
                if os.getenv("STREAM_BY_CHARACTER", "").lower() == "true"
                else "auto"
            ),
        )


class Settings(BaseModel):
    """Process-wide settings, read once at startup."""

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    log_file: str | None = None
    api_key: str | None = None
    base_url: str = "https://api.deepseek.com"
    model: str = "deepseek-chat"
    chat_temperature: float = 0.7
    math_temperature: float = 0.3
    text_temperature: float = 0.7
    max_iterations: int = Field(default=3, ge=1)
    streaming: StreamingConfig = Field(default_factory=StreamingConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        api_key = os.getenv("DEEPSEEK_API_KEY") or os.getenv("OPENAI_API_KEY")
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8080")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("LOG_FILE") or None,
            api_key=api_key or None,
            base_url=os.getenv("LLM_BASE_URL", "https://api.deepseek.com"),
            model=os.getenv("LLM_MODEL", "deepseek-chat"),
            max_iterations=int(os.getenv("MAX_ITERATIONS", "3")),
            streaming=StreamingConfig.from_env(),
        )

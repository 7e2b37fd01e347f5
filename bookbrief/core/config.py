"""
Configuration management for the BookBrief summarization system.
"""

from typing import Optional
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
        protected_namespaces=(),
    )
    
    # Model backend
    model_backend: str = Field("ollama", alias="MODEL_BACKEND")
    ollama_host: str = Field("http://localhost:11434", alias="OLLAMA_HOST")
    summary_model: str = Field("mistral:latest", alias="SUMMARY_MODEL")
    openrouter_api_key: Optional[str] = Field(None, alias="OPENROUTER_API_KEY")
    openrouter_model: str = Field("google/gemini-2.5-flash", alias="OPENROUTER_MODEL")
    openrouter_base_url: str = Field("https://openrouter.ai/api/v1", alias="OPENROUTER_BASE_URL")
    model_temperature: float = Field(0.4, alias="MODEL_TEMPERATURE")
    model_max_output_tokens: int = Field(4096, alias="MODEL_MAX_OUTPUT_TOKENS")
    model_request_timeout_seconds: int = Field(120, alias="MODEL_REQUEST_TIMEOUT_SECONDS")
    
    # Length budgets (characters)
    target_ratio: float = Field(0.50, alias="TARGET_RATIO")
    ceiling_ratio: float = Field(0.55, alias="CEILING_RATIO")
    emergency_ratio: float = Field(0.50, alias="EMERGENCY_RATIO")
    min_target_chars: int = Field(200, alias="MIN_TARGET_CHARS")
    min_chunk_target: int = Field(50, alias="MIN_CHUNK_TARGET")
    chars_per_word: int = Field(5, alias="CHARS_PER_WORD")
    
    # Chunking
    single_call_threshold: int = Field(30000, alias="SINGLE_CALL_THRESHOLD")
    chunk_size: int = Field(8000, alias="CHUNK_SIZE")
    chunk_unit: str = Field("chars", alias="CHUNK_UNIT")
    paragraph_separator: str = Field("\n\n", alias="PARAGRAPH_SEPARATOR")
    model_context_tokens: int = Field(16000, alias="MODEL_CONTEXT_TOKENS")
    context_reserve_tokens: int = Field(1000, alias="CONTEXT_RESERVE_TOKENS")
    tokenizer_model: str = Field("gpt-3.5-turbo", alias="TOKENIZER_MODEL")
    
    # Retry policy
    max_attempts: int = Field(3, alias="MAX_ATTEMPTS")
    retry_base_delay_seconds: float = Field(1.0, alias="RETRY_BASE_DELAY_SECONDS")
    
    # Request handling
    max_concurrent_requests: int = Field(0, alias="MAX_CONCURRENT_REQUESTS")
    pipeline_timeout_minutes: float = Field(5, alias="PIPELINE_TIMEOUT_MINUTES")
    preview_chars: int = Field(4000, alias="PREVIEW_CHARS")
    max_upload_mb: int = Field(50, alias="MAX_UPLOAD_MB")
    
    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_format: str = Field("json", alias="LOG_FORMAT")
    
    @model_validator(mode="after")
    def _check_ratios(self) -> "Settings":
        if not 0 < self.target_ratio <= self.ceiling_ratio:
            raise ValueError("TARGET_RATIO must be positive and not exceed CEILING_RATIO")
        if self.chunk_unit not in ("chars", "tokens"):
            raise ValueError("CHUNK_UNIT must be 'chars' or 'tokens'")
        if self.max_attempts < 1:
            raise ValueError("MAX_ATTEMPTS must be at least 1")
        return self
    
    @property
    def pipeline_timeout_seconds(self) -> float:
        """Overall request timeout in seconds."""
        return self.pipeline_timeout_minutes * 60
    
    @property
    def max_upload_bytes(self) -> int:
        """Largest accepted input file in bytes."""
        return self.max_upload_mb * 1024 * 1024


# Global settings instance
settings = Settings()

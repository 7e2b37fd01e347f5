"""
Generative model backends and the shared retry policy.
"""

import asyncio
from typing import Optional, Protocol, runtime_checkable

import ollama
import requests
import structlog

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import (
    PermanentModelError,
    TransientModelError,
    classify_model_error,
)

logger = structlog.get_logger(__name__)


@runtime_checkable
class ModelCapability(Protocol):
    """Anything that turns a prompt into generated text."""
    
    async def complete(self, prompt: str) -> str:
        ...


class OllamaModel:
    """Text generation through a local or remote Ollama server."""
    
    def __init__(self,
                 host: Optional[str] = None,
                 model: Optional[str] = None,
                 temperature: Optional[float] = None,
                 max_output_tokens: Optional[int] = None,
                 timeout: Optional[float] = None):
        self.host = host or default_settings.ollama_host
        self.model = model or default_settings.summary_model
        self.temperature = default_settings.model_temperature if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or default_settings.model_max_output_tokens
        self.timeout = timeout or default_settings.model_request_timeout_seconds
        self.client = ollama.AsyncClient(host=self.host, timeout=self.timeout)
    
    async def complete(self, prompt: str) -> str:
        try:
            response = await self.client.generate(
                model=self.model,
                prompt=prompt,
                stream=False,
                options={
                    "temperature": self.temperature,
                    "num_predict": self.max_output_tokens,
                },
            )
        except ollama.ResponseError as e:
            raise classify_model_error(e) from e
        except (ConnectionError, asyncio.TimeoutError) as e:
            raise TransientModelError(f"Ollama unreachable at {self.host}: {e}") from e
        
        text = (response["response"] or "").strip()
        if not text:
            raise PermanentModelError("Empty response from Ollama")
        return text
    
    async def health_check(self) -> bool:
        """Check if the Ollama service answers for the configured model."""
        try:
            await self.client.generate(
                model=self.model,
                prompt="Test prompt for health check.",
                stream=False,
                options={"num_predict": 10},
            )
            logger.info("Ollama health check passed", host=self.host, model=self.model)
            return True
        except Exception as e:
            logger.error("Ollama health check failed",
                         host=self.host, model=self.model, error=str(e))
            return False


class OpenRouterModel:
    """Text generation through the OpenRouter chat completions API."""
    
    def __init__(self,
                 api_key: Optional[str] = None,
                 model: Optional[str] = None,
                 base_url: Optional[str] = None,
                 temperature: Optional[float] = None,
                 max_output_tokens: Optional[int] = None,
                 timeout: Optional[float] = None):
        self.api_key = api_key or default_settings.openrouter_api_key
        if not self.api_key:
            raise PermanentModelError("OPENROUTER_API_KEY is not configured")
        self.model = model or default_settings.openrouter_model
        self.base_url = (base_url or default_settings.openrouter_base_url).rstrip("/")
        self.temperature = default_settings.model_temperature if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or default_settings.model_max_output_tokens
        self.timeout = timeout or default_settings.model_request_timeout_seconds
        
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "BookBrief",
        })
    
    async def complete(self, prompt: str) -> str:
        # requests is blocking; run it off the event loop
        return await asyncio.to_thread(self._post_completion, prompt, self.max_output_tokens)
    
    def _post_completion(self, prompt: str, max_tokens: int) -> str:
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": max_tokens,
        }
        
        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 429 or (status is not None and status >= 500):
                raise TransientModelError(str(e), status_code=status) from e
            raise PermanentModelError(str(e), status_code=status) from e
        except (requests.Timeout, requests.ConnectionError) as e:
            raise TransientModelError(str(e)) from e
        except ValueError as e:
            raise PermanentModelError(f"Invalid JSON from OpenRouter: {e}") from e
        
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise PermanentModelError("Invalid response format from OpenRouter") from e
        
        text = (content or "").strip()
        if not text:
            raise PermanentModelError("Empty response from OpenRouter")
        return text
    
    async def health_check(self) -> bool:
        """Check OpenRouter API connectivity and authentication."""
        try:
            await asyncio.to_thread(self._post_completion, "Test", 5)
            logger.info("OpenRouter health check passed", model=self.model)
            return True
        except Exception as e:
            logger.error("OpenRouter health check failed", model=self.model, error=str(e))
            return False


def create_model(config: Optional[Settings] = None) -> ModelCapability:
    """Build the model backend named by MODEL_BACKEND."""
    config = config or default_settings
    backend = config.model_backend.lower()
    
    if backend == "ollama":
        return OllamaModel(
            host=config.ollama_host,
            model=config.summary_model,
            temperature=config.model_temperature,
            max_output_tokens=config.model_max_output_tokens,
            timeout=config.model_request_timeout_seconds,
        )
    if backend == "openrouter":
        return OpenRouterModel(
            api_key=config.openrouter_api_key,
            model=config.openrouter_model,
            base_url=config.openrouter_base_url,
            temperature=config.model_temperature,
            max_output_tokens=config.model_max_output_tokens,
            timeout=config.model_request_timeout_seconds,
        )
    raise ValueError(f"Unknown model backend: {config.model_backend}")


async def call_with_retry(model: ModelCapability,
                          prompt: str,
                          max_attempts: int = 3,
                          base_delay: float = 1.0,
                          stage: str = "model") -> str:
    """
    Call the model, retrying transient failures with exponential backoff.
    
    Args:
        model: Model capability to call
        prompt: Prompt text
        max_attempts: Total number of attempts, including the first
        base_delay: Delay before the second attempt; doubles each retry
        stage: Pipeline stage name for logging
        
    Returns:
        Generated text
        
    Raises:
        PermanentModelError: On the first non-retryable failure, including a blank completion
        TransientModelError: When every attempt failed transiently
    """
    retry_delay = base_delay
    for attempt in range(1, max_attempts + 1):
        try:
            text = await model.complete(prompt)
            if not text or not text.strip():
                raise PermanentModelError("Empty response from model")
            return text
        except Exception as e:
            error = classify_model_error(e)
            permanent = isinstance(error, PermanentModelError)
            logger.warning("Model call failed",
                           stage=stage, attempt=attempt, max_attempts=max_attempts,
                           retryable=not permanent, error=str(error))
            if permanent or attempt == max_attempts:
                if error is e:
                    raise
                raise error from e
        
        await asyncio.sleep(retry_delay)
        retry_delay *= 2  # Exponential backoff
    
    raise TransientModelError("Max retries exceeded")

"""
Tests for model backends, error classification and the retry policy.
"""

from unittest.mock import AsyncMock, Mock, patch

import ollama
import pytest
import requests

from bookbrief.core.config import Settings
from bookbrief.core.exceptions import (
    PermanentModelError,
    TransientModelError,
    classify_model_error,
)
from bookbrief.summarization.model_client import (
    OllamaModel,
    OpenRouterModel,
    call_with_retry,
    create_model,
)
from conftest import FakeModel


class TestClassifyModelError:
    
    @pytest.mark.parametrize("error", [
        Exception("503 Service Unavailable"),
        Exception("The model is overloaded. Please try again later."),
        Exception("429 Too Many Requests"),
        Exception("rate limit exceeded"),
        TimeoutError(),
        ConnectionError("reset by peer"),
        requests.Timeout("read timed out"),
    ])
    def test_transient(self, error):
        assert isinstance(classify_model_error(error), TransientModelError)
    
    @pytest.mark.parametrize("error", [
        Exception("400 Bad Request"),
        ValueError("invalid prompt"),
        KeyError("text"),
    ])
    def test_permanent(self, error):
        assert isinstance(classify_model_error(error), PermanentModelError)
    
    def test_status_code_attribute(self):
        error = Exception("upstream said no")
        error.status_code = 502
        
        classified = classify_model_error(error)
        
        assert isinstance(classified, TransientModelError)
        assert classified.status_code == 502
    
    def test_model_errors_pass_through(self):
        error = PermanentModelError("503 but explicitly permanent")
        
        assert classify_model_error(error) is error


class TestCallWithRetry:
    
    @pytest.mark.asyncio
    async def test_success_first_try(self):
        model = FakeModel(lambda prompt: "done")
        
        assert await call_with_retry(model, "prompt", max_attempts=3, base_delay=0) == "done"
        assert model.call_count == 1
    
    @pytest.mark.asyncio
    async def test_transient_then_success(self):
        outcomes = [TransientModelError("overloaded"), "recovered"]
        
        def responder(prompt):
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        
        model = FakeModel(responder)
        
        assert await call_with_retry(model, "prompt", max_attempts=3, base_delay=0) == "recovered"
        assert model.call_count == 2
    
    @pytest.mark.asyncio
    async def test_always_transient_exhausts_attempts(self):
        def responder(prompt):
            raise Exception("503 overloaded")
        
        model = FakeModel(responder)
        
        with pytest.raises(TransientModelError):
            await call_with_retry(model, "prompt", max_attempts=3, base_delay=0)
        assert model.call_count == 3
    
    @pytest.mark.asyncio
    async def test_permanent_not_retried(self):
        def responder(prompt):
            raise PermanentModelError("invalid api key")
        
        model = FakeModel(responder)
        
        with pytest.raises(PermanentModelError):
            await call_with_retry(model, "prompt", max_attempts=3, base_delay=0)
        assert model.call_count == 1
    
    @pytest.mark.asyncio
    @pytest.mark.parametrize("completion", ["", "   \n\t "])
    async def test_blank_completion_is_permanent(self, completion):
        model = FakeModel(lambda prompt: completion)
        
        with pytest.raises(PermanentModelError, match="Empty response"):
            await call_with_retry(model, "prompt", max_attempts=3, base_delay=0)
        assert model.call_count == 1
    
    @pytest.mark.asyncio
    async def test_exponential_backoff(self):
        def responder(prompt):
            raise TransientModelError("rate limit")
        
        model = FakeModel(responder)
        
        with patch("bookbrief.summarization.model_client.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(TransientModelError):
                await call_with_retry(model, "prompt", max_attempts=4, base_delay=1.0)
        
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0, 4.0]


class TestOllamaModel:
    
    @pytest.fixture
    def model(self):
        return OllamaModel(host="http://localhost:11434", model="mistral:latest")
    
    @pytest.mark.asyncio
    async def test_complete(self, model):
        model.client.generate = AsyncMock(return_value={"response": "  A summary.  "})
        
        assert await model.complete("Summarize this") == "A summary."
        kwargs = model.client.generate.call_args.kwargs
        assert kwargs["model"] == "mistral:latest"
        assert kwargs["prompt"] == "Summarize this"
    
    @pytest.mark.asyncio
    async def test_server_busy_is_transient(self, model):
        model.client.generate = AsyncMock(side_effect=ollama.ResponseError("server busy", 503))
        
        with pytest.raises(TransientModelError):
            await model.complete("prompt")
    
    @pytest.mark.asyncio
    async def test_unknown_model_is_permanent(self, model):
        model.client.generate = AsyncMock(side_effect=ollama.ResponseError("model not found", 404))
        
        with pytest.raises(PermanentModelError):
            await model.complete("prompt")
    
    @pytest.mark.asyncio
    async def test_connection_error_is_transient(self, model):
        model.client.generate = AsyncMock(side_effect=ConnectionError("refused"))
        
        with pytest.raises(TransientModelError):
            await model.complete("prompt")
    
    @pytest.mark.asyncio
    async def test_empty_response_is_permanent(self, model):
        model.client.generate = AsyncMock(return_value={"response": "   "})
        
        with pytest.raises(PermanentModelError):
            await model.complete("prompt")
    
    @pytest.mark.asyncio
    async def test_health_check(self, model):
        model.client.generate = AsyncMock(return_value={"response": "ok"})
        assert await model.health_check() is True
        
        model.client.generate = AsyncMock(side_effect=ConnectionError("refused"))
        assert await model.health_check() is False


def mock_http_response(status_code=200, payload=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


class TestOpenRouterModel:
    
    @pytest.fixture
    def model(self):
        return OpenRouterModel(api_key="test-key", model="test/model")
    
    @pytest.mark.asyncio
    async def test_complete(self, model):
        payload = {"choices": [{"message": {"content": " Summary text. "}}]}
        with patch.object(model.session, "post", return_value=mock_http_response(200, payload)) as mock_post:
            result = await model.complete("Summarize this")
        
        assert result == "Summary text."
        call_args = mock_post.call_args
        assert call_args[0][0].endswith("/chat/completions")
        assert call_args[1]["json"]["messages"][0]["content"] == "Summarize this"
        assert call_args[1]["json"]["model"] == "test/model"
    
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [429, 500, 503])
    async def test_retryable_status(self, model, status_code):
        with patch.object(model.session, "post", return_value=mock_http_response(status_code)):
            with pytest.raises(TransientModelError):
                await model.complete("prompt")
    
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 401, 404])
    async def test_permanent_status(self, model, status_code):
        with patch.object(model.session, "post", return_value=mock_http_response(status_code)):
            with pytest.raises(PermanentModelError) as exc_info:
                await model.complete("prompt")
        assert exc_info.value.status_code == status_code
    
    @pytest.mark.asyncio
    async def test_timeout_is_transient(self, model):
        with patch.object(model.session, "post", side_effect=requests.Timeout("timed out")):
            with pytest.raises(TransientModelError):
                await model.complete("prompt")
    
    @pytest.mark.asyncio
    async def test_malformed_response(self, model):
        with patch.object(model.session, "post", return_value=mock_http_response(200, {"error": "?"})):
            with pytest.raises(PermanentModelError):
                await model.complete("prompt")
    
    def test_missing_api_key(self):
        with patch("bookbrief.summarization.model_client.default_settings") as mock_settings:
            mock_settings.openrouter_api_key = None
            with pytest.raises(PermanentModelError):
                OpenRouterModel(api_key=None)


class TestCreateModel:
    
    def test_ollama_backend(self):
        model = create_model(Settings(_env_file=None, model_backend="ollama", summary_model="llama3"))
        
        assert isinstance(model, OllamaModel)
        assert model.model == "llama3"
    
    def test_openrouter_backend(self):
        model = create_model(Settings(_env_file=None, model_backend="openrouter", openrouter_api_key="k"))
        
        assert isinstance(model, OpenRouterModel)
    
    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_model(Settings(_env_file=None, model_backend="gemini"))

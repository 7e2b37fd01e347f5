"""
Shared fixtures: a recording fake model and test settings.
"""

import asyncio

import pytest

from bookbrief.core.config import Settings
from bookbrief.summarization.length_estimator import HeuristicEstimator


def stage_of(prompt: str) -> str:
    """Which pipeline stage built a prompt."""
    if "Compress this summary" in prompt:
        return "compress"
    if "Combine them into one coherent summary" in prompt:
        return "combine"
    return "summarize"


class FakeModel:
    """
    Model capability stub that records every prompt.
    
    responder(prompt) returns the completion, or raises to simulate a failure.
    """
    
    def __init__(self, responder=None, delay=0.0):
        self.responder = responder or (lambda prompt: "A short summary.")
        self.delay = delay
        self.prompts = []
        self.in_flight = 0
        self.max_in_flight = 0
    
    @property
    def call_count(self) -> int:
        return len(self.prompts)
    
    def prompts_for(self, stage: str):
        return [p for p in self.prompts if stage_of(p) == stage]
    
    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delay(prompt) if callable(self.delay) else self.delay
            if delay:
                await asyncio.sleep(delay)
            return self.responder(prompt)
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_model():
    return FakeModel()


@pytest.fixture
def test_settings():
    """Settings with no backoff delay and no .env influence."""
    return Settings(_env_file=None, retry_base_delay_seconds=0.0)


@pytest.fixture
def estimator():
    return HeuristicEstimator("words")

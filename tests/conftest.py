import time

import pytest

from safetrans.lexicon import load_lexicon
from safetrans.models import EngineConfig, ModelConfig
from safetrans.translator import ProviderError


@pytest.fixture(scope="session")
def lexicon():
    return load_lexicon()


@pytest.fixture
def engine_config():
    cfg = ModelConfig(base_url="http://mock", api_key="mock", model="mock")
    return EngineConfig(translator_config=cfg, show_progress=False, enable_cache=False)


class FakeTranslator:
    """Returns canned translations per language; can fail or stall for chosen languages."""

    def __init__(self, forward=None, reverse="태풍 경보, 즉시 대피하세요", fail_for=(), delays=None, error=None):
        self.forward = forward or {}
        self.reverse = reverse
        self.fail_for = set(fail_for)
        self.delays = delays or {}
        self.error = error
        self.calls = []

    def translate(self, text, target_language):
        self.calls.append((text, target_language))
        if target_language == "ko":
            return self.reverse
        time.sleep(self.delays.get(target_language, 0))
        if target_language in self.fail_for:
            raise self.error or ProviderError(f"provider unavailable for {target_language}")
        return self.forward.get(target_language, f"[{target_language}] Typhoon warning, evacuate immediately")


@pytest.fixture
def fake_translator():
    return FakeTranslator()

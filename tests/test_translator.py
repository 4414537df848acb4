import json
from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from safetrans.models import ModelConfig
from safetrans.translator import OpenAITranslator, ProviderError, Translator, language_name


@pytest.fixture
def model_config():
    return ModelConfig(base_url="http://mock", api_key="mock", model="mock-model", timeout=5.0, max_retries=0)


def make_response(content):
    mock_response = MagicMock()
    mock_response.choices[0].message.content = content
    mock_response.model = "mock-model-0613"
    mock_response.usage.model_dump.return_value = {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30}
    return mock_response


def test_openai_translator_satisfies_protocol(model_config, tmp_path):
    translator = OpenAITranslator(model_config, cache_file=str(tmp_path / "cache.json"))
    assert isinstance(translator, Translator)


def test_forward_and_reverse_prompts(model_config):
    translator = OpenAITranslator(model_config, enable_cache=False)
    with patch('safetrans.translator.OpenAI') as MockOpenAI:
        create = MockOpenAI.return_value.chat.completions.create
        create.side_effect = [make_response("  Typhoon warning  "), make_response("태풍 경보")]

        assert translator.translate("태풍 경보", "en") == "Typhoon warning"
        assert translator.translate("Typhoon warning", "ko") == "태풍 경보"

    forward_messages = create.call_args_list[0].kwargs["messages"]
    reverse_messages = create.call_args_list[1].kwargs["messages"]
    assert "Target language: English" in forward_messages[0]["content"]
    assert forward_messages[1] == {"role": "user", "content": "태풍 경보"}
    assert "back to Korean" in reverse_messages[0]["content"]

    MockOpenAI.assert_called_with(api_key="mock", base_url="http://mock", timeout=5.0, max_retries=0)
    assert [log["tag"] for log in translator.detailed_logs] == ["forward", "reverse"]
    assert translator.detailed_logs[0]["model"] == "mock-model-0613"


def test_provider_errors_are_wrapped(model_config):
    translator = OpenAITranslator(model_config, enable_cache=False)
    with patch('safetrans.translator.OpenAI') as MockOpenAI:
        MockOpenAI.return_value.chat.completions.create.side_effect = OpenAIError("rate limited")
        with pytest.raises(ProviderError) as excinfo:
            translator.translate("태풍", "en")
    assert isinstance(excinfo.value.cause, OpenAIError)


def test_empty_response_is_a_provider_error(model_config):
    translator = OpenAITranslator(model_config, enable_cache=False)
    with patch('safetrans.translator.OpenAI') as MockOpenAI:
        MockOpenAI.return_value.chat.completions.create.return_value = make_response("   ")
        with pytest.raises(ProviderError):
            translator.translate("태풍", "en")


def test_cache_hit_skips_api(model_config, tmp_path):
    cache_file = tmp_path / "cache.json"
    translator = OpenAITranslator(model_config, enable_cache=True, cache_file=str(cache_file))
    with patch('safetrans.translator.OpenAI') as MockOpenAI:
        create = MockOpenAI.return_value.chat.completions.create
        create.return_value = make_response("Typhoon warning")

        assert translator.translate("태풍 경보", "en") == "Typhoon warning"
        assert translator.translate("태풍 경보", "en") == "Typhoon warning"

    assert create.call_count == 1
    assert translator.detailed_logs[1]["usage"]["cached"] is True
    assert list(json.loads(cache_file.read_text(encoding="utf-8")).values()) == ["Typhoon warning"]

    # A new translator picks the cache up from disk
    reloaded = OpenAITranslator(model_config, enable_cache=True, cache_file=str(cache_file))
    with patch('safetrans.translator.OpenAI') as MockOpenAI:
        assert reloaded.translate("태풍 경보", "en") == "Typhoon warning"
        MockOpenAI.assert_not_called()


def test_language_name():
    assert language_name("zh") == "Chinese (Simplified)"
    assert language_name("xx") == "xx"

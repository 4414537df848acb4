import json
import os
from unittest.mock import MagicMock, patch

import pytest

from safetrans.cli import main
from safetrans.config import ConfigError, load_config


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ("OPENAI_API_KEY", "OPENAI_BASE_URL", "SAFETRANS_MODEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def fake_completion(**kwargs):
    system = kwargs["messages"][0]["content"]
    mock_response = MagicMock()
    if "back to Korean" in system:
        mock_response.choices[0].message.content = "태풍 경보, 즉시 대피하세요"
    else:
        mock_response.choices[0].message.content = "Typhoon warning, evacuate immediately"
    mock_response.model = kwargs["model"]
    mock_response.usage.model_dump.return_value = {"prompt_tokens": 12, "completion_tokens": 8, "total_tokens": 20}
    return mock_response


def test_load_config_from_file(clean_env, tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "translator": {"api_key": "file-key", "model": "gpt-4o-mini", "timeout": 10},
        "engine": {"target_languages": ["en", "ja"], "concurrency": 2},
    }), encoding="utf-8")

    config = load_config(str(path), {"concurrency": 4, "lexicon_path": None})

    assert config.translator_config.api_key == "file-key"
    assert config.translator_config.model == "gpt-4o-mini"
    assert config.translator_config.base_url == "https://api.openai.com/v1"
    assert config.target_languages == ["en", "ja"]
    assert config.concurrency == 4
    assert config.lexicon_path is None


def test_load_config_from_env(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "env-key")
    clean_env.setenv("SAFETRANS_MODEL", "local-model")
    clean_env.setenv("OPENAI_BASE_URL", "http://localhost:8000/v1")

    config = load_config()

    assert config.translator_config.api_key == "env-key"
    assert config.translator_config.model == "local-model"
    assert config.translator_config.base_url == "http://localhost:8000/v1"
    assert config.target_languages == ["en", "zh", "ja", "vi", "th"]


def test_load_config_errors(clean_env, tmp_path):
    with pytest.raises(ConfigError):
        load_config()
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.json"))

    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"translator": {"api_key": "k"}, "engine": {"concurrency": "many"}}), encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(bad))


def test_cli_warnings_only(clean_env, capsys):
    assert main(["전주 지역 호우 경보", "--warnings-only"]) == 0
    out = capsys.readouterr().out
    assert '! 재난 전문용어 "호우" 포함됨' in out
    assert '! 동음이의어 "전주" 감지됨' in out


def test_cli_warnings_only_plain_text(clean_env, capsys):
    assert main(["오늘은 맑음", "--warnings-only"]) == 0
    assert "No lexicon warnings." in capsys.readouterr().out


def test_cli_without_api_key(clean_env, capsys):
    assert main(["태풍 경보"]) == 1
    assert "No API key configured" in capsys.readouterr().out


def test_cli_full_run(clean_env, tmp_path, capsys):
    clean_env.setenv("OPENAI_API_KEY", "env-key")
    output_dir = str(tmp_path / "out")

    with patch('safetrans.translator.OpenAI') as MockOpenAI:
        MockOpenAI.return_value.chat.completions.create.side_effect = fake_completion
        code = main([
            "태풍 경보, 즉시 대피하세요",
            "--lang", "en", "ja",
            "--no-cache",
            "--concurrency", "2",
            "--output", output_dir,
        ])

    assert code == 0
    out = capsys.readouterr().out
    assert "English (en)" in out
    assert "Japanese (ja)" in out
    assert "Typhoon warning, evacuate immediately" in out
    assert MockOpenAI.return_value.chat.completions.create.call_count == 4

    for name in ["assessment.json", "assessment_report.xlsx", "assessment_report.pdf", "token_usage.json"]:
        assert os.path.exists(os.path.join(output_dir, name))
    assert not os.path.exists(tmp_path / ".safetrans_cache.json")

    with open(os.path.join(output_dir, "token_usage.json"), encoding="utf-8") as f:
        usage = json.load(f)
    assert usage["summary"]["forward"]["calls"] == 2
    assert usage["summary"]["reverse"]["total_tokens"] == 40


def test_cli_rejects_file_as_output(clean_env, tmp_path, capsys):
    clean_env.setenv("OPENAI_API_KEY", "env-key")
    target = tmp_path / "report.txt"
    target.write_text("x", encoding="utf-8")

    assert main(["태풍 경보", "--output", str(target)]) == 1
    assert "exists as a file" in capsys.readouterr().out

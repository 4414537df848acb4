import json
import os

import pandas as pd

from safetrans.core import AssessmentEngine, degraded_record
from safetrans.models import ScoreBreakdown, TranslationRecord
from safetrans.utils import generate_json_report, save_token_usage

ORIGINAL = "태풍 경보, 즉시 대피하세요"


def make_record(language="en", final=(80, 100, 100, 100)):
    return TranslationRecord(
        language=language,
        original=ORIGINAL,
        translated="Typhoon warning, evacuate immediately",
        reverse_translated="태풍 경보, 즉시 대피하세요",
        score=ScoreBreakdown.combine(*final),
        warnings=('재난 전문용어 "태풍" 포함됨',),
        suggestions=("번역 품질이 양호합니다.",),
    )


def test_json_report(tmp_path):
    path = tmp_path / "assessment.json"
    generate_json_report([make_record(), degraded_record(ORIGINAL, "th", "timeout")], str(path))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert [d["language"] for d in data] == ["en", "th"]
    assert data[0]["score"]["final_score"] == 92
    assert data[1]["status"] == "failed"
    assert data[1]["translated"] == "번역 실패"


def test_engine_generate_reports(engine_config, fake_translator, tmp_path):
    engine = AssessmentEngine(engine_config, translator=fake_translator)
    engine.run_all(ORIGINAL, ["en", "zh"])

    output_dir = str(tmp_path / "reports")
    engine.generate_reports(output_dir, report_prefix="notice_")

    assert os.path.exists(os.path.join(output_dir, "notice_assessment.json"))
    assert os.path.exists(os.path.join(output_dir, "notice_assessment_report.xlsx"))
    pdf_path = os.path.join(output_dir, "notice_assessment_report.pdf")
    with open(pdf_path, "rb") as f:
        assert f.read(4) == b"%PDF"

    df = pd.read_excel(os.path.join(output_dir, "notice_assessment_report.xlsx"))
    assert sorted(df["Language"]) == ["en", "zh"]
    assert "Final Score" in df.columns
    # FakeTranslator keeps no telemetry
    assert not os.path.exists(os.path.join(output_dir, "notice_token_usage.json"))


def test_save_token_usage(tmp_path):
    logs = [
        {"timestamp": 1700000000.0, "tag": "forward", "model": "m", "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}},
        {"timestamp": 1700000001.0, "tag": "reverse", "model": "m", "usage": {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0, "cached": True}},
    ]
    path = tmp_path / "token_usage.json"
    save_token_usage(logs, str(path))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["summary"]["forward"]["total_tokens"] == 15
    assert data["summary"]["reverse"]["cached_count"] == 1
    assert isinstance(data["detailed_logs"][0]["timestamp"], str)

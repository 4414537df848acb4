import datetime
import json
import logging
import os
from typing import Dict, List
from xml.sax.saxutils import escape

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .models import TranslationRecord
from .scoring import quality_level
from .translator import language_name

logger = logging.getLogger(__name__)

LEVEL_LABELS = {"good": "양호", "fair": "보통", "poor": "미흡"}

FONT_CANDIDATES = [
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/truetype/nanum/NanumGothic.ttf",
    "/System/Library/Fonts/AppleSDGothicNeo.ttc",
    "/System/Library/Fonts/Supplemental/Arial Unicode.ttf",
    "C:\\Windows\\Fonts\\malgun.ttf",
]
CID_FALLBACK_FONT = "HYSMyeongJo-Medium"


def generate_json_report(records: List[TranslationRecord], output_path: str):
    """Save records as JSON."""
    data = [record.model_dump(mode="json") for record in records]
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def records_to_rows(records: List[TranslationRecord]) -> List[Dict[str, object]]:
    rows = []
    for record in records:
        score = record.score
        rows.append({
            "Language": record.language,
            "Status": record.status,
            "Original": record.original,
            "Translated": record.translated,
            "Back-translated": record.reverse_translated,
            "Final Score": score.final_score,
            "Level": quality_level(score.final_score),
            "Reverse Translation": round(score.reverse_translation_score, 2),
            "Cultural Context": round(score.cultural_context_score, 2),
            "Ambiguous Terms": round(score.ambiguous_term_score, 2),
            "Terminology": round(score.terminology_score, 2),
            "Warnings": "\n".join(record.warnings),
            "Suggestions": "\n".join(record.suggestions),
            "Created At": record.created_at.isoformat(),
        })
    return rows


def generate_excel_report(records: List[TranslationRecord], output_path: str):
    """Save the assessment table as Excel."""
    df = pd.DataFrame(records_to_rows(records))
    df.to_excel(output_path, index=False)


def register_report_font() -> str:
    """Register a font able to render Hangul and CJK text for ReportLab."""
    for path in FONT_CANDIDATES:
        if not os.path.exists(path):
            continue
        try:
            pdfmetrics.registerFont(TTFont('ReportUnicode', path))
            return 'ReportUnicode'
        except Exception as e:
            logger.debug("Font %s not usable: %s", path, e)

    pdfmetrics.registerFont(UnicodeCIDFont(CID_FALLBACK_FONT))
    return CID_FALLBACK_FONT


def _para(text: str, style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape(text).replace("\n", "<br/>"), style)


def generate_pdf_report(records: List[TranslationRecord], output_path: str):
    """Generate a PDF assessment report: summary table, then one section per language."""
    doc = SimpleDocTemplate(output_path, pagesize=A4)
    elements = []

    font_name = register_report_font()
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'TitleKR', parent=styles['Title'], fontName=font_name, fontSize=22, leading=28, spaceAfter=20
    )
    header_style = ParagraphStyle(
        'HeaderKR', parent=styles['Heading2'], fontName=font_name, fontSize=14, textColor=colors.navy, spaceAfter=10
    )
    normal_style = ParagraphStyle(
        'NormalKR', parent=styles['Normal'], fontName=font_name, fontSize=10, leading=14
    )
    small_style = ParagraphStyle(
        'SmallKR', parent=styles['Normal'], fontName=font_name, fontSize=8, textColor=colors.gray
    )

    # 1. Header
    elements.append(Paragraph("재난문자 번역 품질 평가 보고서", title_style))
    elements.append(Paragraph(f"생성 일시: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M')}", small_style))
    elements.append(Spacer(1, 10))
    if records:
        elements.append(Paragraph("원문", header_style))
        elements.append(_para(records[0].original, normal_style))
        elements.append(Spacer(1, 20))

    # 2. Summary
    elements.append(Paragraph("언어별 종합 점수", header_style))
    data_scores = [["언어", "최종", "역번역", "문화", "동음이의어", "용어", "등급"]]
    for record in records:
        s = record.score
        data_scores.append([
            language_name(record.language),
            str(s.final_score),
            f"{s.reverse_translation_score:.1f}",
            f"{s.cultural_context_score:.1f}",
            f"{s.ambiguous_term_score:.1f}",
            f"{s.terminology_score:.1f}",
            "실패" if record.failed else LEVEL_LABELS[quality_level(s.final_score)],
        ])
    t_scores = Table(data_scores, colWidths=[110, 45, 55, 50, 70, 50, 50])
    t_scores.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, -1), font_name),
        ('BACKGROUND', (0, 0), (-1, 0), colors.navy),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
    ]))
    elements.append(t_scores)
    elements.append(PageBreak())

    # 3. Details per language
    for record in records:
        elements.append(Paragraph(f"{language_name(record.language)} ({record.language})", header_style))
        data_texts = [
            ["번역문", _para(record.translated, normal_style)],
            ["역번역문", _para(record.reverse_translated, normal_style)],
        ]
        t_texts = Table(data_texts, colWidths=[70, 400])
        t_texts.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, -1), font_name),
            ('BACKGROUND', (0, 0), (0, -1), colors.lightsteelblue),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ]))
        elements.append(t_texts)
        elements.append(Spacer(1, 5))

        for warning in record.warnings:
            elements.append(_para(f"• 경고: {warning}", normal_style))
        for suggestion in record.suggestions:
            elements.append(_para(f"• 제안: {suggestion}", normal_style))
        elements.append(Spacer(1, 15))

    doc.build(elements)


def save_token_usage(detailed_logs: List[dict], output_path: str):
    """
    Save detailed provider call logs and a token summary per direction.
    """
    summary = {
        "forward": {"calls": 0, "prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0, "cached_count": 0},
        "reverse": {"calls": 0, "prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0, "cached_count": 0},
    }

    formatted_logs = []
    for log in detailed_logs:
        bucket = summary.get(log.get("tag", ""))
        u = log.get("usage") or {}
        if bucket is not None:
            bucket["calls"] += 1
            bucket["prompt_tokens"] += u.get("prompt_tokens") or 0
            bucket["completion_tokens"] += u.get("completion_tokens") or 0
            bucket["total_tokens"] += u.get("total_tokens") or 0
            if u.get("cached"):
                bucket["cached_count"] += 1

        new_log = log.copy()
        if isinstance(new_log.get("timestamp"), (int, float)):
            dt = datetime.datetime.fromtimestamp(new_log["timestamp"])
            new_log["timestamp"] = dt.strftime("%Y-%m-%d %H:%M:%S")
        formatted_logs.append(new_log)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump({"summary": summary, "detailed_logs": formatted_logs}, f, ensure_ascii=False, indent=2, default=str)

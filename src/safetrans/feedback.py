"""Warnings for live input hints and improvement suggestions for assessed translations."""
from typing import List

from .models import Lexicon, ScoreBreakdown
from .scoring import URGENCY_KEYWORDS

REVIEW_THRESHOLD = 70

TERMINOLOGY_WARNING = '재난 전문용어 "{term}" 포함됨'
AMBIGUOUS_WARNING = '동음이의어 "{term}" 감지됨'

CULTURAL_SUGGESTION = '"{term}"은(는) "{rendering}"(으)로 번역하세요 ({explanation})'
TERMINOLOGY_SUGGESTION = '재난 용어 "{term}"은(는) "{rendering}"(으)로 번역하세요'
URGENCY_SUGGESTION = "긴급성을 나타내는 표현이 역번역에서 누락되었습니다. 긴급도가 드러나도록 번역을 보완하세요."
REVIEW_SUGGESTION = "품질 점수가 낮습니다. 배포 전 전문 번역가의 검토를 권장합니다."
ACCEPTABLE_MESSAGE = "번역 품질이 양호합니다."


def warnings_for(original: str, lexicon: Lexicon) -> List[str]:
    warnings = [
        TERMINOLOGY_WARNING.format(term=e.source_term)
        for e in lexicon.terminology if e.source_term in original
    ]
    warnings.extend(
        AMBIGUOUS_WARNING.format(term=e.source_term)
        for e in lexicon.ambiguous if e.source_term in original
    )
    return warnings


def suggestions_for(
    original: str,
    translated: str,
    reverse_translated: str,
    score: ScoreBreakdown,
    target_language: str,
    lexicon: Lexicon,
) -> List[str]:
    """
    Improvement suggestions, most specific first:
    cultural renderings, terminology renderings, urgency loss, low score.
    Always returns at least one entry.
    """
    suggestions = []

    for entry in lexicon.cultural:
        if entry.source_term not in original:
            continue
        rendering = entry.rendering_by_language.get(target_language)
        if rendering and rendering not in translated:
            suggestions.append(CULTURAL_SUGGESTION.format(
                term=entry.source_term, rendering=rendering, explanation=entry.explanation,
            ))

    for entry in lexicon.terminology:
        if entry.source_term in original and not entry.is_rendered_in(translated):
            suggestions.append(TERMINOLOGY_SUGGESTION.format(
                term=entry.source_term, rendering=entry.canonical_renderings[0],
            ))

    if any(k in original and k not in reverse_translated for k in URGENCY_KEYWORDS):
        suggestions.append(URGENCY_SUGGESTION)

    if score.final_score < REVIEW_THRESHOLD:
        suggestions.append(REVIEW_SUGGESTION)

    return suggestions or [ACCEPTABLE_MESSAGE]

"""Quality scoring for emergency-notice translations."""
from typing import List, Optional

from .models import AmbiguousEntry, Lexicon, ScoreBreakdown
from .similarity import edit_similarity, semantic_preserved, structural_similarity

# Keyword categories checked for information preservation in the back-translation.
TEMPORAL_MARKERS = [
    "즉시", "지금", "현재", "오늘", "내일", "오전", "오후", "새벽", "야간",
    "시까지", "시부터", "분까지", "이내", "당분간",
]
LOCATIVE_MARKERS = [
    "지역", "일대", "인근", "주변", "해안", "하천", "계곡", "산간", "저지대",
    "지하", "건물", "실내", "실외", "도로", "대피소",
]
ACTION_MARKERS = [
    "대피", "이동", "피하", "벗어나", "자제", "금지", "확인", "신고", "주의", "대비", "따르",
]

# Highest bucket first; the first bucket with a hit wins, "low" otherwise.
URGENCY_LEVELS = [
    ("high", [
        "긴급", "즉시", "대피", "경보", "위험", "재난", "신속히", "벗어나",
        "emergency", "immediately", "evacuate", "evacuation", "warning", "danger",
    ]),
    ("medium", [
        "주의", "주의보", "경계", "조치", "대응", "안전", "피해", "조심",
        "caution", "advisory", "alert", "watch", "careful",
    ]),
]

# Keywords whose loss in the back-translation triggers the urgency suggestion.
URGENCY_KEYWORDS = [
    "긴급", "즉시", "대피", "주의", "경보", "위험", "피해", "재난",
    "신속히", "안전", "조치", "대응", "경계", "피하", "벗어나",
]

# Action-verb pattern -> keyword stem used for the semantic check.
ACTION_PATTERNS = {
    "대피하": "대피",
    "대피해": "대피",
    "이동하": "이동",
    "피하": "피하",
    "벗어나": "벗어나",
    "자제하": "자제",
    "신고하": "신고",
    "확인하": "확인",
    "대비하": "대비",
    "따르": "따르",
}

# Ambiguous term -> context -> clue substrings that select that context.
CONTEXT_CLUES = {
    "전주": {
        "지명": ["전북", "전라북도", "전주시", "완산", "덕진", "한옥마을"],
        "시간": ["지난", "주간", "지난주", "이번 주", "다음 주"],
    },
    "수원": {
        "지명": ["경기", "수원시", "팔달", "장안구", "영통", "권선"],
        "물": ["식수", "상수도", "취수", "수질", "급수"],
    },
    "광주": {
        "전라남도": ["전남", "전라남도", "광주광역시", "광산구"],
        "경기도": ["경기도", "경기 광주", "곤지암", "오포"],
    },
    "서울": {
        "지명": ["서울시", "서울특별시", "수도권", "강남", "종로"],
        "동사": ["일어서", "세우", "우뚝"],
    },
    "부산": {
        "지명": ["부산시", "부산광역시", "해운대", "사하구", "경남"],
        "동사": ["흩어", "산산이", "부서"],
    },
    "대구": {
        "지명": ["대구시", "대구광역시", "수성구", "달서구", "경북"],
        "명사": ["구슬", "둥근", "공 모양"],
    },
    "인천": {
        "지명": ["인천시", "인천광역시", "인천공항", "송도", "연수구"],
        "명사": ["인자한", "어진 사람"],
    },
}

# Context assumed when clues are missing or contradict each other.
# Terms without an entry are not checked in that case.
DEFAULT_CONTEXTS = {
    "전주": "지명",
    "수원": "지명",
    "서울": "지명",
    "부산": "지명",
}

CULTURAL_PENALTY = 15
AMBIGUOUS_PENALTY = 20


def urgency_level(text: str) -> str:
    lowered = text.lower()
    for level, keywords in URGENCY_LEVELS:
        if any(k in lowered for k in keywords):
            return level
    return "low"


def quality_level(final_score: int) -> str:
    if final_score >= 80:
        return "good"
    if final_score >= 60:
        return "fair"
    return "poor"


def resolve_context(entry: AmbiguousEntry, original: str) -> Optional[str]:
    clues = CONTEXT_CLUES.get(entry.source_term, {})
    fired = [
        context for context in entry.contexts
        if any(clue in original for clue in clues.get(context, []))
    ]
    if len(fired) == 1:
        return fired[0]
    return DEFAULT_CONTEXTS.get(entry.source_term)


class QualityScorer:
    """
    Scores a forward translation using its back-translation and the lexicon.

    Weights:
    - Reverse-translation fidelity: 40%
    - Cultural context: 25%
    - Ambiguous terms: 20%
    - Terminology: 15%

    Scoring is a pure function of the three texts, the target language and
    the lexicon snapshot held by the scorer.
    """

    def __init__(self, lexicon: Lexicon):
        self.lexicon = lexicon

    def score(self, original: str, translated: str, reverse_translated: str, target_language: str) -> ScoreBreakdown:
        return ScoreBreakdown.combine(
            reverse=self.reverse_translation_score(original, reverse_translated),
            cultural=self.cultural_context_score(original, translated, target_language),
            ambiguous=self.ambiguous_term_score(original, translated),
            terminology=self.terminology_score(original, translated),
        )

    # --- Reverse translation (40%) ---

    def reverse_translation_score(self, original: str, reverse_translated: str) -> float:
        preservation = self._information_preservation(original, reverse_translated)
        consistency = self._semantic_consistency(original, reverse_translated)
        fidelity = self._disaster_fidelity(original, reverse_translated)
        return preservation * 0.5 + consistency * 0.3 + fidelity * 0.2

    def _keyword_categories(self) -> List[List[str]]:
        return [TEMPORAL_MARKERS, LOCATIVE_MARKERS, self.lexicon.terminology_terms(), ACTION_MARKERS]

    def _information_preservation(self, original: str, reverse_translated: str) -> float:
        total = 0
        preserved = 0
        for keywords in self._keyword_categories():
            for keyword in keywords:
                if keyword in original:
                    total += 1
                    if semantic_preserved(keyword, reverse_translated):
                        preserved += 1
        if total == 0:
            return 100.0
        return 100.0 * preserved / total

    def _semantic_consistency(self, original: str, reverse_translated: str) -> float:
        return (
            edit_similarity(original, reverse_translated) * 0.6
            + structural_similarity(original, reverse_translated) * 0.4
        )

    def _disaster_fidelity(self, original: str, reverse_translated: str) -> float:
        urgency = 100.0 if urgency_level(original) == urgency_level(reverse_translated) else 60.0
        return urgency * 0.6 + self._action_clarity(original, reverse_translated) * 0.4

    def _action_clarity(self, original: str, reverse_translated: str) -> float:
        present = [(p, stem) for p, stem in ACTION_PATTERNS.items() if p in original]
        if not present:
            return 100.0
        clear = sum(
            1 for pattern, stem in present
            if pattern in reverse_translated or semantic_preserved(stem, reverse_translated)
        )
        return 100.0 * clear / len(present)

    # --- Cultural context (25%) ---

    def cultural_context_score(self, original: str, translated: str, target_language: str) -> float:
        score = 100
        for entry in self.lexicon.cultural:
            if entry.source_term not in original:
                continue
            rendering = entry.rendering_by_language.get(target_language)
            if rendering and rendering not in translated:
                score -= CULTURAL_PENALTY
        return float(max(0, score))

    # --- Ambiguous terms (20%) ---

    def ambiguous_term_score(self, original: str, translated: str) -> float:
        score = 100
        lowered = translated.lower()
        for entry in self.lexicon.ambiguous:
            if entry.source_term not in original:
                continue
            context = resolve_context(entry, original)
            if context is None:
                continue
            renderings = entry.renderings_by_context.get(context, ())
            # No expected rendering for the resolved context: nothing to penalize
            if not renderings:
                continue
            if not any(r.lower() in lowered for r in renderings):
                score -= AMBIGUOUS_PENALTY
        return float(max(0, score))

    # --- Terminology (15%) ---

    def terminology_score(self, original: str, translated: str) -> float:
        present = [e for e in self.lexicon.terminology if e.source_term in original]
        if not present:
            return 100.0
        accurate = sum(1 for e in present if e.is_rendered_in(translated))
        return 100.0 * accurate / len(present)


def score(
    original: str,
    translated: str,
    reverse_translated: str,
    target_language: str,
    lexicon: Lexicon,
) -> ScoreBreakdown:
    return QualityScorer(lexicon).score(original, translated, reverse_translated, target_language)


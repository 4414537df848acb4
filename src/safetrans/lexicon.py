"""
Lexicon store: terminology, ambiguous-term and cultural-context tables.

The tables are loaded once from a JSON asset into an immutable ``Lexicon``
snapshot. ``LexiconStore.reload`` swaps in a whole new snapshot, so readers
never observe a half-loaded lexicon.
"""
import json
import logging
import os
from importlib import resources
from threading import Lock
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .models import AmbiguousEntry, CulturalEntry, Lexicon, TerminologyEntry

logger = logging.getLogger(__name__)

DEFAULT_LEXICON_RESOURCE = "lexicon.json"


class LexiconLoadError(Exception):
    """Raised when the lexicon asset is missing or malformed."""


def _read_asset(path: Optional[str]) -> Dict[str, Any]:
    try:
        if path is None:
            raw = (resources.files("safetrans") / "data" / DEFAULT_LEXICON_RESOURCE).read_text(encoding="utf-8")
        else:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
    except (OSError, ModuleNotFoundError) as e:
        raise LexiconLoadError(f"Cannot read lexicon asset '{path or DEFAULT_LEXICON_RESOURCE}': {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise LexiconLoadError(f"Lexicon asset is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise LexiconLoadError("Lexicon asset must be a JSON object")
    return data


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = data.get(key, {})
    if not isinstance(section, dict):
        raise LexiconLoadError(f"Lexicon section '{key}' must be an object keyed by source term")
    return section


def parse_lexicon(data: Dict[str, Any]) -> Lexicon:
    """Build a ``Lexicon`` from the decoded asset document."""
    try:
        terminology = tuple(
            TerminologyEntry(source_term=term, canonical_renderings=renderings)
            for term, renderings in _section(data, "terminology").items()
        )
        ambiguous = tuple(
            AmbiguousEntry(
                source_term=term,
                contexts=raw.get("contexts", ()),
                renderings_by_context=raw.get("translations", {}),
            )
            for term, raw in _section(data, "ambiguous").items()
        )
        cultural = tuple(
            CulturalEntry(
                source_term=term,
                explanation=raw.get("explanation", ""),
                rendering_by_language=raw.get("translations", {}),
            )
            for term, raw in _section(data, "cultural").items()
        )
        return Lexicon(
            version=str(data.get("version", "1")),
            terminology=terminology,
            ambiguous=ambiguous,
            cultural=cultural,
        )
    except (ValidationError, AttributeError, TypeError) as e:
        raise LexiconLoadError(f"Malformed lexicon asset: {e}") from e


def load_lexicon(path: Optional[str] = None) -> Lexicon:
    """Load a lexicon snapshot from ``path`` or from the bundled asset."""
    if path is not None and not os.path.exists(path):
        raise LexiconLoadError(f"Lexicon asset not found: {path}")
    lexicon = parse_lexicon(_read_asset(path))
    logger.info(
        "Loaded lexicon v%s (%d terminology, %d ambiguous, %d cultural) from %s",
        lexicon.version, len(lexicon.terminology), len(lexicon.ambiguous), len(lexicon.cultural),
        path or "bundled asset",
    )
    return lexicon


class LexiconStore:
    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._lock = Lock()
        self._lexicon = load_lexicon(path)

    @property
    def current(self) -> Lexicon:
        return self._lexicon

    def reload(self, path: Optional[str] = None) -> Lexicon:
        """
        Load a fresh snapshot and swap it in. On failure the previous
        snapshot stays active and ``LexiconLoadError`` propagates.
        """
        target = path if path is not None else self.path
        lexicon = load_lexicon(target)
        with self._lock:
            self._lexicon = lexicon
            self.path = target
        logger.info("Lexicon reloaded (v%s)", lexicon.version)
        return lexicon

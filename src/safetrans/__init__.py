from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("safetrans")
except PackageNotFoundError:
    __version__ = "unknown"

from .core import AssessmentEngine
from .lexicon import LexiconLoadError, LexiconStore, load_lexicon
from .models import EngineConfig, ModelConfig, ScoreBreakdown, TranslationRecord
from .translator import OpenAITranslator, ProviderError, Translator

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from threading import Event, Lock
from typing import Callable, Dict, Iterable, List, Optional, Set

from tqdm import tqdm

from .feedback import suggestions_for, warnings_for
from .lexicon import LexiconStore
from .models import EngineConfig, ScoreBreakdown, TranslationRecord
from .scoring import QualityScorer
from .translator import OpenAITranslator, Translator

logger = logging.getLogger(__name__)

FAILURE_MARKER = "번역 실패"
FAILURE_WARNING = "번역 중 오류가 발생했습니다."
FAILURE_SUGGESTION = "번역 서비스 연결 상태를 확인한 후 다시 시도하세요."

ProgressCallback = Callable[[int, int, str], None]


class AssessmentCancelled(Exception):
    """Raised inside a pipeline when the run was cancelled between provider calls."""


def degraded_record(original: str, language: str, error: str) -> TranslationRecord:
    return TranslationRecord(
        language=language,
        original=original,
        translated=FAILURE_MARKER,
        reverse_translated=FAILURE_MARKER,
        score=ScoreBreakdown.zero(),
        warnings=(FAILURE_WARNING,),
        suggestions=(FAILURE_SUGGESTION,),
        status="failed",
        error=error,
    )


def _check_cancelled(cancel_event: Optional[Event]):
    if cancel_event is not None and cancel_event.is_set():
        raise AssessmentCancelled()


class AssessmentEngine:
    """
    Runs translation quality assessments for several target languages.

    Each language goes through its own pipeline (forward translation,
    back-translation, scoring, feedback). Pipelines run concurrently and a
    provider failure only degrades the record of its own language.
    """

    def __init__(
        self,
        config: EngineConfig,
        translator: Optional[Translator] = None,
        lexicon_store: Optional[LexiconStore] = None,
    ):
        self.config = config
        self.lexicon_store = lexicon_store or LexiconStore(config.lexicon_path)
        self.translator = translator or OpenAITranslator(
            config.translator_config,
            source_language=config.source_language,
            enable_cache=config.enable_cache,
            cache_file=config.cache_file,
        )
        self._results: Dict[str, TranslationRecord] = {}
        self.results_lock = Lock()
        # One cancellation event per in-flight run_all call
        self._active_runs: Set[Event] = set()
        self._runs_lock = Lock()
        self._last_run_cancelled = False

    # --- Engine API ---

    @property
    def results(self) -> Dict[str, TranslationRecord]:
        with self.results_lock:
            return dict(self._results)

    def history(self) -> List[TranslationRecord]:
        return sorted(self.results.values(), key=lambda r: r.created_at, reverse=True)

    def clear_results(self):
        with self.results_lock:
            self._results.clear()

    def warnings_for(self, original: str) -> List[str]:
        return warnings_for(original, self.lexicon_store.current)

    def assess(
        self,
        original: str,
        target_languages: Optional[Iterable[str]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, TranslationRecord]:
        languages = self.config.target_languages if target_languages is None else target_languages
        return self.run_all(original, languages, progress_callback=progress_callback)

    def cancel(self):
        """
        Stop the runs in progress. Completed languages keep their records.
        Runs started afterwards are not affected.
        """
        with self._runs_lock:
            for event in self._active_runs:
                event.set()

    @property
    def cancelled(self) -> bool:
        """True while a run is being cancelled, or if the last finished run was."""
        with self._runs_lock:
            return self._last_run_cancelled or any(e.is_set() for e in self._active_runs)

    # --- Pipeline ---

    def assess_language(
        self,
        original: str,
        target_language: str,
        translator: Optional[Translator] = None,
    ) -> TranslationRecord:
        """
        Forward translation -> back-translation -> scoring -> feedback.
        Translator failures produce a degraded record instead of raising.
        """
        return self._assess(original, target_language, translator, None)

    def _assess(
        self,
        original: str,
        target_language: str,
        translator: Optional[Translator],
        cancel_event: Optional[Event],
    ) -> TranslationRecord:
        translator = translator or self.translator
        lexicon = self.lexicon_store.current

        try:
            _check_cancelled(cancel_event)
            translated = translator.translate(original, target_language)
            _check_cancelled(cancel_event)
            reverse_translated = translator.translate(translated, self.config.source_language)
        except AssessmentCancelled:
            raise
        except Exception as e:
            logger.warning("Assessment for '%s' degraded: %s", target_language, e)
            return degraded_record(original, target_language, str(e) or e.__class__.__name__)

        score = QualityScorer(lexicon).score(original, translated, reverse_translated, target_language)
        return TranslationRecord(
            language=target_language,
            original=original,
            translated=translated,
            reverse_translated=reverse_translated,
            score=score,
            warnings=tuple(warnings_for(original, lexicon)),
            suggestions=tuple(suggestions_for(
                original, translated, reverse_translated, score, target_language, lexicon,
            )),
            created_at=datetime.now(timezone.utc),
        )

    # --- Fan-out ---

    def run_all(
        self,
        original: str,
        target_languages: Iterable[str],
        translator: Optional[Translator] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, TranslationRecord]:
        """
        Assess ``original`` for every requested language concurrently and
        merge the records into the result map. Entries for languages that
        were not requested are left as they are.
        """
        languages = list(dict.fromkeys(target_languages))
        if not languages:
            return self.results

        cancel_event = Event()
        with self._runs_lock:
            self._active_runs.add(cancel_event)

        workers = min(self.config.concurrency, len(languages))
        executor = ThreadPoolExecutor(max_workers=workers)
        try:
            future_to_lang = {
                executor.submit(self._assess, original, lang, translator, cancel_event): lang
                for lang in languages
            }
            processed = 0
            total = len(languages)
            with tqdm(total=total, desc="Assessment", unit="lang", colour='green',
                      disable=not self.config.show_progress) as pbar:
                for future in as_completed(future_to_lang):
                    lang = future_to_lang[future]
                    if cancel_event.is_set():
                        for pending in future_to_lang:
                            pending.cancel()
                    if future.cancelled():
                        continue
                    try:
                        record = future.result()
                    except AssessmentCancelled:
                        logger.info("Assessment for '%s' cancelled", lang)
                        continue
                    except Exception as e:
                        # _assess only lets unexpected scoring bugs through
                        logger.exception("Assessment for '%s' failed", lang)
                        record = degraded_record(original, lang, str(e))

                    with self.results_lock:
                        self._results[lang] = record

                    pbar.update(1)
                    processed += 1
                    if progress_callback:
                        try:
                            progress_callback(processed, total, lang)
                        except Exception as e:
                            logger.warning("Progress callback error: %s", e)
        except KeyboardInterrupt:
            cancel_event.set()
            raise
        finally:
            executor.shutdown(wait=True, cancel_futures=cancel_event.is_set())
            with self._runs_lock:
                self._active_runs.discard(cancel_event)
                self._last_run_cancelled = cancel_event.is_set()

        return self.results

    # --- Reports ---

    def generate_reports(self, output_dir: str, report_prefix: str = "", languages: Optional[Iterable[str]] = None):
        """Write JSON, Excel and PDF assessment reports plus provider telemetry."""
        from .utils import generate_excel_report, generate_json_report, generate_pdf_report, save_token_usage

        os.makedirs(output_dir, exist_ok=True)

        results = self.results
        if languages is not None:
            results = {lang: results[lang] for lang in languages if lang in results}
        records = list(results.values())

        generate_json_report(records, os.path.join(output_dir, f"{report_prefix}assessment.json"))
        generate_excel_report(records, os.path.join(output_dir, f"{report_prefix}assessment_report.xlsx"))
        generate_pdf_report(records, os.path.join(output_dir, f"{report_prefix}assessment_report.pdf"))

        detailed_logs = getattr(self.translator, "detailed_logs", None)
        if detailed_logs is not None:
            save_token_usage(detailed_logs, os.path.join(output_dir, f"{report_prefix}token_usage.json"))

import hashlib
import json
import logging
import os
import time
from threading import Lock
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from openai import OpenAI, OpenAIError

from .models import ModelConfig
from .prompts import REVERSE_TRANSLATION_PROMPT, TRANSLATION_PROMPT

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "ko": "Korean",
    "en": "English",
    "zh": "Chinese (Simplified)",
    "ja": "Japanese",
    "vi": "Vietnamese",
    "th": "Thai",
}


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


class ProviderError(Exception):
    """The translation provider could not produce a translation."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


@runtime_checkable
class Translator(Protocol):
    def translate(self, text: str, target_language: str) -> str:
        ...


class OpenAITranslator:
    """
    Translator backed by an OpenAI-compatible chat completion endpoint.

    Translating into ``source_language`` uses the back-translation prompt,
    any other target uses the emergency-notice translation prompt.
    """

    def __init__(
        self,
        config: ModelConfig,
        source_language: str = "ko",
        enable_cache: bool = True,
        cache_file: str = ".safetrans_cache.json",
    ):
        self.config = config
        self.source_language = source_language
        self.enable_cache = enable_cache
        self.detailed_logs: List[Dict[str, Any]] = []
        self.log_lock = Lock()

        self.cache_file = cache_file
        self.cache_lock = Lock()
        self.cache = self._load_cache() if enable_cache else {}

    def _load_cache(self) -> Dict[str, str]:
        if os.path.exists(self.cache_file):
            try:
                with open(self.cache_file, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except (OSError, ValueError) as e:
                logger.warning("Failed to load translation cache %s: %s", self.cache_file, e)
        return {}

    def _save_cache(self, key: str, value: str):
        if not self.enable_cache:
            return

        with self.cache_lock:
            self.cache[key] = value
            try:
                with open(self.cache_file, 'w', encoding='utf-8') as f:
                    json.dump(self.cache, f, ensure_ascii=False, indent=2)
            except OSError as e:
                logger.warning("Failed to save translation cache %s: %s", self.cache_file, e)

    def _system_prompt(self, target_language: str) -> str:
        if target_language == self.source_language:
            return REVERSE_TRANSLATION_PROMPT.format(source_language=language_name(target_language))
        return TRANSLATION_PROMPT.format(target_language=language_name(target_language))

    def _log(self, tag: str, model: str, duration: float, messages, content: str, usage: Dict[str, Any]):
        with self.log_lock:
            self.detailed_logs.append({
                "timestamp": time.time(),
                "tag": tag,
                "model": model,
                "model_config_alias": self.config.model,
                "duration": duration,
                "messages": messages,
                "response_content": content,
                "usage": usage,
            })

    def translate(self, text: str, target_language: str) -> str:
        tag = "reverse" if target_language == self.source_language else "forward"
        messages = [
            {"role": "system", "content": self._system_prompt(target_language)},
            {"role": "user", "content": text},
        ]

        # 1. Check cache
        cache_key = hashlib.md5(
            (self.config.model + target_language + messages[0]["content"] + text).encode('utf-8')
        ).hexdigest()
        with self.cache_lock:
            cached = self.cache.get(cache_key) if self.enable_cache else None
        if cached is not None:
            self._log(tag, self.config.model, 0.0, messages, cached, {
                "prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0, "cached": True,
            })
            return cached

        # 2. Cache miss - call API
        client = OpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            max_retries=self.config.max_retries,
        )
        start_time = time.time()
        try:
            response = client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except OpenAIError as e:
            logger.warning("Provider call failed (%s -> %s): %s", tag, target_language, e)
            raise ProviderError(f"Translation request to '{target_language}' failed: {e}", cause=e) from e
        duration = time.time() - start_time

        try:
            content = (response.choices[0].message.content or "").strip()
        except (AttributeError, IndexError, TypeError) as e:
            raise ProviderError(f"Unexpected provider response for '{target_language}'", cause=e) from e
        if not content:
            raise ProviderError(f"Provider returned an empty translation for '{target_language}'")

        usage = response.usage
        usage_dict = usage.model_dump() if hasattr(usage, 'model_dump') else dict(getattr(usage, '__dict__', {}))
        real_model = getattr(response, 'model', None) or self.config.model
        self._log(tag, real_model, duration, messages, content, usage_dict)
        logger.debug("Translated into %s in %.2fs with %s", target_language, duration, real_model)

        # 3. Update cache
        self._save_cache(cache_key, content)
        return content

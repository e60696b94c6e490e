"""
Translation adapter

Translates free text with the LLM provider. Translation never fails the
caller: on provider error or empty output the source text is returned.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from contract_analyser.shared.core.config import config
from contract_analyser.shared.core.errors import AnalysisError
from contract_analyser.shared.services.llm_provider import RESPONSE_FORMAT_TEXT, get_llm_provider

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "ar": "Arabic",
}

TRANSLATION_SYSTEM_PROMPT = (
    "You are a highly accurate language translator. Translate the following text into "
    "{language}. If the text is already in {language}, return the original text as is. "
    "Provide only the translated or original text. Do NOT include any additional "
    "commentary, formatting, or conversational filler."
)


class TranslationService:
    """
    Text translation through the LLM provider
    """

    def __init__(self, provider=None, model: str = None, max_tokens: int = 1000):
        self._provider = provider
        self.model = model or config.OPENAI_TRANSLATION_MODEL
        self.max_tokens = max_tokens

    @property
    def provider(self):
        if self._provider is None:
            self._provider = get_llm_provider()
        return self._provider

    async def translate_text(self, text: Optional[str], target_language: str,
                             source_language: str = "en") -> str:
        """
        Translate ``text`` into ``target_language``

        Empty text, or a target equal to the source language, is returned
        unchanged without calling the provider.
        """
        if not text or not target_language or target_language == source_language:
            return text or ""

        language_name = LANGUAGE_NAMES.get(target_language, target_language)
        try:
            translated = await self.provider.generate(
                TRANSLATION_SYSTEM_PROMPT.format(language=language_name),
                text,
                response_format=RESPONSE_FORMAT_TEXT,
                temperature=0.1,
                max_tokens=self.max_tokens,
                model=self.model,
            )
        except AnalysisError as e:
            logger.error(f"Translation to {target_language} failed, returning source text: {e.message}")
            return text

        translated = (translated or "").strip()
        if not translated:
            logger.warning(f"Empty translation to {target_language}, returning source text")
            return text
        return translated

    async def translate_many(self, texts: Sequence[Optional[str]], target_language: str,
                             source_language: str = "en") -> List[str]:
        """Translate independent strings concurrently; output order matches input order."""
        return list(await asyncio.gather(*(
            self.translate_text(text, target_language, source_language) for text in texts
        )))


_translation_service = None


def get_translation_service() -> TranslationService:
    """TranslationService singleton"""
    global _translation_service
    if _translation_service is None:
        _translation_service = TranslationService()
    return _translation_service

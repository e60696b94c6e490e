"""
LLM provider adapter (OpenAI chat completions)

All SDK exceptions are converted into ``AnalysisError`` here; callers never
see raw ``openai`` exceptions.
"""

import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from contract_analyser.shared.core.config import config
from contract_analyser.shared.core.errors import AnalysisError

logger = logging.getLogger(__name__)

RESPONSE_FORMAT_JSON = "json"
RESPONSE_FORMAT_TEXT = "text"

_TRANSIENT_ERRORS = (
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class LLMProvider:
    """
    Text generation over the OpenAI API
    """

    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        max_tokens: int = None,
        timeout: float = None,
        client: AsyncOpenAI = None,
    ):
        """
        Args:
            api_key: OpenAI API key (default: OPENAI_API_KEY)
            model: chat model name (default: OPENAI_MODEL)
            max_tokens: completion token cap (default: LLM_MAX_TOKENS)
            timeout: per-request timeout in seconds (default: LLM_TIMEOUT_SECONDS)
            client: preconfigured client, mainly for tests
        """
        self.model = model or config.OPENAI_MODEL
        self.max_tokens = max_tokens or config.LLM_MAX_TOKENS

        if client is not None:
            self.client = client
        else:
            api_key = api_key or config.OPENAI_API_KEY
            if not api_key:
                raise ValueError("OpenAI API key is required")
            # Retries are handled by the retry policy, not the SDK
            self.client = AsyncOpenAI(
                api_key=api_key,
                timeout=timeout or config.LLM_TIMEOUT_SECONDS,
                max_retries=0,
            )

        logger.info(f"LLMProvider initialized with model: {self.model}")

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        response_format: str = RESPONSE_FORMAT_JSON,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        """
        Run a single chat completion

        Args:
            system_prompt: instruction set
            user_prompt: user message (contract text, text to translate, ...)
            response_format: "json" enables JSON mode, "text" returns free text
            temperature: sampling temperature
            max_tokens: overrides the provider default
            model: overrides the provider default

        Returns:
            the completion text

        Raises:
            AnalysisError: transient_provider, provider_error or empty_model_output
        """
        request = {
            "model": model or self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }
        if response_format == RESPONSE_FORMAT_JSON:
            request["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(**request)
        except _TRANSIENT_ERRORS as e:
            logger.warning(f"Transient LLM provider error ({request['model']}): {e}")
            raise AnalysisError(f"LLM provider unavailable: {e}", kind=AnalysisError.TRANSIENT_PROVIDER) from e
        except openai.APIError as e:
            logger.error(f"LLM provider error ({request['model']}): {e}")
            raise AnalysisError(f"LLM provider error: {e}", kind=AnalysisError.PROVIDER_ERROR) from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            logger.error(f"Empty completion from {request['model']}")
            raise AnalysisError("No content received from the language model",
                                kind=AnalysisError.EMPTY_MODEL_OUTPUT)

        if response.usage:
            logger.debug(
                f"LLM usage: prompt={response.usage.prompt_tokens}, "
                f"completion={response.usage.completion_tokens}"
            )
        return content


_llm_provider = None


def get_llm_provider() -> LLMProvider:
    """LLMProvider singleton"""
    global _llm_provider
    if _llm_provider is None:
        _llm_provider = LLMProvider()
    return _llm_provider

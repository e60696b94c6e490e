"""
Contract Analysis Agent
Turns contract text into a normalized, scored AnalysisResult.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from contract_analyser.analysis_agent import prompts
from contract_analyser.analysis_agent.normalizer import (
    normalize_analysis,
    normalize_demo,
    parse_model_output,
)
from contract_analyser.analysis_agent.scoring import check_score_conformance
from contract_analyser.shared.core.celery_app import celery_app
from contract_analyser.shared.core.config import config
from contract_analyser.shared.core.errors import AnalysisError, ContractAnalyserError, ValidationError
from contract_analyser.shared.core.retry import retry_async
from contract_analyser.shared.models import AnalysisResult, DemoAnalysis
from contract_analyser.shared.services.llm_provider import RESPONSE_FORMAT_JSON, get_llm_provider
from contract_analyser.shared.services.locale_service import get_locale_service
from contract_analyser.shared.services.translation_service import (
    LANGUAGE_NAMES,
    get_translation_service,
)

logger = logging.getLogger(__name__)


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, AnalysisError) and error.is_transient


class ContractAnalysisAgent:
    """
    Contract analysis agent

    - basic: one all-in-one JSON generation
    - advanced: an extraction pass whose metadata feeds a deep analysis pass
      that also returns dates, parties, clause summaries and a redlined clause

    The agent performs no persistence.
    """

    def __init__(
        self,
        provider=None,
        translator=None,
        locale=None,
        max_attempts: int = None,
        initial_delay: float = None,
        defensive_translation: bool = None,
        sleep: Callable = None,
    ):
        """
        Args:
            provider: LLM provider (default: shared OpenAI provider)
            translator: translation adapter for the defensive pass
            locale: locale tables (for the "not specified" sentinel)
            max_attempts: attempts per LLM call (default: LLM_MAX_ATTEMPTS)
            initial_delay: first backoff delay in seconds (default: LLM_INITIAL_DELAY_SECONDS)
            defensive_translation: re-translate free-text fields (default: DEFENSIVE_TRANSLATION)
            sleep: awaitable sleep used between retries (tests pass a recorder)
        """
        self.provider = provider or get_llm_provider()
        self.translator = translator or get_translation_service()
        self.locale = locale or get_locale_service()
        self.max_attempts = max_attempts or config.LLM_MAX_ATTEMPTS
        self.initial_delay = initial_delay if initial_delay is not None else config.LLM_INITIAL_DELAY_SECONDS
        self.defensive_translation = (
            config.DEFENSIVE_TRANSLATION if defensive_translation is None else defensive_translation
        )
        self.sleep = sleep

    async def _generate_json(self, system_prompt: str, user_prompt: str, temperature: float) -> Dict[str, Any]:
        """One LLM call plus parsing; only transient provider errors are retried"""

        async def operation():
            raw = await self.provider.generate(
                system_prompt,
                user_prompt,
                response_format=RESPONSE_FORMAT_JSON,
                temperature=temperature,
            )
            return parse_model_output(raw)

        return await retry_async(
            operation,
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            retry_on=(AnalysisError,),
            should_retry=_is_transient,
            sleep=self.sleep,
        )

    async def analyze(self, contract_text: str, output_language: str = "en",
                      advanced: bool = False) -> AnalysisResult:
        """
        Analyze one contract

        Args:
            contract_text: full contract text
            output_language: language code for every user-facing field
            advanced: run the two-pass advanced analysis

        Returns:
            AnalysisResult whose compliance_score is the recomputed score

        Raises:
            ValidationError: empty contract text
            AnalysisError: provider failure after retries, or unusable model output
        """
        if not contract_text or not contract_text.strip():
            raise ValidationError("Contract text is required")

        output_language = output_language or "en"
        language_name = LANGUAGE_NAMES.get(output_language, output_language)
        not_specified = self.locale.translate("not_specified", output_language)

        logger.info(f"Starting {'advanced' if advanced else 'basic'} analysis ({output_language}, "
                    f"{len(contract_text)} chars)")

        if advanced:
            metadata = await self._generate_json(
                prompts.EXTRACTION_SYSTEM_PROMPT,
                prompts.contract_user_prompt(contract_text),
                temperature=0.1,
            )
            logger.debug(f"Extraction pass keys: {sorted(metadata)}")
            data = await self._generate_json(
                prompts.build_deep_analysis_prompt(language_name, not_specified),
                prompts.deep_analysis_user_prompt(contract_text, json.dumps(metadata, ensure_ascii=False, indent=2)),
                temperature=0.2,
            )
        else:
            data = await self._generate_json(
                prompts.build_basic_prompt(language_name, not_specified),
                prompts.contract_user_prompt(contract_text),
                temperature=0.2,
            )

        result = normalize_analysis(data, output_language, not_specified, advanced=advanced)

        conformance = check_score_conformance(result.model_compliance_score, result.findings)
        result.compliance_score = conformance.expected

        if self.defensive_translation and output_language != "en":
            await self._localize(result, output_language)

        logger.info(f"Analysis finished: score={result.compliance_score} "
                    f"(model {result.model_compliance_score}), findings={len(result.findings)}")
        return result

    async def _localize(self, result: AnalysisResult, language: str) -> None:
        """Translate free-text fields the model may have left in English"""
        texts: List[Optional[str]] = []
        setters: List[Callable[[str], None]] = []

        def add(value, setter):
            if value:
                texts.append(value)
                setters.append(setter)

        add(result.executive_summary, lambda v: setattr(result, "executive_summary", v))
        add(result.data_protection_impact, lambda v: setattr(result, "data_protection_impact", v))
        for finding in result.findings:
            add(finding.title, lambda v, f=finding: setattr(f, "title", v))
            add(finding.description, lambda v, f=finding: setattr(f, "description", v))
            for i, rec in enumerate(finding.recommendations):
                add(rec, lambda v, f=finding, i=i: f.recommendations.__setitem__(i, v))
        for summary in result.jurisdiction_summaries.values():
            for i, item in enumerate(summary.key_findings):
                add(item, lambda v, s=summary, i=i: s.key_findings.__setitem__(i, v))
        if result.performed_advanced_analysis:
            add(result.contract_type, lambda v: setattr(result, "contract_type", v))
            add(result.liability_cap_summary, lambda v: setattr(result, "liability_cap_summary", v))
            add(result.indemnification_clause_summary,
                lambda v: setattr(result, "indemnification_clause_summary", v))
            add(result.confidentiality_obligations_summary,
                lambda v: setattr(result, "confidentiality_obligations_summary", v))

        translated = await self.translator.translate_many(texts, language)
        for setter, value in zip(setters, translated):
            setter(value)

    async def analyze_demo(self, contract_text: str, output_language: str = "en") -> DemoAnalysis:
        """Short preview analysis; nothing is persisted"""
        if not contract_text or not contract_text.strip():
            raise ValidationError("Missing contractText")

        output_language = output_language or "en"
        not_specified = self.locale.translate("not_specified", output_language)
        data = await self._generate_json(
            prompts.build_demo_prompt(LANGUAGE_NAMES.get(output_language, output_language), not_specified),
            prompts.contract_user_prompt(contract_text),
            temperature=0.2,
        )
        demo = normalize_demo(data, not_specified)

        if output_language != "en":
            names = ("executive_summary", "key_finding_title", "key_finding_description",
                     "contract_type", "liability_cap_summary")
            values = [getattr(demo, name) for name in names]
            translated = await self.translator.translate_many(values + demo.parties, output_language)
            for name, original, value in zip(names, values, translated):
                if original:
                    setattr(demo, name, value)
            demo.parties = translated[len(names):]
        return demo


@celery_app.task(name="analysis.analyze_contract", queue="analysis")
def analyze_contract_task(contract_id: str, user_id: str, output_language: str = None,
                          perform_analysis: bool = True, advanced: bool = False,
                          send_email: bool = True):
    """
    Run the full analysis pipeline for a stored contract

    Returns:
        pipeline summary dict, or {"status": "error", ...} on failure
    """
    from contract_analyser.analysis_agent.pipeline import AnalysisPipeline
    from contract_analyser.shared.database import SessionLocal

    db = SessionLocal()
    try:
        logger.info(f"Analysis task started: {contract_id}")
        pipeline = AnalysisPipeline(db)
        return asyncio.run(pipeline.run(
            contract_id,
            user_id,
            output_language=output_language,
            perform_analysis=perform_analysis,
            advanced=advanced,
            send_email=send_email,
        ))
    except ContractAnalyserError as e:
        logger.error(f"Analysis task failed: {contract_id}, error: {e.message}", exc_info=True)
        return {"status": "error", "contract_id": contract_id, "error": e.message}
    finally:
        db.close()

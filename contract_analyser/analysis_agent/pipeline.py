"""
End-to-end contract analysis pipeline

contract -> name translation -> analysis engine -> artifact + report blobs
-> single atomic save -> status/notification/audit -> best-effort delivery

Only the analysis result save touches the analysis tables, so a failure or
timeout at any earlier step leaves no partial result behind.
"""

import asyncio
import json
import logging
from datetime import date, datetime
from typing import Optional

from contract_analyser.delivery_agent.agent import deliver_report
from contract_analyser.report_agent.agent import store_report
from contract_analyser.shared.core.config import config
from contract_analyser.shared.core.errors import AnalysisError, ContractAnalyserError, NotFoundError
from contract_analyser.shared.database import log_activity
from contract_analyser.shared.models import AnalysisResult, DeliverySettings
from contract_analyser.shared.services.analysis_store import AnalysisStore
from contract_analyser.shared.services.blob_storage import (
    ARTIFACTS_BUCKET,
    REPORTS_BUCKET,
    get_blob_storage,
)
from contract_analyser.shared.services.locale_service import get_locale_service
from contract_analyser.shared.services.translation_service import get_translation_service

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_ANALYZING = "analyzing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


def artifact_file_path(user_id: str, contract_id: str) -> str:
    """``<userId>/<contractId>/redlined_clause_<contractId>.json``"""
    return f"{user_id}/{contract_id}/redlined_clause_{contract_id}.json"


class AnalysisPipeline:
    """
    Runs one contract through analysis, report rendering and delivery
    """

    def __init__(self, db, agent=None, translator=None, locale=None, storage=None,
                 generator=None, dispatcher=None, timeout: float = None):
        self.db = db
        self.store = AnalysisStore(db)
        self._agent = agent
        self.translator = translator or get_translation_service()
        self.locale = locale or get_locale_service()
        self.storage = storage or get_blob_storage()
        self._generator = generator
        self.dispatcher = dispatcher
        self.timeout = timeout or config.PIPELINE_TIMEOUT_SECONDS

    @property
    def agent(self):
        if self._agent is None:
            from contract_analyser.analysis_agent.agent import ContractAnalysisAgent
            self._agent = ContractAnalysisAgent(translator=self.translator, locale=self.locale)
        return self._agent

    @property
    def generator(self):
        if self._generator is None:
            from contract_analyser.report_agent.generator import ReportGenerator
            self._generator = ReportGenerator(locale=self.locale)
        return self._generator

    async def run(
        self,
        contract_id: str,
        user_id: str,
        output_language: Optional[str] = None,
        perform_analysis: bool = True,
        advanced: bool = False,
        send_email: bool = True,
        today: Optional[date] = None,
    ) -> dict:
        """
        Analyze a stored contract owned by ``user_id``

        Args:
            contract_id: contract to analyze
            user_id: caller; must own the contract
            output_language: overrides the contract's declared language
            perform_analysis: False only marks the upload as completed
            advanced: run the two-pass advanced analysis
            send_email: caller's report email flag
            today: analysis date (defaults to the current UTC date)

        Returns:
            summary dict for the API response

        Raises:
            NotFoundError / ForbiddenError: contract missing or not owned
            AnalysisError: analysis failed or timed out
            ContractAnalyserError: persistence or storage failure
        """
        contract = self.store.get_contract(contract_id, user_id)
        language = output_language or contract.output_language or "en"
        if language != contract.output_language:
            self.store.update_contract(contract, output_language=language)

        if not perform_analysis:
            self.store.update_contract(contract, status=STATUS_COMPLETED, processing_progress=100)
            log_activity(
                self.db, user_id, "CONTRACT_UPLOADED_NO_ANALYSIS",
                f"User uploaded contract '{contract.name}' without performing analysis.",
                {"contract_id": contract_id},
            )
            return {"message": "Contract uploaded, analysis skipped.", "contractId": contract_id,
                    "status": STATUS_COMPLETED}

        if not (contract.contract_content or "").strip():
            raise NotFoundError("Contract content not found")

        settings = self.store.load_delivery_settings(user_id)
        self.store.update_contract(contract, status=STATUS_ANALYZING, processing_progress=0)

        try:
            try:
                contract_name, result = await asyncio.wait_for(
                    self._analyze(contract, language, advanced), timeout=self.timeout
                )
            except asyncio.TimeoutError as e:
                raise AnalysisError(f"Analysis timed out after {self.timeout:.0f}s",
                                    kind=AnalysisError.TIMEOUT) from e

            self.store.update_contract(contract, processing_progress=80)
            result.analysis_date = today or datetime.utcnow().date()
            result = self._persist(contract, result, contract_name, language)
        except ContractAnalyserError as e:
            self._mark_failed(contract, settings, e)
            raise

        self.store.add_notification(
            user_id,
            self.locale.translate("notification_title_analysis_complete", settings.language_preference),
            self.locale.translate("notification_message_analysis_complete", settings.language_preference,
                                  contractName=contract_name),
            type="success",
        )
        log_activity(
            self.db, user_id, "CONTRACT_ANALYSIS_COMPLETED",
            f"Analysis completed for contract '{contract.name}'.",
            {"contract_id": contract_id, "analysis_result_id": result.id,
             "compliance_score": result.compliance_score, "advanced": advanced},
        )

        delivery = self._deliver(contract, result, settings, send_email)

        return {
            "message": "Analysis completed successfully",
            "contractId": contract_id,
            "analysisResultId": result.id,
            "complianceScore": result.compliance_score,
            "reportFilePath": contract.report_file_path,
            "redlinedClauseArtifactPath": result.redlined_clause_artifact_path,
            "delivery": delivery,
        }

    async def _analyze(self, contract, language: str, advanced: bool):
        self.store.update_contract(contract, processing_progress=30)

        contract_name = contract.name
        if language != "en":
            contract_name = await self.translator.translate_text(contract.name, language)
            self.store.update_contract(contract, translated_name=contract_name)

        self.store.update_contract(contract, processing_progress=40 if advanced else 50)
        result = await self.agent.analyze(contract.contract_content, language, advanced=advanced)
        return contract_name, result

    def _persist(self, contract, result: AnalysisResult, contract_name: str, language: str) -> AnalysisResult:
        """Store blobs, then save the result once; blobs are removed if the save fails"""
        artifact_path = None
        if result.redlined_clause_artifact is not None:
            path = artifact_file_path(contract.user_id, contract.id)
            payload = json.dumps(result.redlined_clause_artifact.to_dict(), ensure_ascii=False)
            try:
                self.storage.put(ARTIFACTS_BUCKET, path, payload.encode("utf-8"))
                artifact_path = path
            except ContractAnalyserError as e:
                logger.error(f"Failed to store redlined artifact for contract {contract.id}: {e.message}")
        result.redlined_clause_artifact_path = artifact_path

        report_path = None
        try:
            self.store.update_contract(contract, processing_progress=90)
            html = self.generator.render_report(result, contract_name, language)
            report_path = store_report(html, contract.id, storage=self.storage)
            result = self.store.save_analysis(contract.id, result)
        except ContractAnalyserError:
            self._remove_blobs(contract.id, report_path, artifact_path)
            raise

        self.store.update_contract(
            contract,
            status=STATUS_COMPLETED,
            processing_progress=100,
            report_file_path=report_path,
        )
        return result

    def _remove_blobs(self, contract_id: str, report_path: Optional[str], artifact_path: Optional[str]) -> None:
        """Delete blobs written for a result that was never saved"""
        for bucket, path in ((REPORTS_BUCKET, report_path), (ARTIFACTS_BUCKET, artifact_path)):
            if not path:
                continue
            try:
                self.storage.delete(bucket, [path])
            except ContractAnalyserError as e:
                logger.error(f"Failed to remove {bucket}/{path} for contract {contract_id}: {e.message}")

    def _mark_failed(self, contract, settings: DeliverySettings, error: ContractAnalyserError) -> None:
        logger.error(f"Analysis failed for contract {contract.id}: {error!r}")
        self.db.rollback()
        self.store.update_contract(contract, status=STATUS_FAILED, processing_progress=0)
        self.store.add_notification(
            contract.user_id,
            self.locale.translate("notification_title_analysis_failed", settings.language_preference),
            self.locale.translate("notification_message_analysis_failed", settings.language_preference,
                                  contractName=contract.name, errorMessage=error.message),
            type="error",
        )
        log_activity(
            self.db, contract.user_id, "CONTRACT_ANALYSIS_FAILED",
            f"Analysis failed for contract '{contract.name}': {error.message}",
            {"contract_id": contract.id, "error": error.message,
             "kind": getattr(error, "kind", None)},
        )

    def _deliver(self, contract, result: AnalysisResult, settings: DeliverySettings, send_email: bool) -> dict:
        """Best effort: delivery failures are logged and reported, never raised"""
        try:
            outcome = deliver_report(
                self.store, contract,
                send_email=send_email,
                storage=self.storage,
                dispatcher=self.dispatcher,
                analysis_result=result,
                settings=settings,
            )
        except ContractAnalyserError as e:
            logger.warning(f"Report delivery failed for contract {contract.id}: {e.message}")
            return {"sent": False, "reason": "error", "error": e.message}
        return outcome.to_dict()

"""
Delivery Agent
Emails a stored analysis report to the contract owner.
"""

import logging

from contract_analyser.delivery_agent.dispatcher import (
    DeliveryDispatcher,
    DeliveryOutcome,
    skip_reason,
)
from contract_analyser.shared.core.celery_app import celery_app
from contract_analyser.shared.core.errors import ContractAnalyserError, NotFoundError
from contract_analyser.shared.services.blob_storage import REPORTS_BUCKET, get_blob_storage

logger = logging.getLogger(__name__)


def deliver_report(store, contract, send_email: bool = True, storage=None, dispatcher=None,
                   analysis_result=None, settings=None) -> DeliveryOutcome:
    """
    Send the stored report of ``contract`` by email, subject to the delivery gates

    Settings are read once into a snapshot (unless the caller already holds
    one) before any gate is evaluated.

    Raises:
        NotFoundError: the contract has no analysis or no stored report
        DeliveryError: storage or email provider failure
    """
    settings = settings or store.load_delivery_settings(contract.user_id)
    reason = skip_reason(send_email, settings.global_email_reports_enabled, settings.email_reports_enabled)
    if reason is not None:
        logger.info(f"Report email for contract {contract.id} skipped: {reason}")
        return DeliveryOutcome(sent=False, reason=reason)

    result = analysis_result or store.load_analysis(contract.id)
    if result is None:
        raise NotFoundError(f"No analysis result for contract {contract.id}")
    if not contract.report_file_path:
        raise NotFoundError(f"No report stored for contract {contract.id}")

    storage = storage or get_blob_storage()
    report_html = storage.get(REPORTS_BUCKET, contract.report_file_path).decode("utf-8")
    report_url = storage.create_signed_url(REPORTS_BUCKET, contract.report_file_path)

    dispatcher = dispatcher or DeliveryDispatcher()
    outcome = dispatcher.dispatch(
        settings,
        send_email,
        contract_name=contract.translated_name or contract.name,
        executive_summary=result.executive_summary,
        report_html=report_html,
        report_url=report_url,
        language=result.output_language or contract.output_language or "en",
    )
    logger.info(f"Report email for contract {contract.id}: {outcome.reason}")
    return outcome


@celery_app.task(name="delivery.send_report_email", queue="delivery")
def send_report_email_task(contract_id: str, send_email: bool = True):
    """
    Email the latest report of a contract

    Returns:
        delivery outcome dict, or an error dict
    """
    from contract_analyser.shared.database import SessionLocal
    from contract_analyser.shared.services.analysis_store import AnalysisStore

    db = SessionLocal()
    try:
        store = AnalysisStore(db)
        contract = store.get_contract(contract_id)
        outcome = deliver_report(store, contract, send_email=send_email)
        return {"status": "success", "contract_id": contract_id, **outcome.to_dict()}
    except ContractAnalyserError as e:
        logger.error(f"Report email failed: {contract_id}, error: {e.message}")
        return {"status": "error", "contract_id": contract_id, "error": e.message}
    finally:
        db.close()

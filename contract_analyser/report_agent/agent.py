"""
Report Agent
Renders analysis results to HTML and stores them in the reports bucket.
"""

import logging
import time

from contract_analyser.shared.core.celery_app import celery_app
from contract_analyser.shared.core.errors import ContractAnalyserError, NotFoundError
from contract_analyser.shared.services.blob_storage import REPORTS_BUCKET, get_blob_storage

logger = logging.getLogger(__name__)


def report_file_path(contract_id: str, timestamp_ms: int = None) -> str:
    """``reports/report-<contractId>-<timestamp>.html``"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"reports/report-{contract_id}-{timestamp_ms}.html"


def store_report(html: str, contract_id: str, storage=None, timestamp_ms: int = None) -> str:
    """
    Upload a rendered report

    Returns:
        path of the stored report inside the reports bucket

    Raises:
        DeliveryError: storage failure
    """
    storage = storage or get_blob_storage()
    path = report_file_path(contract_id, timestamp_ms)
    storage.put(REPORTS_BUCKET, path, html.encode("utf-8"))
    return path


def generate_report(store, contract, language: str = None, storage=None, generator=None) -> str:
    """
    Render the latest analysis of ``contract``, store it and record its path

    Returns:
        stored report path

    Raises:
        NotFoundError: the contract has no analysis result
    """
    from contract_analyser.report_agent.generator import ReportGenerator

    result = store.load_analysis(contract.id)
    if result is None:
        raise NotFoundError(f"No analysis result for contract {contract.id}")

    language = language or result.output_language or contract.output_language or "en"
    generator = generator or ReportGenerator()
    html = generator.render_report(result, contract.translated_name or contract.name, language)
    path = store_report(html, contract.id, storage=storage)
    store.update_contract(contract, report_file_path=path)

    logger.info(f"Report generated for contract {contract.id}: {path}")
    return path


@celery_app.task(name="report.generate_report", queue="report")
def generate_report_task(contract_id: str, language: str = None):
    """
    Re-render the report of an analyzed contract

    Returns:
        {"status": "success", "report_file_path": ...} or an error dict
    """
    from contract_analyser.shared.database import SessionLocal
    from contract_analyser.shared.services.analysis_store import AnalysisStore

    db = SessionLocal()
    try:
        logger.info(f"Report generation started: {contract_id}")
        store = AnalysisStore(db)
        contract = store.get_contract(contract_id)
        path = generate_report(store, contract, language=language)
        return {"status": "success", "contract_id": contract_id, "report_file_path": path}
    except ContractAnalyserError as e:
        logger.error(f"Report generation failed: {contract_id}, error: {e.message}", exc_info=True)
        return {"status": "error", "contract_id": contract_id, "error": e.message}
    finally:
        db.close()

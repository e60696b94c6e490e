"""
Cleanup Agent
Applies the retention policy: contracts past ``RETENTION_DAYS`` without a
subscription, or marked for deletion by an admin, are deleted together with
their analysis results, findings, report and artifact blobs.
"""

import logging
from datetime import datetime
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError

from contract_analyser.shared.core.celery_app import celery_app
from contract_analyser.shared.core.config import config
from contract_analyser.shared.core.errors import ContractAnalyserError
from contract_analyser.shared.services.blob_storage import (
    ARTIFACTS_BUCKET,
    REPORTS_BUCKET,
    get_blob_storage,
)

logger = logging.getLogger(__name__)

CONTRACTS_BUCKET = "contracts"


def delete_contract_with_blobs(store, contract, storage=None) -> Dict[str, List[str]]:
    """
    Delete one contract, its dependent rows and every blob it references

    Returns:
        removed blob paths per bucket
    """
    storage = storage or get_blob_storage()
    artifact_paths = [
        record.redlined_clause_artifact_path
        for record in contract.analysis_results
        if record.redlined_clause_artifact_path
    ]

    removed = {
        ARTIFACTS_BUCKET: storage.delete(ARTIFACTS_BUCKET, artifact_paths),
        REPORTS_BUCKET: storage.delete(REPORTS_BUCKET, [contract.report_file_path] if contract.report_file_path else []),
        CONTRACTS_BUCKET: storage.delete(CONTRACTS_BUCKET, [contract.file_path] if contract.file_path else []),
    }
    store.delete_contract(contract)
    return removed


def delete_old_files(store, storage=None, retention_days: int = None, now: datetime = None) -> dict:
    """
    Run the retention policy once

    Per-contract failures are collected in the results, never raised.
    """
    retention_days = retention_days if retention_days is not None else config.RETENTION_DAYS
    contracts = store.find_expired_contracts(retention_days, now=now)

    if not contracts:
        logger.info("No contracts to delete")
        return {"message": "No contracts to delete.", "results": []}

    logger.info(f"Found {len(contracts)} contracts to delete")
    results = []
    for contract in contracts:
        contract_id = contract.id
        try:
            delete_contract_with_blobs(store, contract, storage=storage)
            results.append({"id": contract_id, "status": "success"})
        except (ContractAnalyserError, SQLAlchemyError) as e:
            store.db.rollback()
            logger.error(f"Failed to delete contract {contract_id}: {e}")
            results.append({"id": contract_id, "status": "failed", "reason": str(e)})

    succeeded = sum(1 for r in results if r["status"] == "success")
    failed = len(results) - succeeded
    logger.info(f"Retention cleanup finished. Successful: {succeeded}, Failed: {failed}")
    return {
        "message": f"Deletion process completed. {succeeded} contracts deleted, {failed} failed.",
        "results": results,
    }


@celery_app.task(name="cleanup.delete_old_files", queue="cleanup")
def delete_old_files_task():
    """Scheduled retention cleanup"""
    from contract_analyser.shared.database import SessionLocal
    from contract_analyser.shared.services.analysis_store import AnalysisStore

    db = SessionLocal()
    try:
        return delete_old_files(AnalysisStore(db))
    finally:
        db.close()

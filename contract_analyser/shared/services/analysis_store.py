"""
Persistence of contracts, analysis results and findings

An analysis result and its findings are written in a single transaction, so
a failure never leaves a partial result behind.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contract_analyser.shared.core.errors import ContractAnalyserError, ForbiddenError, NotFoundError
from contract_analyser.shared.database import (
    AnalysisRecord,
    AppSettings,
    ContractDocument,
    FindingRecord,
    Notification,
    UserProfile,
)
from contract_analyser.shared.models import (
    AnalysisResult,
    DeliverySettings,
    Finding,
    JurisdictionSummary,
)
from contract_analyser.shared.services.locale_service import get_locale_service

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATE_FIELDS = ("effective_date", "termination_date", "renewal_date")


def _date_column(value: Optional[str]) -> Optional[str]:
    # The "not specified" sentinel is stored as NULL
    if value and _ISO_DATE.match(value):
        return value
    return None


class AnalysisStore:
    """
    Repository over one SQLAlchemy session
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    def get_contract(self, contract_id: str, user_id: Optional[str] = None) -> ContractDocument:
        """
        Load a contract, optionally enforcing ownership

        Raises:
            NotFoundError: no such contract
            ForbiddenError: ``user_id`` given and not the owner
        """
        contract = self.db.query(ContractDocument).filter(ContractDocument.id == contract_id).first()
        if contract is None:
            raise NotFoundError(f"Contract not found: {contract_id}")
        if user_id is not None and contract.user_id != user_id:
            logger.warning(f"User {user_id} denied access to contract {contract_id}")
            raise ForbiddenError("You do not have permission to access this contract")
        return contract

    def create_contract(self, user_id: str, name: str, contract_content: str,
                        output_language: str = "en", **fields) -> ContractDocument:
        contract = ContractDocument(
            user_id=user_id,
            name=name,
            contract_content=contract_content,
            output_language=output_language,
            **fields,
        )
        self.db.add(contract)
        self.db.commit()
        return contract

    def update_contract(self, contract: ContractDocument, **fields) -> ContractDocument:
        """Update status/progress and other contract columns"""
        for key, value in fields.items():
            setattr(contract, key, value)
        self.db.commit()
        return contract

    def delete_contract(self, contract: ContractDocument) -> None:
        """Delete a contract; analysis results and findings cascade"""
        self.db.delete(contract)
        self.db.commit()

    def find_expired_contracts(self, retention_days: int, now: datetime = None) -> List[ContractDocument]:
        """Contracts past retention without a subscription, or marked for deletion by an admin"""
        cutoff = (now or datetime.utcnow()) - timedelta(days=retention_days)
        return (
            self.db.query(ContractDocument)
            .filter(or_(
                (ContractDocument.created_at < cutoff) & (ContractDocument.subscription_id.is_(None)),
                ContractDocument.marked_for_deletion_by_admin.is_(True),
            ))
            .order_by(ContractDocument.created_at)
            .all()
        )

    # ------------------------------------------------------------------
    # Analysis results
    # ------------------------------------------------------------------

    def save_analysis(self, contract_id: str, result: AnalysisResult) -> AnalysisResult:
        """
        Persist an analysis result and its findings atomically

        Returns:
            the result with ``id`` (and finding ids) filled in

        Raises:
            ContractAnalyserError: the transaction failed and was rolled back
        """
        record = AnalysisRecord(
            contract_id=contract_id,
            executive_summary=result.executive_summary,
            data_protection_impact=result.data_protection_impact,
            compliance_score=result.compliance_score,
            model_compliance_score=result.model_compliance_score,
            jurisdiction_summaries={
                key: summary.to_dict() for key, summary in result.jurisdiction_summaries.items()
            },
            performed_advanced_analysis=result.performed_advanced_analysis,
            effective_date=_date_column(result.effective_date),
            termination_date=_date_column(result.termination_date),
            renewal_date=_date_column(result.renewal_date),
            contract_type=result.contract_type,
            contract_value=result.contract_value,
            parties=list(result.parties),
            liability_cap_summary=result.liability_cap_summary,
            indemnification_clause_summary=result.indemnification_clause_summary,
            confidentiality_obligations_summary=result.confidentiality_obligations_summary,
            redlined_clause_artifact_path=result.redlined_clause_artifact_path,
            output_language=result.output_language,
            analysis_date=result.analysis_date or datetime.utcnow().date(),
        )
        record.findings = [
            FindingRecord(
                position=position,
                title=finding.title,
                description=finding.description,
                risk_level=finding.risk_level,
                jurisdiction=finding.jurisdiction,
                category=finding.category,
                recommendations=list(finding.recommendations),
                clause_reference=finding.clause_reference,
            )
            for position, finding in enumerate(result.findings)
        ]

        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save analysis results for contract {contract_id}: {e}")
            raise ContractAnalyserError("Failed to save analysis results") from e

        result.id = record.id
        for finding, finding_record in zip(result.findings, record.findings):
            finding.id = finding_record.id
        result.analysis_date = record.analysis_date

        logger.info(f"Saved analysis {record.id} for contract {contract_id} ({len(record.findings)} findings)")
        return result

    def load_analysis(self, contract_id: str) -> Optional[AnalysisResult]:
        """Latest analysis result of a contract, or None"""
        record = (
            self.db.query(AnalysisRecord)
            .filter(AnalysisRecord.contract_id == contract_id)
            .order_by(AnalysisRecord.created_at.desc())
            .first()
        )
        if record is None:
            return None
        return self._to_result(record)

    def _to_result(self, record: AnalysisRecord) -> AnalysisResult:
        language = record.output_language or "en"
        not_specified = get_locale_service().translate("not_specified", language)

        result = AnalysisResult(
            id=record.id,
            executive_summary=record.executive_summary,
            data_protection_impact=record.data_protection_impact,
            compliance_score=record.compliance_score,
            model_compliance_score=record.model_compliance_score,
            findings=[
                Finding(
                    id=f.id,
                    title=f.title,
                    description=f.description,
                    risk_level=f.risk_level,
                    jurisdiction=f.jurisdiction or "Others",
                    category=f.category or "risk",
                    recommendations=list(f.recommendations or []),
                    clause_reference=f.clause_reference,
                )
                for f in record.findings
            ],
            jurisdiction_summaries={
                key: JurisdictionSummary.from_dict(key, value)
                for key, value in (record.jurisdiction_summaries or {}).items()
            },
            performed_advanced_analysis=bool(record.performed_advanced_analysis),
            contract_type=record.contract_type,
            contract_value=record.contract_value,
            parties=list(record.parties or []),
            liability_cap_summary=record.liability_cap_summary,
            indemnification_clause_summary=record.indemnification_clause_summary,
            confidentiality_obligations_summary=record.confidentiality_obligations_summary,
            redlined_clause_artifact_path=record.redlined_clause_artifact_path,
            output_language=language,
            analysis_date=record.analysis_date or (record.created_at.date() if record.created_at else None),
        )
        for name in _DATE_FIELDS:
            setattr(result, name, getattr(record, name) or not_specified)
        return result

    # ------------------------------------------------------------------
    # Profiles, settings, notifications
    # ------------------------------------------------------------------

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self.db.get(UserProfile, user_id)

    def is_admin(self, user_id: str) -> bool:
        profile = self.get_profile(user_id)
        return bool(profile and profile.is_admin)

    def get_app_settings(self) -> AppSettings:
        """The singleton settings row, created with defaults when missing"""
        settings = self.db.get(AppSettings, 1)
        if settings is None:
            settings = AppSettings(id=1, global_email_reports_enabled=True,
                                   default_theme="system", default_jurisdictions=[])
            self.db.add(settings)
            self.db.commit()
        return settings

    def update_app_settings(self, **fields) -> AppSettings:
        """Apply the given (non-None) fields to the settings row"""
        settings = self.get_app_settings()
        for key, value in fields.items():
            if value is not None:
                setattr(settings, key, value)
        self.db.commit()
        return settings

    def load_delivery_settings(self, user_id: str) -> DeliverySettings:
        """Snapshot of the settings that gate report delivery for one user"""
        settings = self.get_app_settings()
        profile = self.get_profile(user_id)
        if profile is None:
            logger.warning(f"No profile for user {user_id}; email reports disabled")
            return DeliverySettings(
                global_email_reports_enabled=bool(settings.global_email_reports_enabled),
                email_reports_enabled=False,
            )
        return DeliverySettings(
            global_email_reports_enabled=bool(settings.global_email_reports_enabled),
            email_reports_enabled=bool(profile.email_reports_enabled),
            email=profile.email,
            full_name=profile.full_name,
            language_preference=profile.language_preference or "en",
        )

    def add_notification(self, user_id: str, title: str, message: str, type: str = "info") -> None:
        self.db.add(Notification(user_id=user_id, title=title, message=message, type=type))
        self.db.commit()

"""
Database connection and ORM tables
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session
from sqlalchemy.sql import func

from contract_analyser.shared.core.config import config

logger = logging.getLogger(__name__)

Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


# Database engine
engine = create_engine(config.DATABASE_URL, **_engine_kwargs(config.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


class UserProfile(Base):
    """User profile and preferences"""
    __tablename__ = "profiles"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=True)
    full_name = Column(String, nullable=True)
    language_preference = Column(String, default="en")
    email_reports_enabled = Column(Boolean, default=True)
    is_admin = Column(Boolean, default=False)
    created_at = Column(DateTime, default=func.now())


class AppSettings(Base):
    """Singleton row holding global application settings"""
    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True, default=1)
    global_email_reports_enabled = Column(Boolean, default=True)
    default_theme = Column(String, default="system")
    default_jurisdictions = Column(JSON, default=list)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class ContractDocument(Base):
    """Uploaded contract"""
    __tablename__ = "contracts"

    id = Column(String, primary_key=True, index=True, default=_new_id)
    user_id = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False, default="Untitled Contract")
    translated_name = Column(String, nullable=True)
    contract_content = Column(Text, nullable=True)
    output_language = Column(String, default="en")
    status = Column(String, default="pending")
    processing_progress = Column(Integer, default=0)
    file_path = Column(String, nullable=True)
    report_file_path = Column(String, nullable=True)
    subscription_id = Column(String, nullable=True)
    marked_for_deletion_by_admin = Column(Boolean, default=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    analysis_results = relationship(
        "AnalysisRecord",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="AnalysisRecord.created_at",
    )


class AnalysisRecord(Base):
    """Persisted analysis result (latest wins)"""
    __tablename__ = "analysis_results"

    id = Column(String, primary_key=True, index=True, default=_new_id)
    contract_id = Column(String, ForeignKey("contracts.id", ondelete="CASCADE"), index=True, nullable=False)
    executive_summary = Column(Text, nullable=False)
    data_protection_impact = Column(Text, nullable=True)
    compliance_score = Column(Integer, nullable=False)
    model_compliance_score = Column(Integer, nullable=True)
    jurisdiction_summaries = Column(JSON, default=dict)

    # Advanced analysis fields
    performed_advanced_analysis = Column(Boolean, default=False)
    effective_date = Column(String, nullable=True)
    termination_date = Column(String, nullable=True)
    renewal_date = Column(String, nullable=True)
    contract_type = Column(String, nullable=True)
    contract_value = Column(String, nullable=True)
    parties = Column(JSON, default=list)
    liability_cap_summary = Column(Text, nullable=True)
    indemnification_clause_summary = Column(Text, nullable=True)
    confidentiality_obligations_summary = Column(Text, nullable=True)
    redlined_clause_artifact_path = Column(String, nullable=True)

    output_language = Column(String, default="en")
    # Date printed on the report; re-renders reuse it
    analysis_date = Column(Date, nullable=True)
    # Microsecond resolution: the latest result of a contract wins
    created_at = Column(DateTime, default=datetime.utcnow)

    contract = relationship("ContractDocument", back_populates="analysis_results")
    findings = relationship(
        "FindingRecord",
        back_populates="analysis_result",
        cascade="all, delete-orphan",
        order_by="FindingRecord.position",
    )


class FindingRecord(Base):
    """Single finding of an analysis result"""
    __tablename__ = "findings"

    id = Column(String, primary_key=True, index=True, default=_new_id)
    analysis_result_id = Column(
        String, ForeignKey("analysis_results.id", ondelete="CASCADE"), index=True, nullable=False
    )
    position = Column(Integer, nullable=False, default=0)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    risk_level = Column(String, nullable=False, default="none")
    jurisdiction = Column(String, nullable=True)
    category = Column(String, nullable=True)
    recommendations = Column(JSON, default=list)
    clause_reference = Column(Text, nullable=True)

    analysis_result = relationship("AnalysisRecord", back_populates="findings")


class Notification(Base):
    """In-app notification"""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, default="info")
    created_at = Column(DateTime, default=func.now())


class AuditLog(Base):
    """Audit trail entry"""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=True)
    event_type = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    event_metadata = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=func.now())


def init_db():
    """Create tables"""
    config.ensure_directories()
    Base.metadata.create_all(bind=engine)


def get_db():
    """Yield a database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def log_activity(
    db: Session,
    user_id: Optional[str],
    event_type: str,
    description: str,
    metadata: Optional[dict] = None,
) -> None:
    """Record an audit event; failures are logged and never raised."""
    try:
        db.add(AuditLog(
            user_id=user_id,
            event_type=event_type,
            description=description,
            event_metadata=metadata or {},
        ))
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to log activity {event_type} for user {user_id}: {e}")

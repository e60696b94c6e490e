"""
FastAPI dependencies: database session, caller identity and collaborators
"""

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from contract_analyser.shared.core.errors import AuthError, ForbiddenError
from contract_analyser.shared.database import get_db
from contract_analyser.shared.services.analysis_store import AnalysisStore
from contract_analyser.shared.services.auth_service import AuthenticatedUser, get_auth_service
from contract_analyser.shared.services.blob_storage import get_blob_storage

logger = logging.getLogger("uvicorn.error")

bearer_scheme = HTTPBearer(auto_error=False)


def get_store(db: Session = Depends(get_db)) -> AnalysisStore:
    return AnalysisStore(db)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """Resolve the bearer token to a user; 401 when missing or rejected"""
    if credentials is None:
        raise AuthError("Authorization header missing")
    return get_auth_service().get_user(credentials.credentials)


def require_admin(
    user: AuthenticatedUser = Depends(get_current_user),
    store: AnalysisStore = Depends(get_store),
) -> AuthenticatedUser:
    if not store.is_admin(user.id):
        logger.warning(f"Non-admin user {user.id} called an admin operation")
        raise ForbiddenError("Admin access required")
    return user


def get_storage():
    return get_blob_storage()


def get_analysis_agent():
    from contract_analyser.analysis_agent.agent import ContractAnalysisAgent
    return ContractAnalysisAgent()


def get_dispatcher():
    from contract_analyser.delivery_agent.dispatcher import DeliveryDispatcher
    return DeliveryDispatcher()

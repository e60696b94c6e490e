"""Shared collaborator adapters"""

from contract_analyser.shared.services.locale_service import (
    LocaleService,
    get_locale_service
)
from contract_analyser.shared.services.llm_provider import (
    LLMProvider,
    get_llm_provider
)
from contract_analyser.shared.services.translation_service import (
    TranslationService,
    get_translation_service
)
from contract_analyser.shared.services.blob_storage import (
    LocalBlobStorage,
    get_blob_storage
)
from contract_analyser.shared.services.email_service import (
    ResendEmailClient,
    get_email_client
)
from contract_analyser.shared.services.auth_service import (
    AuthService,
    AuthenticatedUser,
    get_auth_service
)
from contract_analyser.shared.services.analysis_store import AnalysisStore

__all__ = [
    'LocaleService',
    'get_locale_service',
    'LLMProvider',
    'get_llm_provider',
    'TranslationService',
    'get_translation_service',
    'LocalBlobStorage',
    'get_blob_storage',
    'ResendEmailClient',
    'get_email_client',
    'AuthService',
    'AuthenticatedUser',
    'get_auth_service',
    'AnalysisStore'
]

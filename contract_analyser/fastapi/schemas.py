"""
Pydantic request schemas (camelCase on the wire)
"""
from pydantic import BaseModel
from typing import Optional, List


class ContractAnalyzerRequest(BaseModel):
    """Analyze a stored contract, or create one from text first"""
    contractId: Optional[str] = None
    contractName: Optional[str] = None
    contractText: Optional[str] = None
    outputLanguage: Optional[str] = None
    performAnalysis: bool = True
    performAdvancedAnalysis: bool = False
    sendEmail: bool = True


class ReanalyzeRequest(BaseModel):
    contractId: str
    outputLanguage: Optional[str] = None
    performAdvancedAnalysis: bool = False
    sendEmail: bool = True


class DemoAnalyzerRequest(BaseModel):
    contractText: str
    outputLanguage: str = "en"


class ContractRequest(BaseModel):
    """Operations addressed by contract id only"""
    contractId: str


class GenerateReportRequest(BaseModel):
    contractId: str
    outputLanguage: Optional[str] = None


class TriggerReportEmailRequest(BaseModel):
    contractId: str
    sendEmail: bool = True


class AppSettingsUpdateRequest(BaseModel):
    globalEmailReportsEnabled: Optional[bool] = None
    defaultTheme: Optional[str] = None
    defaultJurisdictions: Optional[List[str]] = None

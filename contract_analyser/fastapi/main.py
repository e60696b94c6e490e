import json
import logging
import mimetypes

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from contract_analyser.analysis_agent.pipeline import AnalysisPipeline
from contract_analyser.cleanup_agent.agent import delete_contract_with_blobs, delete_old_files
from contract_analyser.delivery_agent.agent import deliver_report
from contract_analyser.fastapi.dependencies import (
    get_analysis_agent,
    get_current_user,
    get_dispatcher,
    get_storage,
    get_store,
    require_admin,
)
from contract_analyser.fastapi.schemas import (
    AppSettingsUpdateRequest,
    ContractAnalyzerRequest,
    ContractRequest,
    DemoAnalyzerRequest,
    GenerateReportRequest,
    ReanalyzeRequest,
    TriggerReportEmailRequest,
)
from contract_analyser.report_agent.agent import generate_report
from contract_analyser.shared.core.config import config
from contract_analyser.shared.core.errors import (
    ContractAnalyserError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from contract_analyser.shared.database import init_db, log_activity
from contract_analyser.shared.models import RedlinedClauseArtifact
from contract_analyser.shared.services.auth_service import AuthenticatedUser
from contract_analyser.shared.services.blob_storage import ARTIFACTS_BUCKET, REPORTS_BUCKET

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=config.PROJECT_NAME)


def _cors_headers(origin: str = None) -> dict:
    allowed = origin if origin and origin in config.ALLOWED_ORIGINS else "*"
    return {
        "Access-Control-Allow-Origin": allowed,
        "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
        "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
        "Vary": "Origin",
    }


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    """Answer preflight requests and attach CORS headers to every response"""
    if request.method == "OPTIONS":
        response = Response(status_code=204)
    else:
        response = await call_next(request)
    response.headers.update(_cors_headers(request.headers.get("origin")))
    return response


@app.exception_handler(ContractAnalyserError)
async def contract_analyser_error_handler(request: Request, exc: ContractAnalyserError):
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc!r}")
    else:
        logger.info(f"{request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    fields = sorted({".".join(str(part) for part in error["loc"][1:]) for error in exc.errors()})
    return JSONResponse(status_code=400, content={"error": f"Invalid request body: {', '.join(fields)}"})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.on_event("startup")
async def startup_event():
    """Create tables and storage directories"""
    logger.info("Initializing database...")
    init_db()
    logger.info("Database ready")


@app.get("/")
async def root():
    return {"message": f"{config.PROJECT_NAME} is running"}


def _pipeline(store, agent, storage, dispatcher) -> AnalysisPipeline:
    return AnalysisPipeline(
        store.db,
        agent=agent,
        translator=agent.translator,
        locale=agent.locale,
        storage=storage,
        dispatcher=dispatcher,
    )


@app.post("/contract-analyzer")
async def contract_analyzer(
    body: ContractAnalyzerRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store=Depends(get_store),
    storage=Depends(get_storage),
    agent=Depends(get_analysis_agent),
    dispatcher=Depends(get_dispatcher),
):
    """
    Analyze a contract

    Either ``contractId`` of an uploaded contract, or ``contractText`` (and
    ``contractName``) to create the contract first.
    """
    contract_id = body.contractId
    if not contract_id:
        if not (body.contractText or "").strip():
            raise ValidationError("Missing contractId or contractText")
        contract = store.create_contract(
            user.id,
            (body.contractName or "").strip() or "Untitled contract",
            body.contractText,
            output_language=body.outputLanguage or "en",
        )
        contract_id = contract.id
        log_activity(
            store.db, user.id, "CONTRACT_UPLOADED",
            f"User uploaded contract '{contract.name}'.",
            {"contract_id": contract_id},
        )

    return await _pipeline(store, agent, storage, dispatcher).run(
        contract_id,
        user.id,
        output_language=body.outputLanguage,
        perform_analysis=body.performAnalysis,
        advanced=body.performAdvancedAnalysis,
        send_email=body.sendEmail,
    )


@app.post("/re-analyze-contract")
async def re_analyze_contract(
    body: ReanalyzeRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store=Depends(get_store),
    storage=Depends(get_storage),
    agent=Depends(get_analysis_agent),
    dispatcher=Depends(get_dispatcher),
):
    """Re-run the pipeline on the stored text of an owned contract"""
    contract = store.get_contract(body.contractId, user.id)
    if not (contract.contract_content or "").strip():
        raise ValidationError("Contract has no stored text to re-analyze")

    log_activity(
        store.db, user.id, "CONTRACT_REANALYSIS_REQUESTED",
        f"User requested re-analysis of contract '{contract.name}'.",
        {"contract_id": contract.id, "advanced": body.performAdvancedAnalysis},
    )
    return await _pipeline(store, agent, storage, dispatcher).run(
        contract.id,
        user.id,
        output_language=body.outputLanguage,
        advanced=body.performAdvancedAnalysis,
        send_email=body.sendEmail,
    )


@app.post("/demo-analyzer")
async def demo_analyzer(body: DemoAnalyzerRequest, agent=Depends(get_analysis_agent)):
    """Preview analysis for anonymous visitors; nothing is stored"""
    demo = await agent.analyze_demo(body.contractText, body.outputLanguage)
    return demo.to_dict()


@app.post("/generate-analysis-report")
async def generate_analysis_report(
    body: GenerateReportRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store=Depends(get_store),
    storage=Depends(get_storage),
):
    contract = store.get_contract(body.contractId, user.id)
    path = generate_report(store, contract, language=body.outputLanguage, storage=storage)
    return {"message": "Report generated successfully", "contractId": contract.id, "reportFilePath": path}


@app.post("/get-signed-report-url")
async def get_signed_report_url(
    body: ContractRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store=Depends(get_store),
    storage=Depends(get_storage),
):
    """Time-limited URL of the contract's stored report (owner only)"""
    contract = store.get_contract(body.contractId, user.id)
    if not contract.report_file_path:
        raise NotFoundError("No report has been generated for this contract")
    return {"signedUrl": storage.create_signed_url(REPORTS_BUCKET, contract.report_file_path)}


@app.post("/trigger-report-email")
async def trigger_report_email(
    body: TriggerReportEmailRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store=Depends(get_store),
    storage=Depends(get_storage),
    dispatcher=Depends(get_dispatcher),
):
    contract = store.get_contract(body.contractId, user.id)
    outcome = deliver_report(store, contract, send_email=body.sendEmail, storage=storage, dispatcher=dispatcher)
    message = "Report email sent" if outcome.sent else f"Report email skipped: {outcome.reason}"
    return {"message": message, **outcome.to_dict()}


@app.post("/admin-update-app-settings")
async def admin_update_app_settings(
    body: AppSettingsUpdateRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    store=Depends(get_store),
):
    settings = store.update_app_settings(
        global_email_reports_enabled=body.globalEmailReportsEnabled,
        default_theme=body.defaultTheme,
        default_jurisdictions=body.defaultJurisdictions,
    )
    changes = body.model_dump(exclude_none=True)
    log_activity(
        store.db, admin.id, "APP_SETTINGS_UPDATED",
        "Admin updated global application settings.",
        changes,
    )
    return {
        "message": "App settings updated successfully",
        "settings": {
            "globalEmailReportsEnabled": settings.global_email_reports_enabled,
            "defaultTheme": settings.default_theme,
            "defaultJurisdictions": settings.default_jurisdictions or [],
        },
    }


@app.post("/admin-delete-contract")
async def admin_delete_contract(
    body: ContractRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    store=Depends(get_store),
    storage=Depends(get_storage),
):
    contract = store.get_contract(body.contractId)
    contract_id, owner_id, name = contract.id, contract.user_id, contract.name
    delete_contract_with_blobs(store, contract, storage=storage)
    log_activity(
        store.db, admin.id, "CONTRACT_DELETED",
        f"Admin deleted contract '{name}'.",
        {"contract_id": contract_id, "owner_id": owner_id},
    )
    return {"message": "Contract deleted successfully", "contractId": contract_id}


@app.post("/delete-old-files")
async def delete_old_files_endpoint(
    admin: AuthenticatedUser = Depends(require_admin),
    store=Depends(get_store),
    storage=Depends(get_storage),
):
    return delete_old_files(store, storage=storage)


@app.get("/view-redlined-artifact", response_class=HTMLResponse)
async def view_redlined_artifact(artifactPath: str = None, lang: str = "en", storage=Depends(get_storage)):
    """Render one stored redlined clause artifact"""
    from contract_analyser.report_agent.generator import ReportGenerator

    if not artifactPath:
        raise ValidationError("Missing artifactPath")

    raw = storage.get(ARTIFACTS_BUCKET, artifactPath)
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(f"Invalid redlined artifact {artifactPath}: {e}")
        raise ContractAnalyserError("Stored artifact is not valid JSON") from e
    if not isinstance(data, dict):
        raise ContractAnalyserError("Stored artifact is not valid JSON")

    artifact = RedlinedClauseArtifact.from_dict(data)
    return HTMLResponse(ReportGenerator().render_redlined_artifact(artifact, lang))


@app.get("/storage/{bucket}/{path:path}")
async def signed_blob(bucket: str, path: str, expires: int = 0, token: str = "", storage=Depends(get_storage)):
    """Serve a blob behind a signed URL"""
    if not storage.verify_signature(bucket, path, expires, token):
        raise ForbiddenError("Invalid or expired signature")
    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    return Response(content=storage.get(bucket, path), media_type=media_type)

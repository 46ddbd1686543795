import csv
import io
import json
import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
import uvicorn
from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from finsight.config import Settings, settings
from finsight.dashboard import (
    NAV_ITEMS,
    build_calculator_view,
    build_dashboard_view,
    build_history_view,
    build_opportunities_view,
    build_report_view,
    build_reports_view,
    build_upload_view,
    prepare_export_data,
)
from finsight.services.analysis_client import AnalysisClient
from finsight.services.history import HistoryError, ReportHistory, ReportNotFoundError
from finsight.services.upload_flow import (
    NO_PDF_MESSAGE,
    SelectedFile,
    UploadFlow,
    UploadInProgressError,
    UploadState,
)
from finsight.tax_calculator import tax_breakdown
from finsight.utils import is_pdf

handlers = [logging.StreamHandler()]
if settings.LOG_FILE:
    handlers.append(logging.FileHandler(settings.LOG_FILE))

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=handlers
)
logger = logging.getLogger(__name__)


class DashboardError(Exception):
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail


class TaxCalculationRequest(BaseModel):
    income: Any = None
    deductions: Any = 0


class OpportunitiesRequest(BaseModel):
    income: Any = None
    claimed: Optional[Dict[str, Any]] = None


# Dependencies
def get_upload_flow(request: Request) -> UploadFlow:
    return request.app.state.upload_flow


def get_history(request: Request) -> ReportHistory:
    return request.app.state.history


def get_analysis_client(request: Request) -> AnalysisClient:
    return request.app.state.analysis_client


def create_app(config: Settings = settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """Build the dashboard API. `transport` replaces the network for tests."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"Starting {config.APP_NAME} v{config.APP_VERSION} against {config.ANALYSIS_API_URL}")
        client = AnalysisClient(config.ANALYSIS_API_URL, timeout=config.REQUEST_TIMEOUT, transport=transport)
        app.state.analysis_client = client
        app.state.upload_flow = UploadFlow(client)
        app.state.history = ReportHistory(client)
        app.state.latest_report = None
        app.state.documents_uploaded = 0

        yield

        # Shutdown
        logger.info("Shutting down application")
        await client.aclose()

    app = FastAPI(
        title=config.APP_NAME,
        description=config.APP_DESCRIPTION,
        version=config.APP_VERSION,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DashboardError)
    async def dashboard_exception_handler(request: Request, exc: DashboardError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail}
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.error(f"Internal server error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "app": config.APP_NAME,
            "version": config.APP_VERSION,
            "status": "running",
            "navigation": NAV_ITEMS,
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/api/dashboard")
    async def dashboard(request: Request, history: ReportHistory = Depends(get_history)):
        return build_dashboard_view(
            request.app.state.latest_report,
            total_analyses=len(history.items),
            documents_uploaded=request.app.state.documents_uploaded,
        )

    @app.get("/api/upload")
    async def upload_page(flow: UploadFlow = Depends(get_upload_flow)):
        return build_upload_view(flow.to_dict(), accepted=config.ALLOWED_UPLOAD_EXTENSIONS)

    @app.post("/api/upload")
    async def upload_documents(
        request: Request,
        files: List[UploadFile] = File(...),
        flow: UploadFlow = Depends(get_upload_flow)
    ):
        """Send the selected PDFs to the analysis backend"""
        logger.info(f"Received {len(files)} file(s): {', '.join(f.filename or '' for f in files)}")

        if flow.state == UploadState.UPLOADING:
            raise HTTPException(status_code=409, detail="An upload is already being analysed")

        selected = []
        for upload in files:
            if not is_pdf(upload.filename, upload.content_type):
                selected.append(SelectedFile(upload.filename or "", b"", upload.content_type))
                continue
            contents = await upload.read()
            if len(contents) == 0:
                raise HTTPException(status_code=400, detail=f"Empty file uploaded: {upload.filename}")
            if len(contents) > config.MAX_UPLOAD_SIZE:
                limit_mb = config.MAX_UPLOAD_SIZE // (1024 * 1024)
                raise HTTPException(status_code=400, detail=f"File size exceeds {limit_mb}MB limit: {upload.filename}")
            selected.append(SelectedFile(upload.filename, contents, upload.content_type))

        try:
            state = await flow.submit(selected)
        except UploadInProgressError as e:
            raise HTTPException(status_code=409, detail=str(e))

        if flow.error == NO_PDF_MESSAGE:
            raise HTTPException(status_code=400, detail=NO_PDF_MESSAGE)
        if state == UploadState.FAILED:
            raise DashboardError(502, flow.error)

        request.app.state.documents_uploaded += len(flow.selected)
        request.app.state.latest_report = flow.latest
        return flow.to_dict()

    @app.get("/api/calculator")
    async def calculate_tax_query(
        income: Optional[str] = Query(default=None),
        deductions: Optional[str] = Query(default=None)
    ):
        """Calculate tax for the given income and deductions"""
        return tax_breakdown(income, deductions).to_dict()

    @app.post("/api/calculator")
    async def calculate_tax(payload: TaxCalculationRequest):
        return tax_breakdown(payload.income, payload.deductions).to_dict()

    @app.get("/api/calculator/slabs")
    async def calculator_slabs():
        return build_calculator_view()

    @app.get("/api/calculator/opportunities")
    async def opportunities_query(income: Optional[str] = Query(default=None)):
        return build_opportunities_view(income)

    @app.post("/api/calculator/opportunities")
    async def opportunities(payload: OpportunitiesRequest):
        """Tax saved by topping up each deduction section to its limit"""
        return build_opportunities_view(payload.income, payload.claimed)

    @app.get("/api/reports")
    async def reports_page(
        request: Request,
        history: ReportHistory = Depends(get_history),
        flow: UploadFlow = Depends(get_upload_flow)
    ):
        return build_reports_view(request.app.state.latest_report, history.items, flow.state.value)

    @app.get("/api/reports/latest/export")
    async def export_latest_report(request: Request, format: str = Query(default="csv", pattern="^(csv|json)$")):
        """Export the latest analysis in various formats"""
        report = request.app.state.latest_report
        if report is None:
            raise HTTPException(status_code=404, detail="No analysis to export")

        export_data = prepare_export_data(report, format)
        filename = "finsight_report_" + re.sub(r"[^A-Za-z0-9_-]", "_", report.id or "latest")

        if format == "csv":
            output = io.StringIO()
            writer = csv.DictWriter(output, fieldnames=["section", "item", "value"])
            writer.writeheader()
            writer.writerows(export_data["rows"])

            return StreamingResponse(
                io.BytesIO(output.getvalue().encode()),
                media_type="text/csv",
                headers={"Content-Disposition": f"attachment; filename={filename}.csv"}
            )
        else:
            return StreamingResponse(
                io.BytesIO(json.dumps(export_data, indent=2).encode()),
                media_type="application/json",
                headers={"Content-Disposition": f"attachment; filename={filename}.json"}
            )

    @app.get("/api/reports/latest")
    async def latest_report(request: Request, client: AnalysisClient = Depends(get_analysis_client)):
        """Most recent stored analysis; failures are reported, never papered over"""
        result = await client.latest_report()
        if not result.ok:
            logger.error(f"Error fetching latest report: {result.reason}")
            raise DashboardError(502, f"Error loading data: {result.reason}")

        request.app.state.latest_report = result.value
        return build_report_view(result.value)

    @app.get("/api/history")
    async def list_history(history: ReportHistory = Depends(get_history)):
        try:
            await history.refresh()
        except HistoryError as e:
            raise DashboardError(502, str(e))
        return build_history_view(history.items, history.selected)

    @app.get("/api/history/{report_id}")
    async def view_report(report_id: str, history: ReportHistory = Depends(get_history)):
        if not history.items:
            try:
                await history.refresh()
            except HistoryError as e:
                raise DashboardError(502, str(e))
        try:
            report = history.select(report_id)
        except ReportNotFoundError:
            raise HTTPException(status_code=404, detail="Analysis not found")
        return build_history_view(history.items, report)

    @app.delete("/api/history/{report_id}")
    async def delete_report(request: Request, report_id: str, history: ReportHistory = Depends(get_history)):
        try:
            remaining = await history.delete(report_id)
        except HistoryError as e:
            raise DashboardError(502, str(e))

        latest = request.app.state.latest_report
        if latest is not None and latest.id == report_id:
            request.app.state.latest_report = None
        return {"deleted": report_id, "remaining": remaining}

    return app


app = create_app()


if __name__ == "__main__":
    logger.info("Starting FastAPI server...")
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)

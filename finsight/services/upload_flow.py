import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from finsight.models import AnalysisReport
from finsight.utils import is_pdf

logger = logging.getLogger(__name__)

NO_PDF_MESSAGE = "Please select at least one PDF file"


class UploadState(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    ANALYSIS_COMPLETE = "analysis_complete"
    FAILED = "failed"


class UploadInProgressError(RuntimeError):
    pass


@dataclass
class SelectedFile:
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size_mb(self) -> float:
        return round(len(self.content) / 1024 / 1024, 2)


class UploadFlow:
    """Upload state for the dashboard: idle -> uploading -> analysis_complete | failed"""

    def __init__(self, client):
        self.client = client
        self.state = UploadState.IDLE
        self.error: Optional[str] = None
        self.reports: List[AnalysisReport] = []
        self.selected: List[SelectedFile] = []
        self.skipped: List[str] = []

    @property
    def latest(self) -> Optional[AnalysisReport]:
        return self.reports[-1] if self.reports else None

    def reset(self):
        if self.state == UploadState.UPLOADING:
            raise UploadInProgressError("Cannot reset while an upload is running")
        self.state = UploadState.IDLE
        self.error = None
        self.reports = []
        self.selected = []
        self.skipped = []

    async def submit(self, files: List[SelectedFile]) -> UploadState:
        """Send every selected PDF for analysis, one request at a time.

        Non-PDF files never leave the client. The first failure stops the
        batch and moves the flow to FAILED.
        """
        if self.state == UploadState.UPLOADING:
            raise UploadInProgressError("An upload is already being analysed")

        pdfs = [f for f in files if is_pdf(f.filename, f.content_type)]
        self.skipped = [f.filename for f in files if not is_pdf(f.filename, f.content_type)]
        if self.skipped:
            logger.info(f"Ignoring non-PDF files: {', '.join(self.skipped)}")

        if not pdfs:
            self.state = UploadState.IDLE
            self.error = NO_PDF_MESSAGE
            self.selected = []
            self.reports = []
            return self.state

        self.selected = pdfs
        self.reports = []
        self.error = None
        self.state = UploadState.UPLOADING

        try:
            for selected in pdfs:
                result = await self.client.upload_document(
                    selected.filename, selected.content, selected.content_type
                )
                if not result.ok:
                    logger.error(f"Analysis failed for {selected.filename}: {result.reason}")
                    self.error = f"Analysis failed: {result.reason}"
                    self.state = UploadState.FAILED
                    return self.state
                self.reports.append(result.value)

            logger.info(f"Analysis complete for {len(self.reports)} document(s)")
            self.state = UploadState.ANALYSIS_COMPLETE
            return self.state
        finally:
            # cancelled or crashed mid-batch
            if self.state == UploadState.UPLOADING:
                self.error = "Analysis failed: upload interrupted"
                self.state = UploadState.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "error": self.error,
            "selected_files": [
                {"name": f.filename, "size_mb": f.size_mb} for f in self.selected
            ],
            "skipped_files": list(self.skipped),
            "reports": [report.to_wire() for report in self.reports],
        }

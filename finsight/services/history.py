import logging
from typing import List, Optional

from finsight.models import AnalysisReport

logger = logging.getLogger(__name__)


class ReportNotFoundError(LookupError):
    pass


class HistoryError(RuntimeError):
    pass


class ReportHistory:
    """Locally held list of stored analyses, mirrored from the backend"""

    def __init__(self, client):
        self.client = client
        self.items: List[AnalysisReport] = []
        self.selected_id: Optional[str] = None
        self.error: Optional[str] = None

    @property
    def selected(self) -> Optional[AnalysisReport]:
        if self.selected_id is None:
            return None
        return next((r for r in self.items if r.id == self.selected_id), None)

    async def refresh(self) -> List[AnalysisReport]:
        result = await self.client.list_history()
        if not result.ok:
            self.items = []
            self.selected_id = None
            self.error = "Failed to fetch history"
            raise HistoryError(f"{self.error}: {result.reason}")

        self.items = result.value
        self.error = None
        if self.selected is None:
            self.selected_id = None
        logger.info(f"Loaded {len(self.items)} stored analyses")
        return self.items

    def select(self, report_id: str) -> AnalysisReport:
        for report in self.items:
            if report.id == report_id:
                self.selected_id = report_id
                return report
        raise ReportNotFoundError(report_id)

    async def delete(self, report_id: str) -> int:
        """Delete one report and drop exactly that entry from the list.

        Returns the number of entries left. The list is untouched when the
        backend refuses or cannot be reached.
        """
        result = await self.client.delete_report(report_id)
        if not result.ok:
            raise HistoryError(f"Failed to delete analysis: {result.reason}")

        self.items = [r for r in self.items if r.id != report_id]
        if self.selected_id == report_id:
            self.selected_id = None
        return len(self.items)

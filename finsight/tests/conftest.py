import httpx
import pytest

from finsight.services.analysis_client import AnalysisClient

API_URL = "http://analysis.test/api"

SAMPLE_REPORT = {
    "_id": "6888470fff417cef8ae33324",
    "currentTax": 1080000,
    "potentialSavings": 46878,
    "aiAnalysis": "Shift surplus savings into 80C instruments.",
    "investmentAllocation": [
        {"instrument": "Fixed Deposits (FD)", "percentage": 20},
        {"instrument": "Debt Mutual Funds", "percentage": 20},
        {"instrument": "Public Provident Fund (PPF)", "percentage": 20},
        {"instrument": "Equity Linked Savings Scheme (ELSS)", "percentage": 20},
        {"instrument": "National Savings Certificate (NSC)", "percentage": 20},
    ],
    "documentName": "income_sources.pdf",
    "createdAt": "2025-07-29T03:59:11.772Z",
}


class FakeBackend:
    """Stands in for the analysis backend and records every request"""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def on(self, method, path, status_code=200, json=None, content=None, exc=None):
        self.routes[(method, path)] = (status_code, json, content, exc)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"detail": "Not found"})
        status_code, json, content, exc = self.routes[key]
        if exc is not None:
            raise exc
        if content is not None:
            return httpx.Response(status_code, content=content)
        return httpx.Response(status_code, json=json)

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)

    def calls(self, method=None):
        return [r for r in self.requests if method is None or r.method == method]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def analysis_client(backend):
    return AnalysisClient(API_URL, timeout=5, transport=backend.transport)

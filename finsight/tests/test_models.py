import pytest

from finsight.models import AnalysisReport, Failure, ResponseShapeError, Success, normalize_report
from finsight.tests.conftest import SAMPLE_REPORT


def test_normalize_finance_report():
    report = normalize_report(SAMPLE_REPORT)
    assert report.id == "6888470fff417cef8ae33324"
    assert report.current_tax == 1080000
    assert report.potential_savings == 46878
    assert report.document_name == "income_sources.pdf"
    assert report.summary == "Shift surplus savings into 80C instruments."
    assert len(report.investment_allocation) == 5
    assert report.investment_allocation[0].instrument == "Fixed Deposits (FD)"


def test_normalize_upload_analysis_shape():
    payload = {
        "_id": 42,
        "filename": "form16.pdf",
        "uploadDate": "2025-07-01T10:00:00Z",
        "investments": {"ELSS": "40", "PPF": 35.5, "NPS": "24.5%"},
        "taxSavings": {"Estimated Savings": "₹46,800", "Tips": ["Max out 80C", "Claim 80D"]},
        "summary": "Balanced plan",
    }
    report = normalize_report(payload)
    assert report.id == "42"
    assert report.document_name == "form16.pdf"
    assert report.created_at == "2025-07-01T10:00:00Z"
    assert report.potential_savings == 46800
    assert report.tips == ["Max out 80C", "Claim 80D"]
    assert [(a.instrument, a.percentage) for a in report.investment_allocation] == [
        ("ELSS", 40.0), ("PPF", 35.5), ("NPS", 24.5),
    ]


def test_normalize_suggestion_only_shape():
    report = normalize_report({"suggestion": "Invest in PPF"})
    assert report.summary == "Invest in PPF"
    assert report.current_tax == 0
    assert report.investment_allocation == []


def test_no_client_side_invariants_on_values():
    report = normalize_report({
        "currentTax": None,
        "investmentAllocation": [{"instrument": "Gold", "percentage": -10}],
        "createdAt": "not-a-date",
    })
    assert report.current_tax == 0
    assert report.investment_allocation[0].percentage == -10
    assert report.created_at == "not-a-date"


@pytest.mark.parametrize("payload", [
    ["not", "an", "object"],
    "plain text",
    None,
    {"currentTax": "lots"},
    {"investmentAllocation": [{"instrument": "FD"}]},
    {"investments": ["ELSS"]},
    {"taxSavings": "₹100"},
    {"currentTax": float("inf")},
    {"potentialSavings": float("nan")},
    {"investmentAllocation": [{"instrument": "FD", "percentage": float("inf")}]},
])
def test_malformed_payloads_are_rejected(payload):
    with pytest.raises(ResponseShapeError):
        normalize_report(payload)


def test_to_wire_uses_camel_case():
    wire = AnalysisReport(currentTax=10, documentName="a.pdf").to_wire()
    assert wire["currentTax"] == 10
    assert wire["documentName"] == "a.pdf"
    assert "current_tax" not in wire


def test_result_tags():
    assert Success(1).ok is True
    assert Failure("boom").ok is False
    assert Failure("boom", status_code=500).status_code == 500

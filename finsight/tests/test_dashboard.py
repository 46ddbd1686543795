from finsight.dashboard import (
    build_dashboard_view,
    build_history_view,
    build_opportunities_view,
    build_report_view,
    build_reports_view,
    investment_slices,
    optimization_score,
    prepare_export_data,
    prioritise,
    savings_rate,
)
from finsight.models import AnalysisReport, normalize_report
from finsight.tests.conftest import SAMPLE_REPORT


def test_report_view_metrics():
    view = build_report_view(normalize_report(SAMPLE_REPORT))

    assert view["header"] == {"document_name": "income_sources.pdf", "generated": "Jul 29, 2025"}
    assert [m["value"] for m in view["metrics"]] == ["₹10,80,000", "₹46,878", "₹10,33,122", "4.3%"]
    assert view["tax_comparison"][1] == {"category": "Optimized Tax", "amount": 1033122}
    assert view["summary"]["text"] == "Shift surplus savings into 80C instruments."


def test_investment_slices_filter_and_amounts():
    report = AnalysisReport(
        currentTax=100000,
        investmentAllocation=[
            {"instrument": "public PROVIDENT fund", "percentage": 50},
            {"instrument": "Section 80C deduction", "percentage": 20},
            {"instrument": "50% of salary", "percentage": 10},
            {"instrument": "Gold", "percentage": 0},
            {"instrument": "Crypto", "percentage": -5},
            {"instrument": "", "percentage": 10},
            {"instrument": "ELSS", "percentage": 12.5},
        ],
    )

    assert investment_slices(report) == [
        {"name": "Public Provident Fund", "value": 50, "amount": 50000},
        {"name": "Elss", "value": 12.5, "amount": 12500},
    ]


def test_savings_rate_with_zero_tax():
    assert savings_rate(AnalysisReport(potentialSavings=5000)) == 0.0


def test_dashboard_without_analysis_shows_placeholder():
    view = build_dashboard_view(None)

    assert view["latest_analysis"] is None
    assert view["placeholder"]["title"] == "No Analysis Yet"
    assert view["stats"][1] == {"label": "Potential Tax Savings", "value": "₹0"}


def test_dashboard_with_analysis():
    view = build_dashboard_view(normalize_report(SAMPLE_REPORT), total_analyses=3, documents_uploaded=1)

    assert "placeholder" not in view
    assert view["stats"][0]["value"] == "3"
    assert view["latest_analysis"]["report"]["currentTax"] == 1080000


def test_history_view_marks_selection_and_fallback_title():
    first = normalize_report(dict(SAMPLE_REPORT, _id="a"))
    untitled = normalize_report({"_id": "b", "createdAt": "garbled"})

    view = build_history_view([first, untitled], selected=first)

    assert view["items"][0]["selected"] is True
    assert view["items"][0]["date"] == "Jul 29, 2025, 03:59 AM"
    assert view["items"][1]["title"] == "Financial Analysis"
    assert view["items"][1]["date"] == "garbled"
    assert view["selected"]["report"]["id"] == "a"


def test_empty_history_view():
    assert build_history_view([])["empty_state"]["title"] == "No Analysis History"


def test_optimization_score():
    # ₹80,000 of ₹2,40,000 still saveable
    assert optimization_score(AnalysisReport(currentTax=240000, potentialSavings=80000)) == 67
    assert optimization_score(AnalysisReport()) == 100
    assert optimization_score(AnalysisReport(currentTax=1000, potentialSavings=5000)) == 0


def test_dashboard_stats_include_optimization_score():
    assert build_dashboard_view(None)["stats"][3] == {"label": "Optimization Score", "value": "N/A"}

    view = build_dashboard_view(AnalysisReport(currentTax=240000, potentialSavings=80000))
    assert view["stats"][3]["value"] == "67/100"


def test_prioritise_ranks_high_medium_then_low():
    items = prioritise(["first", "second", "third", "fourth"])

    assert [item["label"] for item in items] == ["High Priority", "Medium Priority", "Low Priority", "Low Priority"]
    assert items[0] == {"priority": "high", "label": "High Priority", "text": "first"}


def test_recommendations_follow_report_tips():
    report = AnalysisReport(tips=["Invest in ELSS", "Buy health cover"])

    recommendations = build_report_view(report)["recommendations"]
    assert [item["priority"] for item in recommendations["items"]] == ["high", "medium"]

    empty = build_dashboard_view(None)["recommendations"]
    assert empty["items"] == []
    assert "AI-powered recommendations" in empty["empty_state"]["message"]


def test_opportunities_view():
    view = build_opportunities_view(1800000, {"80C": 50000, "24(b)": 100000, "80D": 15000})

    assert [row["formatted_savings"] for row in view["opportunities"]] == ["₹30,000", "₹30,000", "₹10,500", "₹7,500"]
    assert view["formatted_total"] == "₹78,000"
    first = view["recommendations"]["items"][0]
    assert first["label"] == "High Priority"
    assert first["text"] == "Increase 80C Investments (Section 80C) by ₹1,00,000 to save ₹30,000 in taxes"


def test_reports_view_statuses():
    report = normalize_report(SAMPLE_REPORT)

    empty = build_reports_view(None, [])
    assert {r["status"] for r in empty["reports"]} == {"Pending"}
    assert not any(option["available"] for option in empty["export_options"])

    view = build_reports_view(report, [report], "analysis_complete")
    statuses = {r["title"]: r["status"] for r in view["reports"]}
    assert statuses == {
        "Annual Tax Summary": "Ready",
        "Investment Analysis": "Ready",
        "Deduction Optimizer": "Ready",
        "Analysis History": "Ready",
    }
    assert view["recent_activity"] == [{"action": "Analysed income_sources.pdf", "time": "Jul 29, 2025, 03:59 AM"}]

    busy = build_reports_view(report, [report], "uploading")
    assert busy["reports"][0]["status"] == "Processing"


def test_prepare_export_data():
    report = normalize_report(dict(SAMPLE_REPORT, tips=["Max out 80C"]))

    rows = prepare_export_data(report, "csv")["rows"]
    assert rows[0] == {"section": "metrics", "item": "Current Tax", "value": 1080000}
    assert [r["section"] for r in rows].count("allocation") == 5
    assert rows[-1] == {"section": "tips", "item": "Tip", "value": "Max out 80C"}

    data = prepare_export_data(report, "json")
    assert data["report"]["documentName"] == "income_sources.pdf"
    assert "rows" not in data

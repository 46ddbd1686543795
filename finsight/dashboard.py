"""
View models for the dashboard pages.

Each builder returns plain JSON-ready dicts: stat cards, chart series and
tables that the frontend renders as-is.
"""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from finsight.models import AnalysisReport
from finsight.tax_calculator import DEDUCTION_SECTIONS, DeductionOpportunity, deduction_opportunities, slab_table
from finsight.utils import format_date, format_inr, format_timestamp, title_case

NAV_ITEMS = [
    {"id": "dashboard", "label": "Dashboard"},
    {"id": "upload", "label": "Upload Documents"},
    {"id": "calculator", "label": "Tax Calculator"},
    {"id": "reports", "label": "Reports"},
    {"id": "history", "label": "History"},
]

DOCUMENT_CHECKLIST = [
    {"type": "Form 16", "desc": "Annual salary certificate"},
    {"type": "Bank Statements", "desc": "Last 6 months statements"},
    {"type": "Investment Proofs", "desc": "ELSS, PPF, NSC receipts"},
    {"type": "Insurance Premiums", "desc": "Health & life insurance"},
    {"type": "Home Loan Documents", "desc": "Interest certificates"},
    {"type": "Donation Receipts", "desc": "80G eligible donations"},
]

# Allocation rows the backend sometimes leaks from its deduction tables
_EXCLUDED_INSTRUMENT_MARKERS = ("of ", "deduction")

PRIORITIES = ["High", "Medium", "Low"]

NO_RECOMMENDATIONS_MESSAGE = "Upload your tax documents to get AI-powered recommendations"


def savings_rate(report: AnalysisReport) -> float:
    if not report.current_tax:
        return 0.0
    return round(report.potential_savings / report.current_tax * 100, 1)


def optimization_score(report: AnalysisReport) -> int:
    """Share of the achievable tax position already reached, out of 100"""
    return int(min(max(round(100 - savings_rate(report)), 0), 100))


def prioritise(texts: List[str]) -> List[Dict[str, str]]:
    """Rank recommendations in order: first High, second Medium, the rest Low"""
    items = []
    for index, text in enumerate(texts):
        level = PRIORITIES[min(index, len(PRIORITIES) - 1)]
        items.append({"priority": level.lower(), "label": f"{level} Priority", "text": text})
    return items


def build_recommendations(texts: List[str]) -> Dict[str, Any]:
    view = {"items": prioritise([text for text in texts if text])}
    if not view["items"]:
        view["empty_state"] = {"message": NO_RECOMMENDATIONS_MESSAGE}
    return view


def investment_slices(report: AnalysisReport) -> List[Dict[str, Any]]:
    slices = []
    for item in report.investment_allocation:
        if not item.instrument or item.percentage <= 0:
            continue
        if any(marker in item.instrument for marker in _EXCLUDED_INSTRUMENT_MARKERS):
            continue
        slices.append({
            "name": title_case(item.instrument),
            "value": item.percentage,
            "amount": round(report.current_tax * item.percentage / 100),
        })
    return slices


def build_report_view(report: AnalysisReport) -> Dict[str, Any]:
    optimized_tax = report.current_tax - report.potential_savings
    rate = savings_rate(report)

    return {
        "report": report.to_wire(),
        "header": {
            "document_name": report.document_name,
            "generated": format_date(report.created_at),
        },
        "metrics": [
            {"title": "Current Tax Liability", "value": format_inr(report.current_tax), "color": "red"},
            {"title": "Potential Savings", "value": format_inr(report.potential_savings), "color": "green"},
            {"title": "Optimized Tax", "value": format_inr(optimized_tax), "color": "blue"},
            {"title": "Savings Rate", "value": f"{rate:.1f}%", "color": "purple"},
        ],
        "tax_comparison": [
            {"category": "Current Tax", "amount": report.current_tax},
            {"category": "Optimized Tax", "amount": optimized_tax},
            {"category": "Potential Savings", "amount": report.potential_savings},
        ],
        "investment_allocation": investment_slices(report),
        "recommendations": build_recommendations(report.tips),
        "summary": {
            "text": report.summary,
            "tips": list(report.tips),
            "highlights": [
                f"Your current tax liability stands at {format_inr(report.current_tax)}",
                f"Potential tax savings of {format_inr(report.potential_savings)} identified",
                f"This represents a {rate:.1f}% reduction in tax burden",
                "Recommendations include maximizing 80C, 80D, and other eligible deductions",
            ],
        },
    }


def build_dashboard_view(latest: Optional[AnalysisReport], total_analyses: int = 0,
                         documents_uploaded: int = 0) -> Dict[str, Any]:
    stats = [
        {"label": "Total Analyses", "value": str(total_analyses)},
        {"label": "Potential Tax Savings", "value": format_inr(latest.potential_savings if latest else 0)},
        {"label": "Current Tax", "value": format_inr(latest.current_tax if latest else 0)},
        {"label": "Optimization Score", "value": f"{optimization_score(latest)}/100" if latest else "N/A"},
        {"label": "Documents", "value": str(documents_uploaded)},
    ]

    view = {
        "navigation": NAV_ITEMS,
        "stats": stats,
        "latest_analysis": build_report_view(latest) if latest else None,
        "recommendations": build_recommendations(latest.tips if latest else []),
    }
    if latest is None:
        view["placeholder"] = {
            "title": "No Analysis Yet",
            "message": "Upload your first financial document to get started!",
        }
    return view


def build_history_view(items: List[AnalysisReport], selected: Optional[AnalysisReport] = None) -> Dict[str, Any]:
    view = {
        "items": [
            {
                "id": report.id,
                "title": report.document_name or "Financial Analysis",
                "date": format_timestamp(report.created_at),
                "selected": selected is not None and report.id == selected.id,
            }
            for report in items
        ],
        "selected": build_report_view(selected) if selected else None,
    }
    if not items:
        view["empty_state"] = {
            "title": "No Analysis History",
            "message": "Upload some financial documents to get started!",
        }
    return view


def build_upload_view(flow_state: Dict[str, Any], accepted: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "title": "Upload Financial Documents",
        "accepted": accepted or [".pdf"],
        "checklist": DOCUMENT_CHECKLIST,
        "flow": flow_state,
    }


def build_calculator_view() -> Dict[str, Any]:
    return {
        "title": "Tax Slabs (AY 2024-25)",
        "slabs": slab_table(),
        "deduction_sections": DEDUCTION_SECTIONS,
    }


def opportunity_recommendations(opportunities: List[DeductionOpportunity]) -> List[str]:
    ranked = sorted((o for o in opportunities if o.savings > 0), key=lambda o: o.savings, reverse=True)
    return [
        f"Increase {o.category} (Section {o.code}) by {format_inr(o.headroom)} "
        f"to save {format_inr(o.savings)} in taxes"
        for o in ranked
    ]


def build_opportunities_view(income: Any, claimed: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Tax Saving Opportunities chart plus the recommendations it implies"""
    opportunities = deduction_opportunities(income, claimed)
    rows = []
    for opportunity in opportunities:
        row = asdict(opportunity)
        row["formatted_savings"] = format_inr(opportunity.savings)
        rows.append(row)

    total = sum(o.savings for o in opportunities)
    return {
        "title": "Tax Saving Opportunities",
        "opportunities": rows,
        "total_savings": total,
        "formatted_total": format_inr(total),
        "recommendations": build_recommendations(opportunity_recommendations(opportunities)),
    }


def build_reports_view(latest: Optional[AnalysisReport], history_items: List[AnalysisReport],
                       flow_state: Optional[str] = None) -> Dict[str, Any]:
    """Reports page: catalogue with readiness, recent activity, export links"""
    processing = flow_state == "uploading"

    def status(ready: bool) -> str:
        if processing:
            return "Processing"
        return "Ready" if ready else "Pending"

    catalogue = [
        {
            "title": "Annual Tax Summary",
            "desc": "Complete tax breakdown from your latest analysis",
            "status": status(latest is not None),
            "href": "/api/reports/latest",
        },
        {
            "title": "Investment Analysis",
            "desc": "Recommended allocation of tax-saving investments",
            "status": status(latest is not None and bool(investment_slices(latest))),
            "href": "/api/reports/latest",
        },
        {
            "title": "Deduction Optimizer",
            "desc": "Missed opportunities and suggestions",
            "status": status(latest is not None and (bool(latest.tips) or latest.potential_savings > 0)),
            "href": "/api/calculator/opportunities",
        },
        {
            "title": "Analysis History",
            "desc": "Every stored analysis",
            "status": "Ready" if history_items else "Pending",
            "href": "/api/history",
        },
    ]

    activity = [
        {
            "action": f"Analysed {report.document_name or 'Financial Analysis'}",
            "time": format_timestamp(report.created_at),
        }
        for report in history_items[:5]
    ]

    exports = [
        {"format": fmt, "title": title, "desc": desc,
         "href": f"/api/reports/latest/export?format={fmt}", "available": latest is not None}
        for fmt, title, desc in (
            ("csv", "Export to CSV", "Get detailed data in spreadsheet format"),
            ("json", "Export to JSON", "Download the complete analysis"),
        )
    ]

    return {
        "title": "Tax Reports",
        "reports": catalogue,
        "recent_activity": activity,
        "export_options": exports,
    }


def prepare_export_data(report: AnalysisReport, format: str = "csv") -> Dict[str, Any]:
    """Flatten a report into rows for CSV, or keep the full report for JSON"""
    export_data = {
        "metadata": {
            "document_name": report.document_name,
            "generated": report.created_at,
            "optimization_score": optimization_score(report),
        }
    }

    if format == "csv":
        rows = [
            {"section": "metrics", "item": "Current Tax", "value": report.current_tax},
            {"section": "metrics", "item": "Potential Savings", "value": report.potential_savings},
            {"section": "metrics", "item": "Optimized Tax", "value": report.current_tax - report.potential_savings},
            {"section": "metrics", "item": "Savings Rate", "value": savings_rate(report)},
        ]
        for item in investment_slices(report):
            rows.append({"section": "allocation", "item": item["name"], "value": item["value"]})
        for tip in report.tips:
            rows.append({"section": "tips", "item": "Tip", "value": tip})
        export_data["rows"] = rows

    elif format == "json":
        export_data["report"] = report.to_wire()

    return export_data

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class ResponseShapeError(ValueError):
    """The analysis backend returned JSON we cannot read as a report"""


def _clean_number(value: Any) -> Any:
    # "₹46,878" / "20%" -> "46878" / "20"; null -> 0
    if value is None:
        return 0
    if isinstance(value, str):
        return value.replace("₹", "").replace(",", "").replace("%", "").strip() or 0
    return value


class InvestmentAllocation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    instrument: str
    percentage: float = Field(allow_inf_nan=False)

    @field_validator("percentage", mode="before")
    @classmethod
    def _clean_percentage(cls, value):
        return _clean_number(value)


class AnalysisReport(BaseModel):
    """Backend-computed summary of a user's tax situation"""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    current_tax: float = Field(0.0, alias="currentTax", allow_inf_nan=False)
    potential_savings: float = Field(0.0, alias="potentialSavings", allow_inf_nan=False)
    investment_allocation: List[InvestmentAllocation] = Field(default_factory=list, alias="investmentAllocation")
    document_name: Optional[str] = Field(None, alias="documentName")
    created_at: Optional[str] = Field(None, alias="createdAt")
    summary: Optional[str] = None
    tips: List[str] = Field(default_factory=list)

    @field_validator("current_tax", "potential_savings", mode="before")
    @classmethod
    def _clean_amounts(cls, value):
        return _clean_number(value)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return None if value is None else str(value)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# Tagged result of every call to the analysis backend
@dataclass(frozen=True)
class Success:
    value: Any = None
    ok = True


@dataclass(frozen=True)
class Failure:
    reason: str
    status_code: Optional[int] = None
    ok = False


Result = Union[Success, Failure]


def _allocation_from_mapping(investments: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [
        {"instrument": name, "percentage": value}
        for name, value in investments.items()
    ]


def normalize_report(payload: Any) -> AnalysisReport:
    """Reconcile the shapes the backend answers with into one AnalysisReport.

    Accepted shapes:
      - the finance report (currentTax, potentialSavings, investmentAllocation, ...)
      - the upload analysis (investments mapping, taxSavings with
        "Estimated Savings" and "Tips", filename, uploadDate)
      - the bare {"suggestion": "..."} answer from /upload
    """
    if not isinstance(payload, dict):
        raise ResponseShapeError(f"Expected a JSON object, got {type(payload).__name__}")

    data = {
        "id": payload.get("id", payload.get("_id")),
        "currentTax": payload.get("currentTax", 0),
        "potentialSavings": payload.get("potentialSavings", 0),
        "investmentAllocation": payload.get("investmentAllocation") or [],
        "documentName": payload.get("documentName", payload.get("filename")),
        "createdAt": payload.get("createdAt", payload.get("uploadDate")),
        "summary": payload.get("summary") or payload.get("aiAnalysis") or payload.get("suggestion"),
        "tips": payload.get("tips") or [],
    }

    investments = payload.get("investments")
    if investments and not data["investmentAllocation"]:
        if not isinstance(investments, dict):
            raise ResponseShapeError("'investments' must be an object of instrument -> percentage")
        data["investmentAllocation"] = _allocation_from_mapping(investments)

    tax_savings = payload.get("taxSavings")
    if tax_savings is not None:
        if not isinstance(tax_savings, dict):
            raise ResponseShapeError("'taxSavings' must be an object")
        if "potentialSavings" not in payload:
            data["potentialSavings"] = tax_savings.get("Estimated Savings", 0)
        if not data["tips"]:
            data["tips"] = tax_savings.get("Tips") or []

    try:
        return AnalysisReport.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Rejected malformed report: {e.error_count()} field error(s)")
        raise ResponseShapeError(str(e)) from e

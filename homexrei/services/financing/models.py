"""
DTO financing: FinancingTerms (input), FinancingBreakdown (output).
"""
from __future__ import annotations

from pydantic import BaseModel, Field


class OtherExpense(BaseModel):
    name: str = ""
    amount: float | None = None

    model_config = {"frozen": True}


class FinancingTerms(BaseModel):
    """Owner-financing terms of a listing. Absent values fall back to zero (term: 1 year)."""

    price: float = Field(..., gt=0)
    down_payment_amount: float | None = None
    down_payment_percent: float | None = None
    interest_rate: float | None = Field(None, ge=0, description="Annual %")
    term_years: float | None = Field(None, ge=0)
    property_tax_annual: float | None = None
    insurance_annual: float | None = None
    hoa_monthly: float | None = None
    other_monthly_expenses: tuple[OtherExpense, ...] = ()

    model_config = {"frozen": True}


class FinancingBreakdown(BaseModel):
    """Monthly cost of buying a listing on owner-financing terms."""

    price: float
    down_payment: float
    principal: float
    interest_rate: float
    term_years: float
    monthly_pi: float = Field(..., description="Principal + interest")
    monthly_tax: float
    monthly_insurance: float
    monthly_hoa: float
    other_expenses_total: float
    total_monthly: float

    model_config = {"frozen": True}

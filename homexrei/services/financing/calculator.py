"""
Owner-financing calculator. Pure functions, no I/O.

Used both for the listing financing panel and for offer dialogs, so the
same terms always yield the same numbers.
"""
from __future__ import annotations

import math
from typing import Any

from homexrei.services.financing.models import FinancingBreakdown, FinancingTerms, OtherExpense

DEFAULT_TERM_YEARS = 1


def calculate_monthly_payment(principal: float, annual_rate_percent: float, term_years: float) -> float:
    """Standard amortized principal + interest payment. Degenerate inputs give 0."""
    monthly_rate = annual_rate_percent / 100 / 12
    num_payments = term_years * 12
    if num_payments <= 0:
        return 0.0
    if monthly_rate == 0:
        return principal / num_payments

    try:
        growth = math.pow(1 + monthly_rate, num_payments)
        payment = principal * (monthly_rate * growth) / (growth - 1)
    except (OverflowError, ZeroDivisionError):
        return 0.0
    if math.isnan(payment) or math.isinf(payment):
        return 0.0
    return payment


def resolve_down_payment(price: float, amount: float | None = None, percent: float | None = None) -> float:
    """A fixed amount wins over a percent; the result is clamped to [0, price]."""
    down_payment = 0.0
    if amount:
        down_payment = float(amount)
    elif percent:
        down_payment = price * float(percent) / 100
    return max(0.0, min(down_payment, price))


def _monthly(annual: float | None) -> float:
    return annual / 12 if annual else 0.0


def compute_breakdown(terms: FinancingTerms) -> FinancingBreakdown:
    down_payment = resolve_down_payment(
        terms.price, terms.down_payment_amount, terms.down_payment_percent
    )
    principal = terms.price - down_payment
    interest_rate = terms.interest_rate or 0.0
    term_years = terms.term_years or DEFAULT_TERM_YEARS

    monthly_pi = calculate_monthly_payment(principal, interest_rate, term_years)
    monthly_tax = _monthly(terms.property_tax_annual)
    monthly_insurance = _monthly(terms.insurance_annual)
    monthly_hoa = terms.hoa_monthly or 0.0
    other_total = sum((e.amount or 0.0) for e in terms.other_monthly_expenses)

    return FinancingBreakdown(
        price=terms.price,
        down_payment=down_payment,
        principal=principal,
        interest_rate=interest_rate,
        term_years=term_years,
        monthly_pi=monthly_pi,
        monthly_tax=monthly_tax,
        monthly_insurance=monthly_insurance,
        monthly_hoa=monthly_hoa,
        other_expenses_total=other_total,
        total_monthly=monthly_pi + monthly_tax + monthly_insurance + monthly_hoa + other_total,
    )


def terms_from_deal(deal: Any) -> FinancingTerms | None:
    """Build FinancingTerms from a Deal row; None when the deal has no usable price."""
    price = deal.price
    if not isinstance(price, (int, float)) or isinstance(price, bool) or price <= 0:
        return None
    expenses = tuple(
        OtherExpense(name=str(item.get("name") or ""), amount=_as_number(item.get("amount")))
        for item in (deal.other_monthly_expenses or [])
        if isinstance(item, dict)
    )
    return FinancingTerms(
        price=float(price),
        down_payment_amount=_as_number(deal.min_down_payment_amount),
        down_payment_percent=_as_number(deal.min_down_payment_percent),
        interest_rate=_as_number(deal.interest_rate),
        term_years=_as_number(deal.term_years),
        property_tax_annual=_as_number(deal.property_tax_annual),
        insurance_annual=_as_number(deal.insurance_annual),
        hoa_monthly=_as_number(deal.hoa_monthly),
        other_monthly_expenses=expenses,
    )


def breakdown_for_deal(deal: Any) -> FinancingBreakdown | None:
    """None unless the deal offers owner financing at a positive price."""
    if not deal or not deal.owner_financing_available:
        return None
    terms = terms_from_deal(deal)
    if terms is None:
        return None
    return compute_breakdown(terms)


def _as_number(value: Any) -> float | None:
    # Non-numeric values are treated as absent
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)

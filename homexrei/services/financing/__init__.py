from homexrei.services.financing.calculator import (
    breakdown_for_deal,
    calculate_monthly_payment,
    compute_breakdown,
    resolve_down_payment,
)
from homexrei.services.financing.models import FinancingBreakdown, FinancingTerms, OtherExpense

__all__ = [
    "FinancingBreakdown",
    "FinancingTerms",
    "OtherExpense",
    "breakdown_for_deal",
    "calculate_monthly_payment",
    "compute_breakdown",
    "resolve_down_payment",
]

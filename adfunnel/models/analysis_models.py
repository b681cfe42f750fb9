"""ADFUNNEL — Diagnostic Output Models."""

from typing import Dict, List
from pydantic import BaseModel


# ─────────────────────────────────────────────
# FUNNEL VALIDATION
# ─────────────────────────────────────────────


class FunnelValidation(BaseModel):
    """Result of checking a funnel against the booking path order.

    Inversions are informational: the checked record is never modified.
    """

    source: str = ""
    has_real_data: bool = False
    inversions: List[str] = []

    @property
    def has_inversion(self) -> bool:
        return bool(self.inversions)


# ─────────────────────────────────────────────
# VALUE PARITY — API vs platform UI
# ─────────────────────────────────────────────


class ValueParity(BaseModel):
    """Gap between an API-reported value and a reference figure.

    Small gaps come from attribution-window and timezone differences between
    the API and the platform UI; they are reported, not treated as errors.
    """

    api_value: float = 0.0
    reference_value: float = 0.0
    gap: float = 0.0
    gap_pct: float = 0.0
    tolerance_pct: float = 0.0
    within_tolerance: bool = True


# ─────────────────────────────────────────────
# AGGREGATE PARITY — Cache vs live
# ─────────────────────────────────────────────


class ParityReport(BaseModel):
    """Field-by-field comparison of two aggregates."""

    matches: bool = True
    epsilon: float = 0.01
    differences: Dict[str, float] = {}  # field -> left - right

"""Tax and threshold assumptions shared by the derived metrics."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CalculationConfig:
    """Jurisdiction-dependent rates; defaults are 2025 US federal figures."""

    capital_gains_tax_rate: float = 0.238  # 20% + 3.8% NIIT
    estate_tax_exemption: float = 13_990_000
    effective_income_tax_rate: float = 0.37

    def __post_init__(self) -> None:
        for name in ("capital_gains_tax_rate", "effective_income_tax_rate"):
            rate = getattr(self, name)
            if not 0 <= rate < 1:
                raise ValueError(f"{name} must be within [0, 1), received {rate}")
        if self.estate_tax_exemption < 0:
            raise ValueError("Estate tax exemption cannot be negative")


DEFAULT_CALCULATION_CONFIG = CalculationConfig()

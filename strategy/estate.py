"""Estate position at the end of the horizon under the borrow strategy."""
from __future__ import annotations

from dataclasses import dataclass

from analytics.config import DEFAULT_CALCULATION_CONFIG, CalculationConfig


@dataclass
class EstatePosition:
    """What heirs receive, and the tax the stepped-up basis erases."""

    terminal_portfolio_value: float
    terminal_loan_balance: float
    net_estate: float
    embedded_capital_gains: float
    stepped_up_basis_savings: float
    estate_tax_exemption: float

    @property
    def above_exemption(self) -> bool:
        return self.net_estate > self.estate_tax_exemption


@dataclass
class TerminalEstateComparison:
    """Net estate if the portfolio is held and borrowed against versus sold."""

    bbd_net_estate: float
    sell_net_estate: float
    bbd_advantage: float
    taxes_paid_if_sold: float


def embedded_capital_gains(current_value: float, cost_basis: float) -> float:
    """Unrealized gain; losses count as zero."""
    return max(0.0, current_value - cost_basis)


def tax_if_sold(portfolio_value: float, cost_basis: float, config: CalculationConfig = DEFAULT_CALCULATION_CONFIG) -> float:
    return embedded_capital_gains(portfolio_value, cost_basis) * config.capital_gains_tax_rate


def estate_position(
    terminal_portfolio_value: float,
    terminal_loan_balance: float,
    cost_basis: float,
    config: CalculationConfig = DEFAULT_CALCULATION_CONFIG,
) -> EstatePosition:
    gains = embedded_capital_gains(terminal_portfolio_value, cost_basis)
    return EstatePosition(
        terminal_portfolio_value=terminal_portfolio_value,
        terminal_loan_balance=terminal_loan_balance,
        net_estate=terminal_portfolio_value - terminal_loan_balance,
        embedded_capital_gains=gains,
        stepped_up_basis_savings=gains * config.capital_gains_tax_rate,
        estate_tax_exemption=config.estate_tax_exemption,
    )


def terminal_estate_comparison(
    terminal_portfolio_value: float,
    terminal_loan_balance: float,
    cost_basis: float,
    config: CalculationConfig = DEFAULT_CALCULATION_CONFIG,
) -> TerminalEstateComparison:
    """Heirs repay the loan under the borrow strategy; the seller pays gains tax instead."""
    bbd_net = terminal_portfolio_value - terminal_loan_balance
    taxes = tax_if_sold(terminal_portfolio_value, cost_basis, config)
    sell_net = terminal_portfolio_value - taxes
    return TerminalEstateComparison(
        bbd_net_estate=bbd_net,
        sell_net_estate=sell_net,
        bbd_advantage=bbd_net - sell_net,
        taxes_paid_if_sold=taxes,
    )

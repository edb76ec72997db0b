"""Borrow-versus-sell strategy package exports."""
from .comparison import StrategyComparison, compare_leveraged_run, compare_strategies
from .estate import EstatePosition, TerminalEstateComparison, estate_position, terminal_estate_comparison
from .sell import SellStrategyConfig, SellStrategyResult, calculate_sell_strategy

__all__ = [
    "StrategyComparison",
    "compare_leveraged_run",
    "compare_strategies",
    "EstatePosition",
    "TerminalEstateComparison",
    "estate_position",
    "terminal_estate_comparison",
    "SellStrategyConfig",
    "SellStrategyResult",
    "calculate_sell_strategy",
]

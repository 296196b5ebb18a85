"""
Signal Generation

Ranks news-driven trade calls anchored to live prices.
"""
from newsdesk.signals.generator import (
    generate_calls,
    normalized_score,
    symbol_score,
)

__all__ = ["generate_calls", "normalized_score", "symbol_score"]

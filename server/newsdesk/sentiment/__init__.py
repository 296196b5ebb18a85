"""
Sentiment Classification

Maps headlines to coarse impact labels.
"""
from newsdesk.sentiment.classifier import (
    NEGATIVE_CUES,
    POSITIVE_CUES,
    classify,
    impact_tally,
)

__all__ = ["NEGATIVE_CUES", "POSITIVE_CUES", "classify", "impact_tally"]

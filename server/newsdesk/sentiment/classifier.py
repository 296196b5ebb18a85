"""
Headline Sentiment Classifier

Keyword lexicon classifier for market headlines. Each lexicon cue found in
the lowercased headline counts once (presence, not frequency); positive cues
add one, negative cues subtract one, and the sign of the tally is the label.
"""
from __future__ import annotations

from newsdesk.models.news import Impact

POSITIVE_CUES: tuple[str, ...] = (
    "surge", "rises", "soars", "wins", "approval", "contract", "profit",
    "gains", "record", "beat", "rebound", "momentum", "order",
)

NEGATIVE_CUES: tuple[str, ...] = (
    "falls", "drops", "loss", "probe", "penalty", "ban", "fraud",
    "downgrade", "resigns", "default", "strike", "fire",
)


def impact_tally(title: str) -> int:
    """Net count of positive minus negative cues present in ``title``."""
    text = str(title or "").lower()
    positive = sum(1 for cue in POSITIVE_CUES if cue in text)
    negative = sum(1 for cue in NEGATIVE_CUES if cue in text)
    return positive - negative


def classify(title: str) -> Impact:
    """Label a headline positive, negative or neutral."""
    tally = impact_tally(title)
    if tally > 0:
        return Impact.POSITIVE
    if tally < 0:
        return Impact.NEGATIVE
    return Impact.NEUTRAL

"""
Tests for newsdesk.sentiment.classifier

Pure unit tests, no I/O.
"""
import pytest

from newsdesk.models.news import Impact
from newsdesk.sentiment import NEGATIVE_CUES, POSITIVE_CUES, classify, impact_tally


class TestClassify:
    def test_positive_headline(self):
        assert classify("Company X wins major contract") is Impact.POSITIVE

    def test_negative_headline(self):
        assert classify("Company Y faces fraud probe") is Impact.NEGATIVE

    def test_neutral_headline(self):
        assert classify("Company Z reports quarterly update") is Impact.NEUTRAL

    def test_case_insensitive(self):
        assert classify("SHARES SURGE ON RECORD PROFIT") is Impact.POSITIVE

    def test_mixed_cues_cancel_out(self):
        # one positive cue, one negative cue
        assert impact_tally("Profit drops") == 0
        assert classify("Profit drops") is Impact.NEUTRAL

    def test_net_sign_decides(self):
        # surge + record vs probe
        assert classify("Shares surge to record despite probe") is Impact.POSITIVE

    def test_repeated_cue_counts_once(self):
        assert impact_tally("surge surge surge") == 1

    def test_substring_match(self):
        # "order" matches inside "orders"
        assert classify("Firm bags large orders") is Impact.POSITIVE
        # and "ban" matches inside "bank", cancelling it out
        assert classify("Bank bags large orders") is Impact.NEUTRAL

    def test_bank_name_reads_as_negative(self):
        # the "ban" cue fires inside "Bank" with nothing to offset it
        assert impact_tally("HDFC Bank reports quarterly update") == -1
        assert classify("HDFC Bank reports quarterly update") is Impact.NEGATIVE

    @pytest.mark.parametrize("title", ["", None])
    def test_empty_title_is_neutral(self, title):
        assert classify(title) is Impact.NEUTRAL


def test_lexicons_are_disjoint():
    assert not set(POSITIVE_CUES) & set(NEGATIVE_CUES)


def test_impact_weights():
    assert Impact.POSITIVE.weight == 1
    assert Impact.NEGATIVE.weight == -1
    assert Impact.NEUTRAL.weight == 0

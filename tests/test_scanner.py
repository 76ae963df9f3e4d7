"""
Scanner Tests — end-to-end scans through the single entry point.
"""

import pytest

from tcdecoder.patterns import RiskType
from tcdecoder.scanner import DEFAULT_SUMMARY_RISKS, scan, summary_payload
from tcdecoder.severity import HERO_CANCELLATION, HERO_FEES


SAMPLE_TERMS = (
    "Welcome to StreamCo. Your subscription will auto-renew each month at $14.99 "
    "until you cancel. A late fee applies to failed payments. Any dispute will be "
    "resolved by binding arbitration administered by the AAA. You agree to a class "
    "action waiver for all claims. We may share your personal information with "
    "third parties and our advertising partners."
)


class TestScenarios:

    def test_auto_renewal_with_price_and_cancellation(self):
        result = scan("This agreement automatically renews for $9.99/month unless cancelled.")
        assert [s.type for s in result.spans] == [RiskType.AUTO_RENEWAL, RiskType.CANCELLATION]
        assert result.spans[0].matched_text == "automatically renews"
        assert result.spans[1].matched_text == "cancelled"
        assert result.score == 4
        assert result.severity == "High"
        assert result.hero == HERO_CANCELLATION

    def test_empty_text(self):
        result = scan("")
        assert result.spans == ()
        assert result.severity == "Low"
        assert result.hero is None
        assert result.heatmap.level == "Low"
        assert all(v == 0 for v in result.heatmap.counts.values())

    def test_whitespace_only_text(self):
        result = scan("   \n\t  ")
        assert result.spans == ()
        assert result.severity == "Low"

    def test_sixty_fees_capped_at_fifty(self):
        text = " ".join(f"Clause {i} adds a processing fee to every order." for i in range(60))
        result = scan(text)
        assert len(result.spans) == 50
        assert all(s.type == RiskType.FEES for s in result.spans)
        assert result.hero == HERO_FEES

    def test_custom_cap(self):
        text = " ".join(f"Clause {i} adds a processing fee to every order." for i in range(10))
        assert len(scan(text, max_count=3).spans) == 3


class TestInvariants:

    def test_spans_sorted_and_disjoint(self):
        result = scan(SAMPLE_TERMS)
        assert result.spans
        for prev, nxt in zip(result.spans, result.spans[1:]):
            assert prev.end <= nxt.start

    def test_offsets_match_source(self):
        result = scan(SAMPLE_TERMS)
        for span in result.spans:
            assert SAMPLE_TERMS[span.start:span.end] == span.matched_text

    def test_result_is_immutable(self):
        result = scan(SAMPLE_TERMS)
        with pytest.raises(Exception):
            result.severity = "Low"

    def test_deterministic(self):
        assert scan(SAMPLE_TERMS) == scan(SAMPLE_TERMS)

    def test_detected_risks_first_seen_order(self):
        result = scan(SAMPLE_TERMS)
        risks = result.detected_risks
        assert len(risks) == len(set(risks))
        assert risks[0] == RiskType.AUTO_RENEWAL

    def test_sample_is_high_with_heatmap(self):
        result = scan(SAMPLE_TERMS)
        assert result.severity == "High"
        assert result.heatmap.counts["third_party"] == 1
        assert result.heatmap.counts["share"] == 1


class TestToDict:

    def test_shape(self):
        data = scan(SAMPLE_TERMS).to_dict()
        assert set(data) == {
            "spans", "severity", "hero", "heatmap", "score",
            "score_breakdown", "core_version",
        }
        assert data["spans"][0]["type"] == "auto_renewal"


class TestSummaryPayload:

    def test_default_filter_drops_legal_jargon(self):
        result = scan(SAMPLE_TERMS)
        payload = summary_payload(result, "StreamCo Terms")
        assert payload["title"] == "StreamCo Terms"
        allowed = {t.value for t in DEFAULT_SUMMARY_RISKS}
        assert payload["detected_risks"]
        assert set(payload["detected_risks"]) <= allowed
        assert "arbitration" not in payload["detected_risks"]
        assert "class_action" not in payload["detected_risks"]
        assert len(payload["snippets"]) == len(payload["detected_risks"])

    def test_custom_subset(self):
        result = scan(SAMPLE_TERMS)
        payload = summary_payload(result, "T", risk_types=[RiskType.ARBITRATION])
        assert set(payload["detected_risks"]) == {"arbitration"}
        assert all("arbitration" in s.lower() or "aaa" in s.lower() for s in payload["snippets"])

    def test_empty_result(self):
        payload = summary_payload(scan(""), "T")
        assert payload == {"title": "T", "snippets": [], "detected_risks": []}

import logging

from interviewer_pro.interview.parsing import parse_ai_response, extract_tag, parse_key_points
from interviewer_pro.interview.testing import tagged_reply


def test_parses_all_four_tags():
    raw = """
<QUESTION>  How did you scale the ledger service?  </QUESTION>
<ANALYSIS>
Good overview, missing numbers.
</ANALYSIS>
<FEEDBACK>
- Mention throughput

  - Explain the trade-off
</FEEDBACK>
<SUGGESTED_ALTERNATIVE> We sharded by account id. </SUGGESTED_ALTERNATIVE>
"""
    parsed = parse_ai_response(raw)

    assert parsed.next_question == "How did you scale the ledger service?"
    assert parsed.analysis == "Good overview, missing numbers."
    assert parsed.feedback_points == ["- Mention throughput", "- Explain the trade-off"]
    assert parsed.suggested_alternative == "We sharded by account id."


def test_missing_alternative_is_none():
    raw = "<QUESTION>Next?</QUESTION><ANALYSIS>ok</ANALYSIS><FEEDBACK>a</FEEDBACK>"
    assert parse_ai_response(raw).suggested_alternative is None


def test_not_applicable_alternative_is_none():
    for value in ("N/A", "n/a", "  N/A  ", ""):
        raw = tagged_reply(alternative=value)
        assert parse_ai_response(raw).suggested_alternative is None


def test_empty_question_means_interview_over():
    parsed = parse_ai_response(tagged_reply(question=""))
    assert parsed.next_question is None


def test_malformed_reply_degrades_to_defaults(caplog):
    with caplog.at_level(logging.DEBUG, logger="parsing"):
        parsed = parse_ai_response("Sure! Here is my next question: why Python?")

    assert parsed.next_question is None
    assert parsed.analysis == ""
    assert parsed.feedback_points == []
    assert parsed.suggested_alternative is None
    assert "missing tag" in caplog.text


def test_none_and_empty_input_do_not_raise():
    assert parse_ai_response(None).next_question is None
    assert parse_ai_response("").feedback_points == []


def test_first_tag_pair_wins():
    raw = "<QUESTION>first</QUESTION> filler <QUESTION>second</QUESTION>"
    assert extract_tag(raw, "QUESTION") == "first"


def test_unclosed_tag_is_absent():
    assert extract_tag("<ANALYSIS>never closed", "ANALYSIS") is None


def test_key_points_strip_bullets():
    raw = "<KEY_POINTS>\n- Ownership\n* Metrics\n2. Trade-offs\n\n• Outcome\n</KEY_POINTS>"
    assert parse_key_points(raw) == ["Ownership", "Metrics", "Trade-offs", "Outcome"]


def test_key_points_keep_leading_decimals():
    raw = "<KEY_POINTS>\n3.5 years of Python\n1) Ownership\n- Scope\n</KEY_POINTS>"
    assert parse_key_points(raw) == ["3.5 years of Python", "Ownership", "Scope"]


def test_feedback_splits_only_on_line_feeds():
    raw = "<FEEDBACK>- Use the \x0cSTAR format\r\n- Be concise today</FEEDBACK>"

    parsed = parse_ai_response(raw)

    assert parsed.feedback_points == ["- Use the \x0cSTAR format", "- Be concise today"]

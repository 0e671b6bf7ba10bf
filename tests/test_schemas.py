import pytest
from pydantic import ValidationError

from interviewer_pro.interview.models import ContinueResult, FirstQuestion
from interviewer_pro.interview.schemas import ConversationTurn, QuestionSegment, SessionData


def test_segment_must_open_with_model_turn():
    with pytest.raises(ValidationError):
        QuestionSegment(question_number=1, question="Q", conversation=[ConversationTurn.user("hi")])

    segment = QuestionSegment(question_number=1, question="Q")
    with pytest.raises(ValueError):
        segment.append(ConversationTurn.user("hi"))


def test_reply_turn_keeps_raw_text():
    reply = ContinueResult(next_question=None, analysis="done", raw_ai_response_text="<QUESTION></QUESTION>")
    turn = ConversationTurn.from_reply(reply)

    assert turn.role == "model"
    assert turn.text == ""
    assert turn.raw_ai_response_text == "<QUESTION></QUESTION>"


def test_add_segment_advances_index():
    session = SessionData(user_id="u", persona_id="p", jd_resume_text_id="j")
    assert session.current_segment is None

    session.add_segment(FirstQuestion("Q1", [], "raw1"))
    session.add_segment(FirstQuestion("Q2", [], "raw2"))

    assert session.current_question_index == 1
    assert session.current_segment.question_number == 2
    assert session.is_active


def test_index_out_of_range_is_rejected():
    session = SessionData(user_id="u", persona_id="p", jd_resume_text_id="j")
    session.add_segment(FirstQuestion("Q1", [], "raw1"))
    data = session.to_json()
    data["currentQuestionIndex"] = 3

    with pytest.raises(ValidationError):
        SessionData.from_json(data)


def test_accepts_snake_case_input():
    turn = ConversationTurn.model_validate({"role": "model", "text": "Q", "raw_ai_response_text": "raw"})
    assert turn.raw_ai_response_text == "raw"

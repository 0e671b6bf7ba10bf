import logging

import pytest

from interviewer_pro.interview.dialogue import DialogueTurnController, DEFAULT_KEY_POINTS
from interviewer_pro.interview.errors import (
    InterviewError, EmptyModelResponse, ModelCallFailed,
    GENERIC_NEXT_QUESTION_ERROR, GENERIC_FIRST_QUESTION_ERROR,
)
from interviewer_pro.interview.prompts import message_text
from interviewer_pro.interview.schemas import ConversationTurn
from interviewer_pro.interview.testing import MockModelClient, tagged_reply


def _history():
    return [
        ConversationTurn(role="model", text="What was the hardest part of the migration?",
                         raw_ai_response_text=tagged_reply(question="What was the hardest part of the migration?")),
        ConversationTurn.user("Coordinating the cut-over across three teams."),
    ]


async def test_continue_interview_end_to_end(jd_resume, hiring_manager):
    reply = tagged_reply(question="How did you keep the replicas consistent?")
    client = MockModelClient([reply])
    controller = DialogueTurnController(client, model_name="test-model")

    answer = "The main challenge was data consistency across regions."
    result = await controller.continue_interview(jd_resume, hiring_manager, _history(), answer)

    assert len(client.request_history) == 1
    contents = client.request_history[0]["contents"]
    assert len(contents) == 4
    assert [m["role"] for m in contents] == ["user", "model", "user", "user"]
    assert "Hiring Manager" in message_text(contents[0])
    assert message_text(contents[3]) == answer
    assert client.request_history[0]["kwargs"]["model"] == "test-model"

    assert result.next_question == "How did you keep the replicas consistent?"
    assert result.raw_ai_response_text == reply
    assert not result.is_complete


async def test_streamed_chunks_are_joined_before_parsing(jd_resume, persona):
    reply = tagged_reply(question="Split across chunks?")
    chunks = [reply[:7], reply[7:30], reply[30:]]
    controller = DialogueTurnController(MockModelClient([chunks]))

    result = await controller.continue_interview(jd_resume, persona, [], "answer")

    assert result.next_question == "Split across chunks?"


async def test_reply_without_question_completes(jd_resume, persona):
    controller = DialogueTurnController(MockModelClient([tagged_reply(question="")]))

    result = await controller.continue_interview(jd_resume, persona, _history(), "That's all.")

    assert result.next_question is None
    assert result.is_complete


async def test_empty_response_raises_generic_error(jd_resume, persona, caplog):
    controller = DialogueTurnController(MockModelClient(["   "]))

    with caplog.at_level(logging.ERROR, logger="dialogue"):
        with pytest.raises(InterviewError) as excinfo:
            await controller.continue_interview(jd_resume, persona, [], "answer")

    assert str(excinfo.value) == GENERIC_NEXT_QUESTION_ERROR
    assert isinstance(excinfo.value.__cause__, EmptyModelResponse)
    assert "EmptyModelResponse" in caplog.text


async def test_model_failure_is_wrapped(jd_resume, persona, caplog):
    controller = DialogueTurnController(MockModelClient([RuntimeError("Gemini REST error 503: unavailable")]))

    with caplog.at_level(logging.ERROR, logger="dialogue"):
        with pytest.raises(InterviewError) as excinfo:
            await controller.continue_interview(jd_resume, persona, [], "answer")

    assert excinfo.value.message == GENERIC_NEXT_QUESTION_ERROR
    assert "503" not in excinfo.value.message
    assert isinstance(excinfo.value.__cause__, ModelCallFailed)
    assert "503" in caplog.text


async def test_first_question_uses_default_key_points(jd_resume, persona):
    controller = DialogueTurnController(MockModelClient([tagged_reply(question="Walk me through your resume.")]))

    first = await controller.get_first_question(jd_resume, persona)

    assert first.question == "Walk me through your resume."
    assert first.key_points == DEFAULT_KEY_POINTS


async def test_first_question_keeps_model_key_points(jd_resume, persona):
    reply = tagged_reply(question="Q1", key_points=["Scope", "Impact"])
    controller = DialogueTurnController(MockModelClient([reply]))

    first = await controller.get_first_question(jd_resume, persona, ["Earlier question"])

    assert first.key_points == ["Scope", "Impact"]


async def test_first_question_requires_a_question(jd_resume, persona):
    controller = DialogueTurnController(MockModelClient([tagged_reply(question="")]))

    with pytest.raises(InterviewError) as excinfo:
        await controller.get_first_question(jd_resume, persona)

    assert excinfo.value.message == GENERIC_FIRST_QUESTION_ERROR

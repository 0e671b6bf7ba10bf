from interviewer_pro.interview.prompts import (
    RESPONSE_FORMAT_EXAMPLE,
    build_prompt_contents,
    build_first_question_contents,
    build_live_system_instruction,
    build_system_instruction,
    message_text,
)
from interviewer_pro.interview.schemas import ConversationTurn


def test_empty_history_is_single_context_message(jd_resume, hiring_manager):
    contents = build_prompt_contents(jd_resume, hiring_manager, [])

    assert len(contents) == 1
    assert contents[0]["role"] == "user"
    text = message_text(contents[0])
    assert "Hiring Manager" in text
    assert hiring_manager.system_prompt in text
    assert jd_resume.jd_text in text
    assert jd_resume.resume_text in text
    assert RESPONSE_FORMAT_EXAMPLE in text


def test_context_parts_are_ordered(jd_resume, hiring_manager):
    parts = build_prompt_contents(jd_resume, hiring_manager, [])[0]["parts"]

    assert len(parts) == 4
    assert parts[0]["text"] == build_system_instruction(hiring_manager)
    assert "<JD>" in parts[1]["text"]
    assert "<RESUME>" in parts[2]["text"]
    assert "Response Format" in parts[3]["text"]


def test_history_maps_one_message_per_turn(jd_resume, persona):
    history = [
        ConversationTurn(role="model", text="Tell me about X.",
                         raw_ai_response_text="<QUESTION>Tell me about X.</QUESTION>"),
        ConversationTurn.user("X was a billing system."),
        ConversationTurn(role="model", text="Why Kafka?",
                         raw_ai_response_text="<QUESTION>Why Kafka?</QUESTION><ANALYSIS>ok</ANALYSIS>"),
    ]
    contents = build_prompt_contents(jd_resume, persona, history)

    assert len(contents) == 1 + len(history)
    assert [m["role"] for m in contents[1:]] == ["model", "user", "model"]
    assert message_text(contents[1]) == "<QUESTION>Tell me about X.</QUESTION>"
    assert message_text(contents[2]) == "X was a billing system."
    assert message_text(contents[3]).startswith("<QUESTION>Why Kafka?")


def test_persisted_camel_case_turns_are_accepted(jd_resume, persona):
    history = [
        {"role": "model", "text": "Q?", "rawAiResponseText": "<QUESTION>Q?</QUESTION>"},
        {"role": "user", "text": "A."},
    ]
    contents = build_prompt_contents(jd_resume, persona, history)

    assert message_text(contents[1]) == "<QUESTION>Q?</QUESTION>"
    assert message_text(contents[2]) == "A."


def test_model_turn_without_raw_falls_back_to_text(jd_resume, persona):
    contents = build_prompt_contents(jd_resume, persona, [{"role": "model", "text": "Legacy question"}])
    assert message_text(contents[1]) == "Legacy question"


def test_system_instruction_names_all_tags(persona):
    instruction = build_system_instruction(persona)
    for tag in ("<QUESTION>", "<ANALYSIS>", "<FEEDBACK>", "<SUGGESTED_ALTERNATIVE>"):
        assert tag in instruction
    assert persona.name in instruction


def test_first_question_lists_previous_questions(jd_resume, persona):
    contents = build_first_question_contents(jd_resume, persona, ["Why this company?"])

    assert len(contents) == 1
    assert len(contents[0]["parts"]) == 5
    last = contents[0]["parts"][-1]["text"]
    assert "<KEY_POINTS>" in last
    assert "Why this company?" in last


def test_live_instruction_is_scoped_to_one_question(persona):
    instruction = build_live_system_instruction("Describe a tricky outage.", persona)
    assert "Describe a tricky outage." in instruction
    assert persona.name in instruction

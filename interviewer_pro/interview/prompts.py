"""
Interview prompt templates and generation.

This module contains all the prompt templates used throughout the interview system,
keeping them separate from the business logic for easier maintenance and editing.

Messages use the Gemini content shape: {"role": "user"|"model", "parts": [{"text": ...}]}.
"""
from typing import Any, Dict, List, Optional, Sequence

from .models import Persona, JdResumeText

Message = Dict[str, Any]

RESPONSE_FORMAT_EXAMPLE = """<QUESTION>Can you walk me through a project where you had to balance speed of delivery against long-term code quality?</QUESTION>
<ANALYSIS>The previous answer named the technologies used but did not explain the candidate's own decisions or their impact.</ANALYSIS>
<FEEDBACK>
- Describe the specific decision you owned.
- Quantify the outcome where you can.
</FEEDBACK>
<SUGGESTED_ALTERNATIVE>I led the migration to an event queue, which cut checkout latency by 40% while keeping the old API stable for partners.</SUGGESTED_ALTERNATIVE>"""


class InterviewPrompts:
    """Collection of all interview-related prompts."""

    @staticmethod
    def system_instruction(persona_name: str, persona_prompt: str) -> str:
        return f"""
You are an AI simulating an interview. Your goal is to act as a {persona_name} and conduct a realistic interview based on the provided Job Description and Resume, considering the conversation history. Focus on topics relevant to a {persona_name} role.

Persona specific instructions: "{persona_prompt}"

You MUST always answer using exactly these four tagged sections, in this order: <QUESTION>, <ANALYSIS>, <FEEDBACK>, <SUGGESTED_ALTERNATIVE>.
Put one feedback point per line inside <FEEDBACK>. When the interview is over, leave <QUESTION></QUESTION> empty.
Example of a well-formed response:

{RESPONSE_FORMAT_EXAMPLE}
        """.strip()

    @staticmethod
    def job_description(jd_text: str) -> str:
        return f"\n\nJob Description:\n<JD>\n{jd_text}\n</JD>"

    @staticmethod
    def resume(resume_text: str) -> str:
        return f"\n\nCandidate Resume:\n<RESUME>\n{resume_text}\n</RESUME>"

    @staticmethod
    def response_format() -> str:
        return f"""

IMPORTANT - Response Format Instructions:
You MUST respond in the following structured format for every response:

{RESPONSE_FORMAT_EXAMPLE}

For the first question, you can put "N/A" in the ANALYSIS, FEEDBACK, and SUGGESTED_ALTERNATIVE sections.
Always include ALL FOUR sections with the exact XML tags shown above."""

    @staticmethod
    def first_question(previous_questions: Sequence[str] = ()) -> str:
        avoid = ""
        if previous_questions:
            listed = "\n".join(f"- {q}" for q in previous_questions)
            avoid = f"\n\nQuestions already asked in this interview (do not repeat them):\n{listed}"
        return f"""

Also include a <KEY_POINTS> section listing, one per line, the 3 key points a strong answer should address.{avoid}

Now start the interview with your first question."""

    @staticmethod
    def live_system_instruction(question: str, persona_name: Optional[str] = None) -> str:
        role = f"a {persona_name}" if persona_name else "an interviewer"
        return f"""
You are {role} conducting a voice interview.

IMMEDIATELY upon connection, start by saying:
"Let's begin with this question: {question}"

Then:
- Listen to the candidate's complete response
- Stay on this single question; do not move to a new topic
- Keep the conversation natural and professional
- When the candidate finishes, briefly acknowledge the answer

Remember: Start immediately with the question above. Do not wait for the candidate to speak first.
        """.strip()


def build_system_instruction(persona: Persona) -> str:
    """Fixed-template instruction embedding the persona and the four-tag output contract."""
    return InterviewPrompts.system_instruction(persona.name, persona.system_prompt)


def _turn_value(turn: Any, name: str, alias: str) -> Any:
    if isinstance(turn, dict):
        return turn.get(name, turn.get(alias))
    return getattr(turn, name, None)


def history_message(turn: Any) -> Message:
    """
    Convert one stored turn to a message.

    Model turns replay their raw tagged reply so the model keeps seeing its own
    output contract; falling back to display text only for legacy rows.
    """
    role = _turn_value(turn, "role", "role")
    role = getattr(role, "value", role)
    if role == "model":
        raw = _turn_value(turn, "raw_ai_response_text", "rawAiResponseText")
        text = raw if raw else _turn_value(turn, "text", "text")
        return {"role": "model", "parts": [{"text": text or ""}]}
    return {"role": "user", "parts": [{"text": _turn_value(turn, "text", "text") or ""}]}


def build_prompt_contents(jd_resume_text: JdResumeText,
                          persona: Persona,
                          history: Sequence[Any]) -> List[Message]:
    """
    Build the ordered message list for a generate-with-history call.

    Args:
        jd_resume_text: The user's job description and resume
        persona: Interviewer persona
        history: Prior turns, oldest first (ConversationTurn or persisted dicts)

    Returns:
        1 + len(history) messages: the context message, then one per turn
    """
    contents: List[Message] = [{
        "role": "user",
        "parts": [
            {"text": build_system_instruction(persona)},
            {"text": InterviewPrompts.job_description(jd_resume_text.jd_text)},
            {"text": InterviewPrompts.resume(jd_resume_text.resume_text)},
            {"text": InterviewPrompts.response_format()},
        ],
    }]
    contents.extend(history_message(turn) for turn in history)
    return contents


def build_first_question_contents(jd_resume_text: JdResumeText,
                                  persona: Persona,
                                  previous_questions: Sequence[str] = ()) -> List[Message]:
    """Context message plus the instruction to open (or re-open) the interview."""
    contents = build_prompt_contents(jd_resume_text, persona, [])
    contents[0]["parts"].append({"text": InterviewPrompts.first_question(previous_questions)})
    return contents


def build_live_system_instruction(question: str, persona: Optional[Persona] = None) -> str:
    """System instruction for a live connection scoped to exactly one question."""
    return InterviewPrompts.live_system_instruction(question, persona.name if persona else None)


def user_message(text: str) -> Message:
    return {"role": "user", "parts": [{"text": text}]}


def message_text(message: Message) -> str:
    """Concatenated text of all parts of a message."""
    return "".join(part.get("text", "") for part in message.get("parts", []))

import json
import logging
import os

from interviewer_pro.interview.models import FirstQuestion, JdResumeText
from interviewer_pro.interview.schemas import ConversationTurn, SessionData


def _session(user_id="user-1"):
    session = SessionData(user_id=user_id, persona_id="swe-interviewer-standard", jd_resume_text_id="jdr-1")
    session.add_segment(FirstQuestion("Why Python?", ["Ecosystem"], "<QUESTION>Why Python?</QUESTION>"))
    session.current_segment.append(ConversationTurn.user("Batteries included."))
    return session


def test_session_round_trip(store):
    session = _session()
    store.save_session(session)

    loaded = store.get_session(session.id)

    assert loaded == session
    assert loaded.current_segment.conversation[1].text == "Batteries included."


def test_session_file_is_camel_case(store):
    session = _session()
    store.save_session(session)

    with open(os.path.join(store.sessions_dir, f"{session.id}.json"), encoding="utf-8") as f:
        data = json.load(f)

    assert data["userId"] == "user-1"
    turn = data["questionSegments"][0]["conversation"][0]
    assert turn["rawAiResponseText"] == "<QUESTION>Why Python?</QUESTION>"
    assert turn["text"] == "Why Python?"


def test_missing_records_are_none(store):
    assert store.get_session("session-nope") is None
    assert store.get_jd_resume("nobody") is None


def test_list_sessions_filters_by_user(store):
    mine, theirs = _session("user-1"), _session("user-2")
    store.save_session(mine)
    store.save_session(theirs)

    assert [s.id for s in store.list_sessions("user-1")] == [mine.id]


def test_jd_resume_is_replaced(store):
    store.save_jd_resume(JdResumeText("jdr-1", "user-1", "old jd", "old cv"))
    store.save_jd_resume(JdResumeText("jdr-1", "user-1", "new jd", "new cv"))

    record = store.get_jd_resume("user-1")

    assert record.jd_text == "new jd"
    assert record.resume_text == "new cv"


def test_ids_outside_the_store_are_rejected(store):
    with open(os.path.join(store.workdir, "evil.json"), "w", encoding="utf-8") as f:
        json.dump({"id": "evil"}, f)

    assert store.get_session("../evil") is None
    assert store.get_session("sessions/../../evil") is None
    assert store.get_jd_resume("../evil") is None


def test_invalid_session_record_is_treated_as_missing(store, caplog):
    with open(os.path.join(store.sessions_dir, "session-bad.json"), "w", encoding="utf-8") as f:
        json.dump({"id": "session-bad"}, f)
    with open(os.path.join(store.sessions_dir, "session-garbled.json"), "w", encoding="utf-8") as f:
        f.write("{not json")

    with caplog.at_level(logging.ERROR, logger="store"):
        assert store.get_session("session-bad") is None
        assert store.get_session("session-garbled") is None

    assert "not a valid record" in caplog.text

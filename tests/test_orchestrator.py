import logging
import wave

import numpy as np
import pytest

from interviewer_pro.infrastructure.llm.live import TURN_COMPLETE
from interviewer_pro.interview.orchestrator import InterviewOrchestrator, CLI_USER_ID
from interviewer_pro.interview.testing import FakeLiveConnection, FakeLiveConnector, MockModelClient, tagged_reply


@pytest.fixture(autouse=True)
def restore_root_handlers():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def inputs(monkeypatch):
    answers = []
    monkeypatch.setattr("builtins.input", lambda prompt="": answers.pop(0))
    return answers


def _files(tmp_path):
    jd = tmp_path / "jd.txt"
    resume = tmp_path / "resume.txt"
    jd.write_text("Senior backend engineer", encoding="utf-8")
    resume.write_text("Ten years of Python", encoding="utf-8")
    return str(jd), str(resume)


async def test_text_interview_runs_until_model_finishes(tmp_path, config, inputs):
    client = MockModelClient([tagged_reply(question="Q1"), tagged_reply(question="Q2"), tagged_reply(question="")])
    orchestrator = InterviewOrchestrator(config, model_client=client, live_connector=FakeLiveConnector())
    inputs.extend(["", "First answer", "Second answer"])

    session = await orchestrator.run_text_interview(*_files(tmp_path))

    assert session.end_time is not None
    roles = [t.role for t in session.current_segment.conversation]
    assert roles == ["model", "user", "model", "user", "model"]
    assert orchestrator.metrics.get_metrics()["interviews_completed"] == 1


async def test_quit_and_next_commands(tmp_path, config, inputs):
    client = MockModelClient([tagged_reply(question="Q1"), tagged_reply(question="Q2")])
    orchestrator = InterviewOrchestrator(config, model_client=client, live_connector=FakeLiveConnector())
    inputs.extend(["/next", "/quit"])

    session = await orchestrator.run_text_interview(*_files(tmp_path))

    assert [s.question for s in session.question_segments] == ["Q1", "Q2"]
    assert session.end_time is not None
    assert orchestrator.store.get_jd_resume(CLI_USER_ID).jd_text == "Senior backend engineer"


async def test_voice_answer_from_wav(tmp_path, config, inputs):
    wav_path = tmp_path / "a1.wav"
    with wave.open(str(wav_path), "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(16000)
        wf.writeframes((np.sin(np.arange(3200) / 10) * 8000).astype("<i2").tobytes())

    connection = FakeLiveConnection(on_stop=[{"transcript": "spoken answer"}, {"type": TURN_COMPLETE}])
    client = MockModelClient([tagged_reply(question="Q1")])
    orchestrator = InterviewOrchestrator(config, model_client=client, live_connector=FakeLiveConnector([connection]))
    inputs.extend(["/voice a1.wav", "/quit"])

    session = await orchestrator.run_text_interview(*_files(tmp_path), voice_dir=str(tmp_path))

    assert len(connection.audio_chunks) == 2
    assert connection.stop_signals == 1
    assert session.current_segment.conversation[-1].text == "spoken answer"

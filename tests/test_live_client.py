from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from interviewer_pro.infrastructure.llm.live import (
    AUDIO, END_OF_TURN, TRANSCRIPT, TURN_COMPLETE, GeminiLiveConnection, messages_from_server,
)


def _server_message(parts=(), input_text=None, output_text=None, turn_complete=False):
    content = SimpleNamespace(
        model_turn=SimpleNamespace(parts=list(parts)) if parts else None,
        input_transcription=SimpleNamespace(text=input_text) if input_text else None,
        output_transcription=SimpleNamespace(text=output_text) if output_text else None,
        turn_complete=turn_complete,
    )
    return SimpleNamespace(server_content=content)


def test_server_content_is_translated():
    message = _server_message(
        parts=[SimpleNamespace(text=None, inline_data=SimpleNamespace(data=b"\x01\x02"))],
        input_text="my answer",
        output_text="Thanks.",
        turn_complete=True,
    )

    out = messages_from_server(message)

    assert [m.type for m in out] == [AUDIO, None, TRANSCRIPT, TURN_COMPLETE]
    assert out[0].audio == b"\x01\x02"
    assert out[1].text == "Thanks." and out[1].role == "model"
    assert out[2].transcript == "my answer" and out[2].role == "user"


def test_messages_without_server_content_are_ignored():
    assert messages_from_server(SimpleNamespace(setup_complete=True)) == []


async def test_connection_send_and_close():
    session = MagicMock()
    session.send_realtime_input = AsyncMock()
    context = MagicMock()
    context.__aexit__ = AsyncMock()
    connection = GeminiLiveConnection(context, session)

    await connection.send(b"\x00\x01")
    await connection.send(END_OF_TURN)

    first, second = session.send_realtime_input.await_args_list
    assert first.kwargs["audio"].data == b"\x00\x01"
    assert first.kwargs["audio"].mime_type == "audio/pcm;rate=16000"
    assert second.kwargs == {"audio_stream_end": True}

    with pytest.raises(TypeError):
        await connection.send("not audio")

    await connection.close()
    await connection.close()
    context.__aexit__.assert_awaited_once()
    with pytest.raises(RuntimeError):
        await connection.send(b"\x00\x00")

"""
Testing infrastructure with mock services for the interview system.
"""
import asyncio
import copy
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Union

from .models import JdResumeText, Persona
from .personas import get_persona, SWE_INTERVIEWER_STANDARD
from ..infrastructure.llm.live import LiveMessage, is_end_of_turn

ScriptedReply = Union[str, Sequence[str], Exception]
ScriptedMessage = Union[LiveMessage, Dict[str, Any]]


def tagged_reply(question: Optional[str] = "Tell me about a recent project.",
                 analysis: str = "Clear structure, light on impact.",
                 feedback: Iterable[str] = ("Quantify results", "Name your own contribution"),
                 alternative: str = "I led the rewrite and cut latency by 40%.",
                 key_points: Iterable[str] = ()) -> str:
    """Build a well-formed four-tag model reply."""
    parts = [
        f"<QUESTION>{question or ''}</QUESTION>",
        f"<ANALYSIS>{analysis}</ANALYSIS>",
        "<FEEDBACK>\n" + "\n".join(f"- {point}" for point in feedback) + "\n</FEEDBACK>",
        f"<SUGGESTED_ALTERNATIVE>{alternative}</SUGGESTED_ALTERNATIVE>",
    ]
    key_points = list(key_points)
    if key_points:
        parts.append("<KEY_POINTS>\n" + "\n".join(f"- {point}" for point in key_points) + "\n</KEY_POINTS>")
    return "\n".join(parts)


def sample_persona(persona_id: str = SWE_INTERVIEWER_STANDARD) -> Persona:
    return get_persona(persona_id)


def sample_jd_resume(user_id: str = "user-1") -> JdResumeText:
    return JdResumeText(
        id=f"jdr-{user_id}",
        user_id=user_id,
        jd_text="Backend engineer. Python, distributed systems, on-call ownership.",
        resume_text="Five years building payment APIs in Python and Go.",
    )


class MockModelClient:
    """
    Mock one-shot model client.

    Each call consumes the next scripted reply: a string (one chunk), a list of
    chunks, or an exception to raise while streaming.
    """

    def __init__(self, replies: Sequence[ScriptedReply]):
        self.replies = list(replies)
        self.current_reply_idx = 0
        self.request_history: List[Dict[str, Any]] = []

    def stream_generate_content(self, contents: List[Dict[str, Any]], **kwargs) -> Iterator[str]:
        self.request_history.append({"contents": copy.deepcopy(contents), "kwargs": kwargs})

        if self.current_reply_idx >= len(self.replies):
            raise AssertionError("MockModelClient ran out of scripted replies")
        reply = self.replies[self.current_reply_idx]
        self.current_reply_idx += 1

        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, str):
            return iter([reply])
        return iter(list(reply))

    def generate_content(self, contents: List[Dict[str, Any]], **kwargs) -> str:
        return "".join(self.stream_generate_content(contents, **kwargs))


class FakeLiveConnection:
    """
    In-memory live connection.

    `messages` are delivered as soon as iteration starts; `on_stop` messages are
    queued when the end-of-turn payload arrives. The stream stays open until
    `end_stream()` or `close()`.
    """

    _END = object()

    def __init__(self,
                 messages: Sequence[ScriptedMessage] = (),
                 on_stop: Sequence[ScriptedMessage] = (),
                 send_error: Optional[Exception] = None,
                 end_after_script: bool = False):
        self.sent: List[Union[bytes, Dict[str, Any]]] = []
        self.closed = False
        self.close_calls = 0
        self.on_stop = list(on_stop)
        self.send_error = send_error
        self._queue: asyncio.Queue = asyncio.Queue()
        for message in messages:
            self._queue.put_nowait(message)
        if end_after_script:
            self._queue.put_nowait(self._END)

    @property
    def stop_signals(self) -> int:
        return sum(1 for payload in self.sent if is_end_of_turn(payload))

    @property
    def audio_chunks(self) -> List[bytes]:
        return [payload for payload in self.sent if isinstance(payload, bytes)]

    def push(self, message: ScriptedMessage) -> None:
        self._queue.put_nowait(message)

    def end_stream(self) -> None:
        self._queue.put_nowait(self._END)

    async def send(self, payload: Union[bytes, Dict[str, Any]]) -> None:
        if self.closed:
            raise RuntimeError("Live connection is closed")
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(payload)
        if is_end_of_turn(payload):
            for message in self.on_stop:
                self._queue.put_nowait(message)

    def __aiter__(self):
        return self

    async def __anext__(self):
        message = await self._queue.get()
        if message is self._END:
            raise StopAsyncIteration
        return message

    async def close(self) -> None:
        self.close_calls += 1
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(self._END)


class FakeLiveConnector:
    """Hands out FakeLiveConnections and records what each was opened with."""

    def __init__(self, connections: Sequence[FakeLiveConnection] = (), connect_error: Optional[Exception] = None):
        self.connections = list(connections)
        self.connect_error = connect_error
        self.opened: List[FakeLiveConnection] = []
        self.system_instructions: List[str] = []
        self.models: List[Optional[str]] = []

    async def connect(self, system_instruction: str, model: Optional[str] = None) -> FakeLiveConnection:
        self.system_instructions.append(system_instruction)
        self.models.append(model)
        if self.connect_error is not None:
            raise self.connect_error
        connection = self.connections.pop(0) if self.connections else FakeLiveConnection()
        self.opened.append(connection)
        return connection


class FakeClock:
    """Controllable replacement for asyncio.sleep."""

    def __init__(self):
        self.now = 0.0
        self._sleepers: List[Any] = []

    async def sleep(self, seconds: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.now + seconds, future))
        await future

    async def advance(self, seconds: float) -> None:
        """Move time forward and let every task whose sleep expired run."""
        await settle()
        self.now += seconds
        for deadline, future in list(self._sleepers):
            if deadline <= self.now:
                self._sleepers.remove((deadline, future))
                if not future.done():
                    future.set_result(None)
        await settle()


async def settle(rounds: int = 10) -> None:
    """Yield to the event loop so pending tasks get to run."""
    for _ in range(rounds):
        await asyncio.sleep(0)

"""
Gemini Live API adapter.

Wraps a `google-genai` live session as a plain connection object: `send()`
takes either PCM16 audio bytes or the end-of-turn control payload, and the
connection itself is an async iterator of `LiveMessage` records.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Union, Dict, Any, AsyncIterator

from google import genai
from google.genai import types
from google.oauth2 import service_account

from ...config import VERTEX_LOCATION, MODEL_NAME_LIVE, LIVE_INPUT_MIME_TYPE, LIVE_VOICE_NAME

logger = logging.getLogger("live_client")

END_OF_TURN = {"audio": "stop"}

TRANSCRIPT = "TRANSCRIPT"
TURN_COMPLETE = "TURN_COMPLETE"
AUDIO = "AUDIO"


@dataclass
class LiveMessage:
    """One record from the live message stream."""
    text: Optional[str] = None
    transcript: Optional[str] = None
    type: Optional[str] = None
    audio: Optional[bytes] = None
    role: Optional[str] = None


def is_end_of_turn(payload: Union[bytes, Dict[str, Any]]) -> bool:
    return isinstance(payload, dict) and payload.get("audio") == "stop"


def messages_from_server(message) -> list:
    """Translate one LiveServerMessage into zero or more LiveMessage records."""
    content = getattr(message, "server_content", None)
    if content is None:
        return []

    out = []
    model_turn = getattr(content, "model_turn", None)
    if model_turn and model_turn.parts:
        for part in model_turn.parts:
            if getattr(part, "text", None):
                out.append(LiveMessage(text=part.text, role="model"))
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                out.append(LiveMessage(audio=inline.data, type=AUDIO, role="model"))

    output_tx = getattr(content, "output_transcription", None)
    if output_tx is not None and getattr(output_tx, "text", None):
        out.append(LiveMessage(text=output_tx.text, role="model"))

    input_tx = getattr(content, "input_transcription", None)
    if input_tx is not None and getattr(input_tx, "text", None):
        out.append(LiveMessage(transcript=input_tx.text, type=TRANSCRIPT, role="user"))

    if getattr(content, "turn_complete", False):
        out.append(LiveMessage(type=TURN_COMPLETE))
    return out


class GeminiLiveConnection:
    """One open live session. Owned by exactly one turn manager."""

    def __init__(self, session_context, session):
        self._session_context = session_context
        self._session = session
        self._closed = False

    async def send(self, payload: Union[bytes, Dict[str, Any]]) -> None:
        if self._closed:
            raise RuntimeError("Live connection is closed")
        if is_end_of_turn(payload):
            await self._session.send_realtime_input(audio_stream_end=True)
            return
        if not isinstance(payload, (bytes, bytearray)):
            raise TypeError(f"Unsupported live payload: {type(payload).__name__}")
        await self._session.send_realtime_input(
            audio=types.Blob(data=bytes(payload), mime_type=LIVE_INPUT_MIME_TYPE)
        )

    def __aiter__(self) -> AsyncIterator[LiveMessage]:
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[LiveMessage]:
        # session.receive() ends after each turn_complete; keep reading until
        # the socket stops producing messages.
        while not self._closed:
            received = 0
            async for server_message in self._session.receive():
                received += 1
                for message in messages_from_server(server_message):
                    yield message
            if received == 0:
                return

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        context, self._session_context = self._session_context, None
        self._session = None
        if context is not None:
            await context.__aexit__(None, None, None)


class GeminiLiveConnector:
    """Opens live connections. One instance per process."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 project: Optional[str] = None,
                 location: str = VERTEX_LOCATION,
                 credentials_json: Optional[str] = None,
                 model: str = MODEL_NAME_LIVE,
                 voice_name: str = LIVE_VOICE_NAME):
        if api_key:
            self.client = genai.Client(api_key=api_key)
        elif project:
            credentials = None
            if credentials_json:
                credentials = service_account.Credentials.from_service_account_file(
                    credentials_json,
                    scopes=["https://www.googleapis.com/auth/cloud-platform"],
                )
            self.client = genai.Client(vertexai=True, project=project, location=location,
                                       credentials=credentials)
        else:
            raise ValueError("Either api_key or project is required")
        self.model = model
        self.voice_name = voice_name

    def _connect_config(self, system_instruction: str) -> types.LiveConnectConfig:
        return types.LiveConnectConfig(
            response_modalities=[types.Modality.AUDIO],
            system_instruction=types.Content(parts=[types.Part(text=system_instruction)]),
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=self.voice_name)
                )
            ),
            input_audio_transcription=types.AudioTranscriptionConfig(),
            output_audio_transcription=types.AudioTranscriptionConfig(),
        )

    async def connect(self, system_instruction: str, model: Optional[str] = None) -> GeminiLiveConnection:
        model = model or self.model
        logger.info("Connecting live session (model=%s)", model)
        context = self.client.aio.live.connect(model=model, config=self._connect_config(system_instruction))
        session = await context.__aenter__()
        logger.info("Live session connected")
        return GeminiLiveConnection(context, session)

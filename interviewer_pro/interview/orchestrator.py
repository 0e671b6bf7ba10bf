"""
Interview orchestrator: wires configuration, clients, store and services,
and runs an interview from the terminal.
"""
import os
import logging
from typing import Optional

from .dialogue import DialogueTurnController
from .events import InterviewEventBus, EventLogger, InterviewMetrics
from .errors import InterviewError
from .live import LiveVoiceTurnManager
from .personas import list_personas
from .schemas import SessionData
from .services import InterviewSessionService
from ..config import Config, LIVE_INPUT_SAMPLE_RATE
from ..infrastructure.audio.processing import (
    read_wav, iter_frames, stereo_to_mono, remove_dc, normalize_audio,
)
from ..infrastructure.data import JsonSessionStore
from ..infrastructure.llm import VertexRestClient, GeminiLiveConnector
from ..utils import setup_logging

logger = logging.getLogger("orchestrator")

CLI_USER_ID = "local-user"


class InterviewOrchestrator:
    """
    Composition root.

    Builds exactly one model client and one live connector per process and
    hands them to the session service.
    """

    def __init__(self, config: Config, model_client=None, live_connector=None, store=None):
        self.config = config
        self.log_file = setup_logging(config.log_file, config.log_level)

        # Initialize event system
        self.event_bus = InterviewEventBus()
        self.event_logger = EventLogger()
        self.metrics = InterviewMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

        if model_client is None:
            model_client = VertexRestClient(
                project=config.google_cloud_project,
                location=config.vertex_location,
                model=config.model_name_text,
                api_key=config.gemini_api_key,
                credentials_json=config.google_application_credentials,
                timeout=config.llm_timeout,
            )
        if live_connector is None:
            live_connector = GeminiLiveConnector(
                api_key=config.gemini_api_key,
                project=config.google_cloud_project,
                location=config.vertex_location,
                credentials_json=config.google_application_credentials,
                model=config.model_name_live,
            )

        self.model_client = model_client
        self.live_connector = live_connector
        self.store = store or JsonSessionStore(config.workdir)
        self.controller = DialogueTurnController(
            model_client,
            model_name=config.model_name_text,
            temperature=config.text_temperature,
            max_output_tokens=config.max_output_tokens,
        )
        self.service = InterviewSessionService(
            self.store,
            self.controller,
            live_connector=live_connector,
            event_bus=self.event_bus,
            config=config,
        )
        logger.info(f"Orchestrator ready (vertex={config.use_vertex}, workdir={config.workdir})")

    async def run_text_interview(self,
                                 jd_path: str,
                                 resume_path: str,
                                 persona_id: Optional[str] = None,
                                 duration_in_seconds: Optional[int] = None,
                                 user_id: str = CLI_USER_ID,
                                 voice_dir: Optional[str] = None) -> SessionData:
        """
        Run an interview in the terminal until the model ends it or the user quits.

        Commands at the answer prompt: /next (new question), /quit (end session).
        With `voice_dir`, answers may be given as `/voice <file.wav>`.
        """
        self.service.save_jd_resume_text(user_id, _read_text(jd_path), _read_text(resume_path))
        session = await self.service.create_session(user_id, persona_id, duration_in_seconds)

        print(f"\n🎙️  Interview started ({session.persona_id})")
        print(f"📝 Detailed logs: {self.log_file}")
        print("   Commands: /next, /quit" + (", /voice <file.wav>" if voice_dir else ""))
        print("=" * 50)
        print(f"\n❓ {session.current_segment.question}")

        try:
            while True:
                answer = input("\n💬 Your answer: ").strip()
                if not answer:
                    continue

                if answer == "/quit":
                    session = await self.service.end_session(user_id, session.id)
                    print("👋 Session ended.")
                    break

                if answer == "/next":
                    segment = await self.service.next_question(user_id, session.id)
                    print(f"\n❓ Question {segment.question_number}: {segment.question}")
                    continue

                if answer.startswith("/voice "):
                    path = os.path.join(voice_dir or ".", answer[len("/voice "):].strip())
                    await self._answer_by_voice(user_id, session.id, path)
                    continue

                result = await self.service.submit_answer(user_id, session.id, answer)
                self._display_feedback(result)
                if result.is_complete:
                    print("\n✅ The interviewer has wrapped up. Thanks!")
                    break
                print(f"\n❓ {result.next_question}")

        except InterviewError as e:
            print(f"❌ {e.message}")
            logger.error(f"Interview aborted: {e.message}")
        finally:
            await self.service.shutdown()
            logger.info(f"Metrics: {self.metrics.get_metrics()}")

        return self.service.get_session(user_id, session.id)

    async def _answer_by_voice(self, user_id: str, session_id: str, wav_path: str) -> None:
        """Stream a recorded answer through a live turn for the current question."""
        manager = await self.service.open_live_turn(user_id, session_id)
        manager.on("text", lambda text: print(f"🤖 {text}"))
        manager.on("timeout", lambda _: print("⏱️  Time is up for this answer."))

        await stream_wav(manager, wav_path)
        result = await self.service.finish_live_turn(user_id, session_id)
        if not result.transcript:
            print("🔇 No speech detected in that recording.")

    @staticmethod
    def _display_feedback(result) -> None:
        if result.analysis:
            print(f"\n🔍 {result.analysis}")
        for point in result.feedback_points:
            print(f"   • {point}")
        if result.suggested_alternative:
            print(f"💡 Try: {result.suggested_alternative}")


async def stream_wav(manager: LiveVoiceTurnManager, wav_path: str, frame_ms: int = 100) -> None:
    """Send a WAV file to a live turn frame by frame."""
    audio, sr = read_wav(wav_path)
    audio = normalize_audio(remove_dc(stereo_to_mono(audio)))
    for frame in iter_frames(audio, sr, frame_ms):
        await manager.send_audio_samples(frame, sr)
    logger.info(f"Streamed {wav_path} ({len(audio) / sr:.1f}s at {sr} Hz -> {LIVE_INPUT_SAMPLE_RATE} Hz)")


def describe_personas() -> str:
    return "\n".join(f"  {p.id:<34} {p.description or p.name}" for p in list_personas())


def _read_text(path: str) -> str:
    with open(path, 'r', encoding='utf-8') as f:
        return f.read().strip()

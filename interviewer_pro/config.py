"""
Interviewer Pro Configuration
=============================

This file contains ALL configuration for the interview system.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# USER SETTINGS - Edit these to customize the interview behavior
# =============================================================================

# REQUIRED: either a Gemini API key or a Google Cloud project
GEMINI_API_KEY = None  # Or set GEMINI_API_KEY in the environment
GOOGLE_CLOUD_PROJECT = "your-project-id"  # Change this to use Vertex AI
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# Interview settings
DEFAULT_PERSONA_ID = "swe-interviewer-standard"
DEFAULT_DURATION_SECONDS = 3600
WORKDIR = "./_sessions"

# Logging
LOG_FILE = "./_sessions/interview.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# Text mode (one-shot generation)
MODEL_NAME_TEXT = "gemini-2.0-flash-001"
TEXT_TEMPERATURE = 0.7
MAX_OUTPUT_TOKENS = 1000
LLM_TIMEOUT = 60
VERTEX_LOCATION = "us-central1"

# Voice mode (live streaming connection)
MODEL_NAME_LIVE = "gemini-2.0-flash-live-001"
LIVE_TURN_TIMEOUT_SECONDS = 10 * 60
LIVE_TURN_COMPLETE_WAIT_SECONDS = 30.0
LIVE_INPUT_SAMPLE_RATE = 16000
LIVE_INPUT_MIME_TYPE = f"audio/pcm;rate={LIVE_INPUT_SAMPLE_RATE}"
LIVE_VOICE_NAME = "Orus"

# Audio processing
TARGET_RMS = 0.06


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    gemini_api_key: Optional[str] = None
    google_cloud_project: Optional[str] = None
    google_application_credentials: Optional[str] = None
    vertex_location: str = VERTEX_LOCATION
    model_name_text: str = MODEL_NAME_TEXT
    model_name_live: str = MODEL_NAME_LIVE
    text_temperature: float = TEXT_TEMPERATURE
    max_output_tokens: int = MAX_OUTPUT_TOKENS
    llm_timeout: int = LLM_TIMEOUT
    live_turn_timeout_seconds: float = LIVE_TURN_TIMEOUT_SECONDS
    live_turn_complete_wait_seconds: float = LIVE_TURN_COMPLETE_WAIT_SECONDS
    default_persona_id: str = DEFAULT_PERSONA_ID
    default_duration_seconds: int = DEFAULT_DURATION_SECONDS
    workdir: str = WORKDIR
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL

    @property
    def use_vertex(self) -> bool:
        """Vertex AI is used whenever no API key is configured."""
        return not self.gemini_api_key


def get_config() -> Config:
    """Load configuration."""
    api_key = os.getenv("GEMINI_API_KEY") or GEMINI_API_KEY
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS

    if project == "your-project-id":
        project = None

    if not api_key and not project:
        raise ValueError(
            "Please set GEMINI_API_KEY or GOOGLE_CLOUD_PROJECT in config.py or as environment variable"
        )

    workdir = os.getenv("INTERVIEWER_WORKDIR") or WORKDIR
    return Config(
        gemini_api_key=api_key,
        google_cloud_project=project,
        google_application_credentials=credentials,
        workdir=workdir,
        log_file=os.path.join(workdir, "interview.log"),
        log_level=os.getenv("INTERVIEWER_LOG_LEVEL") or LOG_LEVEL,
    )

#!/usr/bin/env python3
"""
Main entry point for the interview simulator.
Allows running the package with: python -m interviewer_pro --jd=jd.txt --resume=resume.txt
"""
import sys
import asyncio

from .config import get_config
from . import InterviewOrchestrator
from .interview.orchestrator import describe_personas
from .interview.personas import get_persona


def main():
    """Command-line interface for the interview orchestrator."""

    if "--personas" in sys.argv:
        print("Available personas:")
        print(describe_personas())
        return

    # Load configuration from environment
    try:
        config = get_config()
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    jd_path = None
    resume_path = None
    voice_dir = None
    persona_id = config.default_persona_id
    duration = config.default_duration_seconds
    for arg in sys.argv[1:]:
        if arg.startswith("--jd="):
            jd_path = arg.split("=", 1)[1]
        elif arg.startswith("--resume="):
            resume_path = arg.split("=", 1)[1]
        elif arg.startswith("--persona="):
            persona_id = arg.split("=", 1)[1]
        elif arg.startswith("--voice-dir="):
            voice_dir = arg.split("=", 1)[1]
        elif arg.startswith("--duration="):
            try:
                duration = int(arg.split("=", 1)[1])
            except ValueError:
                print("❌ Invalid duration. Use --duration=<seconds>")
                sys.exit(1)

    if not jd_path or not resume_path:
        print("Usage: python -m interviewer_pro --jd=<file> --resume=<file> "
              "[--persona=<id>] [--duration=<seconds>] [--voice-dir=<dir>] [--personas]")
        sys.exit(1)

    if get_persona(persona_id) is None:
        print(f"❌ Unknown persona '{persona_id}'. Available:")
        print(describe_personas())
        sys.exit(1)

    print(f"🧑‍💼 Persona: {persona_id}")
    print(f"⏱️  Duration: {duration // 60} min")
    if voice_dir:
        print(f"🎤 Voice answers from: {voice_dir}")

    orchestrator = InterviewOrchestrator(config)
    asyncio.run(orchestrator.run_text_interview(
        jd_path,
        resume_path,
        persona_id=persona_id,
        duration_in_seconds=duration,
        voice_dir=voice_dir,
    ))


if __name__ == "__main__":
    main()

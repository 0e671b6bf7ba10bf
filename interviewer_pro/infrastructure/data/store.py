"""
JSON-file datastore for interview sessions and JD/resume records.

Layout under the work directory:

    sessions/<session_id>.json    SessionData, camelCase
    jd_resume/<user_id>.json      the user's single JdResumeText
"""
import os
import json
import logging
from typing import Dict, List, Optional, Any

from pydantic import ValidationError

from ...interview.models import JdResumeText
from ...interview.schemas import SessionData

logger = logging.getLogger("store")


class JsonSessionStore:
    """
    Read-modify-write persistence with one file per record.

    Writes go to a temporary file first and are moved into place, so a
    crash mid-write never leaves a truncated record behind.
    """

    def __init__(self, workdir: str = "./_sessions"):
        self.workdir = workdir
        self.sessions_dir = os.path.join(workdir, "sessions")
        self.jd_resume_dir = os.path.join(workdir, "jd_resume")
        os.makedirs(self.sessions_dir, exist_ok=True)
        os.makedirs(self.jd_resume_dir, exist_ok=True)

    @staticmethod
    def _is_safe_name(name: str) -> bool:
        return bool(name) and name not in (".", "..") and os.path.basename(name) == name

    def _session_path(self, session_id: str) -> Optional[str]:
        if not self._is_safe_name(session_id):
            logger.warning(f"Rejected session id {session_id!r}")
            return None
        return os.path.join(self.sessions_dir, f"{session_id}.json")

    def _jd_resume_path(self, user_id: str) -> Optional[str]:
        if not self._is_safe_name(user_id):
            logger.warning(f"Rejected user id {user_id!r}")
            return None
        return os.path.join(self.jd_resume_dir, f"{user_id}.json")

    @staticmethod
    def _write_json(path: str, data: Dict[str, Any]) -> None:
        tmp_path = f"{path}.tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)

    @staticmethod
    def _read_json(path: Optional[str]) -> Optional[Dict[str, Any]]:
        if path is None or not os.path.exists(path):
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def save_session(self, session: SessionData) -> None:
        path = self._session_path(session.id)
        if path is None:
            raise ValueError(f"Invalid session id: {session.id!r}")
        self._write_json(path, session.to_json())
        logger.debug(f"Saved session {session.id}")

    def get_session(self, session_id: str) -> Optional[SessionData]:
        try:
            data = self._read_json(self._session_path(session_id))
            return SessionData.from_json(data) if data is not None else None
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Session {session_id} is not a valid record: {e}")
            return None

    def list_sessions(self, user_id: str) -> List[SessionData]:
        """All sessions owned by a user, newest first. Unreadable files are skipped with an error log."""
        sessions = []
        for filename in sorted(os.listdir(self.sessions_dir)):
            if not filename.endswith('.json'):
                continue
            session_id = filename[:-5]
            try:
                session = self.get_session(session_id)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load session {session_id}: {e}")
                continue
            if session is not None and session.user_id == user_id:
                sessions.append(session)
        sessions.sort(key=lambda s: s.start_time, reverse=True)
        return sessions

    def save_jd_resume(self, record: JdResumeText) -> None:
        path = self._jd_resume_path(record.user_id)
        if path is None:
            raise ValueError(f"Invalid user id: {record.user_id!r}")
        self._write_json(path, {
            "id": record.id,
            "userId": record.user_id,
            "jdText": record.jd_text,
            "resumeText": record.resume_text,
        })
        logger.debug(f"Saved JD/resume for user {record.user_id}")

    def get_jd_resume(self, user_id: str) -> Optional[JdResumeText]:
        data = self._read_json(self._jd_resume_path(user_id))
        if data is None:
            return None
        return JdResumeText(
            id=data["id"],
            user_id=data["userId"],
            jd_text=data["jdText"],
            resume_text=data["resumeText"],
        )

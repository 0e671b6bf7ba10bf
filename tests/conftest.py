import pytest

from interviewer_pro.config import Config
from interviewer_pro.infrastructure.data import JsonSessionStore
from interviewer_pro.interview.models import Persona
from interviewer_pro.interview.testing import sample_jd_resume, sample_persona


@pytest.fixture
def jd_resume():
    return sample_jd_resume()


@pytest.fixture
def persona():
    return sample_persona()


@pytest.fixture
def hiring_manager():
    return Persona(
        id="hiring-manager",
        name="Hiring Manager",
        system_prompt="You hire senior backend engineers and probe for ownership.",
    )


@pytest.fixture
def store(tmp_path):
    return JsonSessionStore(str(tmp_path))


@pytest.fixture
def config(tmp_path):
    return Config(
        gemini_api_key="test-key",
        workdir=str(tmp_path),
        log_file=str(tmp_path / "interview.log"),
        live_turn_complete_wait_seconds=1.0,
    )

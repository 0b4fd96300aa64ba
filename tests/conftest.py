import pytest

from core.config import Config, load_config
from core.history import SessionStore
from mock.interpreter import MockInterpreter
from server.controller import SessionController


@pytest.fixture
def config(monkeypatch) -> Config:
    """Default config switched to the mock backend with no artificial delay."""
    monkeypatch.delenv("ENABLE_PAID_MODELS", raising=False)
    config = load_config()
    config.llm.backend = "mock"
    config.mock.generate_delay = 0
    config.mock.interact_delay = 0
    config.mock.dialog_delay = 0
    return config


@pytest.fixture
def interpreter(config) -> MockInterpreter:
    return MockInterpreter(config.mock)


@pytest.fixture
def controller(config, interpreter) -> SessionController:
    return SessionController(config, interpreter, SessionStore())


@pytest.fixture
def free_model(config) -> str:
    return next(m.id for m in config.models.available if not m.is_paid)


@pytest.fixture
def paid_model(config) -> str:
    return next(m.id for m in config.models.available if m.is_paid)


@pytest.fixture
def temp_config(tmp_path):
    """Create a temp config TOML for isolated tests."""
    toml_content = """
[server]
host = "127.0.0.1"
port = 8080
[llm]
backend = "mock"
[llm.api]
base_url = "http://localhost:9999/v1"
api_key_env = "TEST_API_KEY"
timeout = 5
max_tokens = 256
[models]
enable_paid = true
[[models.available]]
id = "local/test"
name = "Test"
is_paid = true
[mock]
generate_delay = 0
interact_delay = 0
dialog_delay = 0
[history]
max_actions = 3
max_dialog = 4
"""
    config_path = tmp_path / "test.toml"
    config_path.write_text(toml_content)
    return load_config(str(config_path))

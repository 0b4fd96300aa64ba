import os

import tomli
from pydantic import BaseModel


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000


class LLMApiConfig(BaseModel):
    base_url: str = "https://openrouter.ai/api/v1"
    api_key_env: str = "OPENROUTER_API_KEY"
    timeout: float = 60
    max_tokens: int = 4096


class LLMConfig(BaseModel):
    backend: str = "api"  # "api" or "mock"
    api: LLMApiConfig = LLMApiConfig()


class ModelEntry(BaseModel):
    id: str
    name: str
    description: str = ""
    is_paid: bool = False


class ModelsConfig(BaseModel):
    enable_paid: bool = False
    available: list[ModelEntry] = []

    def find(self, model_id: str | None) -> ModelEntry | None:
        for model in self.available:
            if model.id == model_id:
                return model
        return None


class MockConfig(BaseModel):
    generate_delay: float = 1.5
    interact_delay: float = 1.0
    dialog_delay: float = 1.5


class HistoryConfig(BaseModel):
    max_actions: int = 20
    max_dialog: int = 20


class LoggingConfig(BaseModel):
    level: str = "INFO"


class Config(BaseModel):
    server: ServerConfig = ServerConfig()
    llm: LLMConfig = LLMConfig()
    models: ModelsConfig = ModelsConfig()
    mock: MockConfig = MockConfig()
    history: HistoryConfig = HistoryConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: str = "config/default.toml") -> Config:
    """Load config from TOML file, validate with Pydantic.

    ENABLE_PAID_MODELS=true in the environment switches paid models on
    regardless of the file.
    """
    with open(path, "rb") as f:
        data = tomli.load(f)
    config = Config(**data)
    if os.environ.get("ENABLE_PAID_MODELS", "").lower() == "true":
        config.models.enable_paid = True
    return config

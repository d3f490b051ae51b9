from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    OPENROUTER_MODEL: str = "openai/gpt-3.5-turbo"
    APP_URL: str = "http://localhost:3000"
    APP_NAME: str = "FancyChat App"
    MAX_TOKENS: int = 1000
    TEMPERATURE: float = 0.7
    REQUEST_TIMEOUT_SECONDS: float = 30
    CONNECT_TIMEOUT_SECONDS: float = 10
    STRICT_MESSAGE_VALIDATION: bool = False
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(frozen=True, extra="ignore")

    @property
    def api_key_configured(self) -> bool:
        return bool(self.OPENROUTER_API_KEY)

@lru_cache()
def get_settings():
    return Settings()

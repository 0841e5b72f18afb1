# innodraw/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    GEMINI_API_KEY: str = ""
    STRUCTURE_MODEL: str = "gemini-2.5-flash"
    ARTWORK_MODEL: str = "gemini-2.5-flash-image"
    CHAT_MODEL: str = "gemini-2.5-flash"
    CANVAS_SIZE: int = 500
    # 0 means unbounded fan-out
    MAX_CONCURRENT_ARTWORK: int = 0
    PROJECT_STORE_PATH: str = "data/projects.json"
    PROJECT_NAME_MAX_LENGTH: int = 40
    LIMITER_STORAGE_URI: str = "memory://"
    GENERATION_RATE_LIMIT: str = "10/minute"
    CHAT_MESSAGE_RATE_LIMIT: str = "30/minute"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()

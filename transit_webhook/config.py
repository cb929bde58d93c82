from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict  # type: ignore


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    GOOGLE_MAPS_API_KEY: Optional[str] = None
    DIRECTIONS_API_URL: str = "https://maps.googleapis.com/maps/api/directions/json"
    REQUEST_TIMEOUT_SECONDS: float = 5.0

    DIALOGFLOW_PROJECT_ID: Optional[str] = None
    DIALOGFLOW_ACCESS_TOKEN: Optional[str] = None
    DIALOGFLOW_LANGUAGE_CODE: str = "en"

    CORS_ALLOW_ORIGINS: str = "*"  # comma separated
    LOG_LEVEL: str = "INFO"


settings = Settings()

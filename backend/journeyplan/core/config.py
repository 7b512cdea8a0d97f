from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    app_name: str = "Journey Planner"
    environment: str = Field("local", validation_alias="ENVIRONMENT")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    default_requester_id: str = Field("demo-requester", validation_alias="DEFAULT_REQUESTER_ID")
    llm_provider: str = Field("mock", validation_alias="LLM_PROVIDER")
    ollama_host: str = Field("http://localhost:11434", validation_alias="OLLAMA_HOST")
    ollama_model: str = Field("llama3", validation_alias="OLLAMA_MODEL")
    analysis_timeout_seconds: float = Field(20.0, validation_alias="ANALYSIS_TIMEOUT_SECONDS")
    geocoder_provider: str = Field("static", validation_alias="GEOCODER_PROVIDER")
    google_maps_api_key: str | None = Field(None, validation_alias="GOOGLE_MAPS_API_KEY")
    geocoder_timeout_seconds: float = Field(10.0, validation_alias="GEOCODER_TIMEOUT_SECONDS")


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(".env")
    return Settings()


settings = get_settings()

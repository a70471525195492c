from pydantic_settings import BaseSettings
from typing import Optional
from models.transform import LLMCredentials, PromptVariant


class Settings(BaseSettings):
    SUPABASE_URL: str
    SUPABASE_SERVICE_ROLE_KEY: str
    # Optional: without a key new tubuyaki are saved as 'pending'
    ANTHROPIC_API_KEY: Optional[str] = None
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Transform Engine Settings
    TUBUYAKI_LLM_MODEL: str = "claude-sonnet-4-5"
    TUBUYAKI_LLM_TEMPERATURE: float = 0.3
    TUBUYAKI_LLM_MAX_TOKENS: int = 2048
    TUBUYAKI_LLM_TIMEOUT_SECONDS: float = 60.0
    TUBUYAKI_PROMPT_VARIANT: PromptVariant = PromptVariant.FLEXIBLE

    # Storage / Query Settings
    TUBUYAKI_TABLE: str = "tubuyaki"
    TUBUYAKI_SEARCH_LIMIT: int = 50
    TUBUYAKI_TIMEZONE: Optional[str] = None  # IANA name, e.g. "Asia/Tokyo"

    class Config:
        env_file = ".env"

    def llm_credentials(self) -> Optional[LLMCredentials]:
        """Credentials for the Transform Engine, or None when no key is configured"""
        if not self.ANTHROPIC_API_KEY or not self.ANTHROPIC_API_KEY.strip():
            return None
        return LLMCredentials(
            api_key=self.ANTHROPIC_API_KEY.strip(),
            model=self.TUBUYAKI_LLM_MODEL,
        )


settings = Settings()

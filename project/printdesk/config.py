# printdesk/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    OPENAI_API_KEY: str
    OPENAI_MODEL: str
    AUTH_SECRET_KEY: str
    AUTH_TOKEN_EXPIRE_MINUTES: int
    AUTH_LOGIN: str
    AUTH_PASSWORD: str

    DATABASE_URL: str       # postgresql+asyncpg://... or sqlite+aiosqlite:///...

    # Shop and display
    SHOP_NAME: str = "Classic Offset"
    PUBLIC_ORIGIN: str = "http://localhost:5173"   # origin for invoice deep links
    DISPLAY_LOCALE: str = "en"
    CURRENCY_SYMBOL: str = "₹"

    # Chat agent
    AGENT_MAX_ITERATIONS: int = 5
    FUNCTIONS_API_KEY: str = ""     # when set, the apikey header is required
    SEARCH_API_URL: str = ""
    SEARCH_API_KEY: str = ""
    SEARCH_TIMEOUT_SECONDS: float = 10.0

    LOG_DIR: str = "logs"
    LOG_PRINT: str = "1"
    LOG_PRINT_DB: str = "0"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()

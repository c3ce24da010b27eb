import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./bind_playground.db")
    EXCHANGE_URL: str = os.getenv(
        "EXCHANGE_URL", "https://exchange.bind-standard.org/exchange"
    )
    DIRECTORY_URL: str = os.getenv("DIRECTORY_URL", "https://bindpki.org")
    TERMINOLOGY_URL: str = os.getenv("TERMINOLOGY_URL", "https://api.bind.codes")
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "30"))
    DIRECTORY_DEBOUNCE_SECONDS: float = float(
        os.getenv("DIRECTORY_DEBOUNCE_SECONDS", "0.5")
    )
    SCHEMA_DIR: str = os.getenv("SCHEMA_DIR", "")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()

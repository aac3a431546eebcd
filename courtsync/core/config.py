from typing import List, Optional, Union
from pydantic import AnyHttpUrl, validator
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Court Records Sync API"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "API for scraping and reconciling case and order records from Indian court portals"
    API_V1_STR: str = "/api/v1"

    # CORS
    # Set to True to allow requests from any origin (useful for development)
    ALLOW_ALL_ORIGINS: bool = True

    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ]

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    # DATABASE_URL wins over the individual DB_* parts when set
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "court_records"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""

    # Vision oracle (OpenAI-compatible chat completions endpoint)
    OPENAI_API_KEY: str = ""
    ORACLE_BASE_URL: str = "https://api.openai.com/v1"
    ORACLE_CHAT_COMPLETIONS_URL: str = "/chat/completions"
    ORACLE_MODEL: str = "gpt-4o-mini"
    ORACLE_TIMEOUT: float = 30.0

    # CAPTCHA policy
    CAPTCHA_MAX_ATTEMPTS: int = 3
    CAPTCHA_RETRY_DELAY: float = 2.0

    # HTTP
    REQUEST_TIMEOUT: float = 60.0
    USER_AGENT: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

    # Order documents
    BLOB_STORAGE_ROOT: str = "data/documents"
    BLOB_PREFIX: str = "judgement-pdf"
    ARCHIVE_ORDER_TYPES: List[str] = ["JUDGEMENT"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    @property
    def SQLALCHEMY_DATABASE_URL(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"  # Allow extra fields in the .env file

settings = Settings()

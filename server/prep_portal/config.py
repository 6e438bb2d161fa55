from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application configuration settings"""

    # Application
    app_name: str = "UPSC Prep Portal"
    debug: bool = True
    api_version: str = "v1"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "sqlite:///./prep_portal.db"

    # OpenAI
    openai_api_key: str
    openai_model: str = "gpt-4o-2024-08-06"

    # Security
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    min_password_length: int = 6

    # First admin account, created on startup when both are set
    bootstrap_admin_email: Optional[str] = None
    bootstrap_admin_password: Optional[str] = None

    # CORS
    cors_origins: str = "http://localhost:9002,http://localhost:3000"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # Documents
    max_upload_size_mb: int = 10
    max_document_chars: int = 12000

    # Generation
    generation_max_retries: int = 3
    default_question_count: int = 5
    max_question_count: int = 20

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()

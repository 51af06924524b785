"""
Configuration module for the Audit Readiness API
Manages environment variables and application settings
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file='.env',
        case_sensitive=False,
        extra='ignore'  # Ignore extra fields in .env
    )

    # Application
    app_name: str = "Audit Readiness API"
    debug: bool = False
    log_level: str = "INFO"

    # Report defaults (passed to the engine explicitly)
    default_top_gaps: int = 5
    role_gap_limit: int = 5
    export_dir: str = "exports"

    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    def get_cors_origins(self) -> list[str]:
        """Comma-separated CORS_ORIGINS as a list"""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Global settings instance
settings = Settings()

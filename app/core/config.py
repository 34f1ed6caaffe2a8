from typing import List, Optional
from pydantic_settings import BaseSettings
from pathlib import Path

DEFAULT_JWT_SECRET = "super-secret-jwt-token-with-at-least-32-characters-long"

class Settings(BaseSettings):
    # Application settings
    PROJECT_NAME: str = "SpecChem Safety Training LMS"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    CORS_ORIGINS: List[str] = ["*"]

    # Database settings
    DB_HOST: str = "localhost"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "specchem_lms"
    DB_PORT: int = 5432
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_ECHO: bool = False
    AUTO_CREATE_TABLES: bool = False

    # Supabase Auth settings
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    SUPABASE_JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    PASSWORD_RESET_REDIRECT_URL: Optional[str] = None

    # Cache settings
    CACHE_ENABLED: bool = True

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Get database URI as string."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    def config_issues(self) -> List[str]:
        """Return the configuration problems the health check should report."""
        issues = []
        if not self.SUPABASE_URL:
            issues.append("SUPABASE_URL is not set")
        if not self.SUPABASE_ANON_KEY:
            issues.append("SUPABASE_ANON_KEY is not set")
        if not self.SUPABASE_SERVICE_ROLE_KEY:
            issues.append("SUPABASE_SERVICE_ROLE_KEY is not set")
        if self.ENVIRONMENT == "production" and self.SUPABASE_JWT_SECRET == DEFAULT_JWT_SECRET:
            issues.append("SUPABASE_JWT_SECRET uses the development default")
        return issues

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_DIR: Path = Path("logs")
    LOG_FILE: str = "app.log"
    LOG_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT: int = 5
    LOG_TO_FILE: bool = True

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "allow"

# Create settings instance
settings = Settings()

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./uni_tracker.db"
    ALLOWED_ORIGINS: str = "http://localhost:5173"

    # Generated tasks are due this many days before the earliest deadline
    TASK_LEAD_DAYS: int = 30
    UPCOMING_WINDOW_DAYS: int = 30

    SEED_ON_STARTUP: bool = True
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env

settings = Settings()

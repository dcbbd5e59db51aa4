from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"

    # PDF layout
    # Vertical distance under which two rectangles share a row
    ROW_TOLERANCE: float = 1.5
    # Largest vertical gap allowed between a detail row and the previous one
    MAX_ROW_GAP: float = 25.0

    # Import behaviour
    STOP_ON_ERROR: bool = False

    # Encrypted statements
    PDF_PASSWORD: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="BATIMPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()

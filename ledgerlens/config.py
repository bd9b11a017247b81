"""Configuration management for LedgerLens."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Development mode
    dev_mode: bool = True

    # Data directory
    data_dir: Path = Path.home() / ".ledgerlens"

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    log_level: str = "INFO"

    # Text extraction / OCR
    min_text_chars: int = 50  # Below this the PDF is treated as image-only
    ocr_dpi: int = 300
    ocr_language: str = "eng"
    ocr_page_segmentation_mode: int = 6  # Tesseract --psm 6: single uniform block of text
    tesseract_cmd: str = ""  # Explicit binary path; discovered when empty

    # Extraction
    header_window: int = 1500
    default_period_days: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def db_path(self) -> Path:
        """Get the SQLite database path."""
        suffix = "dev" if self.dev_mode else "prod"
        return self.data_dir / f"ledgerlens_{suffix}.db"

    @property
    def uploads_path(self) -> Path:
        """Get the uploads directory path."""
        return self.data_dir / "uploads"

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.uploads_path.mkdir(parents=True, exist_ok=True)

    def log_config(self) -> None:
        """Print the active configuration."""
        print("\n" + "=" * 60)
        print("CONFIGURATION LOADED")
        print("=" * 60)
        print(f"Dev Mode:            {self.dev_mode}")
        print(f"Log Level:           {self.log_level}")
        print(f"Data Directory:      {self.data_dir}")
        print(f"Database:            {self.db_path}")
        print(f"Uploads:             {self.uploads_path}")
        print(f"Tesseract:           {self.tesseract_cmd or '(auto-discover)'}")
        print(f"OCR:                 {self.ocr_dpi} dpi, psm {self.ocr_page_segmentation_mode}, lang {self.ocr_language}")
        print(f"Min Text Chars:      {self.min_text_chars}")
        print(f"API Host:            {self.api_host}:{self.api_port}")
        print("=" * 60 + "\n")


# Global settings instance
settings = Settings()

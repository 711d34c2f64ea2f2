"""
Application settings and configuration
"""

import os
from pathlib import Path
from dotenv import load_dotenv
from typing import Optional

from tasksync.config.constants import (
    DEFAULT_DATABASE_PATH,
    GITHUB_API_BASE_URL,
    GITHUB_URL_MARKER,
    HTTP_TIMEOUT,
)

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings:
    """Application settings loaded from environment variables"""

    # GitHub
    GITHUB_TOKEN: Optional[str] = os.getenv("GITHUB_TOKEN", None)
    GITHUB_API_BASE_URL: str = os.getenv("GITHUB_API_BASE_URL", GITHUB_API_BASE_URL)
    GITHUB_URL_MARKER: str = os.getenv("GITHUB_URL_MARKER", GITHUB_URL_MARKER)
    HTTP_TIMEOUT: int = int(os.getenv("HTTP_TIMEOUT", str(HTTP_TIMEOUT)))

    # Database
    DATABASE_PATH: str = os.getenv("DATABASE_PATH", DEFAULT_DATABASE_PATH)

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = os.getenv("LOG_DIR", "")

    def has_github(self) -> bool:
        """Check if GitHub is configured"""
        return bool(self.GITHUB_TOKEN and self.GITHUB_TOKEN.strip())

    def database_file(self) -> Path:
        """Resolved path of the SQLite database file"""
        return Path(self.DATABASE_PATH).expanduser()

    @classmethod
    def validate(cls) -> bool:
        """Validate that all required settings are present"""
        required = {
            "GITHUB_TOKEN": cls.GITHUB_TOKEN,
            "DATABASE_PATH": cls.DATABASE_PATH,
        }

        missing = [name for name, value in required.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        return True


# Global settings instance
settings = Settings()

"""
Practice Board - Configuration
All settings loaded from environment variables with sensible defaults.

Module-level constants mirror the environment.  Components never read them
directly: the application factory bundles them into a ``Settings`` object
and hands that to the authenticator and the song store, so tests can inject
their own secret, credentials and database path.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
_ = load_dotenv()

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
APP_PORT = int(os.getenv("APP_PORT", "8000"))
APP_ENV = os.getenv("APP_ENV", "development")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# ---------------------------------------------------------------------------
# Authentication (single shared administrator account)
# ---------------------------------------------------------------------------
ADMIN_USER = os.getenv("ADMIN_USER", "")
ADMIN_PASS = os.getenv("ADMIN_PASS", "")
SESSION_SECRET = os.getenv("SESSION_SECRET", "")
SESSION_COOKIE_NAME = "pb_session"
# Session lifetime in seconds — default 7 days
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", str(60 * 60 * 24 * 7)))

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent
DB_PATH = Path(
    os.getenv("DB_PATH", os.path.join(tempfile.gettempdir(), "practiceboard.db"))
)
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

# ---------------------------------------------------------------------------
# Logging — stdout only
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


@dataclass(frozen=True)
class Settings:
    """Explicit runtime configuration passed into the app factory."""

    admin_user: str = ""
    admin_pass: str = ""
    session_secret: str = ""
    session_max_age: int = SESSION_MAX_AGE
    cookie_name: str = SESSION_COOKIE_NAME
    db_path: Path = DB_PATH
    app_env: str = "development"
    app_version: str = APP_VERSION
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            admin_user=ADMIN_USER,
            admin_pass=ADMIN_PASS,
            session_secret=SESSION_SECRET,
            session_max_age=SESSION_MAX_AGE,
            cookie_name=SESSION_COOKIE_NAME,
            db_path=DB_PATH,
            app_env=APP_ENV,
            app_version=APP_VERSION,
            debug=DEBUG,
        )

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def auth_configured(self) -> bool:
        """True when login is possible at all."""
        return bool(self.admin_user and self.admin_pass and self.session_secret)


def ensure_directories(settings: Settings) -> None:
    """Create the parent directory of the SQLite database if needed."""
    Path(settings.db_path).parent.mkdir(parents=True, exist_ok=True)

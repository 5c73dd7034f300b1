from pydantic_settings import BaseSettings
from typing import List, Any
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


def parse_extensions(v: Any) -> List[str]:
    """Parse allowed extensions from string or list"""
    if isinstance(v, list):
        return [ext.lower().lstrip('.') for ext in v]
    if isinstance(v, str):
        if v.startswith('['):
            try:
                return [ext.lower().lstrip('.') for ext in json.loads(v)]
            except json.JSONDecodeError:
                pass
        return [ext.strip().lower().lstrip('.') for ext in v.split(',') if ext.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Portal Pengaduan Layanan Publik"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    SECRET_KEY: str
    API_VERSION: str = "v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    DB_ECHO: bool = False

    # ==========================================
    # Authentication
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 12  # 4 for dev (fast), 12 for prod (secure)

    # ==========================================
    # Email
    # ==========================================
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_START_TLS: bool = True
    EMAIL_FROM: str = "noreply@pengaduan.badungkab.go.id"
    EMAIL_FROM_NAME: str = "Layanan Pengaduan Kabupaten Badung"

    # ==========================================
    # Frontend (tracking links in notification mail)
    # ==========================================
    FRONTEND_URL: str = "http://localhost:3000"

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # e.g. redis://localhost:6379/0

    # ==========================================
    # File Upload
    # ==========================================
    MAX_REQUEST_SIZE: int = 20 * 1024 * 1024  # 20MB per request
    MAX_DOCUMENT_SIZE_KB: int = 2048  # per file
    ALLOWED_DOCUMENT_EXTENSIONS_STR: str = "pdf,jpg,jpeg,png"

    @property
    def ALLOWED_DOCUMENT_EXTENSIONS(self) -> List[str]:
        """Parse allowed document extensions from comma-separated string"""
        return parse_extensions(self.ALLOWED_DOCUMENT_EXTENSIONS_STR)

    @property
    def MAX_DOCUMENT_SIZE_BYTES(self) -> int:
        return self.MAX_DOCUMENT_SIZE_KB * 1024

    # ==========================================
    # Complaints
    # ==========================================
    COMPLAINTS_PAGE_SIZE: int = 10
    SERVICES_PAGE_SIZE: int = 10
    NOTIFICATIONS_PAGE_SIZE: int = 10
    REGISTRATION_NUMBER_MAX_ATTEMPTS: int = 5

    # ==========================================
    # Storage Paths (configurable via env)
    # ==========================================
    STORAGE_PATH: str = "storage"  # Root for documents/ and results/

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Initialize paths after pydantic validation
        self._base_dir = Path(__file__).resolve().parent.parent.parent
        self._storage_dir = Path(self.STORAGE_PATH)
        if not self._storage_dir.is_absolute():
            self._storage_dir = self._base_dir / self._storage_dir

        # Create directories if they don't exist
        self._storage_dir.mkdir(exist_ok=True, parents=True)
        if self.LOG_FILE:
            Path(self.LOG_FILE).parent.mkdir(exist_ok=True, parents=True)

    @property
    def BASE_DIR(self) -> Path:
        return self._base_dir

    @property
    def STORAGE_DIR(self) -> Path:
        return self._storage_dir

    def get_tracking_url(self, registration_number: str) -> str:
        """Public tracking page link used in notification mail"""
        return f"{self.FRONTEND_URL.rstrip('/')}/track-complaint?registration_number={registration_number}"

    def is_dev_mode(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT == "development" or self.DEBUG


# Create settings instance
settings = Settings()

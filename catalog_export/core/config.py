import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.APP_NAME = os.environ.get("APP_NAME", "Catalog Export Service")
        self.ENV = os.environ.get("ENV", "development")
        self.LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

        # Export artifacts, status file and last-export marker live here
        self.EXPORT_DIR = Path(os.environ.get("EXPORT_DIR", "./exports"))

        # A running export older than this is considered abandoned
        self.EXPORT_STALE_AFTER_MINUTES = int(os.environ.get("EXPORT_STALE_AFTER_MINUTES", "30"))
        self.EXPORT_RETENTION_DAYS = int(os.environ.get("EXPORT_RETENTION_DAYS", "7"))

        # Daily scheduled run (UTC)
        self.EXPORT_SCHEDULE_HOUR = int(os.environ.get("EXPORT_SCHEDULE_HOUR", "2"))
        self.EXPORT_SCHEDULE_MINUTE = int(os.environ.get("EXPORT_SCHEDULE_MINUTE", "0"))
        self.EXPORT_LOG_FILE = Path(os.environ.get("EXPORT_LOG_FILE", "./logs/product-export.log"))

        # Catalog rendering
        self.SITE_URL = os.environ.get("SITE_URL", "").rstrip("/")
        self.DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "RUB")

        # S3-compatible object storage
        self.S3_ENDPOINT = os.environ.get("S3_ENDPOINT", "")
        self.S3_REGION = os.environ.get("S3_REGION", "")
        self.S3_ACCESS_KEY = os.environ.get("S3_ACCESS_KEY", "")
        self.S3_SECRET_KEY = os.environ.get("S3_SECRET_KEY", "")
        self.S3_BUCKET = os.environ.get("S3_BUCKET", "")
        self.CDN_BASE_URL = os.environ.get("CDN_BASE_URL", "").rstrip("/")
        self.S3_UPLOAD_ENABLED = os.environ.get("S3_UPLOAD_ENABLED", "true").lower() == "true"

        # Celery broker / result backend
        self.REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

    @property
    def s3_configured(self) -> bool:
        return all([
            self.S3_ENDPOINT,
            self.S3_REGION,
            self.S3_ACCESS_KEY,
            self.S3_SECRET_KEY,
            self.S3_BUCKET,
        ])

    def __repr__(self):
        return (
            f"Settings(APP_NAME={self.APP_NAME}, ENV={self.ENV}, "
            f"LOG_LEVEL={self.LOG_LEVEL}, EXPORT_DIR={self.EXPORT_DIR}, "
            f"S3_BUCKET={self.S3_BUCKET}, S3_UPLOAD_ENABLED={self.S3_UPLOAD_ENABLED})"
        )


settings = Settings()

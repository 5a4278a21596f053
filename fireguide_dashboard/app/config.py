# Application Configuration using Pydantic BaseSettings
from pydantic_settings import BaseSettings
from typing import Optional

class AppSettings(BaseSettings):
    # FireGuide REST backend
    FIREGUIDE_API_BASE_URL: str = "https://fireguide.attoexasolutions.com/api"
    DEFAULT_HTTP_TIMEOUT: float = 10.0

    # Evidence uploads
    MAX_EVIDENCE_UPLOAD_BYTES: int = 10 * 1024 * 1024 # 10 MiB
    DOCUMENT_STORAGE_BASE_URL: str = "https://fireguide.attoexasolutions.com/storage"

    # Observability
    LOG_LEVEL: str = "INFO"
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT: Optional[str] = None
    OTEL_EXPORTER_OTLP_METRICS_ENDPOINT: Optional[str] = None
    SERVICE_NAME_API: str = "fireguide-dashboard-api"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

# Instantiate settings to be imported by other modules
settings = AppSettings()

import logging
logger = logging.getLogger(__name__)
# Never dump the full settings here; the API base URL is the only thing worth echoing.
logger.info(f"Application settings module initialized. FireGuide API: {settings.FIREGUIDE_API_BASE_URL}")

"""
Configuration management for the Revenue Model Optimizer API.
Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root
PROJECT_ROOT = Path(__file__).parent.parent.parent
load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_API_PREFIX = "/api/v1"
OAUTH_SCOPES = ["read_products", "read_orders", "read_customers", "read_analytics"]


@dataclass
class ShopifyConfig:
    api_key: str = ""
    api_secret: str = ""
    app_url: str = ""
    webhook_secret: str = ""
    api_version: str = "2024-10"
    scopes: list = field(default_factory=lambda: list(OAUTH_SCOPES))

    def __post_init__(self):
        self.api_key = os.getenv("SHOPIFY_API_KEY", self.api_key)
        self.api_secret = os.getenv("SHOPIFY_API_SECRET", self.api_secret)
        self.app_url = os.getenv("SHOPIFY_APP_URL", self.app_url).rstrip("/")
        self.webhook_secret = os.getenv("SHOPIFY_WEBHOOK_SECRET", self.webhook_secret)
        self.api_version = os.getenv("SHOPIFY_API_VERSION", self.api_version)

    @property
    def callback_url(self) -> str:
        return f"{self.app_url}/api/v1/auth/callback"


@dataclass
class AIServiceConfig:
    base_url: str = ""

    def __post_init__(self):
        self.base_url = os.getenv("AI_CATEGORY_API_BASE_URL", self.base_url).rstrip("/")

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)


@dataclass
class HTTPConfig:
    timeout_seconds: float = 30.0

    def __post_init__(self):
        timeout_str = os.getenv("HTTP_TIMEOUT_SECONDS", "")
        if timeout_str:
            self.timeout_seconds = float(timeout_str)


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    api_prefix: str = DEFAULT_API_PREFIX
    environment: str = "development"

    def __post_init__(self):
        self.host = os.getenv("HOST", self.host)
        port_str = os.getenv("PORT", "")
        if port_str:
            self.port = int(port_str)
        self.api_prefix = os.getenv("API_PREFIX", self.api_prefix)
        self.environment = os.getenv("ENVIRONMENT", self.environment)


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_file: str = ""

    def __post_init__(self):
        self.level = os.getenv("LOG_LEVEL", self.level)
        self.log_file = os.getenv("LOG_FILE", self.log_file)


@dataclass
class Settings:
    shopify: ShopifyConfig = field(default_factory=ShopifyConfig)
    ai_service: AIServiceConfig = field(default_factory=AIServiceConfig)
    http: HTTPConfig = field(default_factory=HTTPConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> list[str]:
        """Validate OAuth configuration. Returns list of missing items.

        Analytics endpoints take credentials in the request body, so only
        the OAuth flow depends on these values.
        """
        missing = []
        if not self.shopify.api_key:
            missing.append("SHOPIFY_API_KEY")
        if not self.shopify.api_secret:
            missing.append("SHOPIFY_API_SECRET")
        if not self.shopify.app_url:
            missing.append("SHOPIFY_APP_URL")
        return missing


# Global settings singleton
settings = Settings()

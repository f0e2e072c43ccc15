"""
Application configuration using Pydantic Settings
"""

from functools import lru_cache
from typing import ClassVar, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.exceptions import ConfigurationError


AuthMode = Literal["query", "basic"]
ProductStrategy = Literal["orders", "catalog", "hybrid"]


def _normalize_path(path: str) -> str:
    path = path.strip().strip("/")
    return f"/{path}" if path else ""


class SyncConfig(BaseModel):
    """
    Validated, immutable connection and tuning parameters for one sync run.

    Built once by Settings.resolve() and passed to every component.
    """

    model_config = ConfigDict(frozen=True)

    # Source (WooCommerce)
    woocommerce_url: str
    woocommerce_api_path: str = "/wp-json/wc/v3"
    consumer_key: str
    consumer_secret: str
    auth_mode: AuthMode = "query"

    # Target (Supabase)
    supabase_url: str
    supabase_key: str
    sales_table: str = "sales"
    products_table: str = "products"

    # Extraction / load tuning
    page_size: int = 100
    chunk_size: int = 500
    page_delay: float = 0.3
    chunk_delay: float = 0.2
    request_timeout: float = 120.0
    max_pages: int = 10_000

    # Derivation
    product_strategy: ProductStrategy = "orders"
    top_products_limit: int = 50
    report_top_n: int = 5
    enable_report: bool = True
    status_allowlist: Optional[Tuple[str, ...]] = None

    @property
    def source_base_url(self) -> str:
        return f"{self.woocommerce_url}{self.woocommerce_api_path}"


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # WooCommerce source
    WOOCOMMERCE_URL: Optional[str] = None
    WOOCOMMERCE_CONSUMER_KEY: Optional[str] = None
    WOOCOMMERCE_CONSUMER_SECRET: Optional[str] = None
    WOOCOMMERCE_API_PATH: str = "/wp-json/wc/v3"
    WOOCOMMERCE_AUTH_MODE: AuthMode = "query"

    # Supabase target
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    SALES_TABLE: str = "sales"
    PRODUCTS_TABLE: str = "products"

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ETL Configuration
    PAGE_SIZE: int = 100
    CHUNK_SIZE: int = 500
    PAGE_DELAY_SECONDS: float = 0.3
    CHUNK_DELAY_SECONDS: float = 0.2
    REQUEST_TIMEOUT_SECONDS: float = 120.0
    MAX_PAGES: int = 10_000

    # Derivation
    PRODUCT_STRATEGY: ProductStrategy = "orders"
    TOP_PRODUCTS_LIMIT: int = 50
    REPORT_TOP_N: int = 5
    ENABLE_REPORT: bool = True
    FILTER_ORDER_STATUSES: bool = False
    ORDER_STATUS_ALLOWLIST: str = "completed,processing,refunded"

    # Scheduler
    SYNC_INTERVAL_MINUTES: int = 60

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = (
        "WOOCOMMERCE_URL",
        "WOOCOMMERCE_CONSUMER_KEY",
        "WOOCOMMERCE_CONSUMER_SECRET",
        "SUPABASE_URL",
        "SUPABASE_SERVICE_ROLE_KEY",
    )

    def missing_fields(self) -> List[str]:
        """Names of required variables that are unset or blank"""
        return [
            name for name in self.REQUIRED_FIELDS
            if not (getattr(self, name) or "").strip()
        ]

    def status_allowlist(self) -> Optional[Tuple[str, ...]]:
        if not self.FILTER_ORDER_STATUSES:
            return None
        return tuple(
            s.strip().lower() for s in self.ORDER_STATUS_ALLOWLIST.split(",") if s.strip()
        )

    def resolve(self) -> SyncConfig:
        """
        Validate required connection parameters and build a SyncConfig.

        Raises:
            ConfigurationError: If any required variable is missing or blank
        """
        missing = self.missing_fields()
        if missing:
            raise ConfigurationError(
                f"Missing env var {', '.join(missing)}",
                context={"missing": missing},
            )

        return SyncConfig(
            woocommerce_url=self.WOOCOMMERCE_URL.strip().rstrip("/"),
            woocommerce_api_path=_normalize_path(self.WOOCOMMERCE_API_PATH),
            consumer_key=self.WOOCOMMERCE_CONSUMER_KEY.strip(),
            consumer_secret=self.WOOCOMMERCE_CONSUMER_SECRET.strip(),
            auth_mode=self.WOOCOMMERCE_AUTH_MODE,
            supabase_url=self.SUPABASE_URL.strip().rstrip("/"),
            supabase_key=self.SUPABASE_SERVICE_ROLE_KEY.strip(),
            sales_table=self.SALES_TABLE,
            products_table=self.PRODUCTS_TABLE,
            page_size=self.PAGE_SIZE,
            chunk_size=self.CHUNK_SIZE,
            page_delay=self.PAGE_DELAY_SECONDS,
            chunk_delay=self.CHUNK_DELAY_SECONDS,
            request_timeout=self.REQUEST_TIMEOUT_SECONDS,
            max_pages=self.MAX_PAGES,
            product_strategy=self.PRODUCT_STRATEGY,
            top_products_limit=self.TOP_PRODUCTS_LIMIT,
            report_top_n=self.REPORT_TOP_N,
            enable_report=self.ENABLE_REPORT,
            status_allowlist=self.status_allowlist(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()

# quarry_erp/core/config.py

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="QUARRY_",
        env_file=".env",
        extra="ignore",
    )

    DATABASE_URL: str = "sqlite:///db.sqlite"  # file in project root
    STORE_TIMEOUT_SECONDS: float = 10.0
    TIMEZONE: str = "Asia/Kolkata"
    LOG_LEVEL: str = "INFO"

    COMPANY_NAME: str = "SRI BABA BLUE MATELS PVT LTD"
    DEFAULT_TAX_RATE: Decimal = Decimal("5")
    DEFAULT_TERMS: str = (
        "Payment due within 30 days.\n"
        "Late payments may incur additional charges."
    )

    CUSTOMER_PAGE_SIZE: int = 10
    CUSTOMER_INVOICE_WINDOW_DAYS: int = 10
    REPORT_TOP_N: int = 5


settings = Settings()

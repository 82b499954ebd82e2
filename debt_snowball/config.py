"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./debt_snowball.db"

    # Service
    service_name: str = "debt-snowball"
    log_level: str = "INFO"

    # Document ingestion
    max_pdf_size_bytes: int = 10 * 1024 * 1024
    statement_due_days: int = 30
    pdf_text_extraction: bool = False  # False keeps the manual-entry stub

    # App defaults (used until the user saves settings)
    default_extra_payment: float = 100.0
    default_strategy: str = "SNOWBALL"
    default_currency: str = "CAD"

    # Payoff strategy
    high_interest_threshold: float = 15.0
    consolidation_rate: float = 12.0
    consolidation_payment_ratio: float = 0.02
    consolidation_time_savings_months: int = 6
    max_schedule_months: int = 600


settings = Settings()

"""Configuration for Crypto Scanner service."""

from datetime import time
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional


class Settings(BaseSettings):
    """Crypto Scanner configuration."""

    # Market data - CoinMarketCap
    cmc_api_key: Optional[str] = Field(default=None, alias="CMC_API_KEY")
    cmc_base_url: str = Field(default="https://pro-api.coinmarketcap.com", alias="CMC_BASE_URL")
    cmc_timeout_seconds: float = Field(default=10.0, alias="CMC_TIMEOUT_SECONDS")

    # Telegram - alerts, summaries and admin commands
    telegram_bot_token: Optional[str] = Field(default=None, alias="TELEGRAM_BOT_TOKEN")
    telegram_chat_id: Optional[str] = Field(default=None, alias="TELEGRAM_CHAT_ID")
    use_telegram: bool = Field(default=True, alias="USE_TELEGRAM")
    telegram_webhook_secret: Optional[str] = Field(default=None, alias="TELEGRAM_WEBHOOK_SECRET")
    admin_id: str = Field(default="", alias="ADMIN_ID")

    # Schedule (local wall clock in `timezone`)
    timezone: str = Field(default="Asia/Kolkata", alias="TIMEZONE")
    baseline_time: time = Field(default=time(0, 0), alias="BASELINE_TIME")
    summary_time: time = Field(default=time(23, 55), alias="SUMMARY_TIME")
    tick_seconds: int = Field(default=30, ge=1, alias="TICK_SECONDS")
    check_interval_minutes: int = Field(default=5, ge=1, alias="CHECK_INTERVAL_MINUTES")

    # Basket & alert thresholds
    drop_threshold_pct: float = Field(default=-10.0, alias="DROP_THRESHOLD_PCT")
    basket_size: int = Field(default=10, ge=1, le=10, alias="BASKET_SIZE")
    baseline_fetch_limit: int = Field(default=50, ge=1, alias="BASELINE_FETCH_LIMIT")
    live_fetch_limit: int = Field(default=100, ge=1, alias="LIVE_FETCH_LIMIT")
    min_volume_24h: Optional[float] = Field(default=None, alias="MIN_VOLUME_24H")
    min_market_cap: Optional[float] = Field(default=None, alias="MIN_MARKET_CAP")
    min_change_24h: Optional[float] = Field(default=None, alias="MIN_CHANGE_24H")
    reset_alerts_on_baseline: bool = Field(default=True, alias="RESET_ALERTS_ON_BASELINE")

    # State persistence
    state_backend: str = Field(default="file", alias="STATE_BACKEND")  # "file" or "redis"
    state_dir: str = Field(default=".", alias="STATE_DIR")
    baseline_file: str = Field(default="baseline.json", alias="BASELINE_FILE")
    alert_state_file: str = Field(default="alert_state.json", alias="ALERT_STATE_FILE")
    redis_host: str = Field(default="redis", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_db: int = Field(default=0, alias="REDIS_DB")
    redis_key_prefix: str = Field(default="crypto_scanner", alias="REDIS_KEY_PREFIX")

    # Service
    health_port: int = Field(default=8080, alias="HEALTH_PORT")
    error_alert_threshold: int = Field(default=5, ge=1, alias="ERROR_ALERT_THRESHOLD")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")
    log_retention_days: int = Field(default=7, ge=1, alias="LOG_RETENTION_DAYS")

    @property
    def telegram_enabled(self) -> bool:
        return self.use_telegram and all([self.telegram_bot_token, self.telegram_chat_id])

    @property
    def check_interval_seconds(self) -> int:
        return self.check_interval_minutes * 60

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()

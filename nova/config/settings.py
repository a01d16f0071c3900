"""Application settings loaded from environment variables via pydantic-settings.

Values are read from two sources, highest priority first:

  1. Environment variables, e.g. ``COINGECKO_API_KEY=cg-abc123``
  2. The ``.env`` file in the working directory (local development)

Field ``coingecko_api_key`` maps to env var ``COINGECKO_API_KEY``.  Defaults
apply when neither source defines a value.  The ``.env`` file must never be
committed.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """NOVA gateway settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Market data providers ===
    # Names are looked up in the provider registry (coingecko, binance, mock).
    # An empty fallback_provider disables the fallback tier.
    primary_provider: str = "coingecko"
    fallback_provider: str = "binance"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: str = ""
    binance_base_url: str = "https://api.binance.com/api/v3"
    binance_api_key: str = ""
    provider_timeout: float = 10.0  # seconds, per upstream call

    # === Cache ===
    cache_capacity: int = 1000
    cache_default_ttl: float = 60.0
    cache_prune_interval: float = 60.0  # 0 disables the background sweep
    price_ttl: float = 300.0
    market_data_ttl: float = 900.0
    historical_ttl: float = 3600.0

    # === Auth ===
    auth_enabled: bool = False
    api_keys: str = "dev-key"  # comma-separated

    # === Rate limiting ===
    # Per-client-IP request budget over a sliding window; 0 max disables it.
    rate_limit_window: float = 900.0  # seconds
    rate_limit_max: int = 100

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 3000
    app_env: str = "development"
    log_level: str = "INFO"
    log_json: bool = False  # JSON is always used when app_env is production
    cors_origins: str = "*"  # comma-separated

    def get_api_keys(self) -> list[str]:
        """Return the configured API keys with blanks stripped."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    def use_json_logs(self) -> bool:
        """Return whether log output should be rendered as JSON."""
        return self.log_json or self.app_env == "production"

    def get_cors_origins(self) -> list[str]:
        """Return the configured CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

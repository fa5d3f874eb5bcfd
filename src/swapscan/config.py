"""Application configuration using pydantic-settings.

Covers the cache backends, the Esplora endpoints used as block sources and
the polling intervals of the block and mempool listeners.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug logging")
    dry_run: bool = Field(
        default=False, description="Use the simulated block source (no chain queries)"
    )

    # ======================
    # Scanning
    # ======================
    network: str = Field(default="testnet", description="Default network to scan")
    cache_backend: str = Field(
        default="memory", description="Cache backend: memory, redis or sql"
    )
    block_poll_interval: float = Field(
        default=30.0, description="Seconds between chain tip checks"
    )
    mempool_poll_interval: float = Field(
        default=5.0, description="Seconds between mempool snapshots"
    )
    swap_watch_ttl_ms: int = Field(
        default=1000 * 60 * 60 * 24,
        description="How long a watched swap registration stays in the cache",
    )

    # ======================
    # Cache Backends
    # ======================
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Redis URL for the redis cache"
    )
    cache_database_url: str = Field(
        default="sqlite+aiosqlite:///./data/swapscan-cache.db",
        description="SQLAlchemy URL for the sql cache",
    )

    # ======================
    # Esplora Endpoints
    # ======================
    bitcoin_esplora_url: str = Field(
        default="https://blockstream.info/api", description="Bitcoin mainnet Esplora API"
    )
    testnet_esplora_url: str = Field(
        default="https://blockstream.info/testnet/api", description="Bitcoin testnet Esplora API"
    )
    ltc_esplora_url: str = Field(
        default="https://litecoinspace.org/api", description="Litecoin Esplora API"
    )
    regtest_esplora_url: str = Field(
        default="http://127.0.0.1:3002", description="Local regtest Esplora API"
    )
    http_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_esplora_url(self, network: str) -> str:
        """Get the Esplora base URL for a network ("" when unknown)."""
        url_map = {
            "bitcoin": self.bitcoin_esplora_url,
            "testnet": self.testnet_esplora_url,
            "ltc": self.ltc_esplora_url,
            "regtest": self.regtest_esplora_url,
        }
        return url_map.get(network.lower(), "")

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "network": self.network,
            "cache_backend": self.cache_backend,
            "redis_url": self._redact_url(self.redis_url),
            "cache_database_url": self._redact_url(self.cache_database_url),
            "esplora": {
                "bitcoin": self.bitcoin_esplora_url,
                "testnet": self.testnet_esplora_url,
                "ltc": self.ltc_esplora_url,
                "regtest": self.regtest_esplora_url,
            },
            "polling": {
                "blocks": self.block_poll_interval,
                "mempool": self.mempool_poll_interval,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact the password part of a connection URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Application configuration."""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # App
    APP_NAME: str = "Material_Order_Tracker"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Order numbering: ORD-2024-001
    ORDER_NUMBER_PREFIX: str = "ORD"
    ORDER_NUMBER_WIDTH: int = 3

    # Statuses from which a shop manager may assign a driver (comma-separated).
    # Some yards assign after loading, in which case set "ready_to_load,loaded".
    DRIVER_ASSIGNABLE_STATUSES: str = "ready_to_load"

    # Materials catalog: items below this quantity are low stock.
    LOW_STOCK_THRESHOLD: float = 10

    # Notification feed
    NOTIFICATION_FEED_LIMIT: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def driver_assignable_statuses(self) -> frozenset[str]:
        """Get driver-assignable statuses as a set."""
        return frozenset(
            status.strip().lower()
            for status in self.DRIVER_ASSIGNABLE_STATUSES.split(",")
            if status.strip()
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

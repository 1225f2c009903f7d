"""Application configuration using Pydantic settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dicetable.models.enums import GameVariant, ReconcileMode, TiePolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DICETABLE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    environment: str = Field(default="development", description="Environment")
    frontend_url: str = Field(default="http://localhost:5173", description="Frontend URL")

    # MongoDB (hand history)
    mongodb_host: str = Field(default="localhost", description="MongoDB host")
    mongodb_port: int = Field(default=27017, description="MongoDB port")
    mongodb_database: str = Field(default="dicetable", description="MongoDB database name")
    mongodb_username: Optional[str] = Field(default=None, description="MongoDB username")
    mongodb_password: Optional[str] = Field(default=None, description="MongoDB password")

    # Redis (replication channel)
    broker_redis_host: str = Field(default="localhost", description="Redis host")
    broker_redis_port: int = Field(default=6379, description="Redis port")
    broker_redis_password: Optional[str] = Field(default=None, description="Redis password")
    redis_db: int = Field(default=0, description="Redis database number")

    # Game Configuration
    default_variant: GameVariant = Field(default=GameVariant.HORSES, description="Default game")
    ante_amount: int = Field(default=2, description="Ante collected from each active seat")
    starting_chips: int = Field(default=100, description="Chips given to a new seat")
    tie_policy: TiePolicy = Field(default=TiePolicy.ROLLOVER, description="Final-round ties")
    allow_bot_dealers: bool = Field(default=False, description="Bots may win the deal")

    # Reconciliation
    reconcile_mode: ReconcileMode = Field(default=ReconcileMode.TOKEN, description="Reconciler")
    protection_window_seconds: float = Field(
        default=1.5, description="How long a local edit masks incoming snapshots"
    )

    # Bot Configuration
    enable_bots: bool = Field(default=True, description="Enable bot seats")
    bot_think_time: float = Field(default=0.45, description="Pause between bot steps")
    default_bot_difficulty: str = Field(default="medium", description="Default bot difficulty")

    @property
    def mongodb_uri(self) -> str:
        """Build MongoDB connection URI."""
        if self.mongodb_username and self.mongodb_password:
            return f"mongodb://{self.mongodb_username}:{self.mongodb_password}@{self.mongodb_host}:{self.mongodb_port}"
        return f"mongodb://{self.mongodb_host}:{self.mongodb_port}"

    @property
    def redis_url(self) -> str:
        """Build Redis connection URL."""
        if self.broker_redis_password:
            return f"redis://:{self.broker_redis_password}@{self.broker_redis_host}:{self.broker_redis_port}/{self.redis_db}"
        return f"redis://{self.broker_redis_host}:{self.broker_redis_port}/{self.redis_db}"


# Global settings instance
settings = Settings()

"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings


SUI_MAINNET_URL = "https://fullnode.mainnet.sui.io:443"


class Settings(BaseSettings):
    """Source settings with environment variable support"""

    # Remote ledger
    LEDGER_RPC_URL: str = SUI_MAINNET_URL
    RPC_TIMEOUT: float = 30.0

    # Polling
    POLL_INTERVAL_MS: int = 500
    POLL_BATCH_SIZE: int = 10

    # Caller-side retry policy
    MAX_RETRIES: int = 3
    RETRY_DELAY: float = 1.0

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()

import logging
from pydantic_settings import BaseSettings, SettingsConfigDict

# Stacks node API per network, used for read-only contract calls
NETWORK_API_URLS = {
    'mainnet': 'https://api.hiro.so',
    'testnet': 'https://api.testnet.hiro.so'
}

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_ignore_empty=True, extra="ignore"
    )
    ALEX_API_URL: str = "https://alex-sdk-api.alexlab.co"
    NETWORK: str = "mainnet"
    AMM_CONTRACT_ADDRESS: str = "SP102V8P0F7JX67ARQ77WEA3D3CFB5XW39REDT0AM"
    AMM_CONTRACT_NAME: str = "amm-pool-v2-01"
    CACHE_TTL_SECONDS: float = 300  # 5 minutes
    HTTP_TIMEOUT: float = 30.0
    DEFAULT_SLIPPAGE_TOLERANCE: float = 0.5  # percent
    LOG_LEVEL: str = "INFO"


settings = Settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# lb_ipam/config.py
from typing import Dict, List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Project Information
    PROJECT_NAME: str = "Load-Balancer IPAM Controller"
    API_V1_STR: str = "/api/v1"

    # Address pools, in search order. From the environment this is JSON:
    # ADDRESS_POOLS='{"default": ["192.168.10.0/30"], "public": ["203.0.113.0/28"]}'
    ADDRESS_POOLS: Dict[str, List[str]] = {}

    # Logging
    LOG_LEVEL: str = "INFO"

    # Bounded in-memory event history
    EVENT_HISTORY_SIZE: int = 1000

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 8001

    class Config:
        case_sensitive = True
        env_file = ".env"
        env_file_encoding = 'utf-8'


settings = Settings()

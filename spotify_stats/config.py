"""Application configuration and environment settings"""
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Input/Output locations with defaults
    DATA_DIR: str = Field("my_spotify_data", description="Folder containing the exported JSON files")
    CACHE_PATH: str = Field("spotify_stats.cache", description="File holding the compressed aggregate")

    # Cache behaviour
    CACHE_ENABLED: bool = Field(True, description="Read and write the aggregate cache")
    CACHE_SIGNATURE: Literal["stat", "content"] = Field(
        "stat", description="Folder freshness check: file stats (fast) or file contents (exact)"
    )

    # Loading and querying
    LOAD_WORKERS: int = Field(1, ge=1, description="Threads used when rebuilding from JSON; helps with slow storage, not CPU-bound parsing")
    SUBSTRING_SEARCH: bool = Field(False, description="Search matches substrings instead of whole names")
    LOG_LEVEL: str = Field("INFO", description="Root log level for the command line entry point")

    model_config = SettingsConfigDict(
        env_prefix='SPOTIFY_STATS_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )

settings = Settings()

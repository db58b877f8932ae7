"""Application configuration and environment settings"""
from datetime import datetime
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Directories
    INPUT_DIR: str = Field("/input", description="Directory containing the user's export files (zip or loose json)")

    # Aggregation
    TOP_N: int = Field(10, description="Number of entries kept in the artist, track and genre rankings")
    DEFAULT_RANGE: str = Field("all", description="Time range used by the local runner: all, year, 6mo, 3mo, month, week")
    REFERENCE_NOW: Optional[datetime] = Field(None, description="Reference instant for range cutoffs. Wall clock when unset.")
    FUN_FACT_SEED: Optional[int] = Field(None, description="Seed for fun fact selection, for reproducible labels")

    # History file naming
    EXTENDED_HISTORY_PREFIX: str = Field("Streaming_History_Audio_", description="Prefix of extended streaming history files")
    STANDARD_HISTORY_PREFIX: str = Field("StreamingHistory_music_", description="Prefix of standard streaming history files")

    # Archive extraction
    EXTRACT_MAX_WORKERS: int = Field(4, description="Threads used to read archive entries")
    MAX_TOTAL_UNCOMPRESSED_SIZE: int = Field(500 * 1024 * 1024)
    MAX_INDIVIDUAL_FILE_SIZE: int = Field(100 * 1024 * 1024)
    MAX_NUM_FILES: int = Field(1000)

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore'
    )

settings = Settings()

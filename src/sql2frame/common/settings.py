from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env into os.environ
load_dotenv()


class Settings(BaseSettings):
    """Library configuration settings backed by environment variables."""

    row_limit: int = Field(
        default=1_000_000,
        validation_alias="SQL2FRAME_ROW_LIMIT",
        description="Default row cap for frame building. Negative means unlimited."
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="SQL2FRAME_LOG_LEVEL",
        description="Log level for the sql2frame logger."
    )

    log_json: bool = Field(
        default=False,
        validation_alias="SQL2FRAME_LOG_JSON",
        description="Emit JSON-formatted log lines."
    )

    time_columns: str = Field(
        default="time,ts,timestamp",
        validation_alias="SQL2FRAME_TIME_COLUMN_NAMES",
        description="Comma-separated column names preferred as the time column when resampling."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def time_column_names(self) -> List[str]:
        return [name.strip() for name in self.time_columns.split(",") if name.strip()]


settings = Settings()

from sql2frame.common.logger import configure_logging
configure_logging(
    level=settings.log_level,
    json_format=settings.log_json,
)

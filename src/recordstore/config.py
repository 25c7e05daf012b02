"""Process configuration via pydantic-settings (.env + env vars).

Lidarr connection details are NOT here: they live in the settings table so
admin edits take effect on the next call without a restart.
"""

import sys
from pathlib import Path

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = "RecordStore/1.0.0 (https://github.com/recordstore)"

LOG_FORMAT = (
    "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | {extra[component]:<12} | {message}"
)


class RecordStoreConfig(BaseSettings):
    """All process configuration with layered resolution:
    .env file < environment variables (RECORDSTORE_*) < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_prefix="RECORDSTORE_",
        env_file=".env",
        extra="ignore",
    )

    # -- Directories --
    data_dir: Path = Path.home() / ".local" / "share" / "recordstore"
    log_dir: Path = Path.home() / ".local" / "state" / "recordstore"

    # -- Behavior --
    log_level: str = "INFO"
    verbose: bool = False

    # -- Upstream services --
    musicbrainz_url: str = "https://musicbrainz.org/ws/2"
    coverart_url: str = "https://coverartarchive.org"
    user_agent: str = DEFAULT_USER_AGENT
    musicbrainz_min_interval: float = 1.1  # seconds between dispatches
    http_timeout: float = 30.0

    # -- Enrichment --
    max_parallel_lookups: int = 8
    artist_cover_limit: int = 10
    discography_cover_limit: int = 20
    discography_page_size: int = 100

    @property
    def db_path(self) -> Path:
        """Path to the SQLite database."""
        return self.data_dir / "recordstore.db"

    @property
    def log_file(self) -> Path:
        return self.log_dir / "recordstore.log"

    @property
    def console_level(self) -> str:
        """--verbose forces DEBUG; otherwise log_level applies."""
        return "DEBUG" if self.verbose else self.log_level.upper()

    def setup_logging(self) -> None:
        """Route loguru to stderr (console_level) and a rotating DEBUG file.

        Calling it again replaces the previous sinks, so repeated CLI
        invocations in one process never duplicate output.
        """
        logger.remove()
        logger.configure(extra={"component": ""})

        self.log_dir.mkdir(parents=True, exist_ok=True)
        sinks = (
            (sys.stderr, {"level": self.console_level}),
            (
                str(self.log_file),
                {"level": "DEBUG", "rotation": "10 MB", "retention": "30 days"},
            ),
        )
        for sink, options in sinks:
            logger.add(sink, format=LOG_FORMAT, **options)

"""Configuration loading and validation for layout-sync."""

import tomllib
from dataclasses import dataclass
from pathlib import Path

from version import __version__


DEFAULT_CONFIG_PATH = Path("config.toml")

DEFAULTS = {
    "api_base_url": "https://public-api.wordpress.com/wpcom/v2",
    "database_url": "sqlite:///layouts.db",
    "display_scale": 2.0,
    "user_agent": f"layout-sync/{__version__}",
    "request_timeout": 30.0,
    "fetch_workers": 2,
}


@dataclass
class Config:
    api_base_url: str
    database_url: str
    display_scale: float
    user_agent: str
    request_timeout: float
    fetch_workers: int

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        database_url_override: str | None = None,
        api_base_url_override: str | None = None,
        scale_override: float | None = None,
    ) -> "Config":
        """Load configuration from TOML file with defaults."""
        config_data = dict(DEFAULTS)

        path = config_path or DEFAULT_CONFIG_PATH
        if path.exists():
            with open(path, "rb") as f:
                file_config = tomllib.load(f)
                config_data.update(file_config)

        if database_url_override:
            config_data["database_url"] = database_url_override
        if api_base_url_override:
            config_data["api_base_url"] = api_base_url_override
        if scale_override is not None:
            config_data["display_scale"] = scale_override

        fetch_workers = int(config_data["fetch_workers"])
        if fetch_workers < 1:
            raise ValueError(f"fetch_workers must be at least 1, got {fetch_workers}")

        return cls(
            api_base_url=str(config_data["api_base_url"]).rstrip("/"),
            database_url=config_data["database_url"],
            display_scale=float(config_data["display_scale"]),
            user_agent=config_data["user_agent"],
            request_timeout=float(config_data["request_timeout"]),
            fetch_workers=fetch_workers,
        )

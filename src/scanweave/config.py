"""Application configuration via environment variables and .env file."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings.sources import DotEnvSettingsSource, PydanticBaseSettingsSource

# Path to .env file (patch in tests to use tmp_path / ".env")
_ENV_FILE: Path = Path(".env")

RADIO_MODES = ("none", "mock", "iw")


class Settings(BaseSettings):
    model_config = {
        "env_prefix": "SCANWEAVE_",
        "env_file_encoding": "utf-8",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Load .env from _ENV_FILE (patchable in tests)
        return (
            init_settings,
            env_settings,
            DotEnvSettingsSource(
                settings_cls,
                env_file=_ENV_FILE,
                env_file_encoding="utf-8",
            ),
            file_secret_settings,
        )

    # Logging
    log_level: str = "info"

    # Radio backend: "none", "mock" or "iw"
    radio_mode: str = "none"

    # Linux interface scanned in "iw" mode
    wifi_interface: str | None = None

    # Scheduling
    scan_interval_ms: int = 5000
    scan_timeout_ms: int | None = None  # watchdog; None disables it
    autostart: bool = False

    # Mock radio
    mock_failure_rate: float = 0.0

    # Listeners
    webhook_url: str | None = None

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("radio_mode", mode="before")
    @classmethod
    def parse_radio_mode(cls, v: object) -> str:
        mode = str(v or "none").strip().lower()
        if mode not in RADIO_MODES:
            raise ValueError(f"radio_mode must be one of {', '.join(RADIO_MODES)}")
        return mode

    @field_validator("scan_interval_ms")
    @classmethod
    def check_interval(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("scan_interval_ms must be positive")
        return v

    @field_validator("scan_timeout_ms", mode="before")
    @classmethod
    def parse_timeout(cls, v: object) -> object:
        """Empty string or zero disables the watchdog."""
        if v in ("", None, 0, "0"):
            return None
        return v

    @field_validator("scan_timeout_ms")
    @classmethod
    def check_timeout(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            raise ValueError("scan_timeout_ms must be positive")
        return v

    @field_validator("mock_failure_rate")
    @classmethod
    def check_failure_rate(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("mock_failure_rate must be between 0 and 1")
        return v


def load_config() -> Settings:
    """Load configuration from .env and environment (env overrides .env)."""
    return Settings()


settings = Settings()

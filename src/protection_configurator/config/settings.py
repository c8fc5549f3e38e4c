"""
Centralized settings for the protection configurator.
"""
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional


DEFAULT_MAIN_PAGE_ADDON_IDS = (
    'suntek-complete',
    'suntek-standard',
    'evernew',
    'screen-defender',
    'headlights',
    'doorcups',
)


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _parse_bool(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() in ('true', '1', 'yes', 'on')


def _parse_float(value: Optional[str], default: float) -> float:
    if value is None or value.strip() == '':
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class TelemetryConfig:
    """Telemetry switches, injected at startup rather than set globally."""
    enabled: bool = False
    sample_rate: float = 1.0

    def __post_init__(self):
        # Clamp to 0..1
        object.__setattr__(self, 'sample_rate', min(1.0, max(0.0, float(self.sample_rate))))


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    project_root: Path

    # Document store
    mongo_url: Optional[str] = None
    db_name: str = 'protection_configurator'

    # Batched writes: the store accepts at most 500 operations per batch
    batch_limit: int = 500
    max_retries: int = 3
    retry_delay_seconds: float = 1.0
    request_timeout_seconds: float = 10.0

    # Storefront
    main_page_addon_ids: tuple = DEFAULT_MAIN_PAGE_ADDON_IDS

    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)

    @classmethod
    def load(cls, project_root: Optional[Path] = None, environ: Optional[dict] = None) -> 'Settings':
        """Load settings from the environment."""
        env = os.environ if environ is None else environ
        root = project_root or get_project_root()

        addon_ids = DEFAULT_MAIN_PAGE_ADDON_IDS
        if env.get('MAIN_PAGE_ADDON_IDS'):
            addon_ids = tuple(
                part.strip() for part in env['MAIN_PAGE_ADDON_IDS'].split(',') if part.strip()
            )

        return cls(
            project_root=root,
            mongo_url=env.get('MONGO_URL') or None,
            db_name=env.get('DB_NAME') or 'protection_configurator',
            request_timeout_seconds=_parse_float(env.get('STORE_TIMEOUT_SECONDS'), 10.0),
            main_page_addon_ids=addon_ids,
            telemetry=TelemetryConfig(
                enabled=_parse_bool(env.get('TELEMETRY_ENABLED')),
                sample_rate=_parse_float(env.get('TELEMETRY_SAMPLE_RATE'), 1.0),
            ),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide settings instance used by entry points."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings

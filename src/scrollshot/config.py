"""
Scrollshot Configuration
========================

Settings for capture sessions, scroll drivers, stitching and the CLI.

Layering (later wins):
    defaults  <  YAML file  <  SCROLLSHOT_* environment variables

Environment Variable Mapping:
    SCROLLSHOT_MAX_STEPS              -> capture.max_steps
    SCROLLSHOT_MODE                   -> capture.mode
    SCROLLSHOT_METHOD                 -> stitching.method
    SCROLLSHOT_SEARCH_LIMIT           -> stitching.search_limit
    SCROLLSHOT_STAGNATION_THRESHOLD   -> stitching.stagnation_threshold
    SCROLLSHOT_OUTPUT_DIR             -> output.directory
    SCROLLSHOT_LOG_LEVEL              -> logging.level
    SCROLLSHOT_LOG_FORMAT             -> logging.format

Example:
    from scrollshot.config import settings

    print(settings.capture.max_steps)
    print(settings.stitching.method)
"""

import os
import logging
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class CaptureConfig(BaseModel):
    """Capture session configuration."""

    max_steps: int = Field(
        default=200,
        ge=1,
        description="Maximum scroll-and-capture iterations per session",
    )
    mode: Literal["structured_first", "simulated_only"] = Field(
        default="structured_first",
        description="Scroll mode preference",
    )
    min_viewport_size: int = Field(
        default=50,
        ge=1,
        description="Minimum usable viewport width and height",
    )
    activation_settle_seconds: float = Field(
        default=0.12,
        ge=0,
        description="Delay after bringing the target to front",
    )
    change_poll_attempts: int = Field(
        default=25,
        ge=1,
        description="Captures attempted while waiting for a visible change",
    )
    change_poll_interval_seconds: float = Field(
        default=0.012,
        ge=0,
        description="Sleep between change polls",
    )


class ScrollingConfig(BaseModel):
    """Scroll driver configuration."""

    structured_settle_seconds: float = Field(
        default=0.03,
        ge=0,
        description="Delay after a structured small increment",
    )
    simulated_settle_seconds: float = Field(
        default=0.06,
        ge=0,
        description="Delay after a simulated page-down key",
    )
    end_tolerance_percent: float = Field(
        default=0.5,
        ge=0,
        le=100,
        description="Scroll percentage distance from 100 treated as end",
    )
    key: str = Field(
        default="page_down",
        description="Key sent by the simulated driver",
    )


class StitchingConfig(BaseModel):
    """Overlap estimation and stitching configuration."""

    stagnation_threshold: int = Field(
        default=4,
        ge=1,
        description="Consecutive unchanged frames that end the session",
    )
    sticky_max_probe: int = Field(
        default=120,
        ge=0,
        description="Upper bound on sticky header height (pixels)",
    )
    sticky_probe_fraction: float = Field(
        default=1.0 / 3.0,
        gt=0,
        le=1.0,
        description="Upper bound on sticky header as a fraction of frame height",
    )
    sticky_threshold: float = Field(
        default=2.0,
        ge=0,
        description="Mean absolute luma difference below which a row is stationary",
    )
    tail_fraction: float = Field(
        default=1.0,
        gt=0,
        le=1.0,
        description="Height of the comparison tail as a fraction of the last tile",
    )
    search_limit: Optional[int] = Field(
        default=None,
        ge=0,
        description="Largest candidate shift (pixels); None searches the whole tail",
    )
    method: Literal["exhaustive", "enhanced"] = Field(
        default="exhaustive",
        description="Overlap estimator: 'exhaustive' or 'enhanced'",
    )
    match_threshold: float = Field(
        default=0.75,
        ge=0,
        le=1.0,
        description="Minimum normalized correlation to accept a template match",
    )
    canny_low: int = Field(default=60, ge=0, description="Canny lower threshold")
    canny_high: int = Field(default=180, ge=0, description="Canny upper threshold")
    template_window: int = Field(
        default=240,
        ge=1,
        description="Maximum height of the template search window (pixels)",
    )
    phase_min_response: float = Field(
        default=0.05,
        ge=0,
        description="Minimum phase correlation response to trust a shift",
    )
    max_score: float = Field(
        default=100.0,
        ge=0,
        description="Largest mean squared pixel difference a correlation shift may keep",
    )
    background: List[int] = Field(
        default_factory=lambda: [255, 255, 255, 255],
        min_length=4,
        max_length=4,
        description="Canvas fill color (BGRA)",
    )


class OutputConfig(BaseModel):
    """Output configuration for the command line tool."""

    directory: str = Field(default="./captures", description="Output directory")
    filename_pattern: str = Field(
        default="scroll_%Y%m%d_%H%M%S.png",
        description="strftime pattern for saved composites",
    )
    debug_seams: bool = Field(
        default=False,
        description="Also save a copy with tile boundaries drawn",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Root settings object. Build it with load_config() rather than
    directly, so file and environment layers are applied.
    """

    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    scrolling: ScrollingConfig = Field(default_factory=ScrollingConfig)
    stitching: StitchingConfig = Field(default_factory=StitchingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Loading
# =============================================================================

CONFIG_SEARCH_PATHS = (
    Path("scrollshot.yaml"),
    Path("config.yaml"),
    Path.home() / ".config" / "scrollshot" / "config.yaml",
)


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Build Settings from defaults, an optional YAML file and the environment.

    Args:
        config_path: YAML file to read. When None, the first existing file
            of CONFIG_SEARCH_PATHS is used.

    Returns:
        Validated Settings

    Raises:
        pydantic.ValidationError: If a value is out of range
    """
    if config_path is None:
        config_path = next(
            (str(candidate) for candidate in CONFIG_SEARCH_PATHS if candidate.exists()),
            None,
        )

    config_data: dict = {}
    if config_path and Path(config_path).is_file():
        logger.info(f"Reading settings from {config_path}")
        config_data = yaml.safe_load(Path(config_path).read_text()) or {}
    else:
        logger.debug("No settings file, using defaults and SCROLLSHOT_* variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Capture settings
    if env_steps := os.environ.get("SCROLLSHOT_MAX_STEPS"):
        config_data.setdefault("capture", {})["max_steps"] = int(env_steps)
    if env_mode := os.environ.get("SCROLLSHOT_MODE"):
        config_data.setdefault("capture", {})["mode"] = env_mode

    # Stitching settings
    if env_method := os.environ.get("SCROLLSHOT_METHOD"):
        config_data.setdefault("stitching", {})["method"] = env_method
    if env_limit := os.environ.get("SCROLLSHOT_SEARCH_LIMIT"):
        config_data.setdefault("stitching", {})["search_limit"] = int(env_limit)
    if env_stag := os.environ.get("SCROLLSHOT_STAGNATION_THRESHOLD"):
        config_data.setdefault("stitching", {})["stagnation_threshold"] = int(env_stag)

    # Output settings
    if env_dir := os.environ.get("SCROLLSHOT_OUTPUT_DIR"):
        config_data.setdefault("output", {})["directory"] = env_dir

    # Logging settings
    if env_log := os.environ.get("SCROLLSHOT_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_fmt := os.environ.get("SCROLLSHOT_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_fmt


_LOG_FORMATS = {
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
    "text": "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
}


def setup_logging(settings: Settings) -> None:
    """Install the root handler; the CLI calls this once at startup."""
    level = getattr(logging, settings.logging.level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=_LOG_FORMATS.get(settings.logging.format, _LOG_FORMATS["text"]),
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Loaded on import; the CLI reloads with --config.
settings = load_config()

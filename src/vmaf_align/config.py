"""
vmaf-align Configuration
========================

This module handles configuration loading for vmaf-align.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    VMAF_ALIGN_NOMINAL_INTERVAL_MS -> realign.nominal_interval_ms
    VMAF_ALIGN_MATCH_THRESHOLD     -> recognition.match_threshold
    VMAF_ALIGN_EXPECTED_ID         -> recognition.expected_id
    VMAF_ALIGN_WORKERS             -> processing.workers
    VMAF_ALIGN_OUTPUT_DIR          -> output.directory
    VMAF_ALIGN_LOG_LEVEL           -> logging.level

Example:
    from vmaf_align.config import load_config

    settings = load_config("config.yaml")
    print(settings.realign.nominal_interval_ms)
"""

import os
import logging
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class WatermarkConfig(BaseModel):
    """
    Watermark text format and placement.

    Shared by the embedder and the recognizer: both sides derive the
    strip layout from this one value.
    """

    id_digits: int = Field(default=3, ge=1, le=9, description="Zero-padded width of the id field")
    timestamp_digits: int = Field(
        default=8,
        ge=1,
        le=13,
        description="Zero-padded width of the timestamp field (ms)",
    )
    band_fraction: float = Field(
        default=1 / 15,
        gt=0,
        le=0.5,
        description="Height of the black band as a fraction of frame height",
    )

    @property
    def cell_count(self) -> int:
        """Number of glyph cells: id, separator, timestamp."""
        return self.id_digits + 1 + self.timestamp_digits

    @property
    def max_id(self) -> int:
        return 10 ** self.id_digits - 1

    @property
    def max_timestamp_ms(self) -> int:
        return 10 ** self.timestamp_digits - 1


class RecognitionConfig(BaseModel):
    """Recognizer acceptance rules."""

    match_threshold: float = Field(
        default=0.7,
        gt=0,
        le=1.0,
        description="Minimum glyph correlation score to accept a cell",
    )
    expected_id: Optional[int] = Field(
        default=None,
        ge=0,
        description="Reject tags whose id differs (None = accept any id)",
    )
    max_timestamp_ms: Optional[int] = Field(
        default=None,
        ge=0,
        description="Reject tags later than this (None = no bound)",
    )


class RealignConfig(BaseModel):
    """Timeline reconciliation constants."""

    nominal_interval_ms: int = Field(
        default=33,
        ge=1,
        description="Expected spacing between frames, used for repeats and gap fill",
    )
    gap_threshold_ms: Optional[int] = Field(
        default=None,
        ge=1,
        description="Gap that triggers fill (None = 1.5 x nominal_interval_ms)",
    )
    min_spacing_ms: Optional[int] = Field(
        default=None,
        ge=1,
        description="Tags closer than this to the last accepted one are dropped (None = nominal_interval_ms)",
    )

    @property
    def effective_gap_threshold_ms(self) -> int:
        if self.gap_threshold_ms is None:
            return self.nominal_interval_ms * 3 // 2
        return self.gap_threshold_ms

    @property
    def effective_min_spacing_ms(self) -> int:
        if self.min_spacing_ms is None:
            return self.nominal_interval_ms
        return self.min_spacing_ms


class EncoderConfig(BaseModel):
    """VP8 encoder settings."""

    codec: str = Field(default="libvpx", description="FFmpeg encoder name")
    bit_rate: int = Field(default=20_000_000, ge=1, description="Target bit rate (bps)")
    pix_fmt: str = Field(default="yuv420p", description="Encoder pixel format")
    options: Dict[str, str] = Field(
        default_factory=lambda: {
            "deadline": "best",
            "cpu-used": "0",
            "crf": "4",
            "qmin": "1",
            "qmax": "10",
            "lag-in-frames": "0",
            "auto-alt-ref": "0",
        },
        description="Codec options passed to FFmpeg",
    )


class OutputConfig(BaseModel):
    """Output container configuration."""

    extension: str = Field(default="ivf", description="Output file extension")
    fourcc: str = Field(default="VP80", min_length=4, max_length=4, description="Container fourcc")
    timebase_num: int = Field(default=1, ge=1, description="Timebase numerator")
    timebase_den: int = Field(default=1000, ge=1, description="Timebase denominator")
    directory: Optional[str] = Field(
        default=None,
        description="Directory for output files (None = next to the input)",
    )
    watermark_suffix: str = Field(default="w", description="Suffix for watermarked output")
    processed_suffix: str = Field(default="r", description="Suffix for processed output")
    encoder: EncoderConfig = Field(default_factory=EncoderConfig)


class ProcessingConfig(BaseModel):
    """Pipeline execution settings."""

    workers: int = Field(default=4, ge=0, description="Recognition threads (0/1 = inline)")
    max_pending: int = Field(default=16, ge=1, description="Frames in flight in the recognition pool")
    progress_every_frames: int = Field(default=100, ge=1, description="Log progress every N frames")
    progress_every_seconds: float = Field(default=1.0, gt=0, description="...or every N seconds")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for vmaf-align.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    watermark: WatermarkConfig = Field(default_factory=WatermarkConfig)
    recognition: RecognitionConfig = Field(default_factory=RecognitionConfig)
    realign: RealignConfig = Field(default_factory=RealignConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration

    Raises:
        FileNotFoundError: If config_path is given and does not exist
        ValueError: If an environment override is malformed
        pydantic.ValidationError: If a value is out of range
    """
    # Find config file
    if config_path is not None:
        if not Path(config_path).exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        search_paths = [
            Path("vmaf_align.yaml"),
            Path("config.yaml"),
            Path.home() / ".config" / "vmaf_align" / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    # Build settings object
    settings = Settings.model_validate(config_data)

    return settings


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Realign settings
    if env_interval := os.environ.get("VMAF_ALIGN_NOMINAL_INTERVAL_MS"):
        config_data.setdefault("realign", {})["nominal_interval_ms"] = int(env_interval)

    # Recognition settings
    if env_threshold := os.environ.get("VMAF_ALIGN_MATCH_THRESHOLD"):
        config_data.setdefault("recognition", {})["match_threshold"] = float(env_threshold)
    if env_id := os.environ.get("VMAF_ALIGN_EXPECTED_ID"):
        config_data.setdefault("recognition", {})["expected_id"] = int(env_id)

    # Processing settings
    if env_workers := os.environ.get("VMAF_ALIGN_WORKERS"):
        config_data.setdefault("processing", {})["workers"] = int(env_workers)

    # Output settings
    if env_dir := os.environ.get("VMAF_ALIGN_OUTPUT_DIR"):
        config_data.setdefault("output", {})["directory"] = env_dir

    # Logging settings
    if env_log := os.environ.get("VMAF_ALIGN_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        force=True,
    )


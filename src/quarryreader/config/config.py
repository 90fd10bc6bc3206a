"""
Configuration management for quarryreader using Pydantic.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, ClassVar, Dict, FrozenSet, Optional, Pattern, cast

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Setup Logging ---
log = logging.getLogger(__name__)

DEFAULT_TAG_WEIGHTS: Dict[str, float] = {
    "div": 5,
    "article": 5,
    "section": 3,
    "pre": 3,
    "td": 3,
    "blockquote": 3,
    "address": -3,
    "ol": -3,
    "ul": -3,
    "dl": -3,
    "dd": -3,
    "dt": -3,
    "li": -3,
    "form": -3,
    "fieldset": -3,
    "footer": -3,
    "aside": -3,
    "h1": -5,
    "h2": -5,
    "h3": -5,
    "h4": -5,
    "h5": -5,
    "h6": -5,
    "th": -5,
}


# --- Engine Configuration Models ---


class ParseOptions(BaseModel):
    """Per-parse options. Unknown keys are ignored; camelCase names are accepted."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    debug: bool = Field(default=False, description="Log every pass, candidate and cleanup decision.")
    nb_top_candidates: int = Field(default=5, ge=0, alias="nbTopCandidates")
    max_elems_to_parse: int = Field(
        default=0, ge=0, alias="maxElemsToParse", description="Abort above this many elements. 0 disables the check."
    )
    keep_classes: bool = Field(default=False, alias="keepClasses")
    classes_to_preserve: FrozenSet[str] = Field(default_factory=frozenset, alias="classesToPreserve")
    allowed_video_regex: Optional[Pattern[str]] = Field(
        default=None, alias="allowedVideoRegex", description="Embeds to keep. None: the pattern catalog's video hosts."
    )
    char_threshold: int = Field(
        default=500,
        ge=0,
        alias="charThreshold",
        description="Minimum article text length before a lower-ranked candidate or a relaxed pass is tried.",
    )

    @field_validator("classes_to_preserve", mode="before")
    @classmethod
    def split_class_string(cls, v: Any) -> Any:
        if isinstance(v, str):
            return frozenset(v.split())
        return v


class HeuristicsConfig(BaseModel):
    """Numeric tuning knobs of the scoring, selection and cleanup passes."""

    model_config = ConfigDict(frozen=True)

    # Scoring
    tag_weights: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_TAG_WEIGHTS))
    class_weight: float = Field(default=25.0, description="Bonus/penalty for positive/negative class or id.")
    min_paragraph_length: int = Field(default=25, description="Shorter scorable elements are skipped.")
    chars_per_length_bonus: int = 100
    max_length_bonus: int = 3
    max_propagation_depth: int = Field(default=5, description="Ancestor levels that receive a paragraph's score.")
    div_single_paragraph_link_density: float = 0.25

    # Candidate selection
    alternative_candidate_ratio: float = 0.75
    min_alternative_candidates: int = 3
    parent_score_ratio: float = Field(default=1 / 3, description="Stop climbing below this share of the last score.")
    sibling_score_fraction: float = 0.2
    sibling_class_bonus_fraction: float = 0.2
    min_sibling_score_threshold: float = 10.0
    sibling_paragraph_share: float = Field(
        default=0.16, description="Share of char_threshold a sibling paragraph needs to be merged on length alone."
    )
    sibling_link_density_ceiling: float = 0.25
    sibling_lookahead: int = Field(
        default=0, ge=0, description="Consecutive rejected siblings that end the scan in one direction. 0: no limit."
    )

    # Cleanup
    link_density_modifier: float = 0.0
    share_element_threshold: int = 500
    base64_placeholder_max_length: int = 133
    max_clean_iterations: int = Field(default=10, ge=1)

    # Metadata
    excerpt_max_length: int = 300
    title_similarity_threshold: float = 0.75
    byline_max_length: int = 100

    def score_divider(self, level: int) -> float:
        """Divider applied to a paragraph's score at the given ancestor level."""
        if level == 0:
            return 1
        if level == 1:
            return 2
        return level * 3

    def sibling_min_paragraph_length(self, char_threshold: int) -> float:
        return char_threshold * self.sibling_paragraph_share


# --- Ambient Configuration ---


class MonitoringConfig(BaseModel):
    """Logging configuration."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to console.")
    json_logs: bool = Field(default=False, description="Render console logs as JSON.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Settings(BaseSettings):
    project_name: str = "quarryreader"
    parse: ParseOptions = Field(default_factory=ParseOptions)
    heuristics: HeuristicsConfig = Field(default_factory=HeuristicsConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="QUARRYREADER_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Settings:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for name in ("quarryreader.yaml", "quarryreader.yml"):
        path = current_dir / name
        if path.exists():
            return path
    return None


# --- Lazy Configuration Loader ---


class LazySettings:
    """
    A proxy for the Settings object that delays loading and validation
    until an attribute is first accessed, so a broken config file cannot
    crash an import.
    """

    _settings: ClassVar[Settings | None] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __getattr__(self, name: str) -> Any:
        if self.__class__._settings is None:
            with self.__class__._lock:
                if self.__class__._settings is None:
                    self.__class__._settings = self._load_with_fallback()
        return getattr(self.__class__._settings, name)

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._settings = None

    def _load_with_fallback(self) -> Settings:
        config_path = find_config_file()
        if config_path:
            try:
                log.info("Lazy loading configuration from: %s", config_path)
                return Settings.from_yaml(config_path)
            except (ValidationError, FileNotFoundError, yaml.YAMLError) as e:
                log.error(
                    "Failed to load or validate configuration from '%s': %s. Falling back to default settings.",
                    config_path,
                    e,
                    exc_info=log.getEffectiveLevel() <= logging.DEBUG,
                )
        else:
            log.debug("No config file found. Using default settings for lazy load.")

        try:
            return Settings()
        except ValidationError as e:
            log.critical("FATAL: Default configuration is invalid: %s", e, exc_info=True)
            raise RuntimeError(f"Default configuration is invalid, cannot start: {e}") from e


# --- Global Settings Instance ---
settings: "Settings" = cast("Settings", LazySettings())

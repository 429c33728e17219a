"""Configuration management for the kaomoji picker."""

from pathlib import Path
from typing import Optional
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from loguru import logger


class SearchConfig(BaseModel):
    score_cutoff: float = 60.0
    tag_weight: float = 1.0
    category_weight: float = 0.7
    glyph_weight: float = 0.4

    @field_validator('score_cutoff')
    @classmethod
    def validate_cutoff(cls, v: float) -> float:
        if not 0 <= v <= 100:
            raise ValueError("score_cutoff must be between 0 and 100")
        return v

    @model_validator(mode='after')
    def validate_weights(self) -> "SearchConfig":
        if not self.tag_weight > self.category_weight > self.glyph_weight > 0:
            raise ValueError(
                "field weights must satisfy tag_weight > category_weight > glyph_weight > 0"
            )
        return self


class RecentsConfig(BaseModel):
    session_capacity: int = Field(default=8, ge=1)
    history_capacity: int = Field(default=20, ge=1)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: bool = True


def _default_data_dir() -> Path:
    return Path.home() / ".local" / "share" / "kaomoji"


class PickerConfig(BaseModel):
    """Main configuration for the picker."""

    data_dir: Path = Field(default_factory=_default_data_dir)
    bundled_path: Optional[Path] = None
    search: SearchConfig = Field(default_factory=SearchConfig)
    recents: RecentsConfig = Field(default_factory=RecentsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator('data_dir')
    @classmethod
    def validate_data_dir(cls, v: Path) -> Path:
        if isinstance(v, str):
            v = Path(v)
        v = v.expanduser().resolve()
        if not v.exists():
            logger.debug(f"Data directory does not exist, creating: {v}")
            v.mkdir(parents=True, exist_ok=True)
        return v

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "PickerConfig":
        """Load configuration from YAML, falling back to defaults."""
        if config_path is None:
            candidates = [
                Path("kaomoji.yaml"),
                Path.home() / ".config" / "kaomoji" / "config.yaml",
            ]
            for candidate in candidates:
                if candidate.exists():
                    config_path = candidate
                    break
            else:
                logger.debug("No config file found, using defaults")
                return cls()
        elif not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        logger.info(f"Loading config from: {config_path}")
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w') as f:
            yaml.safe_dump(self.model_dump(mode='json'), f, default_flow_style=False)

"""Configuration models and loading for qtictactoe."""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from qtictactoe.exceptions import ConfigurationError

PROJECT_DIR_NAME = ".qttt"
CONFIG_FILE_NAME = "config.yaml"


class Difficulty(str, Enum):
    """Recognized difficulty levels."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def parse_difficulty(value: "str | Difficulty") -> Difficulty:
    """Parse a difficulty name, rejecting anything but easy/medium/hard."""
    if isinstance(value, Difficulty):
        return value
    try:
        return Difficulty(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(d.value for d in Difficulty)
        raise ConfigurationError(
            f"Unknown difficulty '{value}'. Valid difficulties: {valid}"
        ) from None


def _check_probability(name: str, v: float) -> float:
    if not 0.0 <= v <= 1.0:
        raise ValueError(f"{name} must be between 0 and 1")
    return v


def _check_learning_rate(v: float) -> float:
    if not 0.0 < v <= 1.0:
        raise ValueError("learning_rate must be in (0, 1]")
    return v


class TrainingConfig(BaseModel):
    """Parameters of one training invocation. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    learning_rate: float = Field(default=0.5, description="Step size alpha")
    discount: float = Field(default=0.9, description="Discount factor gamma")
    epsilon_start: float = Field(default=1.0, description="Exploration at the first episode")
    epsilon_end: float = Field(default=0.05, description="Exploration at the last episode")
    episode_count: int = Field(default=5000, description="Episodes to simulate")

    @field_validator("learning_rate")
    @classmethod
    def validate_learning_rate(cls, v: float) -> float:
        """Validate learning rate is in (0, 1]."""
        return _check_learning_rate(v)

    @field_validator("discount")
    @classmethod
    def validate_discount(cls, v: float) -> float:
        """Validate discount is in [0, 1]."""
        return _check_probability("discount", v)

    @field_validator("epsilon_start", "epsilon_end")
    @classmethod
    def validate_epsilon(cls, v: float) -> float:
        """Validate exploration rates are probabilities."""
        return _check_probability("epsilon", v)

    @field_validator("episode_count")
    @classmethod
    def validate_episode_count(cls, v: int) -> int:
        """Validate episode count is non-negative."""
        if v < 0:
            raise ValueError("episode_count cannot be negative")
        return v


class TrainingPreset(BaseModel):
    """Episode budget and exploration anneal for one difficulty."""

    episodes: int = Field(description="Episodes per training run")
    epsilon_start: float = Field(description="Initial exploration rate")
    epsilon_end: float = Field(description="Final exploration rate")

    @field_validator("episodes")
    @classmethod
    def validate_episodes(cls, v: int) -> int:
        """Validate episode budget."""
        if v < 1:
            raise ValueError("episodes must be at least 1")
        return v

    @field_validator("epsilon_start", "epsilon_end")
    @classmethod
    def validate_epsilon(cls, v: float) -> float:
        """Validate exploration rates are probabilities."""
        return _check_probability("epsilon", v)


def _default_presets() -> Dict[Difficulty, TrainingPreset]:
    return {
        Difficulty.EASY: TrainingPreset(episodes=300, epsilon_start=0.6, epsilon_end=0.3),
        Difficulty.MEDIUM: TrainingPreset(episodes=4000, epsilon_start=0.9, epsilon_end=0.1),
        Difficulty.HARD: TrainingPreset(episodes=22000, epsilon_start=1.0, epsilon_end=0.01),
    }


def _default_play_epsilons() -> Dict[Difficulty, float]:
    return {Difficulty.EASY: 1.0, Difficulty.MEDIUM: 0.25, Difficulty.HARD: 0.0}


class TrainingSettings(BaseModel):
    """Training parameters shared by all difficulties."""

    learning_rate: float = Field(default=0.5, description="Step size alpha")
    discount: float = Field(default=0.9, description="Discount factor gamma")
    report_every: int = Field(default=200, description="Episodes between progress reports")
    presets: Dict[Difficulty, TrainingPreset] = Field(
        default_factory=_default_presets, description="Per-difficulty presets"
    )

    @field_validator("learning_rate")
    @classmethod
    def validate_learning_rate(cls, v: float) -> float:
        return _check_learning_rate(v)

    @field_validator("discount")
    @classmethod
    def validate_discount(cls, v: float) -> float:
        return _check_probability("discount", v)

    @field_validator("report_every")
    @classmethod
    def validate_report_every(cls, v: int) -> int:
        """Validate progress cadence."""
        if v < 1:
            raise ValueError("report_every must be at least 1")
        return v

    @model_validator(mode="after")
    def fill_missing_presets(self) -> "TrainingSettings":
        """Keep defaults for difficulties a config file leaves out."""
        defaults = _default_presets()
        for difficulty in Difficulty:
            self.presets.setdefault(difficulty, defaults[difficulty])
        return self


class PlayConfig(BaseModel):
    """Inference-time exploration per difficulty."""

    epsilons: Dict[Difficulty, float] = Field(
        default_factory=_default_play_epsilons, description="Play epsilon per difficulty"
    )

    @field_validator("epsilons")
    @classmethod
    def validate_epsilons(cls, v: Dict[Difficulty, float]) -> Dict[Difficulty, float]:
        """Validate play epsilons are probabilities."""
        for value in v.values():
            _check_probability("epsilon", value)
        defaults = _default_play_epsilons()
        for difficulty in Difficulty:
            v.setdefault(difficulty, defaults[difficulty])
        return v


class StorageConfig(BaseModel):
    """Where value tables are persisted."""

    directory: str = Field(default=f"{PROJECT_DIR_NAME}/store", description="Store directory")
    key: str = Field(default="tictactoe_q", description="Base storage key")

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Validate storage key."""
        if not v or "/" in v or "\\" in v:
            raise ValueError("key must be a non-empty name without path separators")
        return v

    def get_directory(self) -> Path:
        """Get the store directory as a Path object."""
        return Path(self.directory).expanduser()


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR"]
        if v.upper() not in valid_levels:
            raise ValueError(f"level must be one of: {', '.join(valid_levels)}")
        return v.upper()


class AppConfig(BaseModel):
    """Main qtictactoe configuration."""

    training: TrainingSettings = Field(default_factory=TrainingSettings)
    play: PlayConfig = Field(default_factory=PlayConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def training_config(
        self, difficulty: Difficulty, episodes: Optional[int] = None
    ) -> TrainingConfig:
        """Build the immutable training parameters for a difficulty."""
        preset = self.training.presets[difficulty]
        return TrainingConfig(
            learning_rate=self.training.learning_rate,
            discount=self.training.discount,
            epsilon_start=preset.epsilon_start,
            epsilon_end=preset.epsilon_end,
            episode_count=preset.episodes if episodes is None else episodes,
        )

    def play_epsilon(self, difficulty: Difficulty) -> float:
        return self.play.epsilons[difficulty]

    def storage_key(self, difficulty: Difficulty) -> str:
        """Persisted key of the value table trained for a difficulty."""
        return f"{self.storage.key}_{difficulty.value}"


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load configuration.

    Sources, later ones overriding earlier ones:
    1. Defaults built into the models
    2. Project configuration (.qttt/config.yaml in the cwd or a parent)
    3. The explicit path, if given

    Args:
        config_path: Explicit path to a config file

    Returns:
        Merged and validated configuration

    Raises:
        ConfigurationError: If configuration is invalid or cannot be loaded
    """
    config_data: Dict[str, Any] = {}

    project_path = find_project_config()
    if project_path is not None and project_path.exists():
        config_data = _merge_config(config_data, _load_yaml_file(project_path))

    if config_path is not None:
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        config_data = _merge_config(config_data, _load_yaml_file(config_path))

    try:
        return AppConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def find_project_config(start: Optional[Path] = None) -> Optional[Path]:
    """Find .qttt/config.yaml in ``start`` (default cwd) or its parents."""
    current = start or Path.cwd()
    for path in [current] + list(current.parents):
        project_dir = path / PROJECT_DIR_NAME
        if project_dir.is_dir():
            return project_dir / CONFIG_FILE_NAME
    return None


def _load_yaml_file(file_path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file.

    Raises:
        ConfigurationError: If file cannot be loaded or parsed
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {file_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read {file_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file must contain a YAML object, got {type(data).__name__}"
        )
    return data


def _merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration dictionaries recursively."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_config(result[key], value)
        else:
            result[key] = value

    return result

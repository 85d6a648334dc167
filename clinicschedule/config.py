"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.calendar import CalendarComposer, CalendarView, system_clock
from .domain.slot_calculator import SlotCalculator


class DataStoreConfig(BaseModel):
    """Connection settings for the hosted clinic database."""
    url: str = ""
    api_key: str = ""
    timeout_seconds: float = 30

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value


class CalendarConfig(BaseModel):
    """Time grid and display settings for calendar views."""
    start_hour: int = 8
    end_hour: int = 20
    interval_minutes: int = 30
    month_display_limit: int = 3
    default_view: CalendarView = CalendarView.WEEK

    @field_validator("start_hour")
    @classmethod
    def validate_start_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @field_validator("end_hour")
    @classmethod
    def validate_end_hour(cls, v: int) -> int:
        """The grid may run up to midnight, so 24 is allowed here."""
        if not 0 <= v <= 24:
            raise ValueError(f"Hour must be between 0 and 24, got {v}")
        return v

    @field_validator("interval_minutes", "month_display_limit")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "CalendarConfig":
        """Ensure the configured grid opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self


class SlotsConfig(BaseModel):
    """Default settings for slot resolution."""
    duration_minutes: int = 30

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure slot duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    data_store: DataStoreConfig = Field(default_factory=DataStoreConfig)
    timezone: str = "UTC"
    calendar: CalendarConfig = Field(default_factory=CalendarConfig)
    slots: SlotsConfig = Field(default_factory=SlotsConfig)
    strict_schedules: bool = False
    log_level: str = "WARNING"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the name is a known IANA timezone."""
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone '{value}', expected an IANA name like Europe/Berlin") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "AppConfig":
        """
        Load the given file, or the default file when one exists.

        Falls back to built-in defaults when no path is given and no
        default config file is present.
        """
        if config_path is not None:
            return cls.load_from_yaml(config_path)

        default_path = get_default_config_path()
        if default_path.exists():
            return cls.load_from_yaml(default_path)
        return cls()

    def build_slot_calculator(self) -> SlotCalculator:
        return SlotCalculator(slot_minutes=self.slots.duration_minutes)

    def build_composer(self) -> CalendarComposer:
        return CalendarComposer(
            start_hour=self.calendar.start_hour,
            end_hour=self.calendar.end_hour,
            interval_minutes=self.calendar.interval_minutes,
            month_display_limit=self.calendar.month_display_limit,
            clock=system_clock(self.timezone)
        )


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path

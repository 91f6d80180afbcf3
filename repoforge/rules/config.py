"""Configuration for the rule engine.

Configuration is merged from four layers, lowest to highest precedence:

1. Built-in defaults
2. Global config (~/.repoforge/rules.json)
3. Project config (<project>/.repoforge/rules.json)
4. Caller overrides (CLI flags or API arguments)

Scalar fields are overwritten by each layer that defines them. List fields
(disabledRules, customRules, categories) are replaced wholesale by the
highest layer that defines them; they are never concatenated.

A file layer that fails validation is discarded as a whole and a
diagnostic is logged for each failing field. Loading never raises for
bad file content; only ``save_config`` raises.
"""

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from ..audit_logging import get_logger
from .base import RuleCategory, Severity

logger = get_logger()

CONFIG_DIR = ".repoforge"
CONFIG_FILE = "rules.json"
PROJECT_CONFIG_PATH = Path(CONFIG_DIR) / CONFIG_FILE


def _positive_count(value: Any) -> Any:
    # Positive numbers are accepted and truncated; booleans are not numbers here
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError("must be a positive number")
    if (isinstance(value, float) and not math.isfinite(value)) or value < 1:
        raise ValueError("must be a positive number of at least 1")
    return int(value)


PositiveCount = Annotated[int, BeforeValidator(_positive_count)]


def get_global_config_path() -> Path:
    """Path of the user-level config file."""
    return Path.home() / CONFIG_DIR / CONFIG_FILE


class ConfigSaveError(OSError):
    """Raised when a configuration file cannot be written."""


class RuleEngineConfig(BaseModel):
    """Merged rule engine configuration.

    Built once per invocation and immutable afterwards.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    min_severity: Severity | None = Field(
        default=None, description="Only report violations at or above this"
    )
    fail_on_severity: Severity | None = Field(
        default=None, description="Fail CI when violations reach this severity"
    )
    disabled_rules: tuple[str, ...] = Field(
        default=(), description="Rule IDs to skip"
    )
    custom_rules: tuple[Any, ...] = Field(
        default=(), description="Extra rules: instances or 'module:attr' references"
    )
    parallel: bool = Field(default=True, description="Evaluate files concurrently")
    max_files: int | None = Field(
        default=None, description="Only evaluate the first N eligible files"
    )
    max_concurrency: int | None = Field(
        default=None, description="Concurrent file evaluations in parallel mode"
    )
    categories: tuple[RuleCategory, ...] = Field(
        default=(), description="Only report violations in these categories"
    )
    content_sniffing: bool = Field(
        default=False, description="Exclude files whose content looks binary"
    )

    def is_rule_disabled(self, rule_id: str) -> bool:
        """Check if a rule ID is disabled."""
        return rule_id in self.disabled_rules


class RuleEngineConfigLayer(BaseModel):
    """Schema for one configuration layer (a file or caller overrides).

    Only fields present in the source are considered defined; see
    ``model_fields_set``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        arbitrary_types_allowed=True,
    )

    min_severity: Severity | None = None
    fail_on_severity: Severity | None = None
    disabled_rules: list[str] = Field(default_factory=list)
    custom_rules: list[Any] = Field(default_factory=list)
    parallel: StrictBool = True
    max_files: PositiveCount | None = None
    max_concurrency: PositiveCount | None = None
    categories: list[RuleCategory] = Field(default_factory=list)
    content_sniffing: StrictBool = False

    @field_validator("disabled_rules", mode="before")
    @classmethod
    def _check_disabled_rules(cls, value: Any) -> Any:
        if not isinstance(value, list):
            raise ValueError("disabledRules must be an array")
        for rule_id in value:
            if not isinstance(rule_id, str) or not rule_id.strip():
                raise ValueError("All disabledRules entries must be non-empty strings")
        return value

    @field_validator("custom_rules", mode="before")
    @classmethod
    def _check_custom_rules(cls, value: Any) -> Any:
        if not isinstance(value, list | tuple):
            raise ValueError("customRules must be an array")
        return list(value)

    def defined_fields(self) -> dict[str, Any]:
        """Values of the fields this layer explicitly sets."""
        return {name: getattr(self, name) for name in self.model_fields_set}


_KNOWN_KEYS = frozenset(
    key
    for name, info in RuleEngineConfigLayer.model_fields.items()
    for key in (name, info.alias or name)
)


@dataclass
class ConfigValidationResult:
    """Outcome of validating raw configuration data."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    layer: RuleEngineConfigLayer | None = None


def _field_label(loc: tuple[Any, ...]) -> str:
    if not loc:
        return "config"
    name = str(loc[0])
    info = RuleEngineConfigLayer.model_fields.get(name)
    return (info.alias if info and info.alias else name) or name


def validate_config_data(data: Any) -> ConfigValidationResult:
    """Validate raw configuration data for one layer.

    Produces one error per failing field and a warning per unknown key.

    Args:
        data: Parsed JSON content.

    Returns:
        ConfigValidationResult, with the parsed layer when valid.
    """
    if not isinstance(data, dict):
        return ConfigValidationResult(
            valid=False, errors=["Configuration must be a JSON object"]
        )

    warnings = [f"Unknown configuration key '{key}'" for key in data if key not in _KNOWN_KEYS]

    try:
        layer = RuleEngineConfigLayer.model_validate(data)
    except ValidationError as e:
        messages: dict[str, str] = {}
        for error in e.errors():
            label = _field_label(error.get("loc", ()))
            # Keep only the first message per field
            messages.setdefault(label, f"Invalid {label}: {error.get('msg', 'invalid value')}")
        return ConfigValidationResult(
            valid=False, errors=list(messages.values()), warnings=warnings
        )

    return ConfigValidationResult(valid=True, warnings=warnings, layer=layer)


def load_config_file(file_path: Path) -> RuleEngineConfigLayer | None:
    """Load and validate one configuration file.

    Args:
        file_path: Path to a JSON config file.

    Returns:
        The validated layer, or None if the file is absent or rejected.
    """
    if not file_path.exists():
        logger.debug(f"No rule engine config at {file_path}")
        return None

    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {file_path}: {e}")
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to load config from {file_path}: {e}")
        return None

    validation = validate_config_data(data)
    for warning in validation.warnings:
        logger.warning(f"Warning in {file_path}: {warning}")

    if not validation.valid:
        for error in validation.errors:
            logger.error(f"Error in {file_path}: {error}")
        return None

    logger.debug(f"Loaded rule engine config from {file_path}")
    return validation.layer


def _overrides_layer(
    overrides: "RuleEngineConfig | RuleEngineConfigLayer | dict[str, Any]",
) -> RuleEngineConfigLayer:
    if isinstance(overrides, RuleEngineConfigLayer):
        return overrides
    if isinstance(overrides, RuleEngineConfig):
        data = {name: getattr(overrides, name) for name in overrides.model_fields_set}
    else:
        data = dict(overrides)
    # None means "not set" for overrides
    data = {key: value for key, value in data.items() if value is not None}
    for key in ("disabled_rules", "custom_rules", "categories"):
        if isinstance(data.get(key), tuple):
            data[key] = list(data[key])
    return RuleEngineConfigLayer.model_validate(data)


def merge_layers(layers: list[RuleEngineConfigLayer]) -> RuleEngineConfig:
    """Merge layers in ascending precedence into a frozen config.

    Args:
        layers: Layers ordered lowest to highest precedence.

    Returns:
        The merged RuleEngineConfig.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        merged.update(layer.defined_fields())
    return RuleEngineConfig(**merged)


class RuleEngineConfigLoader:
    """Loads the rule engine configuration for a project."""

    def __init__(
        self,
        project_path: Path | str | None = None,
        global_config_path: Path | None = None,
    ):
        """Initialize the loader.

        Args:
            project_path: Project root. Defaults to the current directory.
            global_config_path: Override for the user-level config file.
        """
        self.project_path = Path(project_path) if project_path else Path.cwd()
        self.global_config_path = global_config_path or get_global_config_path()

    @property
    def project_config_path(self) -> Path:
        """Path of the project-level config file."""
        return self.project_path / PROJECT_CONFIG_PATH

    def load(
        self,
        overrides: "RuleEngineConfig | dict[str, Any] | None" = None,
    ) -> RuleEngineConfig:
        """Load configuration from all layers.

        Args:
            overrides: Caller overrides, highest precedence. Keys may be
                snake_case or camelCase; None values are ignored.

        Returns:
            Merged, immutable RuleEngineConfig.

        Raises:
            pydantic.ValidationError: If the overrides themselves are invalid.
        """
        layers: list[RuleEngineConfigLayer] = []

        global_layer = load_config_file(self.global_config_path)
        if global_layer is not None:
            layers.append(global_layer)

        project_layer = load_config_file(self.project_config_path)
        if project_layer is not None:
            layers.append(project_layer)

        if overrides:
            layers.append(_overrides_layer(overrides))

        return merge_layers(layers)


def get_default_config() -> RuleEngineConfig:
    """Get the built-in default configuration."""
    return RuleEngineConfig()


def load_config(
    project_path: Path | str | None = None,
    overrides: "RuleEngineConfig | dict[str, Any] | None" = None,
    global_config_path: Path | None = None,
) -> RuleEngineConfig:
    """Load configuration with default → global → project → overrides precedence.

    Args:
        project_path: Project root containing ``.repoforge/rules.json``.
        overrides: Caller overrides, highest precedence.
        global_config_path: Override for the user-level config file.

    Returns:
        Merged RuleEngineConfig.
    """
    loader = RuleEngineConfigLoader(project_path, global_config_path)
    return loader.load(overrides)


def save_config(file_path: Path | str, config: RuleEngineConfig) -> None:
    """Write a configuration to a JSON file.

    Parent directories are created as needed. Custom rules are saved only
    when they are string references.

    Raises:
        ConfigSaveError: If the file cannot be written.
    """
    path = Path(file_path)
    data = config.model_dump(
        mode="json", by_alias=True, exclude_none=True, exclude={"custom_rules"}
    )
    data["customRules"] = [r for r in config.custom_rules if isinstance(r, str)]

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to save config to {path}: {e}")
        raise ConfigSaveError(f"Failed to save config to {path}: {e}") from e

    logger.info(f"Saved rule engine config to {path}")


__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "PROJECT_CONFIG_PATH",
    "ConfigSaveError",
    "ConfigValidationResult",
    "RuleEngineConfig",
    "RuleEngineConfigLayer",
    "RuleEngineConfigLoader",
    "get_default_config",
    "get_global_config_path",
    "load_config",
    "load_config_file",
    "merge_layers",
    "save_config",
    "validate_config_data",
]

"""Run configuration: defaults, config file, environment and CLI overrides."""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from common.constants import (
    CONFIG_FILENAME,
    DEFAULT_IMPL_DIR,
    DEFAULT_RELATED_DIR,
    DEFAULT_SPEC_DIR,
)
from common.env import env
from common.logger import get_logger

from .constants import DEFAULT_PERSISTENCE_HANDLE

logger = get_logger(__name__)

# camelCase keys accepted from existing concept-validation config files
_LEGACY_KEYS = {
    "openaiApiKey": "assessment_credential",
    "modelName": "assessment_model",
    "projectRoot": "project_root",
    "specDir": "spec_dir",
    "conceptDir": "impl_dir",
    "syncDir": "related_dir",
    "includeAiAnalysis": "enable_assessment",
    "strictMode": "strict_mode",
}


class ConfigError(Exception):
    """Configuration could not be loaded or points at missing directories."""

    pass


@dataclass
class ValidationConfig:
    """Settings for one validation run."""

    assessment_credential: str = ""
    assessment_model: str = "gpt-4"
    assessment_base_url: str = "https://api.openai.com/v1"
    assessment_timeout: float = 60.0
    project_root: Path = Path(".")
    spec_dir: str = DEFAULT_SPEC_DIR
    impl_dir: str = DEFAULT_IMPL_DIR
    related_dir: str = DEFAULT_RELATED_DIR
    enable_assessment: bool = False
    strict_mode: bool = False
    persistence_handle: str = DEFAULT_PERSISTENCE_HANDLE
    workers: int = 1

    @property
    def spec_path(self) -> Path:
        return self.project_root / self.spec_dir

    @property
    def impl_path(self) -> Path:
        return self.project_root / self.impl_dir

    @property
    def related_path(self) -> Path:
        return self.project_root / self.related_dir

    def check_directories(self) -> None:
        """Make sure the directories a run cannot do without exist.

        Raises:
            ConfigError: If the spec or implementation directory is missing
        """
        for label, path in (("Specs", self.spec_path), ("Concepts", self.impl_path)):
            if not path.is_dir():
                raise ConfigError(f"{label} directory '{path}' does not exist")

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["project_root"] = str(self.project_root)
        return data


def load_config(
    config_path: Path | None = None,
    project_root: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ValidationConfig:
    """Resolve the configuration for a run.

    Precedence is CLI overrides, then the config file, then environment
    variables, then defaults. The assessment credential is resolved
    override, then OPENAI_API_KEY, then the config file.

    Args:
        config_path: Explicit config file; when None the default file in the
            project root is used if present
        project_root: Project root given on the command line
        overrides: Values from command-line flags (None values are ignored)

    Returns:
        Resolved ValidationConfig

    Raises:
        ConfigError: If an explicit config file is missing or unreadable
    """
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    root = Path(project_root) if project_root else Path.cwd()

    path = config_path or root / CONFIG_FILENAME
    file_values: dict[str, Any] = {}
    if path.exists():
        file_values = read_config_file(path)
        logger.debug(f"Loaded configuration from {path}")
    elif config_path is not None:
        raise ConfigError(f"Config file '{config_path}' does not exist")

    config = ValidationConfig(
        assessment_model=env.assessment_model(),
        assessment_base_url=env.assessment_base_url(),
        assessment_timeout=env.assessment_timeout(),
    )
    for key, value in file_values.items():
        setattr(config, key, value)
    for key, value in overrides.items():
        setattr(config, key, value)

    if project_root is not None:
        config.project_root = Path(project_root)
    elif "project_root" in file_values:
        config.project_root = (path.parent / file_values["project_root"]).resolve()
    else:
        config.project_root = root

    config.assessment_credential = (
        overrides.get("assessment_credential")
        or env.openai_api_key()
        or file_values.get("assessment_credential", "")
    )
    config.workers = max(1, int(config.workers))

    if config.enable_assessment and not config.assessment_credential:
        logger.warning(
            "AI analysis requested but no API key provided. "
            "Provide --api-key or set OPENAI_API_KEY; continuing without it."
        )
        config.enable_assessment = False

    return config


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a JSON config file into ValidationConfig field values.

    Unknown keys are ignored; camelCase keys such as conceptDir are
    translated.

    Raises:
        ConfigError: If the file cannot be read or is not a JSON object
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to load config file '{path}': {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file '{path}' must contain a JSON object")

    known = _field_types()
    values: dict[str, Any] = {}
    for key, value in raw.items():
        name = _LEGACY_KEYS.get(key, key)
        if name in known:
            values[name] = _coerce(name, value, path)
        else:
            logger.debug(f"Ignoring unknown config key '{key}'")

    return values


def write_default_config(project_root: Path, force: bool = False) -> Path:
    """Write a default config file into the project root.

    Args:
        project_root: Directory to write into
        force: Overwrite an existing file

    Returns:
        Path of the written file

    Raises:
        ConfigError: If the file exists and force is False
    """
    path = project_root / CONFIG_FILENAME
    if path.exists() and not force:
        raise ConfigError(f"Config file '{path}' already exists (use --force to overwrite)")

    defaults = ValidationConfig(project_root=Path("."))
    path.write_text(json.dumps(defaults.to_dict(), indent=2) + "\n", encoding="utf-8")
    return path


def _field_types() -> dict[str, type]:
    # project_root is written as a plain string in the file
    return {f.name: str if f.type is Path else f.type for f in fields(ValidationConfig)}


def _coerce(name: str, value: Any, path: Path) -> Any:
    """Check a config file value against its field type.

    Raises:
        ConfigError: If the value cannot be used for the field
    """
    expected = _field_types()[name]
    if expected is bool:
        if isinstance(value, bool):
            return value
    elif expected in (int, float):
        if not isinstance(value, bool):
            try:
                return expected(value)
            except (TypeError, ValueError, OverflowError):
                pass
    elif isinstance(value, str):
        return value
    raise ConfigError(
        f"Config file '{path}': '{name}' must be of type {expected.__name__}, got {value!r}"
    )

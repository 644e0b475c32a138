"""
Configuration module for gitmeta.

Values are layered: the packaged defaults.yaml, then an optional YAML or
JSON file, then GITMETA_<SECTION>_<KEY> environment variables.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from gitmeta.core.models import KNOWN_FIELDS, parse_field_list

logger = logging.getLogger(__name__)

_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

ENV_PREFIX = "GITMETA"

LINK_STRATEGIES = ("auto", "syscall", "tool")


def _read_defaults() -> dict[str, Any]:
    try:
        data = yaml.safe_load(_DEFAULTS_CONFIG_PATH.read_text(encoding="utf-8"))
    except OSError as e:
        logger.warning(f"Defaults config not readable: {e}")
        return {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config: {e}")
        return {}
    return data if isinstance(data, dict) else {}


_DEFAULTS = _read_defaults()


def _default(section: str, key: str, fallback: Any) -> Callable[[], Any]:
    """Return a default_factory reading ``section.key`` from defaults.yaml."""

    def factory() -> Any:
        value = _DEFAULTS.get(section, {}).get(key, fallback)
        # Lists are copied so instances never share the cached defaults.
        return list(value) if isinstance(value, list) else value

    return factory


@dataclass
class StoreConfig:
    """Where the store file lives and which fields a fresh store records."""

    filename: str = field(default_factory=_default("store", "filename", ".git_store_meta"))
    default_fields: list[str] = field(default_factory=_default("store", "default_fields", ["mtime"]))

    def __post_init__(self) -> None:
        if not self.filename:
            raise ValueError("store.filename must not be empty")
        unknown = [name for name in self.default_fields if name not in KNOWN_FIELDS]
        if unknown:
            raise ValueError(f"Unknown field(s) in store.default_fields: {', '.join(unknown)}")


@dataclass
class GitConfig:
    """How git is invoked."""

    executable: str = field(default_factory=_default("git", "executable", "git"))
    timeout: float = field(default_factory=_default("git", "timeout", 120.0))

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError(f"git.timeout must be positive, got {self.timeout}")


@dataclass
class AttributesConfig:
    """Tools and strategies used to read and change file attributes."""

    link_strategy: str = field(default_factory=_default("attributes", "link_strategy", "auto"))
    getfacl: str = field(default_factory=_default("attributes", "getfacl", "getfacl"))
    setfacl: str = field(default_factory=_default("attributes", "setfacl", "setfacl"))

    def __post_init__(self) -> None:
        if self.link_strategy not in LINK_STRATEGIES:
            raise ValueError(
                f"Invalid link_strategy: {self.link_strategy}. "
                f"Valid values: {', '.join(LINK_STRATEGIES)}"
            )


@dataclass
class LoggingConfig:
    level: str = field(default_factory=_default("logging", "level", "WARNING"))
    format: str = field(default_factory=_default("logging", "format", "%(levelname)s: %(message)s"))

    def __post_init__(self) -> None:
        self.level = self.level.upper()
        if not isinstance(logging.getLevelName(self.level), int):
            raise ValueError(f"Invalid logging level: {self.level}")


_SECTIONS: dict[str, type] = {
    "store": StoreConfig,
    "git": GitConfig,
    "attributes": AttributesConfig,
    "logging": LoggingConfig,
}

# Converters for values read from the environment, keyed by (section, key).
_ENV_CONVERTERS: dict[tuple[str, str], Callable[[str], Any]] = {
    ("store", "default_fields"): parse_field_list,
    ("git", "timeout"): float,
    ("attributes", "link_strategy"): lambda value: value.strip().lower(),
}


def env_var_name(section: str, key: str) -> str:
    """Return the environment variable overriding ``section.key``."""
    return f"{ENV_PREFIX}_{section.upper()}_{key.upper()}"


def _build_section(name: str, values: Any) -> Any:
    section_cls = _SECTIONS[name]
    if not isinstance(values, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    allowed = {f.name for f in fields(section_cls)}
    unknown = sorted(set(values) - allowed)
    if unknown:
        raise ValueError(f"Unknown key(s) in config section '{name}': {', '.join(unknown)}")
    return section_cls(**values)


@dataclass
class GitMetaConfig:
    """Main configuration class for gitmeta."""

    store: StoreConfig = field(default_factory=StoreConfig)
    git: GitConfig = field(default_factory=GitConfig)
    attributes: AttributesConfig = field(default_factory=AttributesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "GitMetaConfig":
        """
        Load configuration from a YAML or JSON file.

        Sections and keys missing from the file keep their defaults.

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValueError: If the format is unsupported or a value is invalid
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        elif path.suffix == ".json":
            data = json.loads(content) if content.strip() else None
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        config = cls()
        for name, values in (data or {}).items():
            if name not in _SECTIONS:
                logger.warning(f"Ignoring unknown config section '{name}' in {path}")
                continue
            setattr(config, name, _build_section(name, values))
        return config

    def apply_env_overrides(self) -> "GitMetaConfig":
        """
        Override values from GITMETA_<SECTION>_<KEY> environment variables.

        List values such as GITMETA_STORE_DEFAULT_FIELDS are comma-separated.
        Each touched section is validated again after the override.
        """
        for name in _SECTIONS:
            section = getattr(self, name)
            changed = False
            for f in fields(section):
                value = os.environ.get(env_var_name(name, f.name))
                if value is None:
                    continue
                converter = _ENV_CONVERTERS.get((name, f.name), str)
                setattr(section, f.name, converter(value))
                changed = True
            if changed:
                section.__post_init__()
        return self

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, path: Path | str) -> None:
        """
        Write the configuration as YAML or JSON, chosen by file suffix.

        Raises:
            ValueError: If the file format is unsupported
        """
        path = Path(path)
        if path.suffix in (".yaml", ".yml"):
            content = yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)
        elif path.suffix == ".json":
            content = json.dumps(self.to_dict(), indent=2)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def load_config(config_path: Optional[Path | str] = None, apply_env: bool = True) -> GitMetaConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        GitMetaConfig instance
    """
    config = GitMetaConfig.from_file(config_path) if config_path else GitMetaConfig()
    if apply_env:
        config.apply_env_overrides()
    return config

"""Configuration handling for git-worktree-keeper.

Options resolve with a fixed precedence: an explicit command-line value wins,
then the user's config file, then the built-in default. Resolution never
fails; a missing or unreadable config file counts as "no value".
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from git_worktree_keeper.constants import CONFIG_DIR_NAME, CONFIG_FILE_NAME, CONFIG_HOME_ENV
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


class Provenance(Enum):
    """Where a resolved option value came from."""
    CLI = "cli"
    CONFIG_FILE = "config-file"
    DEFAULT = "default"


@dataclass(frozen=True)
class OptionSpec:
    """A recognized configuration option."""

    name: str
    type: type
    default: Any
    help: str = ""


OPTIONS: Dict[str, OptionSpec] = {
    "auto_setup": OptionSpec(
        "auto_setup", bool, False, "Run plugin setup automatically when a worktree is added"
    ),
}


@dataclass(frozen=True)
class ResolvedOption:
    """A resolved option value and its provenance."""

    name: str
    value: Any
    provenance: Provenance


def coerce_value(spec: OptionSpec, raw: Any) -> tuple[bool, Any]:
    """Coerce a raw value to the option's type.

    Returns:
        Tuple of (ok, value). ok is False when the value cannot be coerced.
    """
    if spec.type is bool:
        if isinstance(raw, bool):
            return True, raw
        if isinstance(raw, int):
            return (True, bool(raw)) if raw in (0, 1) else (False, None)
        if isinstance(raw, str):
            lowered = raw.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True, True
            if lowered in _FALSE_STRINGS:
                return True, False
        return False, None

    try:
        return True, spec.type(raw)
    except (TypeError, ValueError):
        return False, None


def resolve_option(
    option: str, cli_value: Any = None, config_file_value: Any = None
) -> ResolvedOption:
    """Resolve one option: CLI > config file > default.

    ``None`` means "not provided" for both inputs. Never raises: an
    unrecognized option has no default and no coercion, so the first value
    provided wins and otherwise the value is ``None``.
    """
    spec = OPTIONS.get(option)
    if spec is None:
        logger.warning(f"Unknown option {option!r}")
        if cli_value is not None:
            return ResolvedOption(option, cli_value, Provenance.CLI)
        if config_file_value is not None:
            return ResolvedOption(option, config_file_value, Provenance.CONFIG_FILE)
        return ResolvedOption(option, None, Provenance.DEFAULT)

    if cli_value is not None:
        ok, value = coerce_value(spec, cli_value)
        if ok:
            return ResolvedOption(option, value, Provenance.CLI)
        logger.warning(f"Ignoring invalid command-line value for {option}: {cli_value!r}")

    if config_file_value is not None:
        ok, value = coerce_value(spec, config_file_value)
        if ok:
            return ResolvedOption(option, value, Provenance.CONFIG_FILE)
        logger.warning(f"Ignoring invalid config file value for {option}: {config_file_value!r}")

    return ResolvedOption(option, spec.default, Provenance.DEFAULT)


def default_config_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the per-user configuration directory.

    ``$XDG_CONFIG_HOME`` names an alternate base directory; otherwise
    ``~/.config`` is used.
    """
    env = os.environ if environ is None else environ
    base = env.get(CONFIG_HOME_ENV)
    base_dir = Path(base).expanduser() if base else Path.home() / ".config"
    return base_dir / CONFIG_DIR_NAME


def load_config_file(path: Path) -> Dict[str, Any]:
    """Load option values from a YAML config file.

    Returns an empty dict if the file is missing, malformed or not a mapping.
    """
    if not path.exists():
        logger.debug(f"No config file at {path}")
        return {}

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not read config file {path}: {e}")
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Config file {path} is not a mapping, ignoring it")
        return {}

    unknown = sorted(set(data) - set(OPTIONS))
    if unknown:
        logger.debug(f"Ignoring unknown config keys: {', '.join(map(str, unknown))}")
    return {k: v for k, v in data.items() if k in OPTIONS}


class ConfigResolver:
    """Resolves options against a loaded config file."""

    def __init__(self, file_values: Optional[Mapping[str, Any]] = None, config_path: Optional[Path] = None):
        """Initialize the resolver.

        Args:
            file_values: Option values read from the config file
            config_path: Path the values were read from (for messages only)
        """
        self.file_values = dict(file_values or {})
        self.config_path = config_path

    @classmethod
    def from_config_dir(cls, config_dir: Optional[Path] = None) -> "ConfigResolver":
        """Create a resolver from ``<config_dir>/config.yaml``."""
        config_dir = config_dir or default_config_dir()
        config_path = config_dir / CONFIG_FILE_NAME
        return cls(load_config_file(config_path), config_path)

    def resolve(self, option: str, cli_value: Any = None) -> ResolvedOption:
        """Resolve ``option`` given an optional command-line value."""
        resolved = resolve_option(option, cli_value, self.file_values.get(option))
        logger.debug(f"Resolved {option}={resolved.value!r} from {resolved.provenance.value}")
        return resolved

    def resolve_all(self, cli_values: Optional[Mapping[str, Any]] = None) -> Dict[str, ResolvedOption]:
        """Resolve every recognized option."""
        cli_values = cli_values or {}
        return {name: self.resolve(name, cli_values.get(name)) for name in OPTIONS}

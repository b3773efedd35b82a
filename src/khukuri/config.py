"""
Run configuration for Khukuri.

Settings come from, in increasing priority:

1. Built-in defaults
2. A ``khukuri.yaml`` project file next to the program (or ``--config``)
3. The ``KHUKURI_PATH`` environment variable (extra import directories)
4. Command-line ``-I`` options

Example ``khukuri.yaml``::

    search_paths:
      - lib
      - ../shared
    max_call_depth: 500
    encoding: utf-8

Relative search paths are resolved against the directory holding the file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = "khukuri.yaml"
KHUKURI_PATH = "KHUKURI_PATH"
DEFAULT_MAX_CALL_DEPTH = 200


class ConfigError(ValueError):
    """Invalid project configuration."""
    pass


@dataclass
class RunConfig:
    """Settings for one interpreter run."""
    search_paths: List[Path] = field(default_factory=list)
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH
    encoding: str = "utf-8"
    source: Optional[Path] = None   # the khukuri.yaml this came from, if any

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "RunConfig":
        """Build a config from a parsed YAML document."""
        if not isinstance(data, dict):
            raise ConfigError("configuration must be a mapping")
        base = base_dir or Path.cwd()

        raw_paths = data.get("search_paths", [])
        if isinstance(raw_paths, str):
            raw_paths = [raw_paths]
        if not isinstance(raw_paths, list) or not all(isinstance(p, str) for p in raw_paths):
            raise ConfigError("search_paths must be a list of directory names")
        search_paths = [(base / p).expanduser().resolve() for p in raw_paths]

        depth = data.get("max_call_depth", DEFAULT_MAX_CALL_DEPTH)
        if isinstance(depth, bool) or not isinstance(depth, int) or depth < 1:
            raise ConfigError("max_call_depth must be a positive integer")

        encoding = data.get("encoding", "utf-8")
        if not isinstance(encoding, str):
            raise ConfigError("encoding must be a string")

        return cls(search_paths=search_paths, max_call_depth=depth, encoding=encoding)

    @classmethod
    def load(cls, config_path: Path | str) -> "RunConfig":
        """Read a khukuri.yaml file."""
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"config not found: {path}")
        with path.open("r", encoding="utf-8") as fp:
            try:
                data = yaml.safe_load(fp) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"{path}: {exc}") from exc
        config = cls.from_dict(data, base_dir=path.parent.resolve())
        config.source = path
        return config

    def add_search_paths(self, paths: Sequence[Path | str]) -> None:
        """Append directories, skipping ones already present."""
        for p in paths:
            resolved = Path(p).expanduser().resolve()
            if resolved not in self.search_paths:
                self.search_paths.append(resolved)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search_paths": [str(p) for p in self.search_paths],
            "max_call_depth": self.max_call_depth,
            "encoding": self.encoding,
        }


def env_search_paths() -> List[Path]:
    """Directories listed in KHUKURI_PATH."""
    env_path = os.environ.get(KHUKURI_PATH)
    if not env_path:
        return []
    return [Path(p.strip()) for p in env_path.split(os.pathsep) if p.strip()]


def find_config(start_dir: Path | str) -> Optional[Path]:
    """Return the khukuri.yaml in start_dir, if there is one."""
    candidate = Path(start_dir) / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def load_config(
    config_path: Optional[Path | str] = None,
    start_dir: Optional[Path | str] = None,
    extra_paths: Sequence[Path | str] = (),
) -> RunConfig:
    """
    Assemble the run configuration.

    Args:
        config_path: Explicit khukuri.yaml; must exist when given
        start_dir: Directory searched for khukuri.yaml when no explicit path
        extra_paths: Search paths from the command line

    Returns:
        The merged RunConfig
    """
    if config_path is not None:
        config = RunConfig.load(config_path)
    else:
        found = find_config(start_dir) if start_dir is not None else None
        config = RunConfig.load(found) if found else RunConfig()

    config.add_search_paths(env_search_paths())
    config.add_search_paths(extra_paths)
    return config

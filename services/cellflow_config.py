"""
Cellflow Configuration Service - Manages settings from cellflow_config.json.

This module handles loading, creating, and accessing the cellflow_config.json
file which controls where notebooks live, how runs behave and how the
dependency panel is laid out.

On startup, if cellflow_config.json doesn't exist, it creates one with sensible defaults.
Users can modify this file to customize their setup.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Any

logger = logging.getLogger(__name__)

# Default configuration - used when creating new config file
DEFAULT_CONFIG = {
    "notebooks": {
        "dir": "notebooks",
        "comment": "Directory holding .ipynb files, relative to the working directory"
    },
    "execution": {
        "stop_on_error": True,
        "kernel_start_timeout": 10,
        "comment": "stop_on_error aborts queued runs after a failing cell"
    },
    "dependencies": {
        "max_visible_downstream": 3,
        "comment": "Downstream cells listed individually in the dependency panel"
    },
    "server": {
        "port": 8000
    }
}


@dataclass
class CellflowConfig:
    """Parsed cellflow configuration."""
    notebooks_dir: str = "notebooks"

    # Execution
    stop_on_error: bool = True
    kernel_start_timeout: float = 10

    # Dependency panel
    max_visible_downstream: int = 3

    port: int = 8000

    # Raw config for reference
    raw_config: Dict[str, Any] = field(default_factory=dict)

    @property
    def notebooks_path(self) -> Path:
        return Path(self.notebooks_dir)


# Module-level cached config
_config: Optional[CellflowConfig] = None
_config_path: Optional[Path] = None


def _parse_config(raw: Dict[str, Any]) -> CellflowConfig:
    """Parse raw JSON config into CellflowConfig."""
    config = CellflowConfig(raw_config=raw)

    notebooks = raw.get("notebooks", {})
    config.notebooks_dir = notebooks.get("dir", "notebooks")

    execution = raw.get("execution", {})
    config.stop_on_error = bool(execution.get("stop_on_error", True))
    config.kernel_start_timeout = float(execution.get("kernel_start_timeout", 10))

    dependencies = raw.get("dependencies", {})
    max_visible = int(dependencies.get("max_visible_downstream", 3))
    if max_visible < 1:
        logger.warning(f"max_visible_downstream must be at least 1, got {max_visible}")
        max_visible = 1
    config.max_visible_downstream = max_visible

    server = raw.get("server", {})
    config.port = int(server.get("port", 8000))

    return config


def _create_default_config(config_path: Path) -> Dict[str, Any]:
    """Create default config file and return the config dict."""
    logger.info(f"Creating default cellflow_config.json at {config_path}")

    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(DEFAULT_CONFIG, f, indent=2)

    print(f"   Created cellflow_config.json with defaults")
    return DEFAULT_CONFIG


def load_config(config_path: Optional[Path] = None, force_reload: bool = False) -> CellflowConfig:
    """
    Load cellflow configuration from JSON file.

    Creates default config if file doesn't exist.

    Args:
        config_path: Path to config file. Defaults to ./cellflow_config.json
        force_reload: If True, reload from disk even if cached

    Returns:
        Parsed CellflowConfig
    """
    global _config, _config_path

    if config_path is None:
        config_path = Path.cwd() / "cellflow_config.json"

    # Return cached if available and path matches
    if _config is not None and not force_reload and _config_path == config_path:
        return _config

    _config_path = config_path

    if not config_path.exists():
        raw = _create_default_config(config_path)
    else:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            logger.info(f"Loaded cellflow_config.json from {config_path}")
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse cellflow_config.json: {e}")
            print(f"   Warning: Invalid cellflow_config.json, using defaults")
            raw = DEFAULT_CONFIG
        except OSError as e:
            logger.error(f"Failed to load cellflow_config.json: {e}")
            raw = DEFAULT_CONFIG

    try:
        _config = _parse_config(raw)
    except (AttributeError, TypeError, ValueError) as e:
        logger.error(f"Invalid value in cellflow_config.json: {e}")
        _config = _parse_config(DEFAULT_CONFIG)
    return _config


def get_config() -> CellflowConfig:
    """Get the current config, loading if necessary."""
    if _config is None:
        return load_config()
    return _config


def reset_config_cache() -> None:
    """Reset cached config (useful for testing)."""
    global _config, _config_path
    _config = None
    _config_path = None


def print_config_status(config: CellflowConfig) -> None:
    """Print config status for startup logging."""
    print(f"   Config: cellflow_config.json")
    print(f"      Notebooks:      {config.notebooks_path.resolve()}")
    print(f"      Stop on error:  {config.stop_on_error}")
    print(f"      Kernel timeout: {config.kernel_start_timeout}s")
    print(f"      Visible deps:   {config.max_visible_downstream}")

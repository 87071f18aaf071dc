"""Two-tier configuration system for segmentsync.

Resolution order (later overrides earlier):
  1. Built-in defaults
  2. Global user config:  ~/.segmentsync/config.json
  3. Project config:      .segmentsync.config.json (searched cwd → parents)
  4. CLI flags (--debounce-ms, --baseline, etc.)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from segmentsync.core.diff import DEFAULT_MIN_COMMON
from segmentsync.core.orchestrator import DEFAULT_DEBOUNCE_MS

logger = logging.getLogger(__name__)

GLOBAL_DIR = Path.home() / ".segmentsync"
GLOBAL_CONFIG = GLOBAL_DIR / "config.json"
PROJECT_CONFIG_NAME = ".segmentsync.config.json"


@dataclass
class SyncEnvConfig:
    """Resolved configuration for segmentsync."""

    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    min_common_substring: int = DEFAULT_MIN_COMMON
    auto_register_variables: bool = True
    baseline: Optional[Path] = None

    # Files that contributed, for print_env
    _global_path: Optional[Path] = field(default=None, repr=False)
    _project_path: Optional[Path] = field(default=None, repr=False)


def _find_project_config(start: Optional[Path] = None) -> Optional[Path]:
    """Nearest ``.segmentsync.config.json`` at or above *start* (default: cwd)."""
    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def _load_json(path: Path) -> Dict[str, Any]:
    """Load a JSON object from *path*, returning {} on any error."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Ignoring unreadable config file %s", path)
        return {}
    return data if isinstance(data, dict) else {}


def _apply_dict(config: SyncEnvConfig, data: Dict[str, Any], base_dir: Path) -> None:
    """Merge a raw JSON dict into a config object, skipping bad values."""
    if "debounce_ms" in data:
        try:
            config.debounce_ms = max(0, int(data["debounce_ms"]))
        except (TypeError, ValueError):
            logger.warning("Invalid debounce_ms %r ignored", data["debounce_ms"])
    if "min_common_substring" in data:
        try:
            config.min_common_substring = max(1, int(data["min_common_substring"]))
        except (TypeError, ValueError):
            logger.warning("Invalid min_common_substring %r ignored", data["min_common_substring"])
    if "auto_register_variables" in data:
        config.auto_register_variables = bool(data["auto_register_variables"])
    if data.get("baseline"):
        p = Path(str(data["baseline"])).expanduser()
        if not p.is_absolute():
            p = (base_dir / p).resolve()
        config.baseline = p


def load_config(
    project_dir: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> SyncEnvConfig:
    """Load and merge the two-tier configuration.

    Parameters
    ----------
    project_dir : Path, optional
        Starting directory for project config search (defaults to cwd).
    overrides : dict, optional
        Values from CLI flags; ``None`` entries are skipped.  Relative
        paths resolve against the current directory.
    """
    config = SyncEnvConfig()

    # Global file first, then the nearest project file, then CLI flags
    if GLOBAL_CONFIG.is_file():
        data = _load_json(GLOBAL_CONFIG)
        _apply_dict(config, data, GLOBAL_DIR)
        config._global_path = GLOBAL_CONFIG

    proj = _find_project_config(project_dir)
    if proj:
        data = _load_json(proj)
        _apply_dict(config, data, proj.parent)
        config._project_path = proj

    if overrides:
        _apply_dict(config, {k: v for k, v in overrides.items() if v is not None}, Path.cwd())

    return config


def print_env(config: SyncEnvConfig) -> str:
    """Return a formatted string describing the resolved environment."""
    lines = []
    lines.append("segmentsync Environment")
    lines.append("=" * 50)
    lines.append("")
    lines.append(f"  Global config:   {config._global_path or '(not found)'}")
    lines.append(f"  Project config:  {config._project_path or '(not found)'}")
    lines.append("")
    lines.append(f"  Debounce:        {config.debounce_ms} ms")
    lines.append(f"  Min common run:  {config.min_common_substring}")
    lines.append(f"  Auto-register:   {'on' if config.auto_register_variables else 'off'}")
    if config.baseline is None:
        lines.append("  Baseline:        (none)")
    else:
        exists = "✓" if config.baseline.is_file() else "✗"
        lines.append(f"  Baseline:        {exists} {config.baseline}")
    lines.append("")
    return "\n".join(lines)

"""Configuration — frozen dataclass built from defaults, an optional YAML file, and env vars."""

import logging
import os
from dataclasses import dataclass, field

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreConfig:
    log_dir: str = "./server_logs"
    default_max_entries: int = 1000   # <= 0 disables the cap
    group_max_entries: dict[str, int] = field(default_factory=dict)

    def max_entries_for(self, group: str) -> int:
        """Effective cap for a raw (unsanitized) group name."""
        return self.group_max_entries.get(group, self.default_max_entries)


def load_yaml_config(path: str | None) -> dict:
    """Load store settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as e:
        logger.warning("Invalid YAML in %s (%s), using defaults", path, e)
        return {}

    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, using defaults", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    return data


def load_config(yaml_path: str | None = None) -> StoreConfig:
    """Build StoreConfig: dataclass defaults < YAML file < environment variables.

    The YAML path comes from *yaml_path* or, failing that, SERVER_LOG_CONFIG.
    """
    yaml_data = load_yaml_config(yaml_path or os.environ.get("SERVER_LOG_CONFIG"))

    log_dir = yaml_data.get("log_dir", StoreConfig.log_dir)
    default_max = yaml_data.get("default_max_entries", StoreConfig.default_max_entries)
    overrides = yaml_data.get("group_max_entries") or {}

    return StoreConfig(
        log_dir=str(os.environ.get("SERVER_LOG_DIR", log_dir)),
        default_max_entries=int(os.environ.get("SERVER_LOG_MAX_ENTRIES", default_max)),
        group_max_entries={str(k): int(v) for k, v in overrides.items()},
    )

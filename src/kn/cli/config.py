import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..crds.wait import DEFAULT_TIMEOUT
from ..errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "kn"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_CONFIG: Dict[str, Any] = {
    "eventing": {
        "sink-mappings": [],
    },
    "wait": {
        "timeout": DEFAULT_TIMEOUT,
    },
}

_SINK_MAPPING_KEYS = ("prefix", "group", "version", "resource")


class Configuration:
    def __init__(self, config_data: Dict[str, Any]):
        self._config = config_data
        self._config.setdefault("eventing", {})
        self._config.setdefault("wait", {})

    @property
    def sink_mappings(self) -> List[Dict[str, str]]:
        mappings = self._config["eventing"].get("sink-mappings") or []
        for mapping in mappings:
            missing = [key for key in _SINK_MAPPING_KEYS if not mapping.get(key)]
            if missing:
                raise ValidationError(
                    f"sink mapping {mapping} is missing {', '.join(missing)}"
                )
        return mappings

    @property
    def wait_timeout(self) -> int:
        value = self._config["wait"].get("timeout", DEFAULT_TIMEOUT)
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"wait.timeout must be a number of seconds, got '{value}'") from None


def get_default_config_path() -> Path:
    return DEFAULT_CONFIG_PATH


def deep_merge(source, destination):
    for key, value in source.items():
        if isinstance(value, dict):
            node = destination.setdefault(key, {})
            deep_merge(value, node)
        else:
            destination[key] = value
    return destination


def load_config(config_path: Optional[Path]) -> Configuration:
    config_data = copy.deepcopy(DEFAULT_CONFIG)
    if config_path and config_path.exists():
        logger.debug("Loading configuration from %s", config_path)
        with open(config_path, "r") as f:
            try:
                user_config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValidationError(f"cannot parse config file {config_path}: {e}") from e
        if user_config and not isinstance(user_config, dict):
            raise ValidationError(f"config file {config_path} must contain a mapping")
        if user_config:
            config_data = deep_merge(user_config, config_data)
    return Configuration(config_data)

"""
Annotation settings, loaded from YAML and overridden from the command line.
"""

import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

import yaml

from txeffect.core.errors import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AnnotationConfig:
    """Settings consumed by the mapper, classifier and batch annotator."""
    flank_distance: int = 1000
    splice_window: int = 2
    show_all: bool = False
    workers: int = 1
    log_level: str = "INFO"

    def validate(self):
        for name in ("flank_distance", "splice_window"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative integer, got {value!r}")
        if not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigurationError(f"workers must be a positive integer, got {self.workers!r}")
        if str(self.log_level).upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level: {self.log_level}")
        self.log_level = str(self.log_level).upper()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(config_file: Optional[str] = None, **overrides: Any) -> AnnotationConfig:
    """
    Build the configuration from an optional YAML file plus overrides.

    Args:
        config_file: Path to a YAML file with any of the ``AnnotationConfig`` keys
        **overrides: Values that win over the file (None means "not given")

    Returns:
        A validated AnnotationConfig
    """
    settings: Dict[str, Any] = {}
    known = {f.name for f in fields(AnnotationConfig)}

    # 1. Load from config file if specified
    if config_file:
        if not os.path.exists(config_file):
            raise ConfigurationError(f"Config file not found: {config_file}")
        try:
            with open(config_file, 'r') as f:
                file_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Error parsing config file {config_file}: {e}")
        if file_config:
            if not isinstance(file_config, dict):
                raise ConfigurationError(f"Config file {config_file} must contain a mapping")
            unknown = sorted(set(file_config) - known)
            if unknown:
                raise ConfigurationError(f"Unknown configuration parameters: {', '.join(unknown)}")
            settings.update(file_config)

    # 2. Override with explicitly given values
    for key, value in overrides.items():
        if key not in known:
            raise ConfigurationError(f"Unknown configuration parameter: {key}")
        if value is not None:
            settings[key] = value

    config = AnnotationConfig(**settings)
    config.validate()
    return config

from dataclasses import dataclass, field, fields
from typing import Any, Dict

import yaml

from .errors import ConfigurationError


@dataclass
class Config:
    """Configuration object loaded from YAML."""
    data: Dict[str, Any]
    split: Dict[str, Any]
    validation: Dict[str, Any]
    models: Dict[str, Any]
    preprocessing: Dict[str, Any] = field(default_factory=dict)
    output: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                setattr(self, f.name, {})
            elif not isinstance(value, dict):
                raise ConfigurationError(f"Config section '{f.name}' must be a mapping, got {type(value).__name__}")
        if not self.models:
            raise ConfigurationError("Config section 'models' must list at least one model family")

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "Config":
        known = {f.name for f in fields(cls)}
        unknown = set(cfg) - known
        if unknown:
            raise ConfigurationError(f"Unknown config sections: {sorted(unknown)}")
        try:
            return cls(**cfg)
        except TypeError as exc:
            raise ConfigurationError(f"Incomplete config: {exc}") from exc

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        with open(path, "r") as f:
            cfg = yaml.safe_load(f)
        if not isinstance(cfg, dict):
            raise ConfigurationError(f"Config file {path} does not contain a mapping")
        return cls.from_dict(cfg)

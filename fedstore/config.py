# fedstore/config.py
"""
Server configuration.

Only the hostname is required; it decides which identifiers are local.
Values are layered: YAML file, then FEDSTORE_* environment variables,
then explicit overrides.

Example config.yaml:
    hostname: social.example
    scheme: https
    page_size: 20
"""

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import InvalidDocument
from .iri import host_of

ENV_PREFIX = "FEDSTORE_"


@dataclass
class Config:
    """
    Core configuration.

    Attributes:
        hostname: Host (optionally host:port) this server answers for
        scheme: Scheme used for minted identifiers
        page_size: Default number of items per collection page
        max_page_size: Upper bound for a requested page limit
        lock_poll_interval: Seconds between cancellation checks while waiting on a lock
        id_attempts: Retries before identifier generation gives up
    """
    hostname: str
    scheme: str = "https"
    page_size: int = 20
    max_page_size: int = 100
    lock_poll_interval: float = 0.05
    id_attempts: int = 8

    def __post_init__(self):
        self.hostname = (self.hostname or "").strip().lower()
        self.scheme = self.scheme.lower()
        errors = self.validate()
        if errors:
            raise ValueError(f"Invalid config: {'; '.join(errors)}")

        # Same host form as normalize(), so minted identifiers are owned
        try:
            self.hostname = host_of(f"{self.scheme}://{self.hostname}/")
        except InvalidDocument as e:
            raise ValueError(f"Invalid config: hostname {self.hostname!r}: {e}") from e

    def validate(self) -> List[str]:
        """Return list of problems (empty if valid)."""
        errors = []
        if not self.hostname:
            errors.append("hostname is required")
        if self.scheme not in ("http", "https"):
            errors.append(f"unsupported scheme {self.scheme!r}")
        if self.page_size <= 0:
            errors.append("page_size must be positive")
        if self.max_page_size < self.page_size:
            errors.append("max_page_size must be >= page_size")
        if self.lock_poll_interval <= 0:
            errors.append("lock_poll_interval must be positive")
        if self.id_attempts <= 0:
            errors.append("id_attempts must be positive")
        return errors

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.hostname}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")
        return cls(**data)


def _from_env(environ) -> Dict[str, Any]:
    """Collect FEDSTORE_* variables, coerced to the field types."""
    values = {}
    for f in fields(Config):
        raw = environ.get(ENV_PREFIX + f.name.upper())
        if raw is None:
            continue
        if f.type in (int, "int"):
            values[f.name] = int(raw)
        elif f.type in (float, "float"):
            values[f.name] = float(raw)
        else:
            values[f.name] = raw
    return values


def load_config(path: Path | str = None, environ=None, **overrides) -> Config:
    """
    Load configuration.

    Args:
        path: Optional YAML file containing a mapping of Config fields
        environ: Environment mapping (defaults to os.environ)
        **overrides: Values that win over file and environment

    Returns:
        Validated Config
    """
    data: Dict[str, Any] = {}
    if path is not None:
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        data.update(loaded)

    data.update(_from_env(os.environ if environ is None else environ))
    data.update({k: v for k, v in overrides.items() if v is not None})

    if "hostname" not in data:
        raise ValueError("Invalid config: hostname is required")
    return Config.from_dict(data)


def default_config(hostname: Optional[str] = None) -> Config:
    """Config for tests and the CLI when no file is given."""
    return Config(hostname=hostname or "localhost")

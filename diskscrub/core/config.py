"""diskscrub runtime configuration and settings."""
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from diskscrub.models.errors import ConfigError

DEFAULT_BLOCK_SIZE = 4 * 1024 * 1024  # 4 MiB transfer blocks
DEFAULT_AUDIT_LOG = "/var/log/diskscrub/audit.log"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class ScrubConfig:
    """Runtime configuration for erase operations.

    Attributes:
        block_size: Transfer block size in bytes for overwrite passes (default: 4 MiB)
        max_workers: Concurrent device tasks (default: one per device)
        security_password: Transient ATA security password (default: "0000")
        use_sudo: Prefix external commands with sudo (default: False)
        mock: Log commands instead of running them (default: False)
        allow_synthesized: Return demo devices when detection finds nothing (default: False)
        audit_log: Append-only audit trail file
    """

    block_size: int = DEFAULT_BLOCK_SIZE
    max_workers: Optional[int] = None
    security_password: str = "0000"
    use_sudo: bool = False
    mock: bool = False
    allow_synthesized: bool = False
    audit_log: str = DEFAULT_AUDIT_LOG

    def __post_init__(self):
        if not isinstance(self.block_size, int) or self.block_size <= 0:
            raise ConfigError(f"block_size must be a positive integer, got {self.block_size!r}")
        if self.max_workers is not None and (
            not isinstance(self.max_workers, int) or self.max_workers <= 0
        ):
            raise ConfigError(f"max_workers must be a positive integer, got {self.max_workers!r}")
        if not self.security_password:
            raise ConfigError("security_password must not be empty")

    @classmethod
    def from_env(cls) -> "ScrubConfig":
        """Create config from environment variables.

        Environment variables:
            DISKSCRUB_BLOCK_SIZE: Overwrite block size in bytes
            DISKSCRUB_MAX_WORKERS: Maximum concurrent device tasks
            DISKSCRUB_SECURITY_PASSWORD: ATA security password
            DISKSCRUB_SUDO: Run external tools through sudo
            DISKSCRUB_MOCK: Mock mode (no commands executed)
            DISKSCRUB_ALLOW_SYNTHESIZED: Allow demo devices
            DISKSCRUB_AUDIT_LOG: Audit trail path

        Returns:
            ScrubConfig instance with values from environment or defaults
        """
        max_workers = os.getenv("DISKSCRUB_MAX_WORKERS")
        try:
            return cls(
                block_size=int(os.getenv("DISKSCRUB_BLOCK_SIZE", cls.block_size)),
                max_workers=int(max_workers) if max_workers else None,
                security_password=os.getenv("DISKSCRUB_SECURITY_PASSWORD", cls.security_password),
                use_sudo=_env_flag("DISKSCRUB_SUDO", cls.use_sudo),
                mock=_env_flag("DISKSCRUB_MOCK", cls.mock),
                allow_synthesized=_env_flag("DISKSCRUB_ALLOW_SYNTHESIZED", cls.allow_synthesized),
                audit_log=os.getenv("DISKSCRUB_AUDIT_LOG", cls.audit_log),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid DISKSCRUB_* environment value: {e}") from e

    def merged(self, overrides: Dict[str, Any]) -> "ScrubConfig":
        """Return a copy with the given keys replaced.

        Raises:
            ConfigError: On unknown keys
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(overrides)
        return ScrubConfig(**values)


def load_config(config_path: Optional[str] = None) -> ScrubConfig:
    """Load configuration from the environment, overlaid with a YAML file.

    Args:
        config_path: Optional path to a YAML file with ScrubConfig keys

    Returns:
        ScrubConfig instance

    Raises:
        ConfigError: If the file is missing, malformed or has unknown keys
    """
    config = ScrubConfig.from_env()
    if not config_path:
        return config

    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    # Handle empty config file
    if raw is None:
        return config
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return config.merged(raw)


# Global config instance (can be overridden)
_config: Optional[ScrubConfig] = None


def get_config() -> ScrubConfig:
    """Get the global diskscrub configuration.

    Returns:
        ScrubConfig instance (creates from environment if not set)
    """
    global _config
    if _config is None:
        _config = ScrubConfig.from_env()
    return _config


def set_config(config: Optional[ScrubConfig]):
    """Set the global diskscrub configuration.

    Args:
        config: ScrubConfig instance to use globally (None resets to environment)
    """
    global _config
    _config = config

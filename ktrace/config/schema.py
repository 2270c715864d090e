"""
Configuration schema for ktrace.

Supports:
- YAML file loading
- Environment variable substitution (${VAR_NAME})
- Validation with error messages

Example config (ktrace.yml):
    version: 1

    decode:
      byte_order: little
      word_size: 8

    output:
      format: table

    logging:
      level: ${KTRACE_LOG_LEVEL}
"""

import logging
import os
import re
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, List, Any

import yaml

from ..formats.byteorder import ByteOrder
from ..formats.header import LAYOUTS
from ..formats.reader import DecodeOptions


OUTPUT_FORMATS = ('text', 'table', 'json')

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def _substitute_env_vars(value: Any) -> Any:
    """
    Substitute ${VAR_NAME} with environment variable values.

    Example:
        ${KTRACE_LOG_LEVEL} → os.environ.get('KTRACE_LOG_LEVEL')
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}]+)\}'

        def replace(match):
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                return match.group(0)  # Keep original if not found
            return env_value

        return re.sub(pattern, replace, value)

    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]

    return value


def _to_int(value: Any) -> Any:
    """Convert a substituted numeric string; anything else is left for validate()."""
    if isinstance(value, str) and re.fullmatch(r'\s*-?\d+\s*', value):
        return int(value)
    return value


@dataclass
class DecodeConfig:
    """Decode session settings."""
    byte_order: str = 'native'
    word_size: int = 8

    def __post_init__(self):
        self.word_size = _to_int(self.word_size)

    def options(self) -> DecodeOptions:
        return DecodeOptions(byte_order=ByteOrder(self.byte_order), word_size=self.word_size)


@dataclass
class OutputConfig:
    """Output settings."""
    format: str = 'text'
    data_preview_bytes: int = 8

    def __post_init__(self):
        self.data_preview_bytes = _to_int(self.data_preview_bytes)


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = 'WARNING'

    @property
    def level_no(self) -> int:
        return getattr(logging, self.level.upper(), logging.WARNING)


@dataclass
class KtraceConfig:
    """Root configuration."""

    version: int = 1
    decode: DecodeConfig = field(default_factory=DecodeConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: Path) -> 'KtraceConfig':
        """Load from YAML file with env var substitution."""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Config not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        data = _substitute_env_vars(data)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'KtraceConfig':
        """Create from dictionary."""
        return cls(
            version=data.get('version', 1),
            decode=DecodeConfig(**data.get('decode', {})),
            output=OutputConfig(**data.get('output', {})),
            logging=LoggingConfig(**data.get('logging', {})),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Convert to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def validate(self) -> List[str]:
        """Validate config. Returns list of errors (empty if valid)."""
        errors = []

        valid_orders = [o.value for o in ByteOrder]
        if self.decode.byte_order not in valid_orders:
            errors.append(
                f"Invalid byte_order: {self.decode.byte_order} "
                f"(expected one of {', '.join(valid_orders)})"
            )

        if not isinstance(self.decode.word_size, int) or self.decode.word_size not in LAYOUTS:
            errors.append(f"Invalid word_size: {self.decode.word_size} (expected 4 or 8)")

        if self.output.format not in OUTPUT_FORMATS:
            errors.append(f"Invalid output format: {self.output.format}")

        preview_bytes = self.output.data_preview_bytes
        if not isinstance(preview_bytes, int) or isinstance(preview_bytes, bool) or preview_bytes < 0:
            errors.append(f"Invalid data_preview_bytes: {self.output.data_preview_bytes}")

        if str(self.logging.level).upper() not in LOG_LEVELS:
            errors.append(f"Invalid log level: {self.logging.level}")

        return errors


def load_config(path: Optional[Path] = None) -> KtraceConfig:
    """Load config from file or return defaults."""
    if path and Path(path).exists():
        return KtraceConfig.load(path)

    search_paths = [
        Path('./ktrace.yml'),
        Path('./ktrace.yaml'),
        Path.home() / '.ktrace' / 'config.yml',
    ]

    for p in search_paths:
        if p.exists():
            return KtraceConfig.load(p)

    return KtraceConfig()


def generate_default_config() -> str:
    """Generate default config as YAML."""
    return """# ktrace Configuration
version: 1

decode:
  byte_order: native    # native | little | big
  word_size: 8          # 8 (LP64) or 4 (ILP32)

output:
  format: text          # text | table | json
  data_preview_bytes: 8

logging:
  level: WARNING
"""

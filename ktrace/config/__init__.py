"""Configuration management for ktrace."""

from .schema import (
    KtraceConfig,
    DecodeConfig,
    OutputConfig,
    LoggingConfig,
    OUTPUT_FORMATS,
    load_config,
    generate_default_config,
)

__all__ = [
    'KtraceConfig',
    'DecodeConfig',
    'OutputConfig',
    'LoggingConfig',
    'OUTPUT_FORMATS',
    'load_config',
    'generate_default_config',
]

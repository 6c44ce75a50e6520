"""
bullion_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files directly.

Architecture position:
    Configuration -- sits above ``bullion_kernel`` and ``bullion_engines``
    and below ``bullion_services``.  The kernel and engines MUST NEVER
    import from ``bullion_config``.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``KeyError`` / ``ValueError`` -- schema violations.

Every successful ``get_active_config()`` call emits a
``BULLION_CONFIG_TRACE`` log entry with the config id, version and
checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from bullion_config.loader import compute_checksum, load_yaml_file, parse_config
from bullion_config.schema import BullionConfig, LedgerConfig, StorageConfig

_logger = logging.getLogger("bullion.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> BullionConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: YAML file to load.  Defaults to the packaged defaults.yaml.

    Returns:
        BullionConfig -- frozen runtime configuration.
    """
    source = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(source))

    _logger.info(
        "BULLION_CONFIG_TRACE",
        extra={
            "trace_type": "BULLION_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(source),
        },
    )
    return config


__all__ = [
    "BullionConfig",
    "DEFAULT_CONFIG_PATH",
    "LedgerConfig",
    "StorageConfig",
    "compute_checksum",
    "get_active_config",
]

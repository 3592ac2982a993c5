"""
ledger_config -- single public entrypoint for ingestion configuration.

``get_active_config()`` returns the immutable ``IngestionConfig`` built from
``defaults/ingestion.yaml``, or from the file named by the
``LEDGER_SYNC_CONFIG`` environment variable.  Parsed configs are cached per
path; ``clear_config_cache()`` is for tests.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from ledger_config.loader import load_config
from ledger_config.schema import AliasTable, ImportTypeDef, IngestionConfig, TallyDef

__all__ = [
    "AliasTable",
    "ImportTypeDef",
    "IngestionConfig",
    "TallyDef",
    "clear_config_cache",
    "get_active_config",
]

_logger = logging.getLogger("ledger_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "ingestion.yaml"
CONFIG_ENV_VAR = "LEDGER_SYNC_CONFIG"


def get_active_config(path: Path | str | None = None) -> IngestionConfig:
    """Return the active configuration (explicit path > env var > bundled default)."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    return _load_cached(Path(path).resolve())


@lru_cache(maxsize=8)
def _load_cached(path: Path) -> IngestionConfig:
    config = load_config(path)
    _logger.info(
        "config_loaded",
        extra={
            "config_path": str(path),
            "checksum": config.checksum,
            "import_types": list(config.import_type_names),
            "batch_size": config.batch_size,
        },
    )
    return config


def clear_config_cache() -> None:
    _load_cached.cache_clear()

"""
Configuration for modgraph.

Module-level constants shared by the resolver and the transform pipeline,
plus the user-facing GraphSettings model loaded from `.modgraph/config.yaml`.

Example config.yaml:

    graph:
      direction: TB
      fan_in_threshold: 12
      collapsed_folder_ids:
        - "dir:pkg-1:src/legacy"
      enabled_edge_kinds: [import, dependency]
"""

import logging
import os
import re
from pathlib import Path
from typing import FrozenSet, List, Optional, Set, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .core.exceptions import ConfigError
from .core.types import EdgeKind, LayoutDirection, NodeKind

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(".modgraph/config.yaml")

# Resolution order matters: the first candidate that matches wins.
SOURCE_EXTENSIONS: Tuple[str, ...] = (
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".vue",
)

# Project-root alias prefix recognized as internal
ROOT_ALIAS_PREFIX = "@/"
SOURCE_ROOT = "src"

DEFAULT_FAN_IN_THRESHOLD = 8
HUB_RESOLUTION_DEPTH = 3
CACHE_TTL_SECONDS = 300.0
DEFAULT_BUNDLE_MIN_EDGES = 50

TEST_FILE_PATTERNS: List[re.Pattern] = [
    re.compile(r"(^|/)__tests__(/|$)", re.IGNORECASE),
    re.compile(r"\.(test|spec)\.[cm]?[jt]sx?$", re.IGNORECASE),
    re.compile(r"\.(e2e|integration)\.[cm]?[jt]sx?$", re.IGNORECASE),
    re.compile(r"(^|/)(e2e|integration)(/|$)", re.IGNORECASE),
    re.compile(r"(^|/)(test|tests|spec|specs)(/|$)", re.IGNORECASE),
]

ENV_DEV_MODE = "MODGRAPH_DEV_MODE"
ENV_LOG_LEVEL = "MODGRAPH_LOG_LEVEL"

_TRUTHY: Set[str] = {"1", "true", "yes", "on"}


def is_test_file_path(path: Optional[str]) -> bool:
    """Return True if the path looks like a test file or lives in a test directory."""
    if not path:
        return False
    normalized = path.replace("\\", "/")
    return any(pattern.search(normalized) for pattern in TEST_FILE_PATTERNS)


class GraphSettings(BaseModel):
    """
    Options that drive a single run of the visual pipeline.

    Changing any of these means rebuilding the visual graph from the
    canonical graph; nothing here is patched incrementally.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    direction: LayoutDirection = LayoutDirection.LR
    cluster_by_folder: bool = True
    collapsed_folder_ids: FrozenSet[str] = Field(default_factory=frozenset)
    enable_highways: bool = True
    enable_hubs: bool = True
    fan_in_threshold: int = Field(default=DEFAULT_FAN_IN_THRESHOLD, ge=1)
    bundle_min_edges: int = Field(default=DEFAULT_BUNDLE_MIN_EDGES, ge=0)
    collapse_cycles: bool = False
    enabled_node_kinds: FrozenSet[NodeKind] = Field(
        default_factory=lambda: frozenset(NodeKind)
    )
    enabled_edge_kinds: FrozenSet[EdgeKind] = Field(
        default_factory=lambda: frozenset(EdgeKind)
    )
    hide_test_files: bool = False
    dev_mode: bool = False
    log_level: str = "WARNING"
    cache_ttl_seconds: float = Field(default=CACHE_TTL_SECONDS, gt=0)


def load_settings(config_path: Optional[Path] = None) -> GraphSettings:
    """
    Load GraphSettings from the `graph:` section of a YAML config file.

    A missing file yields defaults. Environment variables override the file.

    Raises:
        ConfigError: If the file is not valid YAML or fails validation.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    data = {}

    if path.exists():
        try:
            with open(path, "r") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(str(path), f"invalid YAML: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(str(path), "top level must be a mapping")
        data = dict(raw.get("graph") or {})
    else:
        logger.debug(f"No config at {path}, using defaults")

    dev_mode = os.getenv(ENV_DEV_MODE)
    if dev_mode is not None:
        data["dev_mode"] = dev_mode.strip().lower() in _TRUTHY
    log_level = os.getenv(ENV_LOG_LEVEL)
    if log_level:
        data["log_level"] = log_level.upper()

    try:
        return GraphSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(str(path), str(e)) from e

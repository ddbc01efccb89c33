"""
ConfigManager: settings loader for the assets bridge.

Loads and validates configuration from YAML using Pydantic, applies
environment variable overrides, caches the result with a TTL and supports a
forced reload via reload(). The bridge root chosen by the user is persisted
back to the same YAML file.
"""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from .support.logging import get_logger


CONFIG_ENV = "ASSETS_BRIDGE_CONFIG"
DEFAULT_CONFIG_FILE = Path.home() / ".assets_bridge" / "settings.yaml"


# ---------------------------------------------------------------------------
# Pydantic models for schema validation
# ---------------------------------------------------------------------------


class ManifestsConfig(BaseModel):
    """Manifest file names inside the bridge root.

    Attributes:
        export_name: Written by the engine side (engine -> DCC).
        import_name: Read by the engine side (DCC -> engine).
        legacy_name: Older single-file name, read when ``import_name`` is absent.
    """

    export_name: str = "from-unreal.json"
    import_name: str = "from-blender.json"
    legacy_name: str = "AssetBridge.json"


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    file: Optional[Path] = None


class BridgeSettings(BaseModel):
    """Top-level configuration structure."""

    bridge_root: Path = Field(default_factory=lambda: Path.home() / "AssetsBridge")
    content_root: str = "/Game"
    engine_root: str = "/Engine"
    manifests: ManifestsConfig = Field(default_factory=ManifestsConfig)
    mesh_extension: str = ".glb"
    export_operation: str = "UnrealExport"
    retarget_skeletons: bool = True
    delete_generated_assets: bool = False
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _resolve_relative(base: Path, p: Path) -> Path:
    """Resolve path relative to base if not absolute."""

    p = p.expanduser()
    return p if p.is_absolute() else (base / p).resolve()


# ---------------------------------------------------------------------------
# ConfigManager (TTL cache, reload, persistence)
# ---------------------------------------------------------------------------


class ConfigManager:
    """Manager for bridge configuration.

    Responsibilities:
    - Locate and load the YAML configuration file,
    - Validate structure via Pydantic models,
    - Apply environment variable overrides,
    - Cache settings with a TTL to avoid frequent disk IO,
    - Persist the bridge root between sessions.

    Environment overrides supported:
    - ASSETS_BRIDGE_CONFIG: explicit path to the YAML file.
    - ASSETS_BRIDGE_ROOT, ASSETS_BRIDGE_CONTENT_ROOT
    - LOG_LEVEL, LOG_FILE
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None, cache_ttl_seconds: int = 60) -> None:
        self._logger = get_logger("config_manager")

        if config_file is not None:
            self._config_file = Path(config_file)
        elif os.getenv(CONFIG_ENV):
            self._config_file = Path(os.environ[CONFIG_ENV])
        else:
            self._config_file = DEFAULT_CONFIG_FILE

        self._cache_ttl_seconds = cache_ttl_seconds
        self._cache_timestamp: float = 0.0
        self._cached_settings: Optional[BridgeSettings] = None

    # ------------------------------ Public API ------------------------------

    def get(self) -> BridgeSettings:
        """Return current settings, reloading if TTL expired.

        Returns:
            BridgeSettings: Validated and possibly overridden configuration.
        """

        now = time.time()
        if self._cached_settings and (now - self._cache_timestamp) < self._cache_ttl_seconds:
            return self._cached_settings

        settings = self._load_and_validate()
        self._cached_settings = settings
        self._cache_timestamp = now
        return settings

    def reload(self) -> BridgeSettings:
        """Force a reload of the configuration."""

        self._logger.info("Reloading configuration from disk and environment overrides.")
        self._cache_timestamp = 0.0
        self._cached_settings = None
        return self.get()

    def get_config_file(self) -> Path:
        return self._config_file

    def set_bridge_root(self, path: Union[str, Path]) -> BridgeSettings:
        """Persist a new bridge root to the YAML file and reload.

        Other keys already present in the file are kept as they are.

        Args:
            path: Directory the manifests and geometry files are exchanged in.

        Returns:
            BridgeSettings: Settings reloaded after the change.
        """

        root = Path(path).expanduser().resolve()
        data = self._read_yaml() or {}
        data["bridge_root"] = str(root)

        self._config_file.parent.mkdir(parents=True, exist_ok=True)
        with self._config_file.open("w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False)
        self._logger.info("Bridge root set to %s (saved to %s)", root, self._config_file)
        return self.reload()

    # ----------------------------- Internal logic ---------------------------

    def _read_yaml(self) -> Optional[Dict[str, Any]]:
        if not self._config_file.exists():
            return None
        try:
            with self._config_file.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            self._logger.warning("Failed to load YAML config (%s). Falling back to defaults. Error: %s", self._config_file, e)
            return None
        if data is not None and not isinstance(data, dict):
            self._logger.warning("Config file %s does not contain a mapping; ignoring it", self._config_file)
            return None
        return data

    def _load_and_validate(self) -> BridgeSettings:
        """Load YAML settings, apply env overrides, validate and resolve paths.

        Invalid or missing files never raise; defaults are used instead.
        """

        data = self._read_yaml()
        if data is None and not self._config_file.exists():
            self._logger.warning("Config file not found: %s. Using default configuration.", self._config_file)

        base = self._config_file.parent
        try:
            settings = BridgeSettings(**(data or {}))
        except ValidationError as ve:
            self._logger.warning("Invalid configuration schema. Using defaults. Details: %s", ve)
            settings = BridgeSettings()

        settings = self._apply_env_overrides(settings)
        settings.bridge_root = _resolve_relative(base, settings.bridge_root)
        if settings.logging.file is not None:
            settings.logging.file = _resolve_relative(base, settings.logging.file)

        self._logger.debug("Active config -> bridge_root: %s, content_root: %s", settings.bridge_root, settings.content_root)
        return settings

    def _apply_env_overrides(self, settings: BridgeSettings) -> BridgeSettings:
        bridge_root = os.getenv("ASSETS_BRIDGE_ROOT")
        content_root = os.getenv("ASSETS_BRIDGE_CONTENT_ROOT")
        log_level = os.getenv("LOG_LEVEL")
        log_file = os.getenv("LOG_FILE")

        update: Dict[str, Any] = {}
        if bridge_root:
            update["bridge_root"] = Path(bridge_root)
        if content_root:
            update["content_root"] = content_root
        if log_level or log_file:
            try:
                update["logging"] = LoggingConfig(
                    level=(log_level or settings.logging.level).upper(),
                    file=Path(log_file) if log_file else settings.logging.file,
                )
            except ValidationError:
                self._logger.warning("Invalid LOG_LEVEL: %s (ignored)", log_level)

        if update:
            self._logger.debug("Env overrides applied: %s", ", ".join(sorted(update)))
            return settings.model_copy(update=update)
        return settings

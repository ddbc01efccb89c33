"""Manifest codec and on-disk store.

The manifest is UTF-8 JSON: ``{"Operation": str, "Objects": [record, ...]}``.
Each direction of the bridge owns one file name so the two sides never
overwrite each other; a legacy single-file name is still accepted for reading.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from ..errors import DirectoryCreateError, ExportFailedError, MalformedManifestError, MissingFileError
from ..support.logging import get_logger
from .models import Manifest


log = get_logger(__name__)

FROM_BLENDER = "from-blender.json"
FROM_UNREAL = "from-unreal.json"
LEGACY_MANIFEST = "AssetBridge.json"


def encode(manifest: Manifest) -> str:
    """Serialize a manifest using the wire aliases; unset optional members are omitted."""
    data = manifest.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(data, indent=2, ensure_ascii=False)


def decode(text: Union[str, bytes], source: str = "<string>") -> Manifest:
    """Parse manifest text.

    Args:
        text: JSON document.
        source: Where the text came from; reported in errors.

    Returns:
        Manifest: Validated manifest. Unknown record kinds decode as Unknown.

    Raises:
        MalformedManifestError: Not JSON, root not an object, or invalid shape.
    """

    try:
        data: Any = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedManifestError(source, f"json error: {e}") from e
    if not isinstance(data, dict):
        raise MalformedManifestError(source, "invalid JSON root")
    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise MalformedManifestError(source, f"{e.error_count()} validation error(s)") from e


class ManifestStore:
    """Reads and writes manifests inside the bridge root directory."""

    def __init__(self, bridge_root: Union[str, Path], legacy_name: Optional[str] = LEGACY_MANIFEST) -> None:
        self.bridge_root = Path(bridge_root)
        self.legacy_name = legacy_name

    def path_for(self, file_name: str) -> Path:
        return self.bridge_root / file_name

    def locate(self, file_name: str) -> Path:
        """Return the manifest file to read, falling back to the legacy name.

        Raises:
            MissingFileError: Neither the primary nor the legacy file exists.
        """

        primary = self.path_for(file_name)
        if primary.is_file():
            return primary
        if self.legacy_name:
            legacy = self.path_for(self.legacy_name)
            if legacy.is_file():
                log.warning("Using legacy %s - consider updating the producer to write %s", self.legacy_name, file_name)
                return legacy
        raise MissingFileError(str(primary))

    def read(self, file_name: str) -> Manifest:
        path = self.locate(file_name)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise MissingFileError(str(path)) from e
        manifest = decode(text, source=str(path))
        log.info("Read %d objects from %s", len(manifest.objects), path)
        return manifest

    def read_optional(self, file_name: str) -> Optional[Manifest]:
        """Like read(), but a missing file yields None instead of an error."""
        try:
            return self.read(file_name)
        except MissingFileError:
            return None

    def write(self, manifest: Manifest, file_name: str) -> Path:
        try:
            self.bridge_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateError(str(self.bridge_root)) from e
        path = self.path_for(file_name)
        try:
            path.write_text(encode(manifest), encoding="utf-8")
        except OSError as e:
            raise ExportFailedError(f"failed to write file: '{path}'", path=str(path)) from e
        log.info("Exported %d objects to %s", len(manifest.objects), path)
        return path

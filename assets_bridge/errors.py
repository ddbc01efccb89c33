"""Error hierarchy for the bridge.

Core functions raise these; the public pipeline entry points convert them to
``OperationResult`` values via :func:`assets_bridge.support.results.operation`.
"""

from __future__ import annotations

from typing import Optional


class BridgeError(Exception):
    """Base class for every failure the bridge reports to its caller."""

    code = "bridge_error"

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class EmptySelectionError(BridgeError):
    code = "empty_selection"

    def __init__(self, message: str = "Please select at least one item in the level / content browser to export.") -> None:
        super().__init__(message)


class MalformedManifestError(BridgeError, ValueError):
    code = "malformed_manifest"

    def __init__(self, path: str, detail: str = "") -> None:
        msg = f"Invalid json detected for this operation on file: {path}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg, path=path)
        self.detail = detail


class MissingFileError(BridgeError):
    code = "missing_file"

    def __init__(self, path: str) -> None:
        super().__init__(f"failed to open file for reading: '{path}'", path=path)


class DirectoryCreateError(BridgeError):
    code = "directory_create_failed"

    def __init__(self, path: str) -> None:
        super().__init__(f"{path}. The destination directory could not be created.", path=path)


class ExportFailedError(BridgeError):
    code = "export_failed"


class ImportProducedNoObjectError(BridgeError):
    code = "import_produced_no_object"

    def __init__(self, source: str) -> None:
        super().__init__(f"Import of {source} did not produce a mesh object", path=source)


class DeleteFailedError(BridgeError):
    code = "delete_failed"

    def __init__(self, path: str) -> None:
        super().__init__(f"Could not delete asset: {path}", path=path)


class RelocateConflictError(BridgeError):
    code = "relocate_conflict"

    def __init__(self, path: str) -> None:
        super().__init__(f"Cannot relocate: existing asset at {path} could not be removed", path=path)


class SkeletonUnresolvableError(BridgeError):
    code = "skeleton_unresolvable"


class NoIntendedSkeletonError(SkeletonUnresolvableError):
    code = "no_intended_skeleton"

    def __init__(self) -> None:
        super().__init__("No intended skeleton recorded for this mesh")


class IntendedSkeletonUnresolvableError(SkeletonUnresolvableError):
    code = "intended_skeleton_unresolvable"

    def __init__(self, path: str) -> None:
        super().__init__(f"Failed to load target skeleton: {path}", path=path)


class SystemAssetCopyError(BridgeError):
    code = "system_asset_copy_failed"

    def __init__(self, source: str, target: str) -> None:
        super().__init__(f"Cannot duplicate: {source} to {target}, does it already exist?", path=source)

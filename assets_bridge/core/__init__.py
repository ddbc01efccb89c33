"""Bridge manifest model and reconciliation engine.

Only the host-independent pieces are re-exported here; the reconciliation
modules (collector, materials, skeleton, relocation, morphs) are imported
from their own modules since they depend on :mod:`assets_bridge.host`.
"""

from .models import (
    ExportRecord,
    Manifest,
    MaterialChangeset,
    MaterialSlot,
    MeshKind,
    SkeletonAnalysis,
    SkeletonState,
    Vector3,
    WorldTransform,
)
from .manifest import ManifestStore, decode, encode
from .paths import normalize_internal_path

__all__ = [
    "ExportRecord",
    "Manifest",
    "MaterialChangeset",
    "MaterialSlot",
    "MeshKind",
    "SkeletonAnalysis",
    "SkeletonState",
    "Vector3",
    "WorldTransform",
    "ManifestStore",
    "decode",
    "encode",
    "normalize_internal_path",
]

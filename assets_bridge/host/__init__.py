"""Host application collaborators consumed by the bridge core."""

from .interfaces import (
    AssetDescription,
    AssetHandle,
    AssetIntrospection,
    AssetType,
    Bone,
    BridgeHost,
    ContentLibrary,
    MeshExporter,
    MeshImporter,
    SelectionSource,
    WorldInstance,
    primary_mesh,
)

__all__ = [
    "AssetDescription",
    "AssetHandle",
    "AssetIntrospection",
    "AssetType",
    "Bone",
    "BridgeHost",
    "ContentLibrary",
    "MeshExporter",
    "MeshImporter",
    "SelectionSource",
    "WorldInstance",
    "primary_mesh",
]

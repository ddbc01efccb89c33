"""Narrow interfaces to the host application.

The reconciliation core never touches an engine object model directly; an
editor integration implements these classes and hands them to the pipelines
through :class:`BridgeHost`.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from ..core.models import MaterialSlot, MeshKind


class AssetType(str, enum.Enum):
    STATIC_MESH = "StaticMesh"
    SKELETAL_MESH = "SkeletalMesh"
    SKELETON = "Skeleton"
    PHYSICS_ASSET = "PhysicsAsset"
    MATERIAL = "Material"
    OTHER = "Other"

    @property
    def is_mesh(self) -> bool:
        return self in (AssetType.STATIC_MESH, AssetType.SKELETAL_MESH)

    @classmethod
    def for_kind(cls, kind: MeshKind) -> "AssetType":
        if kind is MeshKind.STATIC_MESH:
            return cls.STATIC_MESH
        if kind is MeshKind.SKELETAL_MESH:
            return cls.SKELETAL_MESH
        return cls.OTHER


@dataclass(frozen=True)
class AssetHandle:
    """Reference to an asset in the host's content library.

    Attributes:
        path: Package path without the object suffix (``/Game/Props/Crate``).
        asset_type: What the asset is.
    """

    path: str
    asset_type: AssetType = AssetType.OTHER

    @property
    def name(self) -> str:
        return self.path.rstrip("/").rsplit("/", 1)[-1]

    @property
    def folder(self) -> str:
        head = self.path.rstrip("/").rsplit("/", 1)[0]
        return head or "/"

    @property
    def kind(self) -> MeshKind:
        if self.asset_type is AssetType.STATIC_MESH:
            return MeshKind.STATIC_MESH
        if self.asset_type is AssetType.SKELETAL_MESH:
            return MeshKind.SKELETAL_MESH
        return MeshKind.UNKNOWN


@dataclass(frozen=True)
class Bone:
    name: str
    parent: Optional[str] = None


@dataclass
class WorldInstance:
    """A placed instance of a library object in the host's world/scene.

    ``rotation`` is whatever the host exposes: a quaternion ``(x, y, z, w)`` or
    Euler angles ``(roll, pitch, yaw)`` in degrees.
    """

    name: str
    asset: Any
    location: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: Tuple[float, ...] = (0.0, 0.0, 0.0, 1.0)
    scale: Tuple[float, float, float] = (1.0, 1.0, 1.0)


@dataclass
class AssetDescription:
    """What introspection reports about a library object."""

    handle: AssetHandle
    kind: MeshKind
    object_path: str
    materials: List[MaterialSlot] = field(default_factory=list)
    skeleton_path: Optional[str] = None
    morph_target_names: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.handle.name

    @property
    def folder(self) -> str:
        return self.handle.folder


class AssetIntrospection(ABC):
    @abstractmethod
    def resolve(self, obj: Any) -> Any:
        """Return the canonical library object behind ``obj`` (an instance or a library item)."""

    @abstractmethod
    def describe(self, obj: Any) -> AssetDescription: ...


class MeshImporter(ABC):
    @abstractmethod
    def import_mesh(self, source_file: str, destination_path: str, kind: MeshKind, skeleton_path: Optional[str] = None) -> List[AssetHandle]:
        """Import a geometry file; returns every object the import produced."""


class MeshExporter(ABC):
    @abstractmethod
    def export_mesh(self, handle: AssetHandle, destination_file: str) -> bool: ...


class SelectionSource(ABC):
    @abstractmethod
    def world_selection(self) -> List[WorldInstance]: ...

    @abstractmethod
    def library_selection(self) -> List[Any]: ...


class ContentLibrary(ABC):
    """Asset operations on the host's content library."""

    @abstractmethod
    def exists(self, path: str) -> bool: ...

    @abstractmethod
    def load(self, path: str) -> Optional[AssetHandle]: ...

    @abstractmethod
    def delete(self, handle: AssetHandle) -> bool: ...

    @abstractmethod
    def move(self, handle: AssetHandle, destination_path: str) -> Optional[AssetHandle]: ...

    @abstractmethod
    def duplicate(self, handle: AssetHandle, destination_path: str) -> Optional[AssetHandle]:
        """Copy ``handle`` to ``destination_path``; None when the copy could not be made."""

    @abstractmethod
    def close_editors(self, handle: AssetHandle) -> None: ...

    @abstractmethod
    def list_assets(self, folder: str) -> List[AssetHandle]:
        """Assets directly inside ``folder`` (not recursive)."""

    @abstractmethod
    def list_subfolders(self, folder: str) -> List[str]:
        """Full paths of the folders directly inside ``folder``."""

    @abstractmethod
    def delete_folder(self, folder: str) -> bool: ...

    @abstractmethod
    def material_count(self, mesh: AssetHandle) -> int: ...

    @abstractmethod
    def set_material(self, mesh: AssetHandle, index: int, material: AssetHandle) -> None: ...

    @abstractmethod
    def skeleton_of(self, mesh: AssetHandle) -> Optional[AssetHandle]: ...

    @abstractmethod
    def physics_asset_of(self, mesh: AssetHandle) -> Optional[AssetHandle]: ...

    @abstractmethod
    def set_skeleton(self, mesh: AssetHandle, skeleton: AssetHandle) -> None: ...

    @abstractmethod
    def clear_physics_asset(self, mesh: AssetHandle) -> None: ...

    @abstractmethod
    def bones_of(self, handle: AssetHandle) -> List[Bone]:
        """Reference-skeleton bones of a skeletal mesh, or the bones of a skeleton."""

    @abstractmethod
    def add_bone(self, skeleton: AssetHandle, bone: Bone) -> bool: ...

    @abstractmethod
    def morph_target_names(self, mesh: AssetHandle) -> List[str]: ...

    @abstractmethod
    def rename_morph_target(self, mesh: AssetHandle, old_name: str, new_name: str) -> None: ...

    @abstractmethod
    def mark_dirty(self, handle: AssetHandle) -> None: ...


@dataclass
class BridgeHost:
    """Bundle of every host collaborator the pipelines consume."""

    introspection: AssetIntrospection
    importer: MeshImporter
    exporter: MeshExporter
    selection: SelectionSource
    library: ContentLibrary


def primary_mesh(handles: Sequence[AssetHandle]) -> Optional[AssetHandle]:
    """Pick the main object of an import, preferring meshes over skeleton/physics helpers."""
    for handle in handles:
        if handle.asset_type.is_mesh:
            return handle
    for handle in handles:
        if handle.asset_type not in (AssetType.SKELETON, AssetType.PHYSICS_ASSET):
            return handle
    return None

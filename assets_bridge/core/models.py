"""Manifest data model shared by both directions of the bridge.

Attribute names are snake_case; the manifest wire format uses the PascalCase
aliases the engine-side plugin has always written (``ObjectID``,
``StringType``, ``ObjectMaterials`` ...). Both spellings are accepted on input.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MeshKind(str, enum.Enum):
    """Kind of exchanged object."""

    STATIC_MESH = "StaticMesh"
    SKELETAL_MESH = "SkeletalMesh"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Any) -> "MeshKind":
        """Map a wire tag to a kind; unrecognized tags become UNKNOWN."""
        if isinstance(value, cls):
            return value
        for kind in cls:
            if isinstance(value, str) and value.lower() == kind.value.lower():
                return kind
        return cls.UNKNOWN


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Vector3(_WireModel):
    x: float = Field(default=0.0, alias="X")
    y: float = Field(default=0.0, alias="Y")
    z: float = Field(default=0.0, alias="Z")

    @classmethod
    def of(cls, values: Tuple[float, float, float]) -> "Vector3":
        x, y, z = values
        return cls(x=float(x), y=float(y), z=float(z))

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


class MaterialSlot(_WireModel):
    """A named, indexed material assignment on a mesh.

    Attributes:
        index: Slot index on the mesh; the authoritative ordering.
        name: Human label of the slot, not used for identity.
        material_path: Content path of the assigned material (may be empty).
        original_index: Index the slot had before it was removed; only set on
            slots reported as removed in a changeset.
    """

    index: int = Field(alias="Idx")
    name: str = Field(default="", alias="Name")
    material_path: str = Field(default="", alias="InternalPath")
    original_index: Optional[int] = Field(default=None, alias="OriginalIdx")

    @property
    def key(self) -> Tuple[int, str]:
        return (self.index, self.name)


class MaterialChangeset(_WireModel):
    added: List[MaterialSlot] = Field(default_factory=list, alias="Added")
    removed: List[MaterialSlot] = Field(default_factory=list, alias="Removed")
    unchanged: List[MaterialSlot] = Field(default_factory=list, alias="Unchanged")

    @field_validator("added", "removed", "unchanged", mode="before")
    @classmethod
    def _none_slots(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.unchanged)


class WorldTransform(_WireModel):
    """Placement of a world instance; rotation is (roll, pitch, yaw) in degrees."""

    location: Vector3 = Field(default_factory=Vector3, alias="Location")
    rotation_euler: Vector3 = Field(default_factory=Vector3, alias="Rotation")
    scale: Vector3 = Field(default_factory=lambda: Vector3(x=1.0, y=1.0, z=1.0), alias="Scale")


class ExportRecord(_WireModel):
    """One exchanged object and the metadata travelling with it."""

    identity: str = Field(default="", alias="ObjectID")
    display_name: str = Field(default="", alias="ShortName")
    kind: MeshKind = Field(default=MeshKind.UNKNOWN, alias="StringType")
    source_reference: str = Field(default="", alias="Model")
    internal_path: str = Field(default="", alias="InternalPath")
    file_location: str = Field(default="", alias="ExportLocation")
    skeleton_reference: Optional[str] = Field(default=None, alias="Skeleton")
    morph_target_names: List[str] = Field(default_factory=list, alias="MorphTargets")
    materials: List[MaterialSlot] = Field(default_factory=list, alias="ObjectMaterials")
    material_changeset: Optional[MaterialChangeset] = Field(default=None, alias="MaterialChangeset")
    world_transform: Optional[WorldTransform] = Field(default=None, alias="WorldData")

    @field_validator("kind", mode="before")
    @classmethod
    def _tolerant_kind(cls, value: Any) -> MeshKind:
        return MeshKind.parse(value)

    @field_validator("morph_target_names", "materials", mode="before")
    @classmethod
    def _none_lists(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("materials")
    @classmethod
    def _unique_slot_indices(cls, slots: List[MaterialSlot]) -> List[MaterialSlot]:
        seen = set()
        for slot in slots:
            if slot.index in seen:
                raise ValueError(f"duplicate material slot index {slot.index}")
            seen.add(slot.index)
        return slots

    @property
    def is_skeletal(self) -> bool:
        return self.kind is MeshKind.SKELETAL_MESH


class Manifest(_WireModel):
    """The document listing every object transferred in one direction."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    operation: str = Field(default="", alias="Operation")
    objects: List[ExportRecord] = Field(default_factory=list, alias="Objects")

    @field_validator("operation", mode="before")
    @classmethod
    def _none_operation(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("objects", mode="before")
    @classmethod
    def _none_objects(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("objects")
    @classmethod
    def _unique_identities(cls, records: List[ExportRecord]) -> List[ExportRecord]:
        seen = set()
        for record in records:
            if not record.identity:
                continue
            if record.identity in seen:
                raise ValueError(f"duplicate object identity {record.identity!r}")
            seen.add(record.identity)
        return records

    def find(self, identity: str) -> Optional[ExportRecord]:
        for record in self.objects:
            if record.identity == identity:
                return record
        return None


class SkeletonState(str, enum.Enum):
    IMPORTED = "Imported"
    ANALYZED = "Analyzed"
    NO_CONFLICT = "NoConflict"
    CONFLICT_DETECTED = "ConflictDetected"
    RETARGET_REQUESTED = "RetargetRequested"
    RETARGETED = "Retargeted"
    ASSETS_PRESERVED = "AssetsPreserved"
    ASSETS_DELETED = "AssetsDeleted"


@dataclass
class SkeletonAnalysis:
    """Post-import skeleton inspection; lives only between import and retarget."""

    imported_mesh: Any
    intended_skeleton_path: str = ""
    generated_skeleton_path: str = ""
    generated_physics_asset_path: str = ""
    new_skeleton_generated: bool = False
    new_physics_asset_generated: bool = False
    state: SkeletonState = SkeletonState.ANALYZED

    @property
    def needs_retarget(self) -> bool:
        return self.state is SkeletonState.CONFLICT_DETECTED and self.new_skeleton_generated

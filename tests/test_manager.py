"""End-to-end export and import passes against the in-memory host."""

import json
from pathlib import Path

import pytest

from conftest import FakeMesh, ImportPlan

from assets_bridge.core.manifest import encode
from assets_bridge.core.models import ExportRecord, Manifest, MaterialChangeset, MeshKind
from assets_bridge.host.interfaces import AssetType, Bone, WorldInstance
from assets_bridge.manager import BridgeManager


def _write_import_manifest(settings, *records: ExportRecord) -> Path:
    settings.bridge_root.mkdir(parents=True, exist_ok=True)
    path = settings.bridge_root / settings.manifests.import_name
    path.write_text(encode(Manifest(operation="BlenderExport", objects=list(records))), encoding="utf-8")
    return path


@pytest.fixture
def manager(settings, host) -> BridgeManager:
    return BridgeManager(settings, host)


class TestStartExport:
    def test_writes_manifest_and_geometry(self, manager, host, settings, slot) -> None:
        crate = FakeMesh("/Game/Props/Crate", materials=[slot(0, "Wood", "/Game/M/Wood")])
        host.selection.world = [WorldInstance(name="Crate_1", asset=crate, location=(1.0, 2.0, 3.0))]
        host.selection.library = [FakeMesh("/Game/Props/Barrel")]

        result = manager.start_export()

        assert result.success, result.message
        assert result.message == "Operation was successful"
        manifest_path = settings.bridge_root / "from-unreal.json"
        assert result.data == manifest_path
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
        assert data["Operation"] == "UnrealExport"
        assert [o["ObjectID"] for o in data["Objects"]] == ["Crate_1", "/Game/Props/Barrel"]
        assert data["Objects"][0]["WorldData"]["Location"] == {"X": 1.0, "Y": 2.0, "Z": 3.0}
        assert (settings.bridge_root / "Props" / "Crate.glb").exists()

    def test_empty_selection(self, manager) -> None:
        result = manager.start_export([], [])
        assert not result
        assert result.code == "empty_selection"
        assert "select at least one item" in result.message

    def test_failed_exports_left_out(self, manager, host, settings) -> None:
        host.exporter.fail.add("Barrel")

        result = manager.start_export([], [FakeMesh("/Game/Props/Crate"), FakeMesh("/Game/Props/Barrel")])

        assert result.success
        assert "1 failed" in result.message
        data = json.loads((settings.bridge_root / "from-unreal.json").read_text(encoding="utf-8"))
        assert [o["ShortName"] for o in data["Objects"]] == ["Crate"]

    def test_nothing_exported_is_an_error(self, manager, host, settings) -> None:
        host.exporter.fail.add("Crate")
        result = manager.start_export([], [FakeMesh("/Game/Props/Crate")])
        assert not result.success
        assert not (settings.bridge_root / "from-unreal.json").exists()

    def test_directory_create_failure_aborts(self, manager, host, settings) -> None:
        settings.bridge_root.mkdir(parents=True)
        # a file where the Props directory should go
        (settings.bridge_root / "Props").write_text("x", encoding="utf-8")

        result = manager.start_export([], [FakeMesh("/Game/Props/Crate")])

        assert result.code == "directory_create_failed"
        assert host.exporter.calls == []

    def test_captures_changeset_from_previous_manifest(self, manager, settings, slot) -> None:
        hero = FakeMesh("/Game/Chars/Hero", materials=[slot(0, "Skin", "/Game/M/SkinV2"), slot(1, "Teeth")])
        _write_import_manifest(
            settings,
            ExportRecord(identity="/Game/Chars/Hero", materials=[slot(0, "Skin", "/M/Skin"), slot(1, "Eyes")]),
        )

        assert manager.start_export([], [hero])

        data = json.loads((settings.bridge_root / "from-unreal.json").read_text(encoding="utf-8"))
        cs = data["Objects"][0]["MaterialChangeset"]
        assert [s["Name"] for s in cs["Unchanged"]] == ["Skin"]
        assert [s["Name"] for s in cs["Added"]] == ["Teeth"]
        assert [s["OriginalIdx"] for s in cs["Removed"]] == [1]

    def test_malformed_previous_manifest_ignored(self, manager, settings) -> None:
        settings.bridge_root.mkdir(parents=True)
        (settings.bridge_root / "from-blender.json").write_text("{nope", encoding="utf-8")
        assert manager.start_export([], [FakeMesh("/Game/Props/Crate")]).success

    def test_unexpected_errors_become_results(self, manager, introspection) -> None:
        introspection.broken.add("/Game/Props/Bad")
        result = manager.start_export([], [FakeMesh("/Game/Props/Bad")])
        assert not result.success
        assert result.code == "unexpected"


class TestGenerateImport:
    def test_missing_manifest(self, manager) -> None:
        result = manager.generate_import()
        assert result.code == "missing_file"

    def test_malformed_manifest(self, manager, settings) -> None:
        settings.bridge_root.mkdir(parents=True)
        (settings.bridge_root / "from-blender.json").write_text("[]", encoding="utf-8")
        result = manager.generate_import()
        assert result.code == "malformed_manifest"

    def test_static_mesh_round_trip(self, manager, host, library, settings, slot) -> None:
        library.add("/Game/M/Wood", AssetType.MATERIAL)
        host.importer.plans["Crate.glb"] = ImportPlan(slots=1)
        _write_import_manifest(
            settings,
            ExportRecord(
                identity="Crate_1",
                display_name="Crate.001",
                kind=MeshKind.STATIC_MESH,
                source_reference="/Game/Props/Crate.Crate",
                internal_path="/Game/Props/Props",
                file_location=str(settings.bridge_root / "Props" / "Crate.glb"),
                material_changeset=MaterialChangeset(unchanged=[slot(0, "Wood", "/M/Wood")]),
            ),
        )

        result = manager.generate_import()

        assert result.success, result.message
        assert [h.path for h in result.data] == ["/Game/Props/Crate"]
        source, destination, kind, skeleton = host.importer.calls[0]
        assert destination == "/Game/Props/Crate"
        assert kind is MeshKind.STATIC_MESH
        assert library.materials["/Game/Props/Crate"] == ["/Game/M/Wood"]

    def test_existing_asset_editors_closed(self, manager, host, library, settings) -> None:
        library.add_mesh("/Game/Props/Crate")
        _write_import_manifest(
            settings,
            ExportRecord(display_name="Crate", source_reference="/Game/Props/Crate.Crate", internal_path="/Props", file_location="Crate.glb"),
        )
        assert manager.generate_import().success
        assert library.closed == ["/Game/Props/Crate"]

    def test_relocates_when_importer_lands_elsewhere(self, manager, host, library, settings) -> None:
        host.importer.plans["Crate.glb"] = ImportPlan(land_at="/Game/Props/Crate/StaticMeshes/Crate")
        _write_import_manifest(
            settings,
            ExportRecord(display_name="Crate", kind=MeshKind.STATIC_MESH, internal_path="/Props", file_location="Crate.glb"),
        )

        result = manager.generate_import()

        assert result.data[0].path == "/Game/Props/Crate"
        assert "/Game/Props/Crate/StaticMeshes" in library.deleted_folders

    def test_skeletal_mesh_retargeted_and_morphs_restored(self, manager, host, library, settings) -> None:
        intended = library.add("/Game/Shared/Mannequin_Skeleton", AssetType.SKELETON)
        library.bones[intended.path] = [Bone("root")]
        host.importer.plans["Hero.glb"] = ImportPlan(
            morphs=["Key 1", "Key 2"],
            bones=[Bone("root"), Bone("spine", "root")],
            generate_skeleton=True,
        )
        _write_import_manifest(
            settings,
            ExportRecord(
                display_name="Hero",
                kind=MeshKind.SKELETAL_MESH,
                source_reference="/Game/Chars/Hero.Hero",
                internal_path="/Chars",
                file_location="Hero.glb",
                skeleton_reference="/Game/Shared/Mannequin_Skeleton.Mannequin_Skeleton",
                morph_target_names=["Smile", "Blink"],
            ),
        )

        result = manager.generate_import()

        assert result.success, result.message
        mesh = "/Game/Chars/Hero"
        assert library.morphs[mesh] == ["Smile", "Blink"]
        assert library.skeletons[mesh] == intended.path
        assert [b.name for b in library.bones[intended.path]] == ["root", "spine"]
        # generated assets are kept unless configured otherwise
        assert "/Game/Chars/Hero_Skeleton" in library.assets

    def test_retarget_declined_by_callback(self, settings, host, library) -> None:
        library.add("/Game/Shared/Mannequin_Skeleton", AssetType.SKELETON)
        host.importer.plans["Hero.glb"] = ImportPlan(generate_skeleton=True)
        _write_import_manifest(
            settings,
            ExportRecord(
                display_name="Hero",
                kind=MeshKind.SKELETAL_MESH,
                internal_path="/Chars",
                file_location="Hero.glb",
                skeleton_reference="/Game/Shared/Mannequin_Skeleton",
            ),
        )
        seen = []
        manager = BridgeManager(settings, host, confirm_retarget=lambda analysis: seen.append(analysis) or False)

        assert manager.generate_import().success
        assert seen[0].generated_skeleton_path == "/Game/Chars/Hero_Skeleton"
        assert library.skeletons["/Game/Chars/Hero"] == "/Game/Chars/Hero_Skeleton"

    def test_delete_generated_assets_setting(self, settings, host, library) -> None:
        settings.delete_generated_assets = True
        library.add("/Game/Shared/Mannequin_Skeleton", AssetType.SKELETON)
        host.importer.plans["Hero.glb"] = ImportPlan(generate_skeleton=True)
        _write_import_manifest(
            settings,
            ExportRecord(
                display_name="Hero",
                kind=MeshKind.SKELETAL_MESH,
                internal_path="/Chars",
                file_location="Hero.glb",
                skeleton_reference="/Game/Shared/Mannequin_Skeleton",
            ),
        )

        assert BridgeManager(settings, host).generate_import().success
        assert "/Game/Chars/Hero_Skeleton" not in library.assets
        assert "/Game/Chars/Hero_PhysicsAsset" not in library.assets

    def test_import_produced_nothing_stops_pass(self, manager, host, settings) -> None:
        host.importer.plans["A.glb"] = ImportPlan(produce_nothing=True)
        _write_import_manifest(
            settings,
            ExportRecord(display_name="A", internal_path="/Props", file_location="A.glb"),
            ExportRecord(display_name="B", internal_path="/Props", file_location="B.glb"),
        )

        result = manager.generate_import()

        assert result.code == "import_produced_no_object"
        assert [c[0] for c in host.importer.calls] == ["A.glb"]

    def test_relocate_conflict_stops_pass(self, manager, host, library, settings) -> None:
        library.add_mesh("/Game/Props/A")
        library.fail_delete.add("/Game/Props/A")
        host.importer.plans["A.glb"] = ImportPlan(land_at="/Game/Import/A")
        _write_import_manifest(
            settings,
            ExportRecord(display_name="A", internal_path="/Props", file_location="A.glb"),
            ExportRecord(display_name="B", internal_path="/Props", file_location="B.glb"),
        )

        result = manager.generate_import()

        assert result.code == "relocate_conflict"
        assert len(host.importer.calls) == 1

    def test_legacy_manifest_is_read(self, manager, host, settings) -> None:
        settings.bridge_root.mkdir(parents=True)
        (settings.bridge_root / "AssetBridge.json").write_text(
            encode(Manifest(operation="BlenderExport", objects=[ExportRecord(display_name="A", file_location="A.glb")])),
            encoding="utf-8",
        )
        result = manager.generate_import()
        assert result.success
        assert result.data[0].path == "/Game/A"

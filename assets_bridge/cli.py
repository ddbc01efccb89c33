from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from .config_manager import ConfigManager
from .core.manifest import ManifestStore, decode
from .core.materials import diff
from .core.models import Manifest
from .core.paths import normalize_internal_path
from .errors import BridgeError, MissingFileError
from .support.logging import configure


def _read_manifest(path: str) -> Manifest:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise MissingFileError(path) from e
    return decode(text, source=path)


def _cmd_inspect(args: argparse.Namespace, config: ConfigManager) -> int:
    settings = config.get()
    store = ManifestStore(settings.bridge_root, settings.manifests.legacy_name)
    manifest = store.read(args.file or settings.manifests.import_name)
    print(f"Operation: {manifest.operation or '-'}")
    print(f"Objects:   {len(manifest.objects)}")
    for record in manifest.objects:
        line = f"  [{record.kind.value}] {record.identity} -> {record.internal_path or '/'} ({len(record.materials)} material slot(s))"
        if record.world_transform is not None:
            line += " +world"
        print(line)
    return 0


def _cmd_validate(args: argparse.Namespace, config: ConfigManager) -> int:
    manifest = _read_manifest(args.path)
    print(f"OK: {len(manifest.objects)} object(s), operation {manifest.operation or '-'}")
    return 0


def _cmd_diff(args: argparse.Namespace, config: ConfigManager) -> int:
    previous = _read_manifest(args.previous)
    current = _read_manifest(args.current)
    out: Dict[str, object] = {}
    for record in current.objects:
        before = previous.find(record.identity)
        if before is None:
            continue
        out[record.identity] = diff(before.materials, record.materials).model_dump(mode="json", by_alias=True, exclude_none=True)
    print(json.dumps(out, indent=2))
    return 0


def _cmd_normalize(args: argparse.Namespace, config: ConfigManager) -> int:
    for raw in args.paths:
        print(normalize_internal_path(raw))
    return 0


def _cmd_config(args: argparse.Namespace, config: ConfigManager) -> int:
    if args.config_command == "set-root":
        settings = config.set_bridge_root(args.path)
        print(f"Bridge root: {settings.bridge_root}")
        return 0
    settings = config.get()
    print(f"# {config.get_config_file()}")
    print(yaml.safe_dump(settings.model_dump(mode="json"), sort_keys=False), end="")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="assets-bridge", description="Inspect and maintain assets bridge manifests")
    ap.add_argument("--config", dest="config_file", default=None, help="Path to settings YAML (overrides ASSETS_BRIDGE_CONFIG)")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("inspect", help="Summarize a manifest in the bridge root")
    p.add_argument("--file", default=None, help="Manifest file name (defaults to the import manifest)")
    p.set_defaults(func=_cmd_inspect)

    p = sub.add_parser("validate", help="Check that a manifest file decodes")
    p.add_argument("path")
    p.set_defaults(func=_cmd_validate)

    p = sub.add_parser("diff", help="Material changesets between two manifests, as JSON")
    p.add_argument("previous")
    p.add_argument("current")
    p.set_defaults(func=_cmd_diff)

    p = sub.add_parser("normalize", help="Print normalized internal paths")
    p.add_argument("paths", nargs="+")
    p.set_defaults(func=_cmd_normalize)

    p = sub.add_parser("config", help="Show or change settings")
    csub = p.add_subparsers(dest="config_command")
    csub.add_parser("show", help="Print the active settings")
    setroot = csub.add_parser("set-root", help="Persist a new bridge root")
    setroot.add_argument("path")
    p.set_defaults(func=_cmd_config)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = ConfigManager(args.config_file)
    settings = config.get()
    configure(settings.logging.level, settings.logging.file)
    try:
        return int(args.func(args, config) or 0)
    except BridgeError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

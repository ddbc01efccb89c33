"""Logical content-path helpers.

Content paths are engine-style logical paths (``/Game/Characters/Hero``),
never filesystem paths; only :func:`export_file_location` produces a path on
disk.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from ..support.logging import get_logger


log = get_logger(__name__)

SEPARATOR = "/"
DEFAULT_CONTENT_ROOTS = ("/Game", "/Content")
DEFAULT_VIRTUAL_ROOTS = ("/All",)

_INVALID_PACKAGE_CHARS = re.compile(r"[\\:*?\"<>|' ,.&!~@#$%^+=;\[\]{}()]")


def _segments(path: str) -> List[str]:
    return [s for s in path.replace("\\", SEPARATOR).split(SEPARATOR) if s]


def _strip_root(segments: List[str], roots: Iterable[str]) -> List[str]:
    names = {r.strip(SEPARATOR).casefold() for r in roots if r.strip(SEPARATOR)}
    if segments and segments[0].casefold() in names:
        return segments[1:]
    return segments


def normalize_internal_path(
    path: Optional[str],
    content_roots: Sequence[str] = DEFAULT_CONTENT_ROOTS,
    virtual_roots: Sequence[str] = DEFAULT_VIRTUAL_ROOTS,
) -> str:
    """Canonicalize a producer-relative folder path.

    Strips the virtual browsing root and a redundant content root, ensures a
    single leading separator and collapses a *leading* doubled segment
    (``/Assets/Assets/Hero`` -> ``/Assets/Hero``). Deeper repeats are kept,
    they may be legitimate folder names.

    Args:
        path: Folder path as written by the producer; may be empty or None.
        content_roots: Content-root prefixes to drop when redundantly included.
        virtual_roots: Browsing-only prefixes that are not real folders.

    Returns:
        str: Canonical path, ``/`` for empty input.
    """

    segments = _segments(path or "")
    roots = tuple(virtual_roots) + tuple(content_roots)
    stripped = _strip_root(segments, roots)
    while stripped is not segments:
        segments = stripped
        stripped = _strip_root(segments, roots)

    if len(segments) >= 2 and segments[0] == segments[1]:
        # Only the leading run collapses; /A/A/A/B becomes /A/B so a second pass is a no-op
        head = segments[0]
        while len(segments) >= 2 and segments[1] == head:
            segments = segments[1:]
        log.warning("Fixed doubled path segment in %r, normalized to /%s", path, SEPARATOR.join(segments))
    return SEPARATOR + SEPARATOR.join(segments)


def join_content_path(*parts: str) -> str:
    segments: List[str] = []
    for part in parts:
        segments.extend(_segments(part or ""))
    return SEPARATOR + SEPARATOR.join(segments)


def strip_object_suffix(path: str) -> str:
    """Drop the ``.ObjectName`` suffix of an object path (``/Game/M/Skin.Skin`` -> ``/Game/M/Skin``)."""
    head, sep, tail = path.rpartition(SEPARATOR)
    if "." in tail:
        tail = tail.split(".", 1)[0]
    return f"{head}{sep}{tail}"


def object_name_from_reference(reference: Optional[str], fallback: str) -> str:
    """Recover the original asset name from a producer object reference.

    Accepts both ``/Game/Path/Hero.Hero`` and class-qualified references such
    as ``/Script/Engine.SkeletalMesh'/Game/Path/Hero.Hero'``.
    """

    if not reference:
        return fallback
    ref = reference.strip().rstrip("'\"")
    last_slash = ref.rfind(SEPARATOR)
    if last_slash == -1:
        return fallback
    first_dot = ref.find(".", last_slash)
    if first_dot == -1:
        return fallback
    name = ref[last_slash + 1:first_dot]
    if not name:
        return fallback
    log.debug("Extracted original name %r from reference %r", name, reference)
    return name


def sanitize_package_name(path: str) -> str:
    return _INVALID_PACKAGE_CHARS.sub("_", path)


def package_path(content_root: str, internal_path: str, name: str) -> str:
    """Destination package for an imported object: ``<root><normalized path>/<name>``."""
    normalized = normalize_internal_path(internal_path, content_roots=(content_root,) + DEFAULT_CONTENT_ROOTS)
    return sanitize_package_name(join_content_path(content_root, normalized, name))


def relative_content_path(folder: str, content_root: str) -> str:
    """Folder path with the content root removed (``/Game/Props`` -> ``/Props``)."""
    segments = _strip_root(_segments(folder), (content_root,))
    return SEPARATOR + SEPARATOR.join(segments) if segments else ""


def export_file_location(bridge_root: Union[str, Path], internal_path: str, display_name: str, extension: str = ".glb") -> Path:
    """Filesystem location of a record's geometry file inside the bridge root."""
    ext = extension if extension.startswith(".") else f".{extension}"
    return Path(bridge_root).joinpath(*_segments(internal_path), f"{display_name}{ext}")


def qualify_material_path(path: str, content_root: str = "/Game", engine_root: str = "/Engine") -> str:
    if not path:
        return path
    if is_under(path, content_root) or is_under(path, engine_root):
        return path
    return join_content_path(content_root, path)


def parent_folder(path: str) -> str:
    segments = _segments(strip_object_suffix(path))
    return SEPARATOR + SEPARATOR.join(segments[:-1]) if len(segments) > 1 else SEPARATOR


def asset_name(path: str) -> str:
    segments = _segments(strip_object_suffix(path))
    return segments[-1] if segments else ""


def is_under(path: str, folder: str) -> bool:
    """True when ``path`` is ``folder`` itself or nested below it (segment-wise)."""
    p = _segments(path)
    f = _segments(folder)
    return len(p) >= len(f) and p[: len(f)] == f


def same_asset(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two object/package paths ignoring the ``.ObjectName`` suffix."""
    if not a or not b:
        return False
    return _segments(strip_object_suffix(a)) == _segments(strip_object_suffix(b))


def is_system_path(path: str, engine_root: str = "/Engine") -> bool:
    """True for engine-owned content, which cannot be overwritten by an import."""
    return bool(path) and is_under(strip_object_suffix(path), engine_root)


def system_copy_path(path: str, content_root: str = "/Game") -> str:
    """Where an engine asset is copied to before export (``/Engine/X/Cube`` -> ``/Game/Engine/X/Cube``)."""
    return join_content_path(content_root, strip_object_suffix(path))

from __future__ import annotations

from typing import List, Sequence, Tuple

from ..host.interfaces import AssetHandle, ContentLibrary
from ..support.logging import get_logger


log = get_logger(__name__)


def _placeholder(index: int, taken: set) -> str:
    name = f"__morph_{index}"
    while name in taken:
        name += "_"
    return name


def restore_morph_target_names(mesh: AssetHandle, names: Sequence[str], library: ContentLibrary) -> List[Tuple[str, str]]:
    """Rename the mesh's morph targets, by position, to the names recorded at export.

    Geometry formats tend to lose morph target names on the way through the
    DCC. Only the first ``min(len(names), len(current))`` targets are
    considered; targets that already carry the right name are left alone.

    When a new name is still held by another target (a reordered set of
    names, say), the changing targets are first moved to placeholder names so
    no rename ever lands on a name in use.

    Returns:
        List[Tuple[str, str]]: ``(old, new)`` pairs for every rename applied.
    """

    if not names:
        return []
    current = library.morph_target_names(mesh)
    if len(current) != len(names):
        log.warning("Mesh %s has %d morph target(s), manifest records %d", mesh.path, len(current), len(names))

    changes = [(i, old, new) for i, (old, new) in enumerate(zip(current, names)) if new and old != new]
    while True:
        changing = {i for i, _, _ in changes}
        kept = {name for i, name in enumerate(current) if i not in changing}
        blocked = [c for c in changes if c[2] in kept]
        if not blocked:
            break
        for _, old, new in blocked:
            log.warning("Cannot rename morph target %s on %s: %s is held by another target", old, mesh.path, new)
        changes = [c for c in changes if c[2] not in kept]
    if not changes:
        return []

    held = set(current)
    staged = {i: old for i, old, _ in changes}
    if any(new in held for _, _, new in changes):
        taken = held | set(names)
        for i, old, _ in changes:
            temp = _placeholder(i, taken)
            taken.add(temp)
            library.rename_morph_target(mesh, old, temp)
            staged[i] = temp

    renamed: List[Tuple[str, str]] = []
    for i, old, new in changes:
        library.rename_morph_target(mesh, staged[i], new)
        renamed.append((old, new))
        log.debug("Renamed morph target %s -> %s", old, new)

    library.mark_dirty(mesh)
    log.info("Restored %d morph target name(s) on %s", len(renamed), mesh.path)
    return renamed

"""Assets bridge: round-trip mesh assets between a game engine and a DCC tool.

Two JSON manifests in a shared bridge directory describe what each side
exported; the reconciliation core restores what the geometry files cannot
carry (material assignments, skeleton bindings, morph target names, content
paths) when the other side re-imports.
"""

from .errors import BridgeError
from .core import ExportRecord, Manifest, ManifestStore, MaterialSlot, MeshKind, decode, encode
from .host import BridgeHost
from .config_manager import BridgeSettings, ConfigManager
from .manager import BridgeManager
from .support import OperationResult

__all__ = [
    "BridgeError",
    "ExportRecord",
    "Manifest",
    "ManifestStore",
    "MaterialSlot",
    "MeshKind",
    "decode",
    "encode",
    "BridgeHost",
    "BridgeSettings",
    "ConfigManager",
    "BridgeManager",
    "OperationResult",
]

__version__ = "0.3.0"

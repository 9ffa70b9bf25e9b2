from .config import ServeConfig
from .decompiler import DEFAULT_ENCODE_KEY, Decompiler, DecompilerError, LifterDecompiler
from .server import create_app

__all__ = [
    "DEFAULT_ENCODE_KEY",
    "Decompiler",
    "DecompilerError",
    "LifterDecompiler",
    "ServeConfig",
    "create_app",
]

import logging
import os
import subprocess
import tempfile
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_ENCODE_KEY = 203


class DecompilerError(Exception):
    pass


class Decompiler(Protocol):
    def decompile(self, payload: bytes, encode_key: int, legacy: bool) -> str:
        ...


class LifterDecompiler:
    """Runs the external lifter executables on a temporary copy of the bytecode.

    Luau bytecode goes to ``luau_lifter`` together with the encode key, Lua 5.1
    bytecode goes to ``lua51_lifter`` as is.
    """

    def __init__(self, luau_lifter, lua51_lifter, timeout=None):
        self.luau_lifter = luau_lifter
        self.lua51_lifter = lua51_lifter
        self.timeout = timeout

    def command(self, path, encode_key, legacy):
        if legacy:
            return [self.lua51_lifter, path]
        return [self.luau_lifter, path, "--encode-key", str(encode_key)]

    def decompile(self, payload: bytes, encode_key: int, legacy: bool) -> str:
        temp_file = tempfile.NamedTemporaryFile(delete=False, mode="wb", suffix=".bin")
        path = temp_file.name
        try:
            with temp_file:
                temp_file.write(payload)

            args = self.command(path, encode_key, legacy)
            try:
                result = subprocess.run(
                    args,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    timeout=self.timeout,
                )
            except FileNotFoundError:
                raise DecompilerError(f"Decompiler binary not found: {args[0]}") from None
            except OSError as e:
                raise DecompilerError(f"Failed to run decompiler {args[0]}: {e}") from e
            except subprocess.TimeoutExpired:
                raise DecompilerError("Decompilation timeout exceeded") from None
        finally:
            os.unlink(path)

        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        if result.returncode != 0:
            raise DecompilerError(
                f"Error decompiling bytecode:\n{stderr or 'Unknown error occurred.'}"
            )
        if stderr:
            logger.warning("Decompiler warning: %s", stderr)

        return result.stdout.decode("utf-8", errors="replace").replace("\t", " " * 4)

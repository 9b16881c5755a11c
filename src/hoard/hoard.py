import os
from pathlib import Path
from typing import Any, Iterator

from .async_op import AsyncDepositor, AsyncOp, Emitter
from .codecs import Codec, PickleCodec
from .config import HoardSettings, load_settings, make_codec
from .depositor import FileDepositor
from .errors import InvalidRootDirectoryError
from .logging_config import get_logger
from .type_spec import ANY, TypeSpec

_LOGGER = get_logger(__name__)


class Hoard:
    """
    Factory for depositors that keep one value per file in ``root_directory``.
    Also provides bulk operations over every stored value.

    Bulk operations are best-effort: if the directory can not be listed they
    behave as if it were empty, and a file that can not be removed is skipped.
    Callers needing strict error visibility should check ``keys()`` afterwards.
    """

    def __init__(self, root_directory: str | os.PathLike, codec: Codec | None = None):
        if root_directory is None:
            raise TypeError("root_directory must not be None")
        self._root = Path(root_directory)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except FileExistsError:
            raise InvalidRootDirectoryError(
                f"Root directory {self._root} is not a directory"
            )
        except OSError as e:
            raise InvalidRootDirectoryError(
                f"Root directory {self._root} does not exist and can not be created"
            ) from e
        if not self._root.is_dir():
            raise InvalidRootDirectoryError(
                f"Root directory {self._root} is not a directory"
            )
        self._codec = PickleCodec() if codec is None else codec
        _LOGGER.info(
            "hoard_opened", root=str(self._root), codec=type(self._codec).__name__
        )

    @classmethod
    def from_settings(cls, settings: HoardSettings) -> "Hoard":
        return cls(settings.root_directory, make_codec(settings.codec))

    @classmethod
    def from_env(cls, env_file: str | os.PathLike | None = None) -> "Hoard":
        """Build a Hoard from HOARD_* environment variables (and a .env file)."""
        return cls.from_settings(load_settings(env_file))

    @property
    def root_directory(self) -> Path:
        return self._root

    @property
    def codec(self) -> Codec:
        return self._codec

    def create_depositor(self, key: str, type_spec: Any = ANY) -> FileDepositor:
        """Return a new depositor for ``key``. No file system access happens here."""
        if not isinstance(key, str) or not key:
            raise ValueError("key must be a non-empty string")
        return FileDepositor(self._codec, self._root, key, TypeSpec.of(type_spec))

    def create_async_depositor(self, key: str, type_spec: Any = ANY) -> AsyncDepositor:
        return AsyncDepositor(self.create_depositor(key, type_spec))

    def keys(self) -> list[str]:
        """Names of the stored slots, in directory listing order."""
        try:
            with os.scandir(self._root) as entries:
                return [entry.name for entry in entries if entry.is_file()]
        except OSError as e:
            _LOGGER.warning("hoard_list_failed", root=str(self._root), error=str(e))
            return []

    def delete_all(self) -> None:
        """Delete every stored value."""
        for key in self.keys():
            self._remove(key)

    def retrieve_all(self) -> dict[str, Any]:
        """
        Load every stored value into memory, keyed by slot name.
        Prefer retrieve_all_async() when a consumer may stop early.
        """
        values: dict[str, Any] = {}
        for key in self.keys():
            values[key] = self.create_depositor(key).retrieve()
        return values

    def delete_all_async(self) -> AsyncOp[None]:
        """delete_all() as an AsyncOp; stops between files once cancelled."""

        def source(emitter: Emitter[None]) -> None:
            for key in self.keys():
                if emitter.cancelled:
                    _LOGGER.debug("hoard_delete_all_cancelled", key=key)
                    return
                self._remove(key)

        return AsyncOp(source)

    def retrieve_all_async(self) -> AsyncOp[tuple[str, Any]]:
        """
        Emit one ``(key, value)`` pair per stored slot in listing order. Values
        are decoded one at a time, so cancelling skips the remaining entries.
        """

        def pairs() -> Iterator[tuple[str, Any]]:
            for key in self.keys():
                yield key, self.create_depositor(key).retrieve()

        return AsyncOp.from_iterable(pairs)

    def _remove(self, key: str) -> None:
        try:
            (self._root / key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            _LOGGER.warning("hoard_delete_failed", key=key, error=str(e))

    def __repr__(self) -> str:
        return f"Hoard(root_directory={str(self._root)!r})"

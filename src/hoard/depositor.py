import threading
from pathlib import Path
from typing import IO, Protocol, TypeVar

from .codecs import Codec
from .errors import StorageError
from .logging_config import get_logger
from .type_spec import TypeSpec

T = TypeVar("T")

_LOGGER = get_logger(__name__)


class Depositor(Protocol[T]):
    """
    Stores and retrieves the value of a single key.
    All operations are blocking file system calls.
    """

    def store(self, value: T | None) -> None:
        """Save the value. Storing None is the same as delete()."""
        ...

    def retrieve(self) -> T | None:
        """Return the saved value, or None if nothing is stored."""
        ...

    def delete(self) -> None:
        """Remove the saved value, if any."""
        ...

    def exists(self) -> bool:
        """True if retrieve() would return a value."""
        ...


def _close_quietly(stream: IO[bytes]) -> None:
    try:
        stream.close()
    except OSError:
        pass


class FileDepositor(Depositor[T]):
    """
    Depositor backed by one file, ``directory / key``.

    The four operations share a per-instance lock. Two FileDepositors for the
    same key do not share it, so concurrent writers must coordinate themselves.
    A failure halfway through store() can leave a truncated file behind.
    """

    def __init__(
        self, codec: Codec, directory: Path, key: str, type_spec: TypeSpec
    ) -> None:
        self._codec = codec
        self._key = key
        self._type_spec = type_spec
        self._path = Path(directory) / key
        self._lock = threading.Lock()

    @property
    def key(self) -> str:
        return self._key

    @property
    def path(self) -> Path:
        return self._path

    @property
    def type_spec(self) -> TypeSpec:
        return self._type_spec

    def store(self, value: T | None) -> None:
        with self._lock:
            if value is None:
                self._delete()
                return

            stream = self._open("wb")
            try:
                self._codec.serialize(self._type_spec, value, stream)
                stream.flush()
            except OSError as e:
                raise StorageError(f"Failed to write slot '{self._key}': {e}") from e
            finally:
                _close_quietly(stream)
            _LOGGER.debug("slot_stored", key=self._key)

    def retrieve(self) -> T | None:
        with self._lock:
            if not self._path.exists():
                return None

            stream = self._open("rb")
            try:
                value = self._codec.deserialize(self._type_spec, stream)
            except OSError as e:
                raise StorageError(f"Failed to read slot '{self._key}': {e}") from e
            finally:
                _close_quietly(stream)
            _LOGGER.debug("slot_retrieved", key=self._key)
            return value

    def delete(self) -> None:
        with self._lock:
            self._delete()

    def exists(self) -> bool:
        with self._lock:
            return self._path.exists()

    def _open(self, mode: str) -> IO[bytes]:
        try:
            return open(self._path, mode)
        except OSError as e:
            raise StorageError(f"Failed to open slot '{self._key}': {e}") from e

    def _delete(self) -> None:
        if not self._path.exists():
            return
        try:
            self._path.unlink()
        except OSError as e:
            # Callers that need confirmation follow up with exists().
            _LOGGER.warning("slot_delete_failed", key=self._key, error=str(e))
            return
        _LOGGER.debug("slot_deleted", key=self._key)

    def __repr__(self) -> str:
        return f"FileDepositor(key={self._key!r}, type_spec={self._type_spec})"

"""
hoard
=====

File-backed key–value store: every key is one file in a root directory holding
one value written by a pluggable codec.

Main entry points:
- Hoard: registry over a root directory, creates depositors and runs bulk operations
- FileDepositor: blocking store/retrieve/delete/exists for one key
- AsyncOp, AsyncDepositor: lazy, cancellable wrappers for async consumers
- AsyncHoard: asyncio facade
- PickleCodec, JSONCodec, BinaryCodec: codecs
- TypeSpec: logical type descriptor passed to codecs

Example:
    from hoard import Hoard, JSONCodec

    hoard = Hoard("./data", JSONCodec())
    settings = hoard.create_depositor("settings", dict[str, str])
    settings.store({"theme": "dark"})
"""

from .hoard import Hoard
from .depositor import Depositor, FileDepositor
from .async_op import (
    AsyncDepositor,
    AsyncOp,
    CollectingSubscriber,
    Emitter,
    OpState,
    Subscriber,
    Subscription,
)
from .aio import AsyncHoard, run_op
from .codecs import Codec, PickleCodec, JSONCodec, BinaryCodec
from .type_spec import ANY, TypeSpec, dict_of, list_of, parameterized, set_of
from .config import HoardSettings, load_settings
from .logging_config import configure_logging
from .errors import (
    AlreadySubscribedError,
    HoardError,
    InvalidRootDirectoryError,
    StorageError,
)

import importlib.metadata

try:
    __version__ = importlib.metadata.version(__name__)
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "Hoard",
    "Depositor",
    "FileDepositor",
    "AsyncDepositor",
    "AsyncOp",
    "CollectingSubscriber",
    "Emitter",
    "OpState",
    "Subscriber",
    "Subscription",
    "AsyncHoard",
    "run_op",
    "Codec",
    "PickleCodec",
    "JSONCodec",
    "BinaryCodec",
    "ANY",
    "TypeSpec",
    "dict_of",
    "list_of",
    "parameterized",
    "set_of",
    "HoardSettings",
    "load_settings",
    "configure_logging",
    "AlreadySubscribedError",
    "HoardError",
    "InvalidRootDirectoryError",
    "StorageError",
]

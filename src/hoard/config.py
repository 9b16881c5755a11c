import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from .codecs import BinaryCodec, Codec, JSONCodec, PickleCodec

ROOT_DIRECTORY_ENV = "HOARD_ROOT_DIRECTORY"
CODEC_ENV = "HOARD_CODEC"

DEFAULT_ROOT_DIRECTORY = "./hoard-data"
DEFAULT_CODEC = "pickle"

_CODECS: dict[str, type[Codec]] = {
    "pickle": PickleCodec,
    "json": JSONCodec,
    "binary": BinaryCodec,
}


@dataclass(frozen=True)
class HoardSettings:
    root_directory: str = DEFAULT_ROOT_DIRECTORY
    codec: str = DEFAULT_CODEC

    def __post_init__(self) -> None:
        if self.codec not in _CODECS:
            raise ValueError(
                f"Unknown codec '{self.codec}', expected one of {sorted(_CODECS)}"
            )


def make_codec(name: str) -> Codec:
    try:
        return _CODECS[name]()
    except KeyError:
        raise ValueError(f"Unknown codec '{name}', expected one of {sorted(_CODECS)}")


def load_settings(env_file: str | os.PathLike | None = None) -> HoardSettings:
    """
    Read settings from the environment. Values from ``env_file`` (or a .env
    found from the working directory) never override real variables.
    """
    if env_file is None:
        env_file = find_dotenv(usecwd=True) or None
    if env_file is not None:
        load_dotenv(dotenv_path=env_file, override=False)
    return HoardSettings(
        root_directory=os.environ.get(ROOT_DIRECTORY_ENV, DEFAULT_ROOT_DIRECTORY),
        codec=os.environ.get(CODEC_ENV, DEFAULT_CODEC).strip().lower(),
    )

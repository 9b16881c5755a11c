class HoardError(Exception):
    """Base class for all hoard failures."""

    pass


class InvalidRootDirectoryError(HoardError, ValueError):
    """Raised when the root directory does not exist and can not be created."""

    pass


class StorageError(HoardError):
    """Raised when opening, reading or writing a slot file fails."""

    pass


class AlreadySubscribedError(HoardError):
    """Raised (as an error notification) when an AsyncOp is subscribed twice."""

    pass

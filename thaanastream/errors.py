"""Exception hierarchy for ThaanaStream."""


class ThaanaStreamError(Exception):
    """Base class for all library errors."""


class ConfigError(ThaanaStreamError):
    """Invalid configuration value or unreadable config file."""


class UnknownLayoutError(ThaanaStreamError, KeyError):
    """Requested keyboard layout is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"unknown layout: {self.name!r}"


class BlockSerializationError(ThaanaStreamError):
    """Serializing a single block failed during a strict flush."""

    def __init__(self, block_id: str, cause: BaseException) -> None:
        super().__init__(f"failed to serialize block {block_id}: {cause}")
        self.block_id = block_id
        self.cause = cause

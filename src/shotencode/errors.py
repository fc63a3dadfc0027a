"""Error types for the encode pipeline.

All errors inherit from ShotEncodeError for easy catching.
Manifest validation keeps using ValueError / FileNotFoundError.
"""


class ShotEncodeError(Exception):
    """Base exception for all pipeline failures."""
    pass


class DeserializationError(ShotEncodeError):
    """Raised when a project descriptor cannot be parsed into a Project.

    The underlying parse or type error is chained as __cause__.
    """

    def __init__(self, reason: str, source: str | None = None):
        self.reason = reason
        self.source = source
        where = f" ({source})" if source else ""
        super().__init__(f"Cannot deserialize project{where}: {reason}")


class JobItemRejected(ShotEncodeError):
    """Raised by an encode engine that refuses an assembled job item."""

    def __init__(self, output_name: str, reason: str):
        self.output_name = output_name
        self.reason = reason
        super().__init__(f"Job item {output_name} rejected: {reason}")


class PresetError(ShotEncodeError):
    """Raised when a preset file is missing, unreadable or invalid."""

    def __init__(self, preset_path: str, reason: str):
        self.preset_path = preset_path
        self.reason = reason
        super().__init__(f"Cannot apply preset {preset_path}: {reason}")


class EncodeExecutionFailure(ShotEncodeError):
    """Raised when the encode engine fails while running the batch."""

    def __init__(self, item_name: str, reason: str):
        self.item_name = item_name
        self.reason = reason
        super().__init__(f"Encode failed on {item_name}: {reason}")

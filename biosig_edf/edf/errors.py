from __future__ import annotations


class EDFWriterError(Exception):
    """Base error for everything raised while producing an EDF/BDF file."""


class OpenError(EDFWriterError, OSError):
    """Raised when the engine refuses to allocate a write handle."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        message = f'Cannot open "{path}" for writing'
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ConfigError(EDFWriterError, ValueError):
    """Raised when a header field is rejected, locally or by the engine."""

    def __init__(
        self,
        field: str,
        message: str | None = None,
        *,
        channel: int | None = None,
        status: int | None = None,
    ) -> None:
        self.field = field
        self.channel = channel
        self.status = status
        where = field if channel is None else f"{field} (channel {channel})"
        if message is None:
            message = f"Error setting {where}"
            if status is not None:
                message = f"{message}: engine status {status}"
        else:
            message = f"{where}: {message}"
        super().__init__(message)


class ShapeError(EDFWriterError, ValueError):
    """Raised when a sample buffer or frame does not fit the declared layout."""

    def __init__(
        self,
        message: str,
        *,
        frame_index: int | None = None,
        channel: int | None = None,
    ) -> None:
        self.frame_index = frame_index
        self.channel = channel
        context = []
        if frame_index is not None:
            context.append(f"frame {frame_index}")
        if channel is not None:
            context.append(f"channel {channel}")
        if context:
            message = f"{', '.join(context)}: {message}"
        super().__init__(message)


class RepairLimitExceeded(ShapeError):
    """Raised when too many consecutive frames needed substitution."""


class WriteError(EDFWriterError):
    """Raised when the engine rejects a record write."""

    def __init__(
        self,
        status: int,
        *,
        frame_index: int | None = None,
        channel: int | None = None,
    ) -> None:
        self.status = status
        self.frame_index = frame_index
        self.channel = channel
        where = []
        if frame_index is not None:
            where.append(f"frame {frame_index}")
        if channel is not None:
            where.append(f"channel {channel}")
        suffix = f" ({', '.join(where)})" if where else ""
        super().__init__(f"Error writing samples{suffix}: engine status {status}")


class AnnotationError(EDFWriterError):
    """Raised when the engine rejects an annotation."""

    def __init__(self, status: int, description: str = "") -> None:
        self.status = status
        self.description = description
        super().__init__(f"Error writing annotation {description!r}: engine status {status}")


class CloseError(EDFWriterError):
    """Raised when the engine fails to finalize and close the file."""

    def __init__(self, status: int) -> None:
        self.status = status
        super().__init__(f"Error finishing and closing the file: engine status {status}")


class NotOpenError(EDFWriterError, RuntimeError):
    """Raised when writing before a successful ``open()`` (or after ``finish()``)."""


class UnsupportedOperation(EDFWriterError, NotImplementedError):
    """Raised for header fields this writer does not implement."""

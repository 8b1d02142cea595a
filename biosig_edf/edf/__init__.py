"""EDF+/BDF+ recording writer built on EDFlib."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("biosig-edf")
except PackageNotFoundError:  # pragma: no cover - local editable install only
    __version__ = "0.0.0"

__license__ = "GPL-3.0-only"

from .edf_writer import EDFWriter  # noqa: E402
from .engine import engine_version  # noqa: E402
from .errors import (  # noqa: E402
    AnnotationError,
    CloseError,
    ConfigError,
    EDFWriterError,
    NotOpenError,
    OpenError,
    RepairLimitExceeded,
    ShapeError,
    UnsupportedOperation,
    WriteError,
)
from .types import Annotation, AnnotationPosition, Channel, Filetype, Header, PatientInfo, Sex  # noqa: E402

__all__ = [
    "__version__",
    "__license__",
    "Annotation",
    "AnnotationError",
    "AnnotationPosition",
    "Channel",
    "CloseError",
    "ConfigError",
    "EDFWriter",
    "EDFWriterError",
    "Filetype",
    "Header",
    "NotOpenError",
    "OpenError",
    "PatientInfo",
    "RepairLimitExceeded",
    "Sex",
    "ShapeError",
    "UnsupportedOperation",
    "WriteError",
    "engine_version",
]

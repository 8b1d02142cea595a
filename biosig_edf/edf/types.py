from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum, IntEnum
from pathlib import Path

from .errors import ConfigError

DATACLASS_KWARGS = {"slots": True} if sys.version_info >= (3, 10) else {}

# EDFlib expresses the data-record duration in units of 10 microseconds.
TICK = timedelta(microseconds=10)
MIN_RECORD_TICKS = 100
MAX_RECORD_TICKS = 6_000_000


class Sex(IntEnum):
    FEMALE = 0
    MALE = 1

    @classmethod
    def parse(cls, value: object) -> Sex:
        """Accept an enum member, 0/1, or the usual F/M spellings."""

        if isinstance(value, Sex):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key in ("F", "FEMALE"):
                return cls.FEMALE
            if key in ("M", "MALE"):
                return cls.MALE
            if key.isdigit():
                value = int(key)
        if isinstance(value, int) and not isinstance(value, bool) and value in (0, 1):
            return cls(value)
        raise ConfigError("sex", f"unrecognised value {value!r}")


class Filetype(Enum):
    EDF = "edf"
    BDF = "bdf"

    @classmethod
    def from_path(cls, path: str | Path) -> Filetype:
        """Pick the container from the file extension; anything unknown is EDF."""

        suffix = Path(path).suffix.lower().lstrip(".")
        if suffix == cls.BDF.value:
            return cls.BDF
        return cls.EDF


class AnnotationPosition(Enum):
    START = "start"
    MIDDLE = "middle"
    END = "end"


@dataclass(frozen=True, **DATACLASS_KWARGS)
class PatientInfo:
    """Patient and recording-administration fields embedded once per file."""

    name: str
    code: str
    sex: Sex
    admin_code: str = ""
    technician: str = ""
    equipment: str = ""
    patient_additional: str = ""
    recording_additional: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "sex", Sex.parse(self.sex))


@dataclass(frozen=True, **DATACLASS_KWARGS)
class Channel:
    """Calibration and layout of one signal."""

    label: str
    transducer: str
    digital_max: int
    digital_min: int
    physical_max: float
    physical_min: float
    physical_dimension: str
    sample_frequency: int

    def __post_init__(self) -> None:
        if self.digital_min >= self.digital_max:
            raise ConfigError(
                "digital_range",
                f"digital_min ({self.digital_min}) must be below digital_max ({self.digital_max})",
            )
        if not self.physical_min < self.physical_max:
            raise ConfigError(
                "physical_range",
                f"physical_min ({self.physical_min}) must be below physical_max ({self.physical_max})",
            )
        if isinstance(self.sample_frequency, bool) or int(self.sample_frequency) != self.sample_frequency:
            raise ConfigError("sample_frequency", f"must be an integer, got {self.sample_frequency!r}")
        if self.sample_frequency <= 0:
            raise ConfigError("sample_frequency", f"must be positive, got {self.sample_frequency}")
        object.__setattr__(self, "sample_frequency", int(self.sample_frequency))


@dataclass(frozen=True, **DATACLASS_KWARGS)
class Header:
    """Everything pushed to the engine when a file is opened.

    ``annotation_position`` needs an engine that can place the annotation
    signal. The default pyEDFlib engine cannot, so opening a file with it set
    raises ``UnsupportedOperation`` before anything is created on disk.
    """

    patient_info: PatientInfo
    channels: tuple[Channel, ...]
    record_duration: float | timedelta | None = None
    annotation_signals: int | None = None
    annotation_position: AnnotationPosition | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "channels", tuple(self.channels))
        if not self.channels:
            raise ConfigError("channels", "a header needs at least one channel")
        if self.record_duration is not None:
            record_duration_ticks(self.record_duration)

    @property
    def channel_count(self) -> int:
        return len(self.channels)


@dataclass(frozen=True, **DATACLASS_KWARGS)
class Annotation:
    """Timestamped text event; times are microseconds from recording start."""

    onset: int
    duration: int
    description: str

    @property
    def has_duration(self) -> bool:
        return self.duration >= 0


# A frame is one data record: per-channel sample sequences in header order.
Frame = Sequence[Sequence[float]]


def record_duration_ticks(duration: float | timedelta) -> int:
    """Return ``duration`` in 10 us ticks, rejecting anything outside 0.001-60 s."""

    if not isinstance(duration, timedelta):
        try:
            duration = timedelta(seconds=float(duration))
        except (TypeError, ValueError, OverflowError) as exc:
            raise ConfigError("recording_duration", f"not a duration: {duration!r}") from exc
    ticks = duration // TICK
    if ticks < MIN_RECORD_TICKS or ticks > MAX_RECORD_TICKS:
        raise ConfigError(
            "recording_duration",
            "Datarecord duration must be in the range 0.001 to 60 seconds",
        )
    return ticks


__all__ = [
    "Annotation",
    "AnnotationPosition",
    "Channel",
    "Filetype",
    "Frame",
    "Header",
    "PatientInfo",
    "Sex",
    "record_duration_ticks",
]

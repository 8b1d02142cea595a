from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Callable
from datetime import date, datetime, timedelta
from enum import Enum
from pathlib import Path

import numpy as np

from .engine import CodecEngine, default_engine
from .errors import (
    AnnotationError,
    CloseError,
    ConfigError,
    NotOpenError,
    OpenError,
    ShapeError,
    UnsupportedOperation,
    WriteError,
)
from .types import AnnotationPosition, Filetype, Header, Sex, record_duration_ticks

logger = logging.getLogger(__name__)

TEXT_ENCODING = "latin-1"


class SessionState(Enum):
    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


def _encode(text: str) -> bytes:
    return str(text).encode(TEXT_ENCODING, errors="replace")


def _release_leaked_handle(engine: CodecEngine, slot: dict[str, int | None], path: str) -> None:
    handle = slot.get("handle")
    if handle is None:
        return
    slot["handle"] = None
    status = engine.close_file(handle)
    logger.warning("Session for %s was never finished; closed handle %d (status %d)", path, handle, status)


class Session:
    """Sole owner of one engine handle.

    Every engine call happens under ``self._lock`` so a session can be shared
    by the frame pipeline, the annotation sink and other threads.
    """

    def __init__(self, engine: CodecEngine | None = None) -> None:
        self._engine = engine or default_engine()
        self._lock = threading.RLock()
        self._state = SessionState.UNOPENED
        self._slot: dict[str, int | None] = {"handle": None}
        self._finalizer: weakref.finalize | None = None
        self.path: Path | None = None
        self.filetype: Filetype | None = None
        self.channel_count = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def lock(self) -> threading.RLock:
        """Re-entrant lock guarding the handle; hold it to keep several calls together."""

        return self._lock

    @property
    def is_open(self) -> bool:
        return self._state is SessionState.OPEN

    def _handle(self) -> int:
        handle = self._slot["handle"]
        if self._state is not SessionState.OPEN or handle is None:
            raise NotOpenError(f"Session is {self._state.value}; call open() first")
        return handle

    # ---- lifecycle -------------------------------------------------------

    def open(self, path: str | Path, header: Header) -> None:
        """Allocate a write-only handle for ``path`` and push ``header`` into it."""

        with self._lock:
            if self._state is not SessionState.UNOPENED:
                raise OpenError(str(path), f"session is already {self._state.value}")
            if header.annotation_position is not None and not self._engine.supports_annotation_position:
                raise UnsupportedOperation("the codec engine cannot place the annotation signal")
            path = Path(path)
            filetype = Filetype.from_path(path)
            handle = self._engine.open_file_writeonly(str(path), filetype, header.channel_count)
            if handle < 0:
                raise OpenError(str(path), self._engine.describe_open_error(handle))
            self._slot["handle"] = handle
            self._state = SessionState.OPEN
            self._finalizer = weakref.finalize(self, _release_leaked_handle, self._engine, self._slot, str(path))
            self.path = path
            self.filetype = filetype
            self.channel_count = header.channel_count
            logger.info(
                "Opened %s as %s with %d signal(s)",
                path.name,
                filetype.name,
                header.channel_count,
            )
            self.configure(header)

    def configure(self, header: Header) -> None:
        """Push every header field in the fixed setup order.

        The first rejected field aborts the sequence. Nothing is rolled back;
        the handle stays open and must still be finished.
        """

        with self._lock:
            patient = header.patient_info
            self.set_equipment(patient.equipment)
            self.set_patientname(patient.name)
            self.set_patientcode(patient.code)
            self.set_sex(patient.sex)
            self.set_admincode(patient.admin_code)
            self.set_technician(patient.technician)
            if patient.patient_additional:
                self.set_patient_additional(patient.patient_additional)
            if patient.recording_additional:
                self.set_recording_additional(patient.recording_additional)

            for index, channel in enumerate(header.channels):
                self.set_label(index, channel.label)
                self.set_transducer(index, channel.transducer)
                self.set_digital_maximum(index, channel.digital_max)
                self.set_digital_minimum(index, channel.digital_min)
                self.set_physical_maximum(index, channel.physical_max)
                self.set_physical_minimum(index, channel.physical_min)
                self.set_physical_dimension(index, channel.physical_dimension)
                self.set_sample_frequency(index, channel.sample_frequency)

            if header.record_duration is not None:
                self.set_recording_duration(header.record_duration)
            if header.annotation_signals is not None:
                self.set_number_of_annotation_signals(header.annotation_signals)
            if header.annotation_position is not None:
                self.set_annotation_position(header.annotation_position)

    def finish(self) -> None:
        """Close the handle. Safe to call repeatedly; only the first call closes."""

        with self._lock:
            if self._state is not SessionState.OPEN:
                return
            handle = self._handle()
            self._slot["handle"] = None
            self._state = SessionState.CLOSED
            if self._finalizer is not None:
                self._finalizer.detach()
            status = self._engine.close_file(handle)
            if status < 0:
                raise CloseError(status)
            logger.info("Closed %s", self.path.name if self.path else handle)

    # ---- header setters --------------------------------------------------

    def _set(self, field: str, setter: Callable[..., int], *args, channel: int | None = None) -> None:
        with self._lock:
            handle = self._handle()
            if channel is None:
                status = setter(handle, *args)
            else:
                status = setter(handle, channel, *args)
            logger.debug("set %s%s -> %d", field, "" if channel is None else f"[{channel}]", status)
            if status < 0:
                raise ConfigError(field, channel=channel, status=status)

    def _check_channel(self, field: str, channel: int) -> None:
        if self.is_open and not 0 <= channel < self.channel_count:
            raise ConfigError(field, f"no such signal (file has {self.channel_count})", channel=channel)

    def set_patientname(self, name: str) -> None:
        self._set("patientname", self._engine.set_patientname, _encode(name))

    def set_patientcode(self, code: str) -> None:
        self._set("patientcode", self._engine.set_patientcode, _encode(code))

    def set_admincode(self, admincode: str) -> None:
        self._set("admincode", self._engine.set_admincode, _encode(admincode))

    def set_technician(self, technician: str) -> None:
        self._set("technician", self._engine.set_technician, _encode(technician))

    def set_equipment(self, equipment: str) -> None:
        self._set("equipment", self._engine.set_equipment, _encode(equipment))

    def set_patient_additional(self, text: str) -> None:
        self._set("patient_additional", self._engine.set_patient_additional, _encode(text))

    def set_recording_additional(self, text: str) -> None:
        self._set("recording_additional", self._engine.set_recording_additional, _encode(text))

    def set_sex(self, sex: Sex | int | str) -> None:
        self._set("sex", self._engine.set_sex, int(Sex.parse(sex)))

    def set_birthdate(self, birthdate: date) -> None:
        raise UnsupportedOperation("set_birthdate is not implemented")

    def set_startdatetime(self, start: datetime) -> None:
        raise UnsupportedOperation("set_startdatetime is not implemented")

    def set_label(self, channel: int, label: str) -> None:
        self._check_channel("label", channel)
        self._set("label", self._engine.set_label, _encode(label), channel=channel)

    def set_transducer(self, channel: int, transducer: str) -> None:
        self._check_channel("transducer", channel)
        self._set("transducer", self._engine.set_transducer, _encode(transducer), channel=channel)

    def set_digital_maximum(self, channel: int, value: int) -> None:
        self._check_channel("digital_maximum", channel)
        self._set("digital_maximum", self._engine.set_digital_maximum, int(value), channel=channel)

    def set_digital_minimum(self, channel: int, value: int) -> None:
        self._check_channel("digital_minimum", channel)
        self._set("digital_minimum", self._engine.set_digital_minimum, int(value), channel=channel)

    def set_physical_maximum(self, channel: int, value: float) -> None:
        self._check_channel("physical_maximum", channel)
        self._set("physical_maximum", self._engine.set_physical_maximum, float(value), channel=channel)

    def set_physical_minimum(self, channel: int, value: float) -> None:
        self._check_channel("physical_minimum", channel)
        self._set("physical_minimum", self._engine.set_physical_minimum, float(value), channel=channel)

    def set_physical_dimension(self, channel: int, unit: str) -> None:
        self._check_channel("physical_dimension", channel)
        self._set("physical_dimension", self._engine.set_physical_dimension, _encode(unit), channel=channel)

    def set_sample_frequency(self, channel: int, samples_per_record: int) -> None:
        self._check_channel("sample_frequency", channel)
        self._set(
            "sample_frequency",
            self._engine.set_samples_per_record,
            int(samples_per_record),
            channel=channel,
        )

    def set_recording_duration(self, duration: float | timedelta) -> None:
        """Set the data-record duration; must lie within 0.001-60 s."""

        ticks = record_duration_ticks(duration)
        self._set("recording_duration", self._engine.set_datarecord_duration, ticks)

    def set_number_of_annotation_signals(self, count: int) -> None:
        self._set("annotation_signals", self._engine.set_number_of_annotation_signals, int(count))

    def set_annotation_position(self, position: AnnotationPosition) -> None:
        self._set("annotation_position", self._engine.set_annot_chan_idx_pos, AnnotationPosition(position))

    # ---- data ------------------------------------------------------------

    def write_record(
        self,
        samples,
        sample_frequency: int,
        *,
        channel: int | None = None,
        frame_index: int | None = None,
    ) -> None:
        """Write whole periods of one signal, one engine call per period."""

        with self._lock:
            handle = self._handle()
            buf = np.asarray(samples, dtype=np.float64).ravel()
            if sample_frequency <= 0 or buf.size == 0 or buf.size % sample_frequency:
                raise ShapeError(
                    f"{buf.size} samples is not a whole number of {sample_frequency}-sample periods",
                    frame_index=frame_index,
                    channel=channel,
                )
            for start in range(0, buf.size, sample_frequency):
                status = self._engine.write_physical_samples(handle, buf[start : start + sample_frequency])
                if status < 0:
                    raise WriteError(status, frame_index=frame_index, channel=channel)

    def write_annotation(self, onset: int, duration: int, description: str) -> None:
        with self._lock:
            handle = self._handle()
            status = self._engine.write_annotation(handle, int(onset), int(duration), _encode(description))
            logger.debug("annotation %r at %d us -> %d", description, onset, status)
            if status < 0:
                raise AnnotationError(status, description)

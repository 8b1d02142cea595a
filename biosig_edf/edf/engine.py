"""Codec engine seam.

The session talks to the engine through the handle-based functions below; the
default implementation forwards them to pyEDFlib's low-level EDFlib binding.
Every call returns EDFlib's signed status (negative means failure).
"""

from __future__ import annotations

from typing import Protocol

import numpy as np
import pyedflib

from .errors import UnsupportedOperation
from .types import AnnotationPosition, Filetype

# EDFlib annotation timestamps are in units of 100 microseconds.
_ANNOTATION_UNIT_US = 100
# pyEDFlib takes the record duration in seconds and scales it back to 10 us ticks.
_TICKS_PER_SECOND = 100_000


class CodecEngine(Protocol):
    supports_annotation_position: bool

    def version(self) -> str: ...

    def open_file_writeonly(self, path: str, filetype: Filetype, number_of_signals: int) -> int: ...

    def describe_open_error(self, status: int) -> str: ...

    def set_patientname(self, handle: int, value: bytes) -> int: ...

    def set_patientcode(self, handle: int, value: bytes) -> int: ...

    def set_admincode(self, handle: int, value: bytes) -> int: ...

    def set_technician(self, handle: int, value: bytes) -> int: ...

    def set_equipment(self, handle: int, value: bytes) -> int: ...

    def set_patient_additional(self, handle: int, value: bytes) -> int: ...

    def set_recording_additional(self, handle: int, value: bytes) -> int: ...

    def set_sex(self, handle: int, sex: int) -> int: ...

    def set_label(self, handle: int, edfsignal: int, value: bytes) -> int: ...

    def set_transducer(self, handle: int, edfsignal: int, value: bytes) -> int: ...

    def set_physical_dimension(self, handle: int, edfsignal: int, value: bytes) -> int: ...

    def set_digital_maximum(self, handle: int, edfsignal: int, value: int) -> int: ...

    def set_digital_minimum(self, handle: int, edfsignal: int, value: int) -> int: ...

    def set_physical_maximum(self, handle: int, edfsignal: int, value: float) -> int: ...

    def set_physical_minimum(self, handle: int, edfsignal: int, value: float) -> int: ...

    def set_samples_per_record(self, handle: int, edfsignal: int, value: int) -> int: ...

    def set_datarecord_duration(self, handle: int, ticks: int) -> int: ...

    def set_number_of_annotation_signals(self, handle: int, value: int) -> int: ...

    def set_annot_chan_idx_pos(self, handle: int, position: AnnotationPosition) -> int: ...

    def write_physical_samples(self, handle: int, buf: np.ndarray) -> int: ...

    def write_annotation(self, handle: int, onset_us: int, duration_us: int, description: bytes) -> int: ...

    def close_file(self, handle: int) -> int: ...


class PyEDFlibEngine:
    """EDFlib as shipped inside pyEDFlib."""

    # pyEDFlib has no binding for edf_set_annot_chan_idx_pos.
    supports_annotation_position = False

    _FILETYPES = {
        Filetype.EDF: pyedflib.FILETYPE_EDFPLUS,
        Filetype.BDF: pyedflib.FILETYPE_BDFPLUS,
    }

    def version(self) -> str:
        return str(pyedflib.lib_version())

    def open_file_writeonly(self, path: str, filetype: Filetype, number_of_signals: int) -> int:
        return pyedflib.open_file_writeonly(path, self._FILETYPES[filetype], number_of_signals)

    def describe_open_error(self, status: int) -> str:
        return pyedflib.open_errors.get(status, f"engine status {status}")

    def set_patientname(self, handle: int, value: bytes) -> int:
        return pyedflib.set_patientname(handle, value)

    def set_patientcode(self, handle: int, value: bytes) -> int:
        return pyedflib.set_patientcode(handle, value)

    def set_admincode(self, handle: int, value: bytes) -> int:
        return pyedflib.set_admincode(handle, value)

    def set_technician(self, handle: int, value: bytes) -> int:
        return pyedflib.set_technician(handle, value)

    def set_equipment(self, handle: int, value: bytes) -> int:
        return pyedflib.set_equipment(handle, value)

    def set_patient_additional(self, handle: int, value: bytes) -> int:
        return pyedflib.set_patient_additional(handle, value)

    def set_recording_additional(self, handle: int, value: bytes) -> int:
        return pyedflib.set_recording_additional(handle, value)

    def set_sex(self, handle: int, sex: int) -> int:
        return pyedflib.set_sex(handle, sex)

    def set_label(self, handle: int, edfsignal: int, value: bytes) -> int:
        return pyedflib.set_label(handle, edfsignal, value)

    def set_transducer(self, handle: int, edfsignal: int, value: bytes) -> int:
        return pyedflib.set_transducer(handle, edfsignal, value)

    def set_physical_dimension(self, handle: int, edfsignal: int, value: bytes) -> int:
        return pyedflib.set_physical_dimension(handle, edfsignal, value)

    def set_digital_maximum(self, handle: int, edfsignal: int, value: int) -> int:
        return pyedflib.set_digital_maximum(handle, edfsignal, value)

    def set_digital_minimum(self, handle: int, edfsignal: int, value: int) -> int:
        return pyedflib.set_digital_minimum(handle, edfsignal, value)

    def set_physical_maximum(self, handle: int, edfsignal: int, value: float) -> int:
        return pyedflib.set_physical_maximum(handle, edfsignal, value)

    def set_physical_minimum(self, handle: int, edfsignal: int, value: float) -> int:
        return pyedflib.set_physical_minimum(handle, edfsignal, value)

    def set_samples_per_record(self, handle: int, edfsignal: int, value: int) -> int:
        return pyedflib.set_samples_per_record(handle, edfsignal, value)

    def set_datarecord_duration(self, handle: int, ticks: int) -> int:
        # pyEDFlib truncates after scaling seconds back to ticks; the half tick
        # keeps float rounding from losing one.
        return pyedflib.set_datarecord_duration(handle, (ticks + 0.5) / _TICKS_PER_SECOND)

    def set_number_of_annotation_signals(self, handle: int, value: int) -> int:
        return pyedflib.set_number_of_annotation_signals(handle, value)

    def set_annot_chan_idx_pos(self, handle: int, position: AnnotationPosition) -> int:
        raise UnsupportedOperation("pyEDFlib does not expose the annotation signal position")

    def write_physical_samples(self, handle: int, buf: np.ndarray) -> int:
        return pyedflib.write_physical_samples(handle, np.ascontiguousarray(buf, dtype=np.float64))

    def write_annotation(self, handle: int, onset_us: int, duration_us: int, description: bytes) -> int:
        onset = int(onset_us) // _ANNOTATION_UNIT_US
        duration = int(duration_us) // _ANNOTATION_UNIT_US if duration_us >= 0 else -1
        return pyedflib.write_annotation_latin1(handle, onset, duration, description)

    def close_file(self, handle: int) -> int:
        return pyedflib.close_file(handle)


def default_engine() -> CodecEngine:
    return PyEDFlibEngine()


def engine_version() -> str:
    """Return the version of the bundled EDFlib, e.g. ``"127"``."""

    return PyEDFlibEngine().version()

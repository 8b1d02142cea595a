from __future__ import annotations

import numpy as np

from biosig_edf.edf.types import Channel, Header, PatientInfo, Sex


class FakeEngine:
    """Records every engine call; ``fail`` maps a method name to the status it returns."""

    def __init__(self, handle: int = 3) -> None:
        self.handle = handle
        self.calls: list[tuple] = []
        self.writes: list[np.ndarray] = []
        self.fail: dict[str, int] = {}
        self.supports_annotation_position = True

    def _record(self, name: str, *args) -> int:
        self.calls.append((name, *args))
        return self.fail.get(name, 0)

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def version(self) -> str:
        return "fake"

    def open_file_writeonly(self, path, filetype, number_of_signals):
        status = self._record("open_file_writeonly", path, filetype, number_of_signals)
        return status if status < 0 else self.handle

    def describe_open_error(self, status):
        return f"fake open error {status}"

    def __getattr__(self, name: str):
        if not name.startswith("set_"):
            raise AttributeError(name)

        def _setter(handle, *args):
            return self._record(name, handle, *args)

        return _setter

    def write_physical_samples(self, handle, buf):
        self.writes.append(np.array(buf, copy=True))
        return self._record("write_physical_samples", handle, len(buf))

    def write_annotation(self, handle, onset_us, duration_us, description):
        return self._record("write_annotation", handle, onset_us, duration_us, description)

    def close_file(self, handle):
        return self._record("close_file", handle)


def make_channel(label: str = "EEG Fpz", sample_frequency: int = 256) -> Channel:
    return Channel(
        label=label,
        transducer="AgAgCl cup electrodes",
        digital_max=32767,
        digital_min=-32768,
        physical_max=2000.0,
        physical_min=-2000.0,
        physical_dimension="mV",
        sample_frequency=sample_frequency,
    )


def make_header(frequencies: tuple[int, ...] = (256, 256), **kwargs) -> Header:
    patient = PatientInfo(
        name="Demo",
        code="0001",
        sex=Sex.FEMALE,
        admin_code="0001",
        technician="DYZS",
        equipment="DYZS",
    )
    channels = [make_channel(f"Ch{idx}", freq) for idx, freq in enumerate(frequencies)]
    return Header(patient_info=patient, channels=channels, **kwargs)

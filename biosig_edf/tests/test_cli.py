from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest

from biosig_edf.edf import cli
from biosig_edf.edf.types import Sex

from .helpers import FakeEngine


def test_sine_frames_shape_and_continuity() -> None:
    frames = list(cli.sine_frames([20.0, 50.0], rate=256, seconds=3))
    assert len(frames) == 3
    assert all(len(frame) == 2 and frame[0].shape == (256,) for frame in frames)
    joined = np.concatenate([frame[0] for frame in frames])
    t = np.arange(3 * 256) / 256
    np.testing.assert_allclose(joined, np.sin(2 * np.pi * 20.0 * t) * cli.AMPLITUDE, atol=1e-6)


def test_patient_json_overrides_defaults(tmp_path: Path) -> None:
    path = tmp_path / "patient.json"
    path.write_text(json.dumps({"name": "Jane Roe", "sex": "M", "equipment": "Amp-16"}))
    patient = cli._load_patient_info(path)
    assert patient.name == "Jane Roe"
    assert patient.sex is Sex.MALE
    assert patient.equipment == "Amp-16"
    assert patient.code == "0001"


def test_patient_json_rejects_unknown_fields(tmp_path: Path) -> None:
    path = tmp_path / "patient.json"
    path.write_text(json.dumps({"PatientName": "Jane"}))
    with pytest.raises(SystemExit, match="PatientName"):
        cli._load_patient_info(path)


def test_channel_spec_parsing() -> None:
    parsed = cli._parse_channels("Fp1:10, Fp2:12.5", 128)
    assert [(ch.label, ch.sample_frequency, tone) for ch, tone in parsed] == [("Fp1", 128, 10.0), ("Fp2", 128, 12.5)]
    with pytest.raises(SystemExit):
        cli._parse_channels("Fp1", 128)


def test_main_writes_through_writer(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    engine = FakeEngine()
    real_writer = cli.EDFWriter

    def _writer(path, header, **kwargs):
        return real_writer(path, header, engine=engine, **kwargs)

    monkeypatch.setattr(cli, "EDFWriter", _writer)
    exit_code = cli.main(["--out", str(tmp_path / "demo.bdf"), "--seconds", "4", "--rate", "64"])
    assert exit_code == 0
    assert engine.calls[0][2].name == "BDF"
    assert engine.names().count("write_physical_samples") == 8
    annotations = [call for call in engine.calls if call[0] == "write_annotation"]
    assert [call[2] for call in annotations] == [0, 4_000_000]


def test_main_reports_invalid_record_duration(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(cli, "EDFWriter", lambda path, header, **kw: pytest.fail("writer should not be built"))
    exit_code = cli.main(["--out", str(tmp_path / "demo.edf"), "--record-duration", "90"])
    assert exit_code == 1


def test_main_end_to_end_with_pyedflib(tmp_path: Path) -> None:
    pyedflib = pytest.importorskip("pyedflib")
    output = tmp_path / "out" / "generator.edf"
    assert cli.main(["--out", str(output), "--seconds", "5", "--channels", "A:5,B:7,C:11"]) == 0
    reader = pyedflib.EdfReader(str(output))
    try:
        assert reader.signals_in_file == 3
        assert reader.getSignalLabels() == ["A", "B", "C"]
        assert reader.file_duration == pytest.approx(5.0)
    finally:
        reader.close()

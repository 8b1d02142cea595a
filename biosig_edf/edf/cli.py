from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Iterator
from pathlib import Path

import numpy as np

from .edf_writer import EDFWriter
from .errors import ConfigError, EDFWriterError
from .types import Channel, Header, PatientInfo, Sex

logger = logging.getLogger(__name__)

DEFAULT_CHANNELS = "Sine20Hz:20,Sine50Hz:50"
AMPLITUDE = 1000.0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="biosig-edf",
        description="Generate a demo EDF+/BDF+ recording of sine-wave channels.",
    )
    parser.add_argument("--out", dest="output_path", required=True, help="Output file (.edf or .bdf)")
    parser.add_argument("--seconds", type=int, default=10, help="Number of data records to write")
    parser.add_argument("--rate", type=int, default=256, help="Samples per data record for every channel")
    parser.add_argument(
        "--channels",
        default=DEFAULT_CHANNELS,
        help="Comma-separated label:tone_hz pairs (default: %(default)s)",
    )
    parser.add_argument(
        "--record-duration",
        type=float,
        default=None,
        help="Data-record duration in seconds (0.001-60, default 1)",
    )
    parser.add_argument(
        "--patient-json",
        type=Path,
        help="Optional JSON object with patient fields (name, code, sex, admin_code, ...)",
    )
    parser.add_argument(
        "--no-annotations",
        action="store_true",
        help="Do not add the start/end-of-recording annotations",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def _default_patient_info() -> PatientInfo:
    return PatientInfo(
        name="Demo",
        code="0001",
        sex=Sex.FEMALE,
        admin_code="0001",
        technician="biosig-edf",
        equipment="biosig-edf",
    )


def _load_patient_info(path: Path | None) -> PatientInfo:
    if not path:
        return _default_patient_info()
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Unable to parse patient JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SystemExit("Patient JSON must be an object")
    known = set(PatientInfo.__dataclass_fields__)
    unknown = sorted(set(data) - known)
    if unknown:
        raise SystemExit(f"Unknown patient field(s): {', '.join(unknown)}")
    base = _default_patient_info()
    merged = {name: getattr(base, name) for name in known}
    merged.update(data)
    return PatientInfo(**merged)


def _parse_channels(spec: str, rate: int) -> list[tuple[Channel, float]]:
    channels: list[tuple[Channel, float]] = []
    for item in spec.split(","):
        item = item.strip()
        if not item:
            continue
        label, sep, tone = item.partition(":")
        if not sep:
            raise SystemExit(f"Channel '{item}' must look like label:tone_hz")
        try:
            tone_hz = float(tone)
        except ValueError as exc:
            raise SystemExit(f"Channel '{item}' has a non-numeric tone") from exc
        channel = Channel(
            label=label.strip(),
            transducer="AgAgCl cup electrodes",
            digital_max=32767,
            digital_min=-32768,
            physical_max=2000.0,
            physical_min=-2000.0,
            physical_dimension="mV",
            sample_frequency=rate,
        )
        channels.append((channel, tone_hz))
    if not channels:
        raise SystemExit("At least one channel is required")
    return channels


def sine_frames(
    tones: list[float],
    rate: int,
    seconds: int,
    record_duration: float = 1.0,
) -> Iterator[list[np.ndarray]]:
    """Yield one frame per data record with a sine tone per channel."""

    t = np.arange(rate, dtype=np.float64) * (record_duration / rate)
    for record in range(seconds):
        offset = record * record_duration
        yield [np.sin(2.0 * np.pi * tone * (t + offset)) * AMPLITUDE for tone in tones]


def generate(
    output_path: Path,
    *,
    seconds: int,
    rate: int,
    channel_spec: str = DEFAULT_CHANNELS,
    record_duration: float | None = None,
    patient: PatientInfo | None = None,
    annotations: bool = True,
) -> Path:
    parsed = _parse_channels(channel_spec, rate)
    header = Header(
        patient_info=patient or _default_patient_info(),
        channels=[channel for channel, _ in parsed],
        record_duration=record_duration,
    )
    duration = record_duration or 1.0
    with EDFWriter(output_path, header) as writer:
        writer.write_frames(sine_frames([tone for _, tone in parsed], rate, seconds, duration))
        if annotations:
            writer.write_annotation(0, 0, "Start of recording")
            writer.write_annotation(round(seconds * duration * 1_000_000), 0, "End of recording")
    logger.info(
        "Wrote %s (%d channels, %d records of %.3f s)",
        output_path.name,
        len(parsed),
        seconds,
        duration,
    )
    return output_path


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    if args.seconds < 0:
        parser.error("--seconds must not be negative")
    if args.rate <= 0:
        parser.error("--rate must be positive")

    try:
        patient = _load_patient_info(args.patient_json)
        generate(
            Path(args.output_path).expanduser(),
            seconds=args.seconds,
            rate=args.rate,
            channel_spec=args.channels,
            record_duration=args.record_duration,
            patient=patient,
            annotations=not args.no_annotations,
        )
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1
    except EDFWriterError as exc:
        logger.error("Failed to write %s: %s", args.output_path, exc)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

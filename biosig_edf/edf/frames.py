from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

import numpy as np

from .errors import RepairLimitExceeded, ShapeError
from .session import Session
from .types import Channel, Frame

logger = logging.getLogger(__name__)


def _as_channels(frame: Frame) -> list[np.ndarray]:
    return [np.array(samples, dtype=np.float64).ravel() for samples in frame]


class FramePipeline:
    """Validate, repair and write data records through a :class:`Session`.

    A dropped or glitched second should not abort a long recording, so
    malformed frames are patched from the last accepted frame and logged:

    * a frame whose channel count differs from the previous one is replaced
      by a copy of the previous frame;
    * a channel containing NaN takes the previous frame's samples for that
      channel (zeros when there is no previous frame yet).

    The last accepted frame is kept between calls, so ``write_frame`` in a
    loop gets the same treatment as one ``write_frames`` batch. Frame indices
    in log messages and errors count every frame this pipeline has accepted.
    """

    def __init__(
        self,
        session: Session,
        channels: Sequence[Channel],
        *,
        max_consecutive_repairs: int | None = None,
    ) -> None:
        self._session = session
        self._channels = tuple(channels)
        self._previous: list[np.ndarray] | None = None
        self._consecutive_repairs = 0
        self.max_consecutive_repairs = max_consecutive_repairs
        self.frames_written = 0
        self.frames_repaired = 0

    def write_frame(self, frame: Frame) -> None:
        self.write_frames([frame])

    def write_frames(self, frames: Iterable[Frame]) -> int:
        """Write frames in order; returns how many were written."""

        written = 0
        for frame in frames:
            # Repair state and the frame counter belong to the same critical
            # section as the engine writes.
            with self._session.lock:
                index = self.frames_written
                channels, repaired = self._repair(_as_channels(frame), index)
                self._check_repair_budget(repaired, index)
                periods = self._check_shape(channels, index)
                self._write(channels, periods, index)
                self._previous = channels
                self.frames_written += 1
            written += 1
        return written

    def _repair(self, channels: list[np.ndarray], index: int) -> tuple[list[np.ndarray], bool]:
        previous = self._previous
        if previous is not None and len(channels) != len(previous):
            logger.warning(
                "Frame %d has %d channel(s) but the previous frame had %d; reusing the previous frame",
                index,
                len(channels),
                len(previous),
            )
            return [samples.copy() for samples in previous], True

        repaired = False
        for ch_idx, samples in enumerate(channels):
            if not np.isnan(samples).any():
                continue
            repaired = True
            if previous is None:
                logger.warning(
                    "Frame %d channel %d contains NaN and there is no previous frame; replacing NaN with 0",
                    index,
                    ch_idx,
                )
                channels[ch_idx] = np.nan_to_num(samples, nan=0.0)
            else:
                logger.warning(
                    "Frame %d channel %d contains NaN; reusing the previous frame's samples",
                    index,
                    ch_idx,
                )
                channels[ch_idx] = previous[ch_idx].copy()
        return channels, repaired

    def _check_repair_budget(self, repaired: bool, index: int) -> None:
        if not repaired:
            self._consecutive_repairs = 0
            return
        self.frames_repaired += 1
        self._consecutive_repairs += 1
        limit = self.max_consecutive_repairs
        if limit is not None and self._consecutive_repairs > limit:
            raise RepairLimitExceeded(
                f"{self._consecutive_repairs} consecutive frames needed repair (limit {limit})",
                frame_index=index,
            )

    def _check_shape(self, channels: list[np.ndarray], index: int) -> int:
        if len(channels) != len(self._channels):
            raise ShapeError(
                f"frame has {len(channels)} channel(s), header declares {len(self._channels)}",
                frame_index=index,
            )
        periods = channels[0].size // self._channels[0].sample_frequency
        for ch_idx, (samples, channel) in enumerate(zip(channels, self._channels)):
            expected = channel.sample_frequency
            if samples.size != expected:
                logger.warning(
                    "Frame %d channel %d (%s) has %d samples, declared sample frequency is %d",
                    index,
                    ch_idx,
                    channel.label,
                    samples.size,
                    expected,
                )
            if samples.size == 0 or samples.size % expected:
                raise ShapeError(
                    f"{samples.size} samples is not a whole number of {expected}-sample periods",
                    frame_index=index,
                    channel=ch_idx,
                )
            count = samples.size // expected
            if count != periods:
                raise ShapeError(
                    f"channel spans {count} data record(s), channel 0 spans {periods}",
                    frame_index=index,
                    channel=ch_idx,
                )
        return periods

    def _write(self, channels: list[np.ndarray], periods: int, index: int) -> None:
        # EDFlib expects signal 0..N-1 for one data record before the next record.
        with self._session.lock:
            for period in range(periods):
                for ch_idx, (samples, channel) in enumerate(zip(channels, self._channels)):
                    size = channel.sample_frequency
                    self._session.write_record(
                        samples[period * size : (period + 1) * size],
                        size,
                        channel=ch_idx,
                        frame_index=index,
                    )

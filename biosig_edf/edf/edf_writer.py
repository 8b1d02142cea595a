from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from .annotations import AnnotationSink
from .engine import CodecEngine
from .errors import NotOpenError, OpenError
from .frames import FramePipeline
from .session import Session
from .types import Annotation, Frame, Header

logger = logging.getLogger(__name__)


class EDFWriter:
    """Write an EDF+/BDF+ recording frame by frame.

    ``file_path`` selects the container: ``.bdf`` gives BDF+, anything else
    EDF+. Each frame holds one data record: a sequence of per-channel samples
    in ``header.channels`` order, ``sample_frequency`` samples per channel.

    Use it as a context manager so the file is finished on every exit path::

        with EDFWriter("night.bdf", header) as writer:
            writer.write_frames(frames)
            writer.write_annotation(0, -1, "Lights off")
    """

    def __init__(
        self,
        file_path: str | Path,
        header: Header,
        *,
        engine: CodecEngine | None = None,
        max_consecutive_repairs: int | None = None,
    ) -> None:
        self.file_path = Path(file_path)
        self.header = header
        self._engine = engine
        self._max_consecutive_repairs = max_consecutive_repairs
        self._session: Session | None = None
        self._frames: FramePipeline | None = None
        self._annotations: AnnotationSink | None = None

    @property
    def is_open(self) -> bool:
        return self._session is not None and self._session.is_open

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def frames_written(self) -> int:
        return self._frames.frames_written if self._frames else 0

    @property
    def frames_repaired(self) -> int:
        return self._frames.frames_repaired if self._frames else 0

    def open(self) -> None:
        """Open the file and write the header fields.

        If a header field is rejected the file stays open; call ``finish()``
        (or leave the ``with`` block) to release it.
        """

        if self._session is not None:
            raise OpenError(str(self.file_path), "writer was already opened")
        session = Session(self._engine)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            session.open(self.file_path, self.header)
        finally:
            if session.is_open:
                self._session = session
        self._frames = FramePipeline(
            session,
            self.header.channels,
            max_consecutive_repairs=self._max_consecutive_repairs,
        )
        self._annotations = AnnotationSink(session)

    def _require_open(self) -> tuple[FramePipeline, AnnotationSink]:
        if not self.is_open or self._frames is None or self._annotations is None:
            raise NotOpenError("EDFWriter has not opened the file yet; call open() first")
        return self._frames, self._annotations

    def write_frame(self, frame: Frame) -> None:
        frames, _ = self._require_open()
        frames.write_frame(frame)

    def write_frames(self, frames: Iterable[Frame]) -> int:
        pipeline, _ = self._require_open()
        return pipeline.write_frames(frames)

    def write_annotation(self, onset: int, duration: int, description: str) -> None:
        """Add an annotation; ``onset``/``duration`` are microseconds, negative duration means unknown."""

        _, sink = self._require_open()
        sink.write(Annotation(onset, duration, description))

    def write_annotations(self, annotations: Iterable[Annotation]) -> int:
        _, sink = self._require_open()
        return sink.write_many(annotations)

    def finish(self) -> None:
        if self._session is None or not self._session.is_open:
            return
        self._session.finish()
        logger.info(
            "Finished %s: %d frame(s), %d repaired",
            self.file_path.name,
            self.frames_written,
            self.frames_repaired,
        )

    def __enter__(self) -> EDFWriter:
        try:
            self.open()
        except BaseException:
            self.finish()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finish()

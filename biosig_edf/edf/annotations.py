from __future__ import annotations

from collections.abc import Iterable

from .session import Session
from .types import Annotation


class AnnotationSink:
    """Forward annotations to the session as they arrive; no ordering checks."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self.written = 0

    def write(self, annotation: Annotation) -> None:
        self._session.write_annotation(annotation.onset, annotation.duration, annotation.description)
        self.written += 1

    def write_many(self, annotations: Iterable[Annotation]) -> int:
        count = 0
        for annotation in annotations:
            self.write(annotation)
            count += 1
        return count

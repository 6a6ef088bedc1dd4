"""Frame source and sink interfaces.

The pipeline only talks to these abstract bases. Concrete MDAnalysis-backed
implementations live in :mod:`mdcenter.io.universe`; the in-memory versions
here are used for structure-only runs and for testing the pipeline with
synthetic frames.

Sources and sinks are context managers. The pipeline enters each source when
it starts reading it and always exits it, including on early termination
and errors.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Optional

from mdcenter.pipeline.frames import Frame

LOGGER = logging.getLogger(__name__)


class FrameSource(ABC):
    """Lazy, forward-only sequence of frames from one input.

    Attributes
    ----------
    name : str
        Label used in log and error messages (usually the file path).
    has_time : bool
        Whether frames carry a reliable simulation time.
    """

    name: str = "source"
    has_time: bool = True

    @property
    @abstractmethod
    def n_atoms(self) -> int:
        """Number of atoms in every frame."""

    @abstractmethod
    def frames(self) -> Iterator[Frame]:
        """Yield frames in order. May only be consumed once."""

    def open(self) -> None:
        """Acquire underlying resources."""

    def close(self) -> None:
        """Release underlying resources."""

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class FrameSink(ABC):
    """Destination for transformed frames, written in emission order."""

    name: str = "sink"

    def __init__(self) -> None:
        self.n_written = 0

    @abstractmethod
    def _write(self, frame: Frame) -> None:
        """Persist one frame."""

    def write(self, frame: Frame) -> None:
        """Write a frame and count it."""
        self._write(frame)
        self.n_written += 1

    def open(self) -> None:
        """Acquire underlying resources."""

    def close(self) -> None:
        """Flush and release underlying resources."""

    def __enter__(self) -> "FrameSink":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class InMemorySource(FrameSource):
    """Source over an iterable of already-built frames.

    Parameters
    ----------
    frames : iterable of Frame
        Frames to yield. Consumed lazily, once.
    n_atoms : int
        Atom count of every frame.
    name : str
        Label for messages.
    has_time : bool
        Whether the frames carry a reliable time.

    Examples
    --------
    >>> source = InMemorySource([frame_a, frame_b], n_atoms=3, name="part1")
    """

    def __init__(
        self,
        frames: Iterable[Frame],
        n_atoms: int,
        name: str = "memory",
        has_time: bool = True,
    ) -> None:
        self._frames = frames
        self._n_atoms = n_atoms
        self.name = name
        self.has_time = has_time
        self.closed = False

    @property
    def n_atoms(self) -> int:
        return self._n_atoms

    def frames(self) -> Iterator[Frame]:
        yield from self._frames

    def close(self) -> None:
        self.closed = True


class MemorySink(FrameSink):
    """Sink that keeps copies of written frames in a list.

    Attributes
    ----------
    frames : list[Frame]
        Copies of every written frame, in order.
    """

    name = "memory"

    def __init__(self, limit: Optional[int] = None) -> None:
        super().__init__()
        self.frames: list[Frame] = []
        self.limit = limit
        self.closed = False

    def _write(self, frame: Frame) -> None:
        if self.limit is not None and len(self.frames) >= self.limit:
            raise OSError(f"Memory sink is full ({self.limit} frames)")
        self.frames.append(
            Frame(
                positions=frame.positions.copy(),
                box=frame.box,
                time=frame.time,
                step=frame.step,
            )
        )

    def close(self) -> None:
        self.closed = True

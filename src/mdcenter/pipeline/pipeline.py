"""Streaming trajectory pipeline.

The pipeline reads frames from one or more sources in order, filters them,
centers the survivors and writes them to a sink. It never holds more than
one frame at a time.

Per-frame Decisions
===================

Every frame read goes through the checks below, in this order:

1. **Boundary duplicate**: the first frame of a non-first source whose step
   equals the step of the previous source's last frame is skipped. The
   earlier copy has already been centered and written.
2. **Time window**: frames with ``time < begin`` are skipped; the first frame
   with ``time > end`` stops the whole pipeline. Times are compared in
   single precision, the precision XTC and TRR files store them in, so a
   frame written at exactly ``begin`` or ``end`` is kept.
3. **Stride**: frames surviving 1-2 are numbered from 0 across all sources;
   only numbers divisible by ``step`` are kept.

Kept frames are centered (translated and wrapped) and written.

State
-----
All streaming state (stride counter, previous source's last step, counters)
lives in a :class:`PipelineCursor` that is created per run, so the pipeline
can be driven with synthetic frame sequences in tests.

Examples
--------
>>> pipeline = TrajectoryPipeline(transformer, begin=10.0, end=50.0, step=2)
>>> stats = pipeline.run([source_a, source_b], sink)
>>> stats.frames_written
5
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from mdcenter.constants import PROGRESS_INTERVAL
from mdcenter.core.transform import FrameTransformer
from mdcenter.exceptions import (
    CenteringError,
    ConfigurationError,
    FrameProcessingError,
    FrameShapeError,
    OutputWriteError,
    StartTimeNotFoundError,
    TrajectoryReadError,
)
from mdcenter.pipeline.frames import Frame
from mdcenter.pipeline.sources import FrameSink, FrameSource

LOGGER = logging.getLogger(__name__)


def _single(time: float) -> np.float32:
    return np.float32(time)


class FrameDecision(str, Enum):
    """What the pipeline does with a frame it has read."""

    KEEP = "keep"
    DUPLICATE = "duplicate"
    BEFORE_BEGIN = "before_begin"
    STRIDE = "stride"
    END = "end"


@dataclass
class PipelineStats:
    """Counters reported at the end of a run.

    Attributes
    ----------
    frames_read : int
        Frames pulled from all sources (including the one that hit ``end``).
    frames_written : int
        Frames centered and written.
    skipped_duplicate : int
        Boundary frames dropped as duplicates.
    skipped_before_begin : int
        Frames before the start time.
    skipped_stride : int
        Frames dropped by the stride filter.
    sources_read : int
        Sources opened.
    stopped_at_end : bool
        Whether the end time terminated the run early.
    """

    frames_read: int = 0
    frames_written: int = 0
    skipped_duplicate: int = 0
    skipped_before_begin: int = 0
    skipped_stride: int = 0
    sources_read: int = 0
    stopped_at_end: bool = False

    @property
    def frames_skipped(self) -> int:
        """Frames read but not written (excluding the terminating frame)."""
        return self.skipped_duplicate + self.skipped_before_begin + self.skipped_stride

    def summary(self) -> str:
        """One-line summary for logging."""
        text = (
            f"{self.frames_written} frame(s) written, {self.frames_read} read from "
            f"{self.sources_read} source(s); skipped: {self.skipped_duplicate} duplicate, "
            f"{self.skipped_before_begin} before start, {self.skipped_stride} by stride"
        )
        if self.stopped_at_end:
            text += "; stopped at end time"
        return text


@dataclass
class PipelineCursor:
    """Streaming state carried between frames and sources.

    Attributes
    ----------
    previous_step : int, optional
        Step of the last frame read from the most recent non-empty source.
    current_step : int, optional
        Step of the last frame read from the current source.
    filtered_index : int
        Number of frames that passed dedup and the time window so far.
    reached_begin : bool
        Whether any frame at or after the start time was seen.
    stats : PipelineStats
        Counters.
    """

    previous_step: Optional[int] = None
    current_step: Optional[int] = None
    filtered_index: int = 0
    reached_begin: bool = False
    stats: PipelineStats = field(default_factory=PipelineStats)

    def start_source(self) -> None:
        self.current_step = None
        self.stats.sources_read += 1

    def finish_source(self, had_frames: bool) -> None:
        # Empty sources leave the previous step in place
        if had_frames:
            self.previous_step = self.current_step


class TrajectoryPipeline:
    """Filter, center and emit frames from concatenated sources.

    Parameters
    ----------
    transformer : FrameTransformer
        Centering transformation applied to every kept frame.
    begin : float, optional
        Start time in ps; earlier frames are skipped.
    end : float, optional
        End time in ps; the first later frame stops the run.
    step : int
        Keep every ``step``-th filtered frame (default 1).
    progress_interval : int
        Log a progress message every this many frames written from one
        source.

    Raises
    ------
    ConfigurationError
        If ``step < 1``, ``progress_interval < 1`` or ``begin > end``.
    """

    def __init__(
        self,
        transformer: FrameTransformer,
        begin: Optional[float] = None,
        end: Optional[float] = None,
        step: int = 1,
        progress_interval: int = PROGRESS_INTERVAL,
    ) -> None:
        if step < 1:
            raise ConfigurationError(f"Stride must be a positive integer, got {step}")
        if progress_interval < 1:
            raise ConfigurationError(
                f"Progress interval must be a positive integer, got {progress_interval}"
            )
        if begin is not None and end is not None and begin > end:
            raise ConfigurationError(f"Start time ({begin} ps) is after end time ({end} ps)")

        self.transformer = transformer
        self.begin = begin
        self.end = end
        self.step = step
        self.progress_interval = progress_interval

    @property
    def uses_time(self) -> bool:
        """Whether a time window is active."""
        return self.begin is not None or self.end is not None

    def check_sources(self, sources: Sequence[FrameSource]) -> None:
        """Validate sources before any frame is read.

        Raises
        ------
        ConfigurationError
            If no source is given, or a time window is requested for a
            source without per-frame time.
        FrameShapeError
            If a source's atom count differs from the system's.
        """
        if not sources:
            raise ConfigurationError("At least one input source is required")

        for source in sources:
            if self.uses_time and not source.has_time:
                raise ConfigurationError(
                    f"Time window requested, but '{source.name}' has no reliable "
                    "per-frame time information"
                )
            if source.n_atoms != self.transformer.n_atoms:
                raise FrameShapeError(
                    f"'{source.name}' contains {source.n_atoms} atoms, "
                    f"but the structure has {self.transformer.n_atoms}"
                )

    def classify(self, frame: Frame, boundary: bool, cursor: PipelineCursor) -> FrameDecision:
        """Decide what to do with a frame and update the stride counter.

        Parameters
        ----------
        frame : Frame
            Frame just read.
        boundary : bool
            True for the first frame of a non-first source.
        cursor : PipelineCursor
            Streaming state; ``filtered_index`` and ``reached_begin`` are
            updated.
        """
        if (
            boundary
            and frame.step is not None
            and cursor.previous_step is not None
            and frame.step == cursor.previous_step
        ):
            return FrameDecision.DUPLICATE

        if self.uses_time:
            if frame.time is None:
                raise TrajectoryReadError(
                    "Frame has no simulation time, but a time window was requested"
                )
            if self.begin is not None and _single(frame.time) < _single(self.begin):
                return FrameDecision.BEFORE_BEGIN
            cursor.reached_begin = True
            if self.end is not None and _single(frame.time) > _single(self.end):
                return FrameDecision.END

        index = cursor.filtered_index
        cursor.filtered_index += 1
        if index % self.step != 0:
            return FrameDecision.STRIDE
        return FrameDecision.KEEP

    def run(self, sources: Sequence[FrameSource], sink: FrameSink) -> PipelineStats:
        """Process all sources and write kept frames to ``sink``.

        Returns
        -------
        PipelineStats
            Counters for the run.

        Raises
        ------
        FrameProcessingError
            If centering a frame fails.
        OutputWriteError
            If the sink cannot write a frame.
        StartTimeNotFoundError
            If a start time was given and no frame reached it.
        """
        self.check_sources(sources)
        cursor = PipelineCursor()
        stats = cursor.stats

        with sink:
            for source_index, source in enumerate(sources):
                LOGGER.info(f"Reading '{source.name}'")
                cursor.start_source()
                stopped = self._run_source(source, source_index, sink, cursor)
                if stopped:
                    stats.stopped_at_end = True
                    break

        if self.begin is not None and not cursor.reached_begin:
            raise StartTimeNotFoundError(
                f"No frame at or after the start time ({self.begin:g} ps) was found in the input"
            )

        LOGGER.info(f"Centering finished: {stats.summary()}")
        return stats

    def _run_source(
        self,
        source: FrameSource,
        source_index: int,
        sink: FrameSink,
        cursor: PipelineCursor,
    ) -> bool:
        """Process one source. Returns True if the end time was reached."""
        stats = cursor.stats
        had_frames = False
        written = 0

        with source:
            for position, frame in enumerate(source.frames()):
                had_frames = True
                stats.frames_read += 1
                boundary = position == 0 and source_index > 0
                decision = self.classify(frame, boundary, cursor)
                cursor.current_step = frame.step

                if decision == FrameDecision.END:
                    LOGGER.info(f"Reached end time at {frame.describe()} in '{source.name}'")
                    LOGGER.info(f"Centered {written} frame(s) from '{source.name}'")
                    cursor.finish_source(had_frames)
                    return True

                if decision == FrameDecision.DUPLICATE:
                    LOGGER.info(
                        f"Skipping first frame of '{source.name}' ({frame.describe()}): "
                        "duplicate of the previous trajectory's last frame"
                    )
                    stats.skipped_duplicate += 1
                elif decision == FrameDecision.BEFORE_BEGIN:
                    stats.skipped_before_begin += 1
                elif decision == FrameDecision.STRIDE:
                    stats.skipped_stride += 1
                else:
                    self._emit(frame, source, position, sink)
                    stats.frames_written += 1
                    written += 1
                    if written % self.progress_interval == 0:
                        LOGGER.info(
                            f"Centering '{source.name}': {written} frame(s) written "
                            f"({frame.describe()})"
                        )

        LOGGER.info(f"Centered {written} frame(s) from '{source.name}'")
        cursor.finish_source(had_frames)
        return False

    def _emit(self, frame: Frame, source: FrameSource, position: int, sink: FrameSink) -> None:
        stage = "centering"
        try:
            translation = self.transformer.translation(frame)
            stage = "wrapping"
            self.transformer.shift(frame, translation)
        except CenteringError as exc:
            raise FrameProcessingError(
                str(exc), source=source.name, frame_index=position, time=frame.time, stage=stage
            ) from exc

        try:
            sink.write(frame)
        except OutputWriteError:
            raise
        except OSError as exc:
            raise OutputWriteError(
                f"Could not write frame {position} of '{source.name}' to '{sink.name}': {exc}"
            ) from exc

        LOGGER.debug(f"Wrote {frame.describe()} from '{source.name}'")

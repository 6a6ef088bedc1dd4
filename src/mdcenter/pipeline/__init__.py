"""Streaming frame pipeline and its source/sink interfaces."""

from mdcenter.pipeline.frames import Frame
from mdcenter.pipeline.pipeline import (
    FrameDecision,
    PipelineCursor,
    PipelineStats,
    TrajectoryPipeline,
)
from mdcenter.pipeline.sources import FrameSink, FrameSource, InMemorySource, MemorySink

__all__ = [
    "Frame",
    "FrameDecision",
    "FrameSink",
    "FrameSource",
    "InMemorySource",
    "MemorySink",
    "PipelineCursor",
    "PipelineStats",
    "TrajectoryPipeline",
]

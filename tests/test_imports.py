"""Test that all public modules can be imported."""

import logging

import pytest


class TestImports:
    """Test basic package imports."""

    def test_import_mdcenter(self):
        """Test main package import."""
        import mdcenter

        assert hasattr(mdcenter, "__version__")

    def test_lazy_attributes(self):
        """Test lazily imported top-level names."""
        import mdcenter

        assert mdcenter.CenteringConfig is not None
        assert mdcenter.FrameTransformer is not None
        assert mdcenter.TrajectoryPipeline is not None

    def test_unknown_attribute(self):
        import mdcenter

        with pytest.raises(AttributeError):
            mdcenter.SimulationRunner

    def test_core_without_mdanalysis(self):
        """The core and pipeline subpackages only need numpy."""
        from mdcenter.core import Box, FrameTransformer, circular_mean
        from mdcenter.pipeline import InMemorySource, MemorySink, TrajectoryPipeline

        assert Box is not None
        assert FrameTransformer is not None
        assert circular_mean is not None
        assert InMemorySource is not None
        assert MemorySink is not None
        assert TrajectoryPipeline is not None

    def test_version_format(self):
        """Test version string format."""
        import mdcenter

        version = mdcenter.__version__
        parts = version.split(".")
        assert len(parts) >= 2, f"Version {version} should have at least major.minor"
        assert parts[0].isdigit(), f"Major version should be numeric: {parts[0]}"
        assert parts[1].isdigit(), f"Minor version should be numeric: {parts[1]}"

    def test_exception_hierarchy(self):
        from mdcenter.exceptions import (
            CenteringError,
            ConfigurationError,
            FrameProcessingError,
            MissingMassError,
            StartTimeNotFoundError,
        )

        assert issubclass(MissingMassError, ConfigurationError)
        assert issubclass(StartTimeNotFoundError, ConfigurationError)
        assert issubclass(FrameProcessingError, CenteringError)

    def test_frame_processing_error_message(self):
        from mdcenter.exceptions import FrameProcessingError

        error = FrameProcessingError("bad", source="md.xtc", frame_index=3, time=30.0)
        assert str(error) == "centering failed at frame 3 of 'md.xtc' (t = 30 ps): bad"


class TestLogging:
    """Test the logging setup used by the CLI."""

    def test_levels(self):
        from mdcenter.logging_utils import setup_logging

        setup_logging()
        assert logging.root.level == logging.INFO
        setup_logging(quiet=True)
        assert logging.root.level == logging.WARNING
        setup_logging(quiet=True, debug=True)
        assert logging.root.level == logging.DEBUG

    def test_mdanalysis_info_suppressed(self):
        from mdcenter.logging_utils import setup_logging

        setup_logging()
        assert logging.getLogger("MDAnalysis").level == logging.WARNING

    def test_plain_output_when_not_a_tty(self):
        from mdcenter.logging_utils import ColoredFormatter

        formatter = ColoredFormatter("%(message)s")
        record = logging.LogRecord("x", logging.WARNING, __file__, 1, "careful", None, None)
        assert formatter.format(record) == "careful"

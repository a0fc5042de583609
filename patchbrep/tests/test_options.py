"""Tests for export options and the error hierarchy."""

import pytest


class TestExportOptions:
    def test_defaults(self):
        from patchbrep import ExportOptions, GregoryAccuracy
        options = ExportOptions()
        assert options.gregory_accuracy is GregoryAccuracy.BSPLINE_END_CAPS
        assert options.stitch_tolerance == 1e-6
        assert options.use_superpatches
        assert not options.stitch_edges
        assert not options.explicit_boundaries

    def test_accuracy_from_string(self):
        from patchbrep import ExportOptions, GregoryAccuracy
        options = ExportOptions(gregory_accuracy='high_precision')
        assert options.gregory_accuracy is GregoryAccuracy.HIGH_PRECISION

    def test_unknown_accuracy(self):
        from patchbrep import ExportOptions
        with pytest.raises(ValueError):
            ExportOptions(gregory_accuracy='exact')

    def test_negative_tolerance(self):
        from patchbrep import ExportOptions
        with pytest.raises(ValueError, match="non-negative"):
            ExportOptions(stitch_tolerance=-1e-3)

    def test_zero_tolerance_allowed(self):
        from patchbrep import ExportOptions
        assert ExportOptions(stitch_tolerance=0.0).stitch_tolerance == 0.0


class TestErrors:
    def test_hierarchy(self):
        from patchbrep import (
            EvaluationFailedError,
            InvalidControlPointsError,
            InvalidWireError,
            PatchExportError,
            UnsupportedPatchTypeError,
        )
        assert issubclass(InvalidControlPointsError, ValueError)
        assert issubclass(UnsupportedPatchTypeError, TypeError)
        assert issubclass(EvaluationFailedError, RuntimeError)
        assert issubclass(InvalidWireError, ValueError)
        for exc in (InvalidControlPointsError, UnsupportedPatchTypeError,
                    EvaluationFailedError, InvalidWireError):
            assert issubclass(exc, PatchExportError)

    def test_unsupported_message(self):
        from patchbrep import PatchType, UnsupportedPatchTypeError
        err = UnsupportedPatchTypeError(PatchType.LOOP, [PatchType.REGULAR])
        assert err.patch_type is PatchType.LOOP
        assert "LOOP" in str(err)
        assert "REGULAR" in str(err)

"""
Exception hierarchy for patch export.

Only conditions that make a whole conversion impossible are raised. Local
problems (an unmergeable rectangle, an unclosable wire) are logged and the
offending patch degrades to a simpler representation or is dropped.
"""


class PatchExportError(Exception):
    """Base class for all patchbrep errors."""


class InvalidControlPointsError(PatchExportError, ValueError):
    """Control-vertex indices out of range, wrong CV count, or an empty result."""


class UnsupportedPatchTypeError(PatchExportError, TypeError):
    """A patch type reached a code path that cannot convert it."""

    def __init__(self, patch_type, available=()):
        self.patch_type = patch_type
        msg = f"Unsupported patch type: {patch_type!r}"
        if available:
            msg += f". Available: {[str(a) for a in available]}"
        super().__init__(msg)


class EvaluationFailedError(PatchExportError, RuntimeError):
    """The patch evaluator returned no point for a requested (u, v)."""


class InvalidWireError(PatchExportError, ValueError):
    """A wire failed validation while building a face."""

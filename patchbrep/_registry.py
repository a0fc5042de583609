"""
Registry mapping patch types to control-net extractors.

Usage
-----
    control_net_extractors = PatchTypeRegistry("control_net")
    control_net_extractors.register(PatchType.REGULAR, extract_regular)
    fn = control_net_extractors[PatchType.REGULAR]
    control_net_extractors.available()  # [PatchType.REGULAR]
"""

from typing import Callable, Hashable

from patchbrep._errors import UnsupportedPatchTypeError


class PatchTypeRegistry:
    """Registry of per-patch-type conversion functions.

    Looking up a type nobody registered raises
    :class:`~patchbrep._errors.UnsupportedPatchTypeError`, so callers get the
    same error whether a type is unknown or merely unsupported.

    Parameters
    ----------
    name : str
        Human-readable name used in log messages (e.g. "control_net").
    """

    def __init__(self, name: str):
        self.name = name
        self._functions: dict[Hashable, Callable] = {}

    def register(self, patch_type: Hashable, fn: Callable) -> Callable:
        """Register ``fn`` for ``patch_type`` and return it."""
        self._functions[patch_type] = fn
        return fn

    def __getitem__(self, patch_type: Hashable) -> Callable:
        try:
            return self._functions[patch_type]
        except KeyError:
            raise UnsupportedPatchTypeError(patch_type, self.available()) from None

    def __contains__(self, patch_type: Hashable) -> bool:
        return patch_type in self._functions

    def available(self) -> list:
        """Return the registered patch types in registration order."""
        return list(self._functions.keys())

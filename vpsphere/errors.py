from __future__ import annotations


class VPSphereError(Exception):
    """Base class for contract violations raised by vpsphere."""


class InvalidCapacityError(VPSphereError, ValueError):
    """Raised when a nearest set is constructed with ``k < 1``."""


class InvalidDistanceError(VPSphereError, ValueError):
    """Raised when a candidate distance is negative, NaN or infinite."""


class InvalidCandidateError(VPSphereError, ValueError):
    """Raised when a candidate index is not a non-negative integer."""


class InvalidPointError(VPSphereError, ValueError):
    """Raised for non-finite angles or a polar angle outside ``[0, pi]``."""


class UseAfterExtractError(VPSphereError, RuntimeError):
    """Raised when a nearest set is used after :meth:`extract`."""


class NumericDomainError(VPSphereError, ArithmeticError):
    """Raised if an inverse-cosine argument is NaN after clamping."""


__all__ = [
    "VPSphereError",
    "InvalidCapacityError",
    "InvalidDistanceError",
    "InvalidCandidateError",
    "InvalidPointError",
    "UseAfterExtractError",
    "NumericDomainError",
]

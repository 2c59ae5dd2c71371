# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Scott Friedman and Project Contributors

"""
Exception types raised by the band analysis package.
"""


class InvalidParameterError(ValueError):
    """Raised when a cutoff, order, band or configuration value is out of range."""


class InsufficientDataError(ValueError):
    """Raised when a buffer is too short for the requested operation.

    The spectrum estimator only raises this in strict mode; by default a
    short buffer yields an empty spectrum.
    """


class StreamStateError(RuntimeError):
    """Raised on an illegal streaming feeder transition or a re-entrant tick."""

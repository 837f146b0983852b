"""
pnmclean.errors
===============

Exception hierarchy shared by the trigger generation and GLM cleanup
stages.  Every error derives from :class:`PNMError` so callers that
process many subjects can catch one type per unit of work.  Some
classes also derive from the closest built-in exception
(``ValueError``, ``FileNotFoundError``) so that generic handlers keep
working.
"""

from __future__ import annotations


class PNMError(Exception):
    """Base class for all errors raised by :mod:`pnmclean`."""


class ParseError(PNMError, ValueError):
    """A trace file, timestamp or metadata value could not be parsed."""


class AlignmentError(PNMError):
    """Two physiological streams cannot be aligned.

    Raised for empty streams, streams recorded at different sampling
    rates, or when the leading trim would consume the whole trace.
    """


class DimensionMismatchError(PNMError, ValueError):
    """The regressor matrix does not match the volume it should clean."""


class MissingResourceError(PNMError, FileNotFoundError):
    """An expected external file (volume count, EV image, ...) is absent."""


__all__ = [
    'PNMError',
    'ParseError',
    'AlignmentError',
    'DimensionMismatchError',
    'MissingResourceError',
]

"""Exceptions raised by the paper graph."""


class FormatError(ValueError):
    """An imported graph blob could not be parsed or lacks a required section."""

"""
errors.py — Exception types for gencgo.

Only fatal conditions are exceptions.  Recoverable problems (unmapped types,
ambiguous setter groups, lookup misses) are logged and surfaced as TODO
comments in the generated source instead.
"""


class GenError(Exception):
    """Base class for fatal generator errors."""


class HeaderParseError(GenError):
    """libclang reported errors while parsing the input header."""

    def __init__(self, header: str, messages: list[str]):
        self.header = header
        self.messages = messages
        detail = "\n  ".join(messages)
        super().__init__(f"Failed to parse {header}:\n  {detail}")


class TableError(GenError):
    """The curated mapping tables could not be loaded."""


class GenerationError(GenError):
    """A single unit could not be rendered; the caller skips it."""

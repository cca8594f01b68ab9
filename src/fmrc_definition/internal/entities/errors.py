"""Error types raised by the coordinate definition model."""


class StructuralError(ValueError):
    """A definition cannot be constructed from its source.

    Raised (or returned inside a ``Failure``) when a persisted document is
    malformed, a required attribute is missing, a number cannot be parsed,
    or a cross-reference (time coordinate id, vertical coordinate id) does
    not resolve within the same definition.
    """

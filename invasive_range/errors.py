"""
Exceptions raised by the range mapping pipeline.

Every error is fatal: no stage catches an upstream failure.
"""


class RangeMappingError(Exception):
    """Base class for pipeline failures"""


class DataLoadError(RangeMappingError):
    """Input file missing, unreadable or malformed"""


class SchemaMismatchError(RangeMappingError):
    """Boundary sources disagree on fields, geometry type or ids"""


class CoordinateReferenceError(RangeMappingError):
    """Coordinate transform undefined for the given input"""


class EmptyGeometryError(RangeMappingError):
    """An operation expected at least one geometry and received none"""

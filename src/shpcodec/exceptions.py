class ShapefileException(Exception):
    """An exception to handle shapefile specific problems."""


class ShapefileFormatError(ShapefileException):
    """The geometry file is missing or is not a shapefile. Reading stops."""


class ShapefileRecordError(ShapefileException):
    """A single geometry or attribute record could not be decoded.
    The reader records a warning and carries on with the next record."""


class ShapefileArgumentError(ShapefileException, ValueError):
    pass


class GeoJSON_Error(ShapefileException):
    pass

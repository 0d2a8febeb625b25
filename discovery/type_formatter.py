"""
Display form of SQL Server column types, e.g. ``nvarchar(100)`` or ``decimal(18,2)``.
"""

_LENGTH_TYPES = ('varchar', 'char', 'nchar', 'varbinary', 'binary')
_DECIMAL_TYPES = ('decimal', 'numeric')
_FRACTIONAL_SECONDS_TYPES = ('datetime2', 'datetimeoffset', 'time')

DEFAULT_FLOAT_PRECISION = 53
DEFAULT_TIME_SCALE = 7


def format_data_type(type_name: str, max_length: int, precision: int, scale: int) -> str:
    """
    Combine a catalog type name with its length, precision and scale.

    ``max_length`` is the byte length from sys.columns (-1 for MAX), so
    nvarchar lengths are halved to get characters.
    """
    if type_name in _LENGTH_TYPES:
        if max_length == -1:
            return f"{type_name}(max)"
        return f"{type_name}({max_length})"

    if type_name == 'nvarchar':
        if max_length == -1:
            return f"{type_name}(max)"
        return f"{type_name}({max_length // 2})"

    if type_name in _DECIMAL_TYPES:
        return f"{type_name}({precision},{scale})"

    if type_name == 'float':
        if precision > 0 and precision != DEFAULT_FLOAT_PRECISION:
            return f"float({precision})"
        return "float"

    if type_name in _FRACTIONAL_SECONDS_TYPES:
        if scale != DEFAULT_TIME_SCALE:
            return f"{type_name}({scale})"
        return type_name

    return type_name

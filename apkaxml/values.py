from struct import pack, unpack
from typing import Callable

from loguru import logger

from .constants import (
    COMPLEX_UNIT_MASK,
    DIMENSION_UNITS,
    FRACTION_UNITS,
    NO_INDEX,
    RADIX_MULTS,
    TYPE_ATTRIBUTE,
    TYPE_DIMENSION,
    TYPE_FIRST_COLOR_INT,
    TYPE_FIRST_INT,
    TYPE_FLOAT,
    TYPE_FRACTION,
    TYPE_INT_BOOLEAN,
    TYPE_INT_HEX,
    TYPE_LAST_COLOR_INT,
    TYPE_LAST_INT,
    TYPE_REFERENCE,
    TYPE_STRING,
    TYPE_TABLE,
)
from .events import Attribute
from .stringpool import StringPool


def complex_to_float(xcomplex: int) -> float:
    """
    Convert a complex unit (dimension or fraction) into a float.
    The upper 24 bits are a signed mantissa, bits 4 and 5 select the radix.
    """
    mantissa = xcomplex & 0xFFFFFF00
    if mantissa & 0x80000000:
        mantissa -= 1 << 32
    return float(mantissa) * RADIX_MULTS[(xcomplex >> 4) & 3]


def format_value(
    _type: int, _data: int, lookup_string: Callable[[int], str] = lambda ix: "<string>"
) -> str:
    """
    Format a value based on type and data.
    By default, no strings are looked up and `"<string>"` is returned.
    You need to define `lookup_string` in order to actually lookup strings from
    the string table.

    :param _type: The numeric type of the value (the `Res_value.dataType` byte)
    :param _data: The numeric data of the value
    :param lookup_string: A function how to resolve strings from integer IDs
    :returns: the formatted string
    """

    # Function to prepend android prefix for attributes/references from the
    # android library
    fmt_package = lambda x: "android:" if x >> 24 == 1 else ""

    # Function to represent integers
    fmt_int = lambda x: (0x7FFFFFFF & x) - 0x80000000 if x > 0x7FFFFFFF else x

    logger.debug(f"_type: {_type}: {TYPE_TABLE.get(_type, 'unknown')}")

    if _type == TYPE_STRING:
        return lookup_string(_data)

    elif _type == TYPE_ATTRIBUTE:
        return "?{}{:08X}".format(fmt_package(_data), _data)

    elif _type == TYPE_REFERENCE:
        return "@{}{:08X}".format(fmt_package(_data), _data)

    elif _type == TYPE_FLOAT:
        return "%f" % unpack("=f", pack("=L", _data))[0]

    elif _type == TYPE_INT_HEX:
        return "0x%08X" % _data

    elif _type == TYPE_INT_BOOLEAN:
        if _data == 0:
            return "false"
        return "true"

    elif _type == TYPE_DIMENSION and (_data & COMPLEX_UNIT_MASK) < len(DIMENSION_UNITS):
        return "{:f}{}".format(
            complex_to_float(_data), DIMENSION_UNITS[_data & COMPLEX_UNIT_MASK]
        )

    elif _type == TYPE_FRACTION and (_data & COMPLEX_UNIT_MASK) < len(FRACTION_UNITS):
        return "{:f}{}".format(
            complex_to_float(_data) * 100,
            FRACTION_UNITS[_data & COMPLEX_UNIT_MASK],
        )

    elif TYPE_FIRST_COLOR_INT <= _type <= TYPE_LAST_COLOR_INT:
        return "#%08X" % _data

    elif TYPE_FIRST_INT <= _type <= TYPE_LAST_INT:
        return "%d" % fmt_int(_data)

    return "<0x{:X}, type 0x{:02X}>".format(_data, _type)


def attribute_value(string_pool: StringPool, attr: Attribute) -> str:
    """
    The value of an attribute: the literal string if there is one,
    otherwise the formatted typed value.
    """
    if attr.raw_value_id != NO_INDEX:
        return string_pool[attr.raw_value_id]
    return format_value(attr.data_type, attr.typed_value, string_pool.get_string)

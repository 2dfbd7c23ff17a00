# Constants for AXML Files
# see http://aospxref.com/android-13.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#233
#
# Chunk kinds are the full first word of a ResChunk_header, that is the
# 16 bit `type` in the low half and the 16 bit `headerSize` in the high half.
RES_XML_FILE = 0x00080003
RES_STRING_POOL = 0x001C0001
RES_XML_RESOURCE_MAP = 0x00080180
RES_XML_START_NAMESPACE = 0x00100100
RES_XML_END_NAMESPACE = 0x00100101
RES_XML_START_ELEMENT = 0x00100102
RES_XML_END_ELEMENT = 0x00100103
RES_XML_CDATA = 0x00100104

CHUNK_NAMES = {
    RES_XML_FILE: "RES_XML_FILE",
    RES_STRING_POOL: "RES_STRING_POOL",
    RES_XML_RESOURCE_MAP: "RES_XML_RESOURCE_MAP",
    RES_XML_START_NAMESPACE: "RES_XML_START_NAMESPACE",
    RES_XML_END_NAMESPACE: "RES_XML_END_NAMESPACE",
    RES_XML_START_ELEMENT: "RES_XML_START_ELEMENT",
    RES_XML_END_ELEMENT: "RES_XML_END_ELEMENT",
    RES_XML_CDATA: "RES_XML_CDATA",
}

# Flags in the STRING Section
SORTED_FLAG = 1 << 0
UTF8_FLAG = 1 << 8

# Size of ResStringPool_header including the chunk header
STRING_POOL_HEADER_SIZE = 0x1C

# Comment index of a node without comment, also used as "no namespace"
NO_ENTRY = 0xFFFFFFFF
NO_INDEX = -1

# attributeStart (0x14) and attributeSize (0x14) of ResXMLTree_attrExt,
# read as one little-endian word
ATTRIBUTE_FLAGS = 0x00140014

# Sizes of the node chunks, chunk header included
NAMESPACE_CHUNK_SIZE = 24
END_ELEMENT_CHUNK_SIZE = 24
CDATA_CHUNK_SIZE = 28
START_ELEMENT_BASE_SIZE = 36
ATTRIBUTE_SIZE = 20

# Res_value data types
TYPE_NULL = 0x00
TYPE_REFERENCE = 0x01
TYPE_ATTRIBUTE = 0x02
TYPE_STRING = 0x03
TYPE_FLOAT = 0x04
TYPE_DIMENSION = 0x05
TYPE_FRACTION = 0x06
TYPE_DYNAMIC_REFERENCE = 0x07
TYPE_DYNAMIC_ATTRIBUTE = 0x08
TYPE_FIRST_INT = 0x10
TYPE_INT_DEC = 0x10
TYPE_INT_HEX = 0x11
TYPE_INT_BOOLEAN = 0x12
TYPE_FIRST_COLOR_INT = 0x1C
TYPE_INT_COLOR_ARGB8 = 0x1C
TYPE_INT_COLOR_RGB8 = 0x1D
TYPE_INT_COLOR_ARGB4 = 0x1E
TYPE_INT_COLOR_RGB4 = 0x1F
TYPE_LAST_COLOR_INT = 0x1F
TYPE_LAST_INT = 0x1F

# Table used to name the value types in debug output
TYPE_TABLE = {
    TYPE_NULL: "null",
    TYPE_REFERENCE: "reference",
    TYPE_ATTRIBUTE: "attribute",
    TYPE_STRING: "string",
    TYPE_FLOAT: "float",
    TYPE_DIMENSION: "dimension",
    TYPE_FRACTION: "fraction",
    TYPE_DYNAMIC_REFERENCE: "dynamic_reference",
    TYPE_DYNAMIC_ATTRIBUTE: "dynamic_attribute",
    TYPE_INT_DEC: "int_dec",
    TYPE_INT_HEX: "int_hex",
    TYPE_INT_BOOLEAN: "int_boolean",
    TYPE_INT_COLOR_ARGB8: "int_color_argb8",
    TYPE_INT_COLOR_RGB8: "int_color_rgb8",
    TYPE_INT_COLOR_ARGB4: "int_color_argb4",
    TYPE_INT_COLOR_RGB4: "int_color_rgb4",
}

RADIX_MULTS = [0.00390625, 3.051758e-005, 1.192093e-007, 4.656613e-010]
DIMENSION_UNITS = ["px", "dip", "sp", "pt", "in", "mm"]
FRACTION_UNITS = ["%", "%p"]

COMPLEX_UNIT_MASK = 0x0F

import re
from typing import Dict, List, Tuple

from loguru import logger
from lxml import etree

from .constants import NO_INDEX
from .errors import IndexOutOfRangeError, MalformedTreeError
from .events import Attribute, NamespaceEnd, NamespaceStart, TagEnd, TagStart, Text
from .values import attribute_value

# See <https://www.w3.org/TR/xml/#charsets>
# Char ::= #x9 | #xA | #xD | [#x20-#xD7FF] | [#xE000-#xFFFD] | [#x10000-#x10FFFF]
_XML_CHARS = "\t\n\r{}-{}{}-{}{}-{}".format(
    chr(0x20), chr(0xD7FF), chr(0xE000), chr(0xFFFD), chr(0x10000), chr(0x10FFFF)
)
_CHARRANGE = re.compile("^[{}]*$".format(_XML_CHARS))
_REPLACEMENT = re.compile("[^{}]".format(_XML_CHARS))


def build_tree(document) -> etree._Element:
    """
    Assemble the events of a [Document][apkaxml.parser.Document] into a
    lxml ElementTree and return its root.

    A Reference Implementation can be found at http://androidxref.com/9.0.0_r3/xref/frameworks/base/tools/aapt/XMLNode.cpp

    :raises MalformedTreeError: if the tags are not well nested or names are not usable
    """
    pool = document.string_pool
    namespaces: List[Tuple[int, int]] = []
    root = None
    cur = []

    for event in document.events:
        if isinstance(event, NamespaceStart):
            namespaces.append((event.prefix_id, event.uri_id))

        elif isinstance(event, NamespaceEnd):
            # We remove the last namespace mapping matching
            if (event.prefix_id, event.uri_id) in namespaces:
                namespaces.remove((event.prefix_id, event.uri_id))
            else:
                logger.warning(
                    "Reached a NAMESPACE_END without having the namespace stored before? "
                    "Prefix ID: {}, URI ID: {}".format(event.prefix_id, event.uri_id)
                )

        elif isinstance(event, TagStart):
            tag = _qualify(pool, event.namespace_id, _fix_name(pool[event.name_id]))
            try:
                elem = etree.Element(tag, nsmap=_nsmap(pool, namespaces))
                for attr in event.attributes:
                    name = _qualify(
                        pool, attr.namespace_id, _fix_name(_attribute_name(document, attr))
                    )
                    if name in elem.attrib:
                        logger.warning(
                            "Duplicate attribute '{}'! Will overwrite!".format(name)
                        )
                    elem.set(name, _fix_value(attribute_value(pool, attr)))
            except ValueError as e:
                raise MalformedTreeError(
                    "Can not build element '{}' of line {}: {}".format(tag, event.line, e)
                ) from e

            if root is None:
                root = elem
            elif not cur:
                raise MalformedTreeError(
                    "Second root element '{}' at line {}".format(tag, event.line)
                )
            else:
                cur[-1].append(elem)
            cur.append(elem)

        elif isinstance(event, TagEnd):
            tag = _qualify(pool, event.namespace_id, _fix_name(pool[event.name_id]))
            if not cur:
                raise MalformedTreeError(
                    "Too many END_TAG! No element '{}' to close at line {}".format(
                        tag, event.line
                    )
                )
            if cur[-1].tag != tag:
                raise MalformedTreeError(
                    "Closing tag '{}' does not match current element '{}' at line {}".format(
                        tag, cur[-1].tag, event.line
                    )
                )
            cur.pop()

        elif isinstance(event, Text):
            if not cur:
                raise MalformedTreeError(
                    "Text outside of the root element at line {}".format(event.line)
                )
            text = _fix_value(pool[event.value_id])
            parent = cur[-1]
            # text after a child element belongs to the tail of that child
            if len(parent):
                parent[-1].tail = (parent[-1].tail or "") + text
            else:
                parent.text = (parent.text or "") + text

    if root is None:
        raise MalformedTreeError("The document has no root element")
    if cur:
        raise MalformedTreeError(
            "Element '{}' is never closed".format(cur[-1].tag)
        )
    if namespaces:
        logger.warning("Not all namespace mappings were closed! Malformed AXML?")
    return root


def _nsmap(pool, namespaces) -> Dict[str, str]:
    nsmap = dict()
    for prefix, uri in namespaces:
        if prefix == NO_INDEX or uri == NO_INDEX:
            continue
        s_prefix = pool[prefix]
        s_uri = pool[uri]
        # prefixes or URIs which are empty are not included
        if s_uri != "" and s_prefix != "":
            # a prefix mapped twice keeps the last URI
            nsmap[s_prefix] = s_uri.strip()
    return nsmap


def _qualify(pool, namespace_id: int, name: str) -> str:
    if namespace_id == NO_INDEX or pool[namespace_id] == "":
        return name
    return "{{{}}}{}".format(pool[namespace_id], name)


def _attribute_name(document, attr: Attribute) -> str:
    name = document.string_pool[attr.name_id]
    if name:
        return name
    # compiled files may carry only the resource id of the attribute
    try:
        return "UNKNOWN_SYSTEM_ATTRIBUTE_{:08x}".format(document.resource_id(attr.name_id))
    except IndexOutOfRangeError:
        return "UNKNOWN_ATTRIBUTE_{}".format(attr.name_id)


def _fix_name(name: str) -> str:
    """
    Like element names, attribute names are case-sensitive and must start with a letter or underscore.
    The rest of the name can contain letters, digits, hyphens, underscores, and periods.
    All other characters are replaced by underscores.
    """
    if not name or (not name[0].isalpha() and name[0] != "_"):
        logger.warning(
            "Invalid start for name '{}'. XML name must start with a letter.".format(name)
        )
        name = "_{}".format(name)
    if not re.match(r"^[a-zA-Z0-9._-]*$", name):
        logger.warning("Name '{}' contains invalid characters!".format(name))
        name = re.sub(r"[^a-zA-Z0-9._-]", "_", name)
    return name


def _fix_value(value: str) -> str:
    """
    Return a cleaned version of a value
    according to the XML 1.0 Char production:
    > Char	   ::=   	#x9 | #xA | #xD | [#x20-#xD7FF] | [#xE000-#xFFFD] | [#x10000-#x10FFFF]
    """
    # Reading string until \x00. This is the same as aapt does.
    if "\x00" in value:
        logger.warning(
            "Null byte found in value at position {}".format(value.find("\x00"))
        )
        value = value[: value.find("\x00")]

    if not _CHARRANGE.match(value):
        logger.warning("Invalid character in value found. Replacing with '_'.")
        value = _REPLACEMENT.sub('_', value)
    return value

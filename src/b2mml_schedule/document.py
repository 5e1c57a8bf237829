"""Document bridge between XML bytes and generic element trees.

Entities in this package never touch bytes directly. They convert themselves
to and from ``xml.etree.ElementTree`` elements (the *proxy tree*), and this
module turns proxy trees into bytes and back:

* :meth:`DocumentBridge.parse` - bytes -> root element, checking that the
  document is a B2MML ``ProcessProductionSchedule``.
* :meth:`DocumentBridge.serialise` - root element (+ optional auxiliary
  payload type) -> UTF-8 bytes.

Both go through a :class:`SchemaContext` describing the types present in the
document. Contexts are cached per type set in a
:class:`~b2mml_schedule.cache.ContextCache`; only one auxiliary type can be
part of a context, which is why encoding a document whose scheduling
parameters use two different runtime types is rejected upstream.

Example:
    from b2mml_schedule.document import get_document_bridge

    bridge = get_document_bridge()
    root = bridge.parse(xml_bytes)
    data = bridge.serialise(root)

Notes:
    * Only the B2MML V0600 namespace is known to the core. Payload types may
      declare extra prefixes through an ``XML_NAMESPACES`` class attribute.
    * Parsing relies on the standard library expat parser; hardening against
      hostile XML constructs is the caller's concern.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from copy import deepcopy
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

from .cache import ContextCache
from .config import SerialiserConfig, get_config
from .errors import InvalidMessageError

logger = logging.getLogger(__name__)

B2MML_NS = "http://www.mesa.org/xml/B2MML-V0600"
B2MML_PREFIX = "b2mml"
ROOT_ELEMENT = "ProcessProductionSchedule"
ROOT_TYPE_NAME = "b2mml.ProcessProductionScheduleType"


def qname(local_name: str) -> str:
    """Return the Clark-notation name of a B2MML element."""
    return f"{{{B2MML_NS}}}{local_name}"


def type_identity(cls: type) -> str:
    """Canonical identity of a runtime type, e.g. ``xml.etree.ElementTree.Element``."""
    return f"{cls.__module__}.{cls.__qualname__}"


def find_child(parent: ET.Element, local_name: str) -> Optional[ET.Element]:
    """First B2MML child called ``local_name`` or ``None``."""
    return parent.find(qname(local_name))


def find_children(parent: ET.Element, local_name: str) -> List[ET.Element]:
    """All B2MML children called ``local_name`` in document order."""
    return parent.findall(qname(local_name))


def add_child(
    parent: ET.Element, local_name: str, text: Optional[str] = None
) -> ET.Element:
    """Append a B2MML child element, optionally with text."""
    child = ET.SubElement(parent, qname(local_name))
    if text is not None:
        child.text = text
    return child


def render_payload(payload: Any, local_name: str) -> ET.Element:
    """Render an opaque payload as the B2MML element ``local_name``.

    ``payload`` is either an ``Element`` (typically the one produced when the
    message was decoded) or an object with a ``to_xml_proxy()`` method
    returning one. The attributes, text and children of that element become
    the content of the new element; its own tag is not used.

    Raises:
        TypeError: If the payload cannot be rendered.
    """
    if isinstance(payload, ET.Element):
        source = payload
    else:
        to_proxy = getattr(payload, "to_xml_proxy", None)
        if not callable(to_proxy):
            raise TypeError(
                f"Cannot serialise payload of type {type_identity(type(payload))}"
            )
        source = to_proxy()
        if not isinstance(source, ET.Element):
            raise TypeError(
                f"{type_identity(type(payload))}.to_xml_proxy() must return an Element"
            )

    element = ET.Element(qname(local_name), dict(source.attrib))
    element.text = source.text
    for child in source:
        element.append(deepcopy(child))
    return element


def _check_extra_type(extra_type: type) -> Dict[str, str]:
    """Validate an auxiliary type and return the namespaces it declares."""
    if issubclass(extra_type, ET.Element):
        return {}
    if not callable(getattr(extra_type, "to_xml_proxy", None)):
        raise TypeError(
            f"Type {type_identity(extra_type)} cannot be registered: "
            "it must be an Element or provide to_xml_proxy()"
        )
    return dict(getattr(extra_type, "XML_NAMESPACES", {}) or {})


class SchemaContext:
    """Immutable description of the types taking part in one document.

    Args:
        extra_type: Optional auxiliary payload type to register next to the
            schedule root.
    """

    def __init__(self, extra_type: Optional[type] = None) -> None:
        namespaces = {B2MML_PREFIX: B2MML_NS}
        type_names = [ROOT_TYPE_NAME]
        if extra_type is not None:
            namespaces.update(_check_extra_type(extra_type))
            type_names.append(type_identity(extra_type))

        for prefix, uri in namespaces.items():
            ET.register_namespace(prefix, uri)

        self.extra_type = extra_type
        self.type_names: Tuple[str, ...] = tuple(type_names)
        self.namespaces: Dict[str, str] = namespaces

    def parse(self, xml_bytes: bytes) -> ET.Element:
        """Parse bytes into a root element.

        Raises:
            InvalidMessageError: Malformed XML or an unexpected root element.
        """
        try:
            root = ET.fromstring(xml_bytes)
        except ET.ParseError as exc:
            raise InvalidMessageError("Failed to deserialise from XML") from exc

        if root.tag != qname(ROOT_ELEMENT):
            raise InvalidMessageError(
                f"Failed to parse XML - unexpected root element {root.tag}"
            )
        return root

    def serialise(self, root: ET.Element, config: SerialiserConfig) -> bytes:
        """Write a root element as UTF-8 XML bytes."""
        if config.pretty_print:
            ET.indent(root)
        return ET.tostring(
            root, encoding="utf-8", xml_declaration=config.xml_declaration
        )


class DocumentBridge:
    """Parse and serialise B2MML documents through cached schema contexts.

    Args:
        cache: Context cache to use; a private one is created when omitted.
        config: Serialiser configuration (defaults to :func:`get_config`).
    """

    def __init__(
        self,
        cache: Optional[ContextCache] = None,
        config: Optional[SerialiserConfig] = None,
    ) -> None:
        self.cache = cache if cache is not None else ContextCache()
        self.config = config or get_config()

    def get_context(self, extra_type: Optional[type] = None) -> SchemaContext:
        """Return the (cached) context for the root type plus ``extra_type``."""
        type_names = [ROOT_TYPE_NAME]
        if extra_type is not None:
            type_names.append(type_identity(extra_type))
        return self.cache.get_or_create(
            tuple(type_names), lambda: SchemaContext(extra_type)
        )

    def parse(self, xml_bytes: bytes) -> ET.Element:
        """Parse a document. See :meth:`SchemaContext.parse`."""
        logger.debug("Parsing document of %d bytes", len(xml_bytes))
        return self.get_context().parse(xml_bytes)

    def serialise(
        self,
        root: ET.Element,
        extra_type: Optional[type] = None,
        config: Optional[SerialiserConfig] = None,
    ) -> bytes:
        """Serialise a proxy tree, registering ``extra_type`` if given."""
        context = self.get_context(extra_type)
        data = context.serialise(root, config or self.config)
        logger.debug("Serialised document to %d bytes", len(data))
        return data


@lru_cache(maxsize=1)
def get_document_bridge() -> DocumentBridge:
    """Return the process-wide bridge backed by a shared context cache."""
    return DocumentBridge()

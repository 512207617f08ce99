"""Sub-document layer for XML stream filtering.

Key Components:
    SubDocumentMaterializer: Turns the token range of one matched element into
        a standalone, XPath-addressable ``lxml.etree._ElementTree``
"""

from .materializer import SubDocumentMaterializer

__all__ = [
    "SubDocumentMaterializer",
]

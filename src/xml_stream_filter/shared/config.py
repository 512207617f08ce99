"""Configuration classes for XML stream filtering.

This module provides the tunable I/O and tokenizer settings and the immutable
filter configuration that an engine is built from.
"""

from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any, Dict, Optional

from .errors import ConfigValidationError

if TYPE_CHECKING:
    from xml_stream_filter.api.predicates import MatchPredicate
    from xml_stream_filter.api.transformers import MatchTransformer
    from xml_stream_filter.tokenization.reader import XMLEventReaderFactory
    from xml_stream_filter.tree.materializer import SubDocumentMaterializer

DEFAULT_BUFFER_SIZE = 8192
DEFAULT_ENCODING = "utf-8"

_FLAG_FIELDS = (
    "auto_decompress", "close_streams", "huge_tree", "resolve_entities", "no_network"
)


@dataclass
class FilterSettings:
    """Settings for the byte layer and the tokenizer."""

    # Byte layer
    encoding: str = DEFAULT_ENCODING
    buffer_size: int = DEFAULT_BUFFER_SIZE
    auto_decompress: bool = True
    close_streams: bool = True

    # Tokenizer safety
    huge_tree: bool = True
    resolve_entities: bool = False
    no_network: bool = True

    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate filter settings."""
        if not isinstance(self.encoding, str):
            raise ValueError("encoding must be a string")
        if not self.encoding:
            raise ValueError("encoding must not be empty")
        if not isinstance(self.buffer_size, int) or isinstance(self.buffer_size, bool):
            raise ValueError("buffer_size must be an integer")
        if self.buffer_size <= 0:
            raise ValueError("buffer_size must be > 0")
        for name in _FLAG_FIELDS:
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a boolean")

    @classmethod
    def default(cls) -> "FilterSettings":
        """Create settings matching the command-line tool: sniff and close."""
        return cls()

    @classmethod
    def passthrough(cls) -> "FilterSettings":
        """Create settings for embedding: no decompression, caller keeps handles open."""
        return cls(auto_decompress=False, close_streams=False)

    def override(self, **kwargs: Any) -> "FilterSettings":
        """Create new settings with specific overrides.

        Args:
            **kwargs: Settings fields to override

        Returns:
            New, validated FilterSettings instance

        Raises:
            ConfigValidationError: If a field is unknown or a value is invalid
        """
        known = {f.name for f in fields(self)}
        for name in kwargs:
            if name not in known:
                raise ConfigValidationError(
                    f"Unknown setting: {name}",
                    field_name=name,
                    suggestions=sorted(known),
                )
        try:
            return replace(self, **kwargs)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary format."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class FilterConfig:
    """Immutable configuration of a streaming filter.

    Constructed once and reused across any number of ``filter`` calls; the
    engine holds no per-document state of its own.

    Attributes:
        element_local_name: Local name of the elements to select (no prefix)
        predicate: Capability deciding whether a selected element is kept
        transformer: Capability writing a kept element to the output sink
        reader_factory: Factory opening a token stream over the input bytes
        materializer: Builds a standalone sub-document for a selected element
        settings: Byte layer and tokenizer settings
    """

    element_local_name: str
    predicate: "MatchPredicate"
    transformer: "MatchTransformer"
    reader_factory: "XMLEventReaderFactory"
    materializer: "SubDocumentMaterializer"
    settings: FilterSettings = field(default_factory=FilterSettings)

    def __post_init__(self) -> None:
        """Validate the filter configuration."""
        if self.element_local_name is None:
            raise ConfigValidationError(
                "XML element's local name must not be None",
                field_name="element_local_name",
            )
        if not isinstance(self.element_local_name, str):
            raise ConfigValidationError(
                "XML element's local name must be a string",
                field_name="element_local_name",
            )
        if not self.element_local_name:
            raise ConfigValidationError(
                "XML element's local name must not be empty",
                field_name="element_local_name",
            )
        if ":" in self.element_local_name or "}" in self.element_local_name:
            raise ConfigValidationError(
                f"Expected a local name, got a qualified name: {self.element_local_name}",
                field_name="element_local_name",
                suggestions=[self.element_local_name.rsplit(":", 1)[-1].rsplit("}", 1)[-1]],
            )

        for name in ("predicate", "transformer", "reader_factory", "materializer"):
            if getattr(self, name) is None:
                raise ConfigValidationError(
                    f"{name} must not be None", field_name=name
                )
        if not isinstance(self.settings, FilterSettings):
            raise ConfigValidationError(
                "settings must be a FilterSettings instance", field_name="settings"
            )

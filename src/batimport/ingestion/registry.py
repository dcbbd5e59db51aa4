"""Registry for statement formats."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Type

from batimport.ingestion.base import BaseParser


@dataclass(frozen=True)
class FormatDescriptor:
    """Static pairing of a parser class with its detection rank."""

    name: str
    parser_cls: Type[BaseParser]
    priority: int
    order: int
    accepted_contents: frozenset[str]

    @property
    def label(self) -> str:
        return self.parser_cls.label

    def accepts(self, content_type: str) -> bool:
        return not self.accepted_contents or content_type in self.accepted_contents

    def create(self) -> BaseParser:
        return self.parser_cls()


class ParserRegistry:
    _parsers: Dict[str, FormatDescriptor] = {}

    @classmethod
    def register(cls, name: str):
        """Decorator to register a parser."""
        def decorator(parser_cls: Type[BaseParser]):
            if name in cls._parsers:
                raise ValueError(f"Parser '{name}' is already registered")
            parser_cls.name = name
            cls._parsers[name] = FormatDescriptor(
                name=name,
                parser_cls=parser_cls,
                priority=parser_cls.detection_priority,
                order=len(cls._parsers),
                accepted_contents=frozenset(parser_cls.accepted_contents),
            )
            return parser_cls
        return decorator

    @classmethod
    def get(cls, name: str) -> Type[BaseParser]:
        """Get a parser class by name."""
        return cls._parsers[name].parser_cls

    @classmethod
    def descriptor(cls, name: str) -> FormatDescriptor:
        return cls._parsers[name]

    @classmethod
    def descriptors(cls) -> List[FormatDescriptor]:
        """Descriptors in probing order: higher priority first, then registration order."""
        return sorted(cls._parsers.values(), key=lambda d: (-d.priority, d.order))

    @classmethod
    def names(cls) -> List[str]:
        return [d.name for d in cls.descriptors()]

    @classmethod
    def list_parsers(cls) -> List[Dict[str, Any]]:
        """List all available parsers with metadata, in probing order."""
        return [d.parser_cls.get_metadata() for d in cls.descriptors()]

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._parsers.pop(name, None)

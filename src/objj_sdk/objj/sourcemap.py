"""
Source Map Generation
=====================

Builds version 3 source maps for generated code.

Mappings are collected as (generated line, generated column, source,
original line, original column) tuples and serialized with the usual
Base64 VLQ encoding: each segment stores its fields relative to the
previous segment, and the generated column is reset at every line.

Lines are 1-indexed and columns 0-indexed, as in the source map format.
"""

import json
from dataclasses import dataclass
from typing import Dict, List, Optional

_BASE64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"

_VLQ_BASE_SHIFT = 5
_VLQ_BASE = 1 << _VLQ_BASE_SHIFT
_VLQ_MASK = _VLQ_BASE - 1
_VLQ_CONTINUATION = _VLQ_BASE


def encode_vlq(value: int) -> str:
    """
    Encode one integer as Base64 VLQ.

    The sign goes into the lowest bit, then the value is emitted five
    bits at a time, least significant group first.
    """
    vlq = (-value << 1) + 1 if value < 0 else value << 1
    encoded = ""
    while True:
        digit = vlq & _VLQ_MASK
        vlq >>= _VLQ_BASE_SHIFT
        if vlq > 0:
            digit |= _VLQ_CONTINUATION
        encoded += _BASE64[digit]
        if vlq == 0:
            return encoded


def decode_vlq(text: str) -> List[int]:
    """Decode a run of Base64 VLQ values (one segment)."""
    values = []
    value = shift = 0
    for char in text:
        digit = _BASE64.index(char)
        value += (digit & _VLQ_MASK) << shift
        if digit & _VLQ_CONTINUATION:
            shift += _VLQ_BASE_SHIFT
            continue
        negative = value & 1
        value >>= 1
        values.append(-value if negative else value)
        value = shift = 0
    return values


@dataclass(frozen=True)
class Mapping:
    generated_line: int
    generated_column: int
    source: str
    original_line: int
    original_column: int


class SourceMapGenerator:
    """
    Collects mappings and serializes them.

    Usage:
        generator = SourceMapGenerator(file="Main.js", source_root=".")
        generator.add_mapping(1, 0, "Main.j", 1, 0)
        text = generator.to_json()
    """

    def __init__(self, file: Optional[str] = None, source_root: Optional[str] = None):
        self.file = file
        self.source_root = source_root
        self.mappings: List[Mapping] = []
        self._sources: Dict[str, int] = {}

    def add_mapping(
        self,
        generated_line: int,
        generated_column: int,
        source: str,
        original_line: int,
        original_column: int,
    ) -> None:
        if source not in self._sources:
            self._sources[source] = len(self._sources)
        self.mappings.append(
            Mapping(generated_line, generated_column, source, original_line, original_column)
        )

    @property
    def sources(self) -> List[str]:
        return list(self._sources)

    def encoded_mappings(self) -> str:
        lines: List[str] = []
        previous_column = previous_source = previous_line = previous_original_column = 0
        current_line = 1
        segments: List[str] = []

        ordered = sorted(self.mappings, key=lambda m: (m.generated_line, m.generated_column))
        for mapping in ordered:
            while current_line < mapping.generated_line:
                lines.append(",".join(segments))
                segments = []
                current_line += 1
                previous_column = 0

            source_index = self._sources[mapping.source]
            original_line = mapping.original_line - 1
            segments.append(
                encode_vlq(mapping.generated_column - previous_column)
                + encode_vlq(source_index - previous_source)
                + encode_vlq(original_line - previous_line)
                + encode_vlq(mapping.original_column - previous_original_column)
            )
            previous_column = mapping.generated_column
            previous_source = source_index
            previous_line = original_line
            previous_original_column = mapping.original_column

        lines.append(",".join(segments))
        return ";".join(lines)

    def to_dict(self) -> dict:
        data = {"version": 3}
        if self.file is not None:
            data["file"] = self.file
        if self.source_root is not None:
            data["sourceRoot"] = self.source_root
        data["sources"] = self.sources
        data["names"] = []
        data["mappings"] = self.encoded_mappings()
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

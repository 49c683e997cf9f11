"""
Source Map Tests
================

Run tests with:
    pytest tests/test_sourcemap.py -v
"""

import json

import pytest

from objj_sdk.objj.sourcemap import SourceMapGenerator, decode_vlq, encode_vlq


class TestVLQ:
    @pytest.mark.parametrize("value,encoded", [
        (0, "A"),
        (1, "C"),
        (-1, "D"),
        (15, "e"),
        (16, "gB"),
        (-16, "hB"),
    ])
    def test_encode(self, value, encoded):
        assert encode_vlq(value) == encoded

    def test_decode_segment(self):
        assert decode_vlq("AAgBC") == [0, 0, 16, 1]

    def test_large_values(self):
        for value in (1000, -123456):
            assert decode_vlq(encode_vlq(value)) == [value]


class TestSourceMapGenerator:
    def test_mappings(self):
        generator = SourceMapGenerator(file="a.js")
        generator.add_mapping(1, 0, "a.j", 1, 0)
        generator.add_mapping(2, 4, "a.j", 3, 2)
        assert generator.encoded_mappings() == "AAAA;IAEE"

    def test_empty_generated_lines(self):
        generator = SourceMapGenerator()
        generator.add_mapping(3, 0, "a.j", 1, 0)
        assert generator.encoded_mappings() == ";;AAAA"

    def test_columns_are_relative_within_a_line(self):
        generator = SourceMapGenerator()
        generator.add_mapping(1, 10, "a.j", 1, 0)
        generator.add_mapping(1, 2, "a.j", 1, 0)
        assert generator.encoded_mappings() == "EAAA,QAAA"

    def test_several_sources(self):
        generator = SourceMapGenerator()
        generator.add_mapping(1, 0, "a.j", 1, 0)
        generator.add_mapping(1, 5, "b.j", 1, 0)
        assert generator.sources == ["a.j", "b.j"]
        assert generator.encoded_mappings() == "AAAA,KCAA"

    def test_json(self):
        generator = SourceMapGenerator(file="Main.js", source_root=".")
        generator.add_mapping(1, 0, "Main.j", 1, 0)
        data = json.loads(generator.to_json())
        assert data == {
            "version": 3,
            "file": "Main.js",
            "sourceRoot": ".",
            "sources": ["Main.j"],
            "names": [],
            "mappings": "AAAA",
        }

    def test_optional_fields_are_omitted(self):
        data = SourceMapGenerator().to_dict()
        assert "file" not in data
        assert "sourceRoot" not in data

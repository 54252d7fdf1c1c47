"""Tests for the TOON, JSON and XML encoders."""

from __future__ import annotations

import json
from xml.etree import ElementTree

import pytest

from om.models import CatResult, EmittedFile, ScoredFile
from om.toon import (
    _encode_value,
    cat_to_json,
    cat_to_xml,
    encode_cat,
    encode_tree,
    tree_to_json,
    tree_to_xml,
)


@pytest.fixture()
def scored() -> list[ScoredFile]:
    return [
        ScoredFile("README.md", 10, "project file"),
        ScoredFile("src/main.rs", 10, "entry point"),
        ScoredFile("tests/foo_test.rs", 5, "test"),
    ]


@pytest.fixture()
def cat_result() -> CatResult:
    return CatResult(
        project="demo",
        session_id="sess-1",
        files=[
            EmittedFile(
                path="src/main.rs",
                score=10,
                content="fn main() {}\n",
                lines=1,
                hash="f" * 64,
            )
        ],
        skipped_binary=1,
        skipped_session=2,
    )


class TestEncodeValue:
    """Tests for _encode_value."""

    def test_plain_string_unquoted(self) -> None:
        assert _encode_value("src/main.rs") == "src/main.rs"

    def test_string_with_comma_quoted(self) -> None:
        assert _encode_value("a,b") == '"a,b"'

    def test_string_with_colon_quoted(self) -> None:
        assert _encode_value("a:b") == '"a:b"'

    def test_number_unquoted(self) -> None:
        assert _encode_value("42") == "42"
        assert _encode_value("3.14") == "3.14"

    def test_empty_string_quoted(self) -> None:
        assert _encode_value("") == '""'

    def test_boolean_keywords_quoted(self) -> None:
        assert _encode_value("true") == '"true"'
        assert _encode_value("null") == '"null"'

    def test_leading_whitespace_quoted(self) -> None:
        assert _encode_value(" hello") == '" hello"'

    def test_string_with_quotes_escaped(self) -> None:
        assert _encode_value('say "hi"') == '"say \\"hi\\""'

    def test_dash_prefix_quoted(self) -> None:
        assert _encode_value("-flag") == '"-flag"'

    def test_newline_quoted(self) -> None:
        assert _encode_value("hello\nworld") == '"hello\\nworld"'

    def test_tab_quoted(self) -> None:
        assert _encode_value("hello\tworld") == '"hello\\tworld"'


class TestEncodeTree:
    """Tests for encode_tree."""

    def test_layout(self, scored: list[ScoredFile]) -> None:
        assert encode_tree("demo", scored).splitlines() == [
            "project: demo",
            "files[3]{path,score,reason}:",
            "  README.md,10,project file",
            "  src/main.rs,10,entry point",
            "  tests/foo_test.rs,5,test",
        ]

    def test_tokens_column(self, scored: list[ScoredFile]) -> None:
        result = encode_tree("demo", scored[:1], tokens={"README.md": 7})
        assert "files[1]{path,score,reason,tokens}:" in result
        assert result.endswith("  README.md,10,project file,7")

    def test_empty(self) -> None:
        assert encode_tree("demo", []) == "project: demo\nfiles[0]{path,score,reason}:"


class TestEncodeCat:
    """Tests for encode_cat."""

    def test_summary_then_rows(self, cat_result: CatResult) -> None:
        lines = encode_cat(cat_result).splitlines()
        assert lines == [
            "project: demo",
            "session: sess-1",
            "files_shown: 1",
            "skipped_binary: 1",
            "skipped_session: 2",
            "total_lines: 1",
            "files[1]{path,score,lines,content}:",
            '  src/main.rs,10,1,"fn main() {}\\n"',
        ]

    def test_no_session_line_without_session(self) -> None:
        result = encode_cat(CatResult(project="demo"))
        assert not any(line.startswith("session:") for line in result.splitlines())
        assert "skipped_session: 0" in result.splitlines()
        assert "files[0]{path,score,lines,content}:" in result


class TestJson:
    """Tests for the JSON encoders."""

    def test_tree_to_json(self, scored: list[ScoredFile]) -> None:
        doc = json.loads(tree_to_json("demo", scored, tokens={"README.md": 3}))
        assert doc["project"] == "demo"
        assert doc["files"][0] == {
            "path": "README.md",
            "score": 10,
            "reason": "project file",
            "tokens": 3,
        }
        assert doc["files"][2]["tokens"] == 0

    def test_tree_to_json_without_tokens(self, scored: list[ScoredFile]) -> None:
        doc = json.loads(tree_to_json("demo", scored))
        assert "tokens" not in doc["files"][0]

    def test_cat_to_json(self, cat_result: CatResult) -> None:
        doc = json.loads(cat_to_json(cat_result))
        assert doc == {
            "project": "demo",
            "session": "sess-1",
            "files_shown": 1,
            "skipped_binary": 1,
            "skipped_session": 2,
            "total_lines": 1,
            "files": [
                {
                    "path": "src/main.rs",
                    "score": 10,
                    "lines": 1,
                    "content": "fn main() {}\n",
                }
            ],
        }

    def test_cat_to_json_without_session(self) -> None:
        doc = json.loads(cat_to_json(CatResult(project="demo")))
        assert "session" not in doc
        assert doc["files"] == []


class TestXml:
    """Tests for the XML encoders."""

    def test_tree_to_xml(self, scored: list[ScoredFile]) -> None:
        text = tree_to_xml("demo", scored, tokens={"README.md": 3})
        assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<codebase>')
        root = ElementTree.fromstring(text)
        assert root.tag == "codebase"
        assert root.findtext("project") == "demo"
        files = root.findall("files/file")
        assert [f.get("path") for f in files] == [
            "README.md",
            "src/main.rs",
            "tests/foo_test.rs",
        ]
        assert files[0].attrib == {
            "path": "README.md",
            "score": "10",
            "reason": "project file",
            "tokens": "3",
        }
        assert files[2].get("tokens") == "0"

    def test_tree_to_xml_escapes_attributes(self) -> None:
        text = tree_to_xml('a&"b', [ScoredFile('x<"y>.rs', 7, "base")])
        root = ElementTree.fromstring(text)
        assert root.findtext("project") == 'a&"b'
        assert root.find("files/file").get("path") == 'x<"y>.rs'

    def test_cat_to_xml(self, cat_result: CatResult) -> None:
        root = ElementTree.fromstring(cat_to_xml(cat_result))
        assert root.findtext("session") == "sess-1"
        assert root.findtext("files_shown") == "1"
        assert root.findtext("skipped_binary") == "1"
        assert root.findtext("skipped_session") == "2"
        assert root.findtext("total_lines") == "1"
        file = root.find("files/file")
        assert file.attrib == {"path": "src/main.rs", "score": "10", "lines": "1"}
        assert file.findtext("content") == "fn main() {}\n"

    def test_content_is_cdata(self, cat_result: CatResult) -> None:
        assert "<content><![CDATA[fn main() {}\n]]></content>" in cat_to_xml(cat_result)

    def test_cdata_terminator_in_content(self) -> None:
        body = "if a[b[0]]>1 { <tag> & }\n"
        result = CatResult(
            project="demo",
            files=[EmittedFile("x.rs", 7, body, 1, "0" * 64, tokens=4)],
        )
        root = ElementTree.fromstring(cat_to_xml(result))
        file = root.find("files/file")
        assert file.get("tokens") == "4"
        assert file.findtext("content") == body

    def test_cat_to_xml_without_session(self) -> None:
        root = ElementTree.fromstring(cat_to_xml(CatResult(project="demo")))
        assert root.find("session") is None
        assert root.findall("files/file") == []

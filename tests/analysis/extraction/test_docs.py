"""Tests for doc comment parsing."""

from __future__ import annotations

import pytest

from codeatlas.analysis._internal.extraction.docs import (
    parse_jsdoc,
    parse_line_doc,
    parse_python_docstring,
    parse_xml_doc,
)

JSDOC = """/**
 * Adds two numbers.
 *
 * More detail here.
 * @param {number} a - first operand
 * @param b second operand
 * @returns {number} the sum
 * @throws {Error} when overflowing
 * @deprecated use plus()
 * @since 1.2.0
 */"""


class TestParseJsdoc:
    """``/** ... */`` blocks."""

    def test_summary_and_description(self) -> None:
        doc = parse_jsdoc(JSDOC)

        assert doc.summary == "Adds two numbers."
        assert doc.description is not None
        assert "More detail here." in doc.description

    def test_tags(self) -> None:
        doc = parse_jsdoc(JSDOC)

        assert doc.params == {"a": "first operand", "b": "second operand"}
        assert doc.returns == "the sum"
        assert doc.throws == ["{Error} when overflowing"]
        assert doc.deprecated == "use plus()"
        assert doc.since == "1.2.0"

    def test_single_line(self) -> None:
        doc = parse_jsdoc("/** Creates a widget. */")

        assert doc.summary == "Creates a widget."
        assert doc.description is None

    def test_bare_deprecated_is_true(self) -> None:
        assert parse_jsdoc("/**\n * Old.\n * @deprecated\n */").deprecated is True

    def test_unknown_tag_kept(self) -> None:
        doc = parse_jsdoc("/**\n * X.\n * @internal for tests\n */")
        assert doc.tags == {"internal": "for tests"}

    def test_optional_param_name(self) -> None:
        doc = parse_jsdoc("/**\n * X.\n * @param {string} [name=bob] - who\n */")
        assert doc.params == {"name": "who"}

    def test_phpdoc_param_puts_type_first(self) -> None:
        doc = parse_jsdoc("/**\n * X.\n * @param int $id the id\n * @param string ...$rest more\n */")
        assert doc.params == {"id": "the id", "rest": "more"}

    def test_empty_block(self) -> None:
        doc = parse_jsdoc("/** */")
        assert doc.summary == ""


class TestParsePythonDocstring:
    """Google, NumPy and reST docstrings."""

    def test_google_style(self) -> None:
        raw = '''"""Fetch rows.

        Args:
            table: Table name.
            limit: Max rows.

        Returns:
            The rows.

        Raises:
            KeyError: missing.
        """'''

        doc = parse_python_docstring(raw)

        assert doc.summary == "Fetch rows."
        assert doc.params == {"table": "Table name.", "limit": "Max rows."}
        assert doc.returns == "The rows."
        assert doc.throws == ["KeyError: missing."]

    def test_numpy_style(self) -> None:
        raw = "Compute.\n\nParameters\n----------\nx : int\n    The value.\n"

        doc = parse_python_docstring(raw)

        assert doc.summary == "Compute."
        assert doc.params == {"x": "The value."}

    def test_rest_style(self) -> None:
        raw = "Greet.\n\n:param name: The name.\n:returns: Greeting.\n:raises ValueError: If empty."

        doc = parse_python_docstring(raw)

        assert doc.summary == "Greet."
        assert doc.params == {"name": "The name."}
        assert doc.returns == "Greeting."
        assert doc.throws == ["ValueError: If empty."]

    def test_single_quotes_and_prefix(self) -> None:
        assert parse_python_docstring("r'''Raw doc.'''").summary == "Raw doc."

    def test_multi_paragraph_description(self) -> None:
        doc = parse_python_docstring('"""Short.\n\n    Longer explanation.\n    """')

        assert doc.summary == "Short."
        assert doc.description is not None
        assert "Longer explanation." in doc.description

    def test_empty(self) -> None:
        assert parse_python_docstring('""""""').summary == ""


class TestParseXmlDoc:
    """C# ``///`` documentation."""

    def test_tags(self) -> None:
        lines = [
            "<summary>",
            "Adds numbers.",
            "</summary>",
            '<param name="a">First.</param>',
            "<returns>Sum.</returns>",
            '<exception cref="ArgumentException">Bad input.</exception>',
        ]

        doc = parse_xml_doc(lines)

        assert doc.summary == "Adds numbers."
        assert doc.params == {"a": "First."}
        assert doc.returns == "Sum."
        assert doc.throws == ["ArgumentException: Bad input."]

    def test_inline_see_is_flattened(self) -> None:
        doc = parse_xml_doc(['<summary>Wraps <see cref="Stream"/> access.</summary>'])
        assert doc.summary == "Wraps Stream access."

    def test_without_summary_tag_uses_text(self) -> None:
        assert parse_xml_doc(["Plain text doc."]).summary == "Plain text doc."


class TestParseLineDoc:
    """Pre-stripped line comments."""

    @pytest.mark.parametrize(
        ("lines", "summary"),
        [
            (["Fetches a user."], "Fetches a user."),
            (["", "Fetches a user.", "Second line."], "Fetches a user."),
            ([], ""),
        ],
    )
    def test_summary(self, lines: list[str], summary: str) -> None:
        assert parse_line_doc(lines).summary == summary

    def test_yard_tags(self) -> None:
        doc = parse_line_doc(["Fetches a user.", "@param id the id", "@return the user"])

        assert doc.params == {"id": "the id"}
        assert doc.returns == "the user"

"""Doc comment grammars.

Every language has its own documentation syntax, but all of them normalize
to ``DocComment``:

- ``parse_jsdoc``: ``/** ... */`` blocks with ``@tag`` lines (JSDoc, TSDoc,
  Javadoc, PHPDoc)
- ``parse_python_docstring``: Google, NumPy and reST docstrings
- ``parse_xml_doc``: C# ``///`` XML documentation
- ``parse_line_doc``: plain line comments (Go, Rust, Ruby, Shell) with
  optional YARD-style ``@param`` / ``@return`` tags

Parsers never raise; malformed input yields whatever summary can be found.
"""

from __future__ import annotations

import re

from codeatlas.analysis.models import DocComment

_JSDOC_PARAM = re.compile(
    r"^(?:\{(?P<type>[^}]*)\}\s*)?(?P<name>\[[^\]]+\]|[\w$.]+)\s*(?:-\s*)?(?P<desc>.*)$"
)
_TYPE_PREFIX = re.compile(r"^\{[^}]*\}\s*")
# PHPDoc puts the type first: `@param int $id description`
_PHPDOC_PARAM = re.compile(r"^(?:(?P<type>[^\s$]+)\s+)?(?:\.\.\.)?\$(?P<name>\w+)\s*(?P<desc>.*)$")


def _clean_block_comment(raw: str) -> list[str]:
    """Strip ``/**``, ``*/`` and leading ``*`` gutters, keeping line breaks."""
    text = raw.strip()
    if text.startswith("/**"):
        text = text[3:]
    elif text.startswith("/*"):
        text = text[2:]
    if text.endswith("*/"):
        text = text[:-2]
    lines = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("*"):
            stripped = stripped[1:]
            if stripped.startswith(" "):
                stripped = stripped[1:]
        lines.append(stripped.rstrip())
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


def _summary_and_description(prose: list[str]) -> tuple[str, str | None]:
    non_empty = [line.strip() for line in prose if line.strip()]
    if not non_empty:
        return "", None
    summary = non_empty[0]
    description = "\n".join(line.strip() for line in prose).strip() if len(non_empty) > 1 else None
    return summary, description


def _apply_tag(doc: DocComment, tag: str, body: str) -> None:
    body = body.strip()
    if tag == "param" or tag == "arg" or tag == "argument":
        php = _PHPDOC_PARAM.match(body)
        match = _JSDOC_PARAM.match(body)
        if php:
            doc.params[php.group("name")] = php.group("desc").strip()
        elif match:
            name = match.group("name").strip("[]").split("=")[0]
            doc.params[name] = match.group("desc").strip()
    elif tag in ("returns", "return"):
        doc.returns = _TYPE_PREFIX.sub("", body)
    elif tag in ("throws", "exception", "raises"):
        doc.throws.append(body)
    elif tag == "example":
        doc.examples.append(body)
    elif tag == "deprecated":
        doc.deprecated = body or True
    elif tag == "since":
        doc.since = body
    elif tag == "see":
        doc.see.append(body)
    else:
        doc.tags[tag] = body


def _parse_tagged_lines(lines: list[str]) -> DocComment:
    prose: list[str] = []
    doc = DocComment()
    current_tag: str | None = None
    current_body: list[str] = []

    def flush() -> None:
        if current_tag is not None:
            joiner = "\n" if current_tag == "example" else " "
            _apply_tag(doc, current_tag, joiner.join(part for part in current_body).strip())

    for line in lines:
        stripped = line.strip()
        if stripped.startswith("@"):
            flush()
            tag, _, rest = stripped[1:].partition(" ")
            current_tag = tag.strip()
            current_body = [rest.strip()] if rest.strip() else []
        elif current_tag is not None:
            current_body.append(line if current_tag == "example" else stripped)
        else:
            prose.append(stripped)
    flush()

    doc.summary, doc.description = _summary_and_description(prose)
    return doc


def parse_jsdoc(raw: str) -> DocComment:
    """Parse a ``/** ... */`` block (JSDoc, Javadoc, PHPDoc)."""
    return _parse_tagged_lines(_clean_block_comment(raw))


def parse_line_doc(lines: list[str]) -> DocComment:
    """Parse pre-stripped line comment text, honouring ``@param``-style tags."""
    return _parse_tagged_lines(lines)


# ---------------------------------------------------------------------------
# Python docstrings
# ---------------------------------------------------------------------------

_GOOGLE_SECTION = re.compile(r"^(?P<name>[A-Za-z][A-Za-z ]*):\s*$")
_GOOGLE_ARG = re.compile(r"^\*{0,2}(?P<name>\w+)\s*(?:\([^)]*\))?\s*:\s*(?P<desc>.*)$")
_NUMPY_UNDERLINE = re.compile(r"^-{3,}\s*$")
_NUMPY_PARAM = re.compile(r"^\*{0,2}(?P<name>\w+)\s*(?::\s*(?P<type>.*))?$")
_REST_PARAM = re.compile(r"^:param\s+(?:[\w\[\], .]+\s+)?(?P<name>\w+):\s*(?P<desc>.*)$")
_REST_RETURNS = re.compile(r"^:returns?:\s*(?P<desc>.*)$")
_REST_RAISES = re.compile(r"^:raises?\s+(?P<name>[\w.]+):\s*(?P<desc>.*)$")

_ARG_SECTIONS = {"args", "arguments", "parameters", "params", "keyword args", "kwargs"}
_RETURN_SECTIONS = {"returns", "return", "yields", "yield"}
_RAISE_SECTIONS = {"raises", "raise", "exceptions"}
_EXAMPLE_SECTIONS = {"example", "examples"}


def _strip_string_literal(raw: str) -> str:
    text = raw.strip()
    prefix = re.match(r"^[rRuUbBfF]{0,2}", text)
    if prefix:
        text = text[prefix.end() :]
    for quote in ('"""', "'''", '"', "'"):
        if text.startswith(quote) and text.endswith(quote) and len(text) >= 2 * len(quote):
            return text[len(quote) : -len(quote)]
    return text


def _dedent(lines: list[str]) -> list[str]:
    # The first docstring line sits right after the quotes; indent is measured
    # from the remaining lines only.
    rest = [line for line in lines[1:] if line.strip()]
    indent = min((len(line) - len(line.lstrip()) for line in rest), default=0)
    return [lines[0].strip()] + [line[indent:].rstrip() for line in lines[1:]] if lines else []


def parse_python_docstring(raw: str) -> DocComment:
    """Parse a Python docstring literal (quotes included or not)."""
    lines = _dedent(_strip_string_literal(raw).splitlines())
    while lines and not lines[0].strip():
        lines.pop(0)
    doc = DocComment()
    if not lines:
        return doc

    prose: list[str] = []
    section: str | None = None
    current_param: str | None = None
    numpy_style = False
    returns: list[str] = []
    example: list[str] = []

    i = 0
    while i < len(lines):
        line = lines[i]
        stripped = line.strip()

        # NumPy: "Parameters" followed by a dashed underline
        if i + 1 < len(lines) and stripped and _NUMPY_UNDERLINE.match(lines[i + 1].strip()):
            section = stripped.lower()
            current_param = None
            numpy_style = True
            i += 2
            continue

        google = _GOOGLE_SECTION.match(stripped)
        if google and google.group("name").lower() in (
            _ARG_SECTIONS | _RETURN_SECTIONS | _RAISE_SECTIONS | _EXAMPLE_SECTIONS
            | {"note", "notes", "attributes", "see also", "references", "warning", "warnings",
               "todo"}
        ):
            section = google.group("name").lower()
            current_param = None
            i += 1
            continue

        rest_param = _REST_PARAM.match(stripped)
        rest_returns = _REST_RETURNS.match(stripped)
        rest_raises = _REST_RAISES.match(stripped)
        if rest_param:
            doc.params[rest_param.group("name")] = rest_param.group("desc").strip()
            section = "rest"
        elif rest_returns:
            returns = [rest_returns.group("desc").strip()]
            section = "rest"
        elif rest_raises:
            doc.throws.append(f"{rest_raises.group('name')}: {rest_raises.group('desc').strip()}")
            section = "rest"
        elif section is None:
            prose.append(stripped)
        elif section in _ARG_SECTIONS:
            header = None
            if numpy_style:
                if line[:1] not in (" ", "\t"):
                    header = _NUMPY_PARAM.match(stripped)
            else:
                header = _GOOGLE_ARG.match(stripped)
            if header:
                current_param = header.group("name")
                desc = "" if numpy_style else header.group("desc").strip()
                doc.params[current_param] = desc
            elif current_param and stripped:
                existing = doc.params.get(current_param, "")
                doc.params[current_param] = f"{existing} {stripped}".strip()
        elif section in _RETURN_SECTIONS:
            if stripped:
                returns.append(stripped)
        elif section in _RAISE_SECTIONS:
            if stripped:
                doc.throws.append(stripped)
        elif section in _EXAMPLE_SECTIONS:
            example.append(line)
        i += 1

    doc.summary, doc.description = _summary_and_description(prose)
    if returns:
        doc.returns = " ".join(returns)
    if any(part.strip() for part in example):
        doc.examples.append("\n".join(example).strip())
    return doc


# ---------------------------------------------------------------------------
# C# XML documentation
# ---------------------------------------------------------------------------

_XML_TAG = re.compile(r"<(?P<tag>\w+)(?P<attrs>[^>]*)>(?P<body>.*?)</(?P=tag)>", re.DOTALL)
_XML_NAME_ATTR = re.compile(r"""(?:name|cref)\s*=\s*["']([^"']+)["']""")
_XML_INLINE = re.compile(r"<[^>]+/?>")


def _xml_text(body: str) -> str:
    body = re.sub(r"""<see\s+cref\s*=\s*["']([^"']+)["']\s*/>""", r"\1", body)
    body = re.sub(r"""<paramref\s+name\s*=\s*["']([^"']+)["']\s*/>""", r"\1", body)
    return " ".join(_XML_INLINE.sub("", body).split())


def parse_xml_doc(lines: list[str]) -> DocComment:
    """Parse ``///`` XML doc lines with the slashes already removed."""
    text = "\n".join(lines)
    doc = DocComment()
    found_summary = False
    for match in _XML_TAG.finditer(text):
        tag = match.group("tag")
        body = _xml_text(match.group("body"))
        name_attr = _XML_NAME_ATTR.search(match.group("attrs"))
        if tag == "summary":
            doc.summary = body
            found_summary = True
        elif tag == "param" and name_attr:
            doc.params[name_attr.group(1)] = body
        elif tag == "returns":
            doc.returns = body
        elif tag == "remarks":
            doc.description = body
        elif tag == "exception":
            doc.throws.append(f"{name_attr.group(1)}: {body}" if name_attr else body)
        elif tag == "example":
            doc.examples.append(body)
        elif tag == "seealso" and name_attr:
            doc.see.append(name_attr.group(1))
        else:
            doc.tags[tag] = body
    if not found_summary:
        doc.summary = _xml_text(text).strip()
    return doc

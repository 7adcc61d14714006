r"""
Minimal style sheet tree.

Parses css text into rules, at-rules and declarations, and prints the tree
back out. Comments are dropped. The tree is deliberately small: it knows
nothing about selectors or values beyond where they start and end, which is
all the scoping stages need.

Example:
    nodes = parse(".title { color: red }", "/abs/a.css")
    nodes[0].selector            # ".title"
    stringify(nodes)             # ".title {\n  color: red;\n}"
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Final, Iterator, Optional, Union

from cssmodules.lib.errors import TransformationError

COMMENT_RE: Final[re.Pattern[str]] = re.compile(r"/\*.*?\*/", re.S)
AT_RULE_RE: Final[re.Pattern[str]] = re.compile(r"^@([\w-]+)\s*(.*)$", re.S)
IMPORT_SELECTOR_RE: Final[re.Pattern[str]] = re.compile(
    r"^:import\(\s*(\"[^\"]*\"|'[^']*'|[^)\s]+)\s*\)$"
)
EXPORT_SELECTOR: Final[str] = ":export"
SYMBOL_RE: Final[re.Pattern[str]] = re.compile(r"[$]?[\w-]+")
ESCAPE_RE: Final[re.Pattern[str]] = re.compile(r"\\(?:([0-9a-fA-F]{1,6})\s?|(.))", re.S)
IDENT_UNSAFE_RE: Final[re.Pattern[str]] = re.compile(r"[^\w\u00A0-\uFFFF-]")


@dataclass(eq=False)
class Declaration:
    prop: str
    value: str


@dataclass(eq=False)
class Rule:
    selector: str
    nodes: list["Node"] = field(default_factory=list)


@dataclass(eq=False)
class AtRule:
    name: str
    params: str
    nodes: Optional[list["Node"]] = None


Node = Union[Declaration, Rule, AtRule]


def unquote(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    return text


def unescape(ident: str) -> str:
    """Decode css escapes, `sm\\:flex` becomes `sm:flex`."""
    return ESCAPE_RE.sub(
        lambda m: chr(int(m.group(1), 16)) if m.group(1) else m.group(2), ident
    )


def escape(ident: str) -> str:
    return IDENT_UNSAFE_RE.sub(r"\\\g<0>", ident)


def parse(source: str, path: str = "<string>") -> list[Node]:
    """Parse css text into a list of top-level nodes.

    Args:
        source: Style sheet text
        path: File the text came from, used in error messages

    Returns:
        list[Node]: Top-level rules, at-rules and declarations

    Raises:
        TransformationError: On unbalanced braces, quotes or stray words
    """
    text: str = COMMENT_RE.sub("", source)
    nodes, _ = _block_parse(text, 0, path, top=True)
    return nodes


def _block_parse(
    text: str, pos: int, path: str, top: bool
) -> tuple[list[Node], int]:
    nodes: list[Node] = []
    start: int = pos
    depth: int = 0
    quote: Optional[str] = None
    i: int = pos

    while i < len(text):
        char: str = text[i]
        if quote:
            if char == "\\":
                i += 1
            elif char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif depth == 0 and char == ";":
            _statement_add(nodes, text[start:i], path)
            start = i + 1
        elif depth == 0 and char == "{":
            prelude: str = text[start:i].strip()
            children, i = _block_parse(text, i + 1, path, top=False)
            nodes.append(_block_node(prelude, children, path))
            start = i + 1
        elif depth == 0 and char == "}":
            if top:
                raise TransformationError(f"{path}: unexpected '}}'")
            _statement_add(nodes, text[start:i], path)
            return nodes, i
        i += 1

    if quote:
        raise TransformationError(f"{path}: unclosed string")
    if not top:
        raise TransformationError(f"{path}: unclosed block")
    _statement_add(nodes, text[start:], path)
    return nodes, i


def _statement_add(nodes: list[Node], chunk: str, path: str) -> None:
    statement: str = chunk.strip()
    if not statement:
        return
    if statement.startswith("@"):
        match = AT_RULE_RE.match(statement)
        if not match:
            raise TransformationError(f"{path}: malformed at-rule '{statement}'")
        nodes.append(AtRule(match.group(1), match.group(2).strip()))
        return
    prop, colon, value = statement.partition(":")
    if not colon or not prop.strip():
        raise TransformationError(f"{path}: unknown word '{statement}'")
    nodes.append(Declaration(prop.strip(), value.strip()))


def _block_node(prelude: str, children: list[Node], path: str) -> Node:
    if prelude.startswith("@"):
        match = AT_RULE_RE.match(prelude)
        if not match:
            raise TransformationError(f"{path}: malformed at-rule '{prelude}'")
        return AtRule(match.group(1), match.group(2).strip(), children)
    if not prelude:
        raise TransformationError(f"{path}: block without a selector")
    return Rule(prelude, children)


def stringify(nodes: list[Node], indent: str = "") -> str:
    lines: list[str] = []
    for node in nodes:
        if isinstance(node, Declaration):
            lines.append(f"{indent}{node.prop}: {node.value};")
        elif isinstance(node, AtRule) and node.nodes is None:
            params: str = f" {node.params}" if node.params else ""
            lines.append(f"{indent}@{node.name}{params};")
        else:
            if isinstance(node, AtRule):
                head: str = f"@{node.name} {node.params}".rstrip()
            else:
                head = node.selector
            body: str = stringify(node.nodes or [], indent + "  ")
            if body:
                lines.append(f"{indent}{head} {{\n{body}\n{indent}}}")
            else:
                lines.append(f"{indent}{head} {{}}")
    return "\n".join(lines)


def walk(
    nodes: list[Node], parent: Optional[Node] = None
) -> Iterator[tuple[Node, Optional[Node]]]:
    """Yield every node depth-first together with its parent node."""
    for node in list(nodes):
        yield node, parent
        if not isinstance(node, Declaration) and node.nodes:
            yield from walk(node.nodes, node)


def is_icss(rule: Rule) -> bool:
    """Whether a rule is an ICSS `:import(...)` or `:export` block."""
    return rule.selector == EXPORT_SELECTOR or bool(
        IMPORT_SELECTOR_RE.match(rule.selector)
    )


def import_add(nodes: list[Node], path: str, alias: str, name: str) -> None:
    """Record `alias` as the local name for `name` exported by `path`."""
    selector: str = f':import("{path}")'
    for node in nodes:
        if isinstance(node, Rule) and node.selector == selector:
            node.nodes.append(Declaration(alias, name))
            return
    position: int = 0
    while (
        position < len(nodes)
        and isinstance(nodes[position], Rule)
        and IMPORT_SELECTOR_RE.match(nodes[position].selector)
    ):
        position += 1
    nodes.insert(position, Rule(selector, [Declaration(alias, name)]))


def export_add(nodes: list[Node], name: str, value: str) -> None:
    """Append `name: value` to the sheet's `:export` block."""
    for node in nodes:
        if isinstance(node, Rule) and node.selector == EXPORT_SELECTOR:
            node.nodes.append(Declaration(name, value))
            return
    nodes.append(Rule(EXPORT_SELECTOR, [Declaration(name, value)]))


def symbols_replace(
    nodes: list[Node],
    replacements: dict[str, str],
    selectors: bool = False,
    skip: Callable[[Declaration], bool] = lambda decl: False,
) -> None:
    """Replace whole-word symbols in values, at-rule params and selectors.

    Args:
        nodes: Tree to rewrite in place
        replacements: Symbol to replacement text
        selectors: Whether rule selectors are rewritten as well
        skip: Predicate for declarations that must be left untouched
    """
    if not replacements:
        return

    def substitute(text: str) -> str:
        return SYMBOL_RE.sub(lambda m: replacements.get(m.group(0), m.group(0)), text)

    for node, parent in walk(nodes):
        if isinstance(node, Declaration):
            # :import values name symbols of another file
            if isinstance(parent, Rule) and IMPORT_SELECTOR_RE.match(parent.selector):
                continue
            if not skip(node):
                node.value = substitute(node.value)
        elif isinstance(node, Rule):
            if selectors and not is_icss(node):
                node.selector = substitute(node.selector)
        elif node.name.lower() in ("media", "custom-media"):
            node.params = substitute(node.params)

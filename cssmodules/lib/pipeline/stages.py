"""
Default pipeline stages.

Implements the transformations that turn a plain style sheet into a CSS
Module, in the order the runner applies them:
- Values: `@value` definitions and imports
- LocalByDefault: marks class names, ids and keyframes as `:local(...)`
- ExtractImports: turns `composes: a from "./b.css"` into `:import` blocks
- Scope: replaces `:local(...)` with generated names and exports them
- Parser: resolves `:import` blocks through `fetch`, collects `:export`
"""

import re
from typing import Callable, Final, Optional, Self

from cssmodules.lib.errors import ConfigurationError, TransformationError
from cssmodules.lib.pipeline.base import Stylesheet
from cssmodules.lib.pipeline.names import ScopedNameGenerator, default_scoped_name
from cssmodules.lib.pipeline.syntax import (
    EXPORT_SELECTOR,
    IMPORT_SELECTOR_RE,
    SYMBOL_RE,
    AtRule,
    Declaration,
    Rule,
    export_add,
    import_add,
    is_icss,
    symbols_replace,
    escape,
    unescape,
    unquote,
    walk,
)

IDENT: Final[str] = r"-?(?:[_a-zA-Z\u00A0-\uFFFF]|\\.)(?:[\w\u00A0-\uFFFF-]|\\.)*"
COMPOSES_PROPS: Final[tuple[str, ...]] = ("composes", "compose-with")
ANIMATION_RE: Final[re.Pattern[str]] = re.compile(r"^(-\w+-)?animation(-name)?$", re.I)
KEYFRAMES_RE: Final[re.Pattern[str]] = re.compile(r"^(-\w+-)?keyframes$", re.I)
MODES: Final[tuple[str, ...]] = ("local", "global", "pure")


def paren_close(text: str, open_index: int) -> int:
    """Index of the parenthesis closing the one at `open_index`, or -1."""
    depth: int = 0
    quote: Optional[str] = None
    for index in range(open_index, len(text)):
        char: str = text[index]
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
    return -1


def local_replace(text: str, replace: Callable[[str], str], path: str) -> str:
    """Replace every `:local(...)` in `text` with `replace(inner)`."""
    output: str = ""
    pos: int = 0
    while True:
        start: int = text.find(":local(", pos)
        if start < 0:
            return output + text[pos:]
        end: int = paren_close(text, start + len(":local"))
        if end < 0:
            raise TransformationError(f"{path}: unclosed :local( in '{text}'")
        output += text[pos:start] + replace(text[start + len(":local(") : end])
        pos = end + 1


def is_composes(node: object) -> bool:
    return isinstance(node, Declaration) and node.prop.lower() in COMPOSES_PROPS


class Values:
    """Stage for `@value` constants.

    Supports local definitions (`@value primary: #BF4040;`), imports
    (`@value primary, secondary as second from "./colors.css";`) and path
    aliases (`@value colors: "./colors.css"; @value primary from colors;`).
    Every value is exported.
    """

    IMPORT_RE: Final[re.Pattern[str]] = re.compile(
        r"^(.+?|\([\s\S]+?\))\s+from\s+(\"[^\"]*\"|'[^']*'|[\w-]+)$", re.S
    )
    DEFINITION_RE: Final[re.Pattern[str]] = re.compile(r"^([\w-]+)\s*:?\s*(.*?)\s*$", re.S)
    IMPORT_ITEM_RE: Final[re.Pattern[str]] = re.compile(r"^([\w-]+)(?:\s+as\s+([\w-]+))?$")

    def __call__(self: Self, sheet: Stylesheet) -> None:
        definitions: dict[str, str] = {}
        index: int = 0

        for node, parent in walk(sheet.nodes):
            if not (isinstance(node, AtRule) and node.name.lower() == "value"):
                continue
            siblings = parent.nodes if parent is not None else sheet.nodes
            siblings.remove(node)

            imported = self.IMPORT_RE.match(node.params)
            if imported:
                names, source = imported.groups()
                if source[0] not in "\"'":
                    if source not in definitions:
                        raise TransformationError(
                            f'{sheet.path}: @value path alias "{source}" is not defined'
                        )
                    source = definitions[source]
                path: str = unquote(source)

                names = names.strip()
                if names.startswith("(") and names.endswith(")"):
                    names = names[1:-1]
                for item in names.split(","):
                    match = self.IMPORT_ITEM_RE.match(item.strip())
                    if not match:
                        raise TransformationError(
                            f'{sheet.path}: @value statement "{node.params}" is invalid'
                        )
                    name: str = match.group(1)
                    alias: str = match.group(2) or name
                    imported_name: str = f"i__const_{alias}_{index}"
                    index += 1
                    import_add(sheet.nodes, path, imported_name, name)
                    definitions[alias] = imported_name
                continue

            definition = self.DEFINITION_RE.match(node.params)
            if not definition:
                raise TransformationError(
                    f'{sheet.path}: @value statement "{node.params}" is invalid'
                )
            value: str = SYMBOL_RE.sub(
                lambda m: definitions.get(m.group(0), m.group(0)), definition.group(2)
            )
            definitions[definition.group(1)] = value

        symbols_replace(sheet.nodes, definitions, skip=is_composes)
        for name, value in definitions.items():
            export_add(sheet.nodes, name, value)


class LocalByDefault:
    """Stage marking names as local unless they are explicitly global.

    Modes:
        local: `.a` becomes `:local(.a)`, `:global(.a)` stays `.a`
        global: only explicit `:local(...)` names are scoped
        pure: like local, and every selector must contain a local name
    """

    TOKEN_RE: Final[re.Pattern[str]] = re.compile(
        r"""
        (?P<switch>:(?:global|local))(?![\w-])(?P<paren>\()?
        | (?P<name>[.\#]""" + IDENT + r""")
        | (?P<attr>\[[^\]]*\])
        | (?P<string>"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')
        | (?P<other>.)
        """,
        re.X | re.S,
    )

    def __init__(self: Self, mode: Optional[str] = None) -> None:
        self.mode: str = mode or "local"
        if self.mode not in MODES:
            raise ConfigurationError(
                f"mode should be one of {', '.join(MODES)}, not '{self.mode}'"
            )

    def __call__(self: Self, sheet: Stylesheet) -> None:
        keyframes: set[str] = set()

        for node, parent in walk(sheet.nodes):
            if isinstance(node, AtRule) and KEYFRAMES_RE.match(node.name):
                node.params = self.keyframes_localize(node.params, keyframes)
            elif isinstance(node, Rule):
                if is_icss(node):
                    continue
                if isinstance(parent, AtRule) and KEYFRAMES_RE.match(parent.name):
                    continue
                node.selector = self.selector_localize(node.selector, sheet.path)

        for node, _ in walk(sheet.nodes):
            if isinstance(node, Declaration) and ANIMATION_RE.match(node.prop):
                node.value = self.animation_localize(node.value, keyframes)

    def keyframes_localize(self: Self, params: str, keyframes: set[str]) -> str:
        params = params.strip()
        explicit = re.fullmatch(r":(global|local)\(\s*(" + IDENT + r")\s*\)", params)
        if explicit:
            if explicit.group(1) == "global":
                return explicit.group(2)
            keyframes.add(explicit.group(2))
            return params
        if self.mode == "global":
            return params
        keyframes.add(params)
        return f":local({params})"

    def animation_localize(self: Self, value: str, keyframes: set[str]) -> str:
        value = re.sub(r":global\(\s*(" + IDENT + r")\s*\)", r"\1", value)
        return re.sub(
            r"(?<![\w(:-])(" + IDENT + r")(?![\w-])",
            lambda m: f":local({m.group(1)})" if m.group(1) in keyframes else m.group(1),
            value,
        )

    def selector_localize(self: Self, selector: str, path: str) -> str:
        """Mark the names of every comma-separated selector as local or global.

        Args:
            selector: Rule selector
            path: File being transformed, used in error messages

        Returns:
            str: The selector with `:local(...)` wrappers and no global markers

        Raises:
            TransformationError: For impure selectors in pure mode
        """
        parts: list[str] = []
        for part in self.selector_split(selector):
            localized, has_local = self.part_localize(part, self.mode != "global", path)
            if self.mode == "pure" and not has_local:
                raise TransformationError(
                    f'{path}: selector "{part.strip()}" is not pure '
                    "(pure selectors must contain at least one local class or id)"
                )
            parts.append(localized.strip())
        return ", ".join(parts)

    @staticmethod
    def selector_split(selector: str) -> list[str]:
        parts: list[str] = []
        depth: int = 0
        quote: Optional[str] = None
        start: int = 0
        for index, char in enumerate(selector):
            if quote:
                if char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
            elif char in "([":
                depth += 1
            elif char in ")]":
                depth -= 1
            elif char == "," and depth == 0:
                parts.append(selector[start:index])
                start = index + 1
        parts.append(selector[start:])
        return parts

    def part_localize(self: Self, text: str, local: bool, path: str) -> tuple[str, bool]:
        output: str = ""
        has_local: bool = False
        pos: int = 0

        while pos < len(text):
            token = self.TOKEN_RE.match(text, pos)
            if token is None:
                raise TransformationError(f"{path}: cannot read selector '{text}'")
            pos = token.end()

            if token.group("switch"):
                is_local: bool = token.group("switch") == ":local"
                if token.group("paren"):
                    end: int = paren_close(text, pos - 1)
                    if end < 0:
                        raise TransformationError(f"{path}: unclosed parenthesis in '{text}'")
                    inner: str = text[pos:end]
                    if is_local:
                        inner, inner_local = self.part_localize(inner, True, path)
                        has_local = has_local or inner_local
                    output += inner
                    pos = end + 1
                else:
                    local = is_local
                    if not output.strip() or output[-1].isspace():
                        while pos < len(text) and text[pos].isspace():
                            pos += 1
            elif token.group("name"):
                if local:
                    output += f":local({token.group('name')})"
                    has_local = True
                else:
                    output += token.group("name")
            else:
                output += token.group(0)

        return output, has_local


class ExtractImports:
    """Stage turning `composes ... from "path"` into `:import` blocks."""

    COMPOSES_RE: Final[re.Pattern[str]] = re.compile(
        r"^(.+?)\s+from\s+(\"[^\"]+\"|'[^']+')$", re.S
    )

    def __init__(
        self: Self, create_imported_name: Optional[Callable[[str, str], str]] = None
    ) -> None:
        self.create_imported_name: Optional[Callable[[str, str], str]] = create_imported_name

    def __call__(self: Self, sheet: Stylesheet) -> None:
        aliases: dict[tuple[str, str], str] = {}
        index: int = 0

        for node, _ in walk(sheet.nodes):
            if not is_composes(node):
                continue
            match = self.COMPOSES_RE.match(node.value)
            if not match:
                continue

            path: str = unquote(match.group(2))
            imported: list[str] = []
            for name in match.group(1).split():
                key: tuple[str, str] = (path, name)
                if key not in aliases:
                    if self.create_imported_name:
                        alias: str = self.create_imported_name(name, path)
                    else:
                        alias = "i__imported_" + re.sub(r"\W", "_", name) + f"_{index}"
                        index += 1
                    aliases[key] = alias
                    import_add(sheet.nodes, path, alias, name)
                imported.append(aliases[key])
            node.value = " ".join(imported)


class Scope:
    """Stage replacing `:local(...)` names with generated scoped names.

    Also resolves `composes` into the exported class lists: a composing class
    exports its own scoped name followed by the names it composes.
    """

    NAME_RE: Final[re.Pattern[str]] = re.compile(r"([.#])(" + IDENT + r")")
    SINGLE_CLASS_RE: Final[re.Pattern[str]] = re.compile(
        r"^\s*:local\(\s*\.(" + IDENT + r")\s*\)\s*$"
    )
    GLOBAL_RE: Final[re.Pattern[str]] = re.compile(r"^(.+?)\s+from\s+global$", re.S)

    def __init__(self: Self, generate_scoped_name: Optional[ScopedNameGenerator] = None) -> None:
        self.generate_scoped_name: Optional[ScopedNameGenerator] = generate_scoped_name

    def __call__(self: Self, sheet: Stylesheet) -> None:
        generate: ScopedNameGenerator = self.generate_scoped_name or default_scoped_name()
        exports: dict[str, list[str]] = {}

        def scoped(name: str) -> str:
            if name not in exports:
                exports[name] = [generate(name, sheet.path)]
            return exports[name][0]

        def name_scope(inner: str) -> str:
            return escape(scoped(unescape(inner.strip())))

        def names_scope(inner: str) -> str:
            return self.NAME_RE.sub(lambda m: m.group(1) + name_scope(m.group(2)), inner)

        imported: set[str] = {
            decl.prop
            for node in sheet.nodes
            if isinstance(node, Rule) and IMPORT_SELECTOR_RE.match(node.selector)
            for decl in node.nodes
            if isinstance(decl, Declaration)
        }
        composing: list[tuple[Rule, str]] = []

        for node, _ in walk(sheet.nodes):
            if isinstance(node, Rule) and not is_icss(node):
                original: str = node.selector
                node.selector = local_replace(original, names_scope, sheet.path)
                if any(is_composes(child) for child in node.nodes):
                    composing.append((node, original))
            elif isinstance(node, AtRule) and KEYFRAMES_RE.match(node.name):
                node.params = local_replace(node.params, name_scope, sheet.path)
            elif isinstance(node, Declaration) and ANIMATION_RE.match(node.prop):
                node.value = local_replace(node.value, name_scope, sheet.path)

        for rule, original in composing:
            self.composes_resolve(sheet, rule, original, exports, imported)

        for name, values in exports.items():
            export_add(sheet.nodes, name, " ".join(values))

    def composes_resolve(
        self: Self,
        sheet: Stylesheet,
        rule: Rule,
        original: str,
        exports: dict[str, list[str]],
        imported: set[str],
    ) -> None:
        single = self.SINGLE_CLASS_RE.match(original)
        if not single:
            raise TransformationError(
                f"{sheet.path}: composition is only allowed when selector is single "
                f':local class name not in "{original}"'
            )
        target: list[str] = exports[unescape(single.group(1))]

        for decl in [child for child in rule.nodes if is_composes(child)]:
            rule.nodes.remove(decl)
            from_global = self.GLOBAL_RE.match(decl.value)
            if from_global:
                target.extend(from_global.group(1).split())
                continue
            for name in map(unescape, decl.value.split()):
                if name in imported:
                    target.append(name)
                elif name in exports:
                    target.extend(v for v in exports[name] if v not in target)
                else:
                    raise TransformationError(
                        f'{sheet.path}: referenced class name "{name}" in composes not found'
                    )


class Parser:
    """Final stage resolving ICSS `:import` blocks and collecting `:export`."""

    def __call__(self: Self, sheet: Stylesheet) -> None:
        translations: dict[str, str] = {}

        for node in list(sheet.nodes):
            if not isinstance(node, Rule):
                continue
            match = IMPORT_SELECTOR_RE.match(node.selector)
            if not match:
                continue
            if sheet.fetch is None:
                raise TransformationError(
                    f"{sheet.path}: cannot resolve {node.selector} without a fetch callback"
                )

            specifier: str = unquote(match.group(1))
            tokens = sheet.fetch(specifier, sheet.path)
            for decl in node.nodes:
                if not isinstance(decl, Declaration):
                    continue
                value = tokens.get(decl.value)
                if value is None:
                    sheet.warn(f'"{decl.value}" is not exported by {specifier}')
                    continue
                translations[decl.prop] = str(value)
            sheet.nodes.remove(node)

        symbols_replace(sheet.nodes, translations, selectors=True)

        for node in list(sheet.nodes):
            if isinstance(node, Rule) and node.selector == EXPORT_SELECTOR:
                for decl in node.nodes:
                    if isinstance(decl, Declaration):
                        sheet.tokens[decl.prop] = decl.value
                sheet.nodes.remove(node)

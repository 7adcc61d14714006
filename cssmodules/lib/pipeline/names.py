"""
Scoped name generation.

Two strategies produce the identifier that replaces a local class name:
- `generic_names(pattern, ...)`: interpolates a template such as
  `[name]__[local]___[hash:base64:5]`
- `default_scoped_name(context)`: `_<relative path>__<local>`, used when no
  template or function is configured

Supported placeholders: [local], [name], [ext], [path], [folder], [hash] and
[contenthash], the latter two with optional `<hashType>:` prefix and
`:<digest>:<length>` suffix (e.g. `[sha1:hash:hex:8]`, `[hash:base64:5]`).
"""

import hashlib
import os
import re
from typing import Callable, Final

ScopedNameGenerator = Callable[[str, str], str]

DEFAULT_HASH_TYPE: Final[str] = "md5"

BASE_ENCODE_TABLES: Final[dict[int, str]] = {
    26: "abcdefghijklmnopqrstuvwxyz",
    32: "123456789abcdefghjkmnpqrstuvwxyz",
    36: "0123456789abcdefghijklmnopqrstuvwxyz",
    49: "abcdefghijkmnopqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ",
    52: "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ",
    58: "123456789abcdefghijkmnopqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ",
    62: "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ",
    64: "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ-_",
}

HASH_RE: Final[re.Pattern[str]] = re.compile(
    r"\[(?:([^:\]]+):)?(?:hash|contenthash)(?::([a-z]+\d*))?(?::(\d+))?\]",
    re.I,
)
INVALID_CHARS_RE: Final[re.Pattern[str]] = re.compile(
    r"[^a-zA-Z0-9\-_\u00A0-\uFFFF]"
)
LEADING_RE: Final[re.Pattern[str]] = re.compile(r"^((-?[0-9])|--)")


def buffer_encode(buffer: bytes, base: int) -> str:
    """Encode a digest in one of the `baseNN` alphabets, little-endian."""
    table: str = BASE_ENCODE_TABLES[base]
    number: int = int.from_bytes(buffer, "little")
    output: str = ""
    while number > 0:
        number, remainder = divmod(number, base)
        output = table[remainder] + output
    return output


def hash_digest(content: bytes, hash_type: str, digest: str, length: int) -> str:
    try:
        hasher = hashlib.new(hash_type)
    except ValueError as e:
        raise ValueError(f"Unsupported hash type '{hash_type}'") from e
    hasher.update(content)

    match = re.fullmatch(r"base(\d+)", digest)
    if match and int(match.group(1)) in BASE_ENCODE_TABLES:
        encoded: str = buffer_encode(hasher.digest(), int(match.group(1)))
    elif digest == "hex":
        encoded = hasher.hexdigest()
    else:
        raise ValueError(f"Unsupported digest type '{digest}'")
    return encoded[:length]


def interpolate_name(pattern: str, resource_path: str, context: str, content: str) -> str:
    """Fill file and hash placeholders of a name template.

    Args:
        pattern: Template with [name], [ext], [path], [folder], [hash] parts
        resource_path: Absolute path of the style file
        context: Directory relative paths are computed from
        content: Text the hash is computed over

    Returns:
        str: The interpolated name, not yet sanitized
    """
    basename, ext = os.path.splitext(os.path.basename(resource_path))
    directory: str = os.path.relpath(os.path.dirname(resource_path), context)
    directory = directory.replace("\\", "/").replace("..", "_")
    folder: str = os.path.basename(directory) if directory != "." else ""
    directory = "" if directory == "." else directory + "/"

    def hash_fill(match: re.Match[str]) -> str:
        length: int = int(match.group(3)) if match.group(3) else 9999
        return hash_digest(
            content.encode("utf-8"),
            match.group(1) or DEFAULT_HASH_TYPE,
            (match.group(2) or "hex").lower(),
            length,
        )

    name: str = HASH_RE.sub(hash_fill, pattern)
    return (
        name.replace("[ext]", ext.lstrip("."))
        .replace("[name]", basename)
        .replace("[path]", directory)
        .replace("[folder]", folder)
    )


def generic_names(
    pattern: str, context: str | None = None, hash_prefix: str = ""
) -> ScopedNameGenerator:
    """Build a generator of scoped names from a template.

    The hash covers the hash prefix, the path relative to `context` and the
    local name, so the same class in the same file always gets the same name.

    Args:
        pattern: Template such as `[local]_[hash:base64:5]`
        context: Base directory for relative paths (default: cwd)
        hash_prefix: Seed mixed into every hash

    Returns:
        ScopedNameGenerator: `(local, filepath) -> scoped name`
    """
    root: str = context or os.getcwd()

    def generate(local: str, filepath: str) -> str:
        name: str = re.sub(r"\[local\]", lambda _: local, pattern, flags=re.I)
        relative: str = os.path.relpath(filepath, root).replace("\\", "/")
        content: str = f"{hash_prefix}{relative}\x00{local}"
        generated: str = interpolate_name(name, filepath, root, content)
        generated = INVALID_CHARS_RE.sub("-", generated)
        return LEADING_RE.sub(r"_\1", generated)

    return generate


def default_scoped_name(context: str | None = None) -> ScopedNameGenerator:
    root: str = context or os.getcwd()

    def generate(local: str, filepath: str) -> str:
        relative: str = os.path.relpath(filepath, root)
        sanitised: str = re.sub(r"\.[^./\\]+$", "", relative)
        sanitised = re.sub(r"[\W_]+", "_", sanitised).strip("_")
        return f"_{sanitised}__{local}"

    return generate

"""
Slotkit Kernel — Template Variable Processor

Pure function: (template, data context) → string
No IO. Deterministic. Never raises for any template or context.

Supported constructs:
- {{path.to.value}}, {{items[0].name}}, {{{raw}}}, {{&raw}}
- {{#each path}}...{{else}}...{{/each}} with this, @index, @first, @last, @key
- {{#if expr}}...{{else}}...{{/if}}, {{#unless expr}}...{{/unless}}
- helper calls in conditions: (eq a b) (ne a b) (gt a b) (gte a b) (lt a b)
  (lte a b) (and a b) (or a b) (not a); infix a > b, >=, <, <=, ==, !=
- {{t 'key'}} translations from settings.ui_translations

Unresolved paths and unknown helpers render as empty strings. Unclosed
blocks and stray closing tags stay in the output as literal text, and a
"{{" inside a substituted value is broken up, so processing
already-processed output changes nothing.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from html import escape as _html_escape
from typing import Any

from slotkit.config import settings
from slotkit.kernel.formatting import format_display_value, to_number
from slotkit.kernel.types import RenderMode, TranslationLookup

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_TAG = re.compile(r"\{\{\{((?:(?!\{\{).)*?)\}\}\}|\{\{(?!\{)((?:(?!\{\{).)*?)\}\}", re.DOTALL)
_PATH_SEGMENT = re.compile(r"\[(\d+)\]|([^.\[\]]+)")
_TRANSLATE = re.compile(r"""^t\s+(['"])(.+?)\1$""")
_INFIX = re.compile(r"^(.+?)\s*(>=|<=|==|!=|>|<)\s*(.+)$")
_HELPER_ARG = re.compile(r""""[^"]*"|'[^']*'|\((?:[^()]|\([^()]*\))*\)|[^\s()]+""")
_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")
_OPEN_BRACE_PAIR = re.compile(r"\{(?=\{)")

# Breaks "{{" in substituted values so the output never opens a new tag.
# Markup gets the entity; plain values get an invisible word joiner.
_MARKUP_BRACE = "&#123;"
_PLAIN_BRACE = "{\u2060"

# Content that looks like "common.welcome_back" is a translation key
TRANSLATION_KEY_PATTERN = re.compile(r"^[a-z_]+\.[a-z_0-9]+(\.[a-z_0-9]+)*$")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def process(
    template: Any,
    context: Mapping[str, Any] | None,
    *,
    escape: bool = False,
    max_depth: int | None = None,
) -> str:
    """
    Resolve every template construct in `template` against `context`.

    escape=True HTML-escapes {{x}} substitutions (for markup content);
    {{{x}}} is never escaped.
    """
    if template is None:
        return ""
    if not isinstance(template, str):
        return str(template)
    if "{{" not in template:
        return template

    state = _State(
        root=context if isinstance(context, Mapping) else {},
        escape=escape,
        max_depth=settings.MAX_TEMPLATE_DEPTH if max_depth is None else max_depth,
    )
    try:
        nodes = _parse(template)
        return _render_nodes(nodes, (state.root,), state, 0)
    except RecursionError:
        logger.warning("template nesting too deep, rendering empty")
        return ""


def process_styles(styles: Mapping[str, Any] | None, context: Mapping[str, Any] | None) -> dict[str, Any]:
    """Resolve templates inside style values. Non-string values pass through."""
    if not styles:
        return {}
    return {k: process(v, context) if isinstance(v, str) else v for k, v in styles.items()}


def has_template(value: Any) -> bool:
    return isinstance(value, str) and "{{" in value


def evaluate_condition(expression: str, context: Mapping[str, Any] | None) -> bool:
    """Evaluate an #if-style expression against a context."""
    root = context if isinstance(context, Mapping) else {}
    return _evaluate((root,), expression.strip())


def resolve_path(context: Mapping[str, Any] | None, path: str) -> Any:
    """Look up a dotted / indexed path. Missing segments resolve to None."""
    root = context if isinstance(context, Mapping) else {}
    return _lookup((root,), path.strip())


def is_truthy(value: Any) -> bool:
    """
    Template truthiness: None, False, 0, NaN, "" and empty sequences are
    falsy. Mappings are truthy even when empty.
    """
    if value is None or value is False:
        return False
    if isinstance(value, bool):
        return True
    if isinstance(value, (int, float)):
        return value == value and value != 0
    if isinstance(value, str):
        return value != ""
    if isinstance(value, Mapping):
        return True
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return bool(value)


def resolve_translation_key(
    content: str,
    lookup: TranslationLookup | None,
    language: str,
    mode: RenderMode,
) -> str | None:
    """
    Treat `content` as a translation key when it looks like one.

    Returns None when content is not a key (caller keeps processing it as
    a template). An unresolved key renders empty in production and as the
    raw key in the editor.
    """
    if not isinstance(content, str) or not TRANSLATION_KEY_PATTERN.match(content.strip()):
        return None
    key = content.strip()
    translated = None
    if lookup is not None:
        try:
            translated = lookup(key, language)
        except Exception:
            logger.exception("translation lookup failed for %s", key)
    if translated and translated != key:
        return translated
    return key if mode is RenderMode.EDITOR else ""


# ---------------------------------------------------------------------------
# Parse tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Text:
    value: str


@dataclass(frozen=True)
class _Var:
    expr: str
    raw: bool


@dataclass(frozen=True)
class _Block:
    name: str
    args: str
    body: tuple
    inverse: tuple | None


@dataclass(frozen=True)
class _Tag:
    """Intermediate token for a block tag while parsing."""

    kind: str  # "open" | "close" | "else"
    name: str
    args: str
    source: str


@lru_cache(maxsize=512)
def _parse(template: str) -> tuple:
    tokens = list(_tokenize(template))

    # Each frame: [tag, body, inverse-or-None]
    stack: list[list[Any]] = []
    top: list[Any] = []

    def current() -> list[Any]:
        if not stack:
            return top
        frame = stack[-1]
        return frame[2] if frame[2] is not None else frame[1]

    def unwind(frame: list[Any]) -> list[Any]:
        """An unclosed block is emitted as literal text plus its contents."""
        tag, body, inverse = frame
        out: list[Any] = [_Text(tag.source), *body]
        if inverse is not None:
            out.append(_Text("{{else}}"))
            out.extend(inverse)
        return out

    for token in tokens:
        if not isinstance(token, _Tag):
            current().append(token)
        elif token.kind == "open":
            stack.append([token, [], None])
        elif token.kind == "else":
            if stack and stack[-1][2] is None:
                stack[-1][2] = []
            else:
                current().append(_Text(token.source))
        else:
            match = next((i for i in range(len(stack) - 1, -1, -1) if stack[i][0].name == token.name), None)
            if match is None:
                current().append(_Text(token.source))
                continue
            while len(stack) - 1 > match:
                unclosed = stack.pop()
                current().extend(unwind(unclosed))
            tag, body, inverse = stack.pop()
            current().append(
                _Block(tag.name, tag.args, tuple(body), tuple(inverse) if inverse is not None else None)
            )

    while stack:
        unclosed = stack.pop()
        current().extend(unwind(unclosed))

    return tuple(top)


def _tokenize(template: str):
    pos = 0
    for match in _TAG.finditer(template):
        if match.start() > pos:
            yield _Text(template[pos : match.start()])
        pos = match.end()
        source = match.group(0)

        if match.group(1) is not None:
            inner = match.group(1).strip()
            yield _Var(inner, raw=True) if inner else _Text(source)
            continue

        inner = match.group(2).strip()
        if not inner:
            yield _Text(source)
        elif inner.startswith("#"):
            name, _, args = inner[1:].strip().partition(" ")
            yield _Tag("open", name, args.strip(), source)
        elif inner.startswith("/"):
            yield _Tag("close", inner[1:].strip(), "", source)
        elif inner == "else":
            yield _Tag("else", "else", "", source)
        elif inner.startswith("&"):
            yield _Var(inner[1:].strip(), raw=True)
        elif inner[0] in "!>^=":
            # comments, partials, inverted sections and delimiter changes are not supported
            continue
        else:
            yield _Var(inner, raw=False)

    if pos < len(template):
        yield _Text(template[pos:])


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


@dataclass
class _State:
    root: Mapping[str, Any]
    escape: bool
    max_depth: int
    depth_warned: bool = False


def _render_nodes(nodes: tuple, scopes: tuple, state: _State, depth: int) -> str:
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, _Text):
            parts.append(node.value)
        elif isinstance(node, _Var):
            parts.append(_render_var(node, scopes, state))
        else:
            parts.append(_render_block(node, scopes, state, depth))
    return "".join(parts)


def _render_block(block: _Block, scopes: tuple, state: _State, depth: int) -> str:
    if depth >= state.max_depth:
        if not state.depth_warned:
            logger.warning("template blocks nested deeper than %d, rendering empty", state.max_depth)
            state.depth_warned = True
        return ""

    if block.name == "each":
        return _render_each(block, scopes, state, depth)

    if block.name in ("if", "unless"):
        result = _evaluate(scopes, block.args)
        if block.name == "unless":
            result = not result
        if result:
            return _render_nodes(block.body, scopes, state, depth + 1)
        if block.inverse is not None:
            return _render_nodes(block.inverse, scopes, state, depth + 1)
        return ""

    # Unknown block helper
    return ""


def _render_each(block: _Block, scopes: tuple, state: _State, depth: int) -> str:
    collection = _lookup(scopes, block.args)

    if isinstance(collection, Mapping):
        entries = [(str(k), v) for k, v in collection.items()]
    elif isinstance(collection, (list, tuple)):
        entries = [(None, v) for v in collection]
    else:
        entries = []

    if not entries:
        if block.inverse is not None:
            return _render_nodes(block.inverse, scopes, state, depth + 1)
        return ""

    parts = []
    last = len(entries) - 1
    for index, (key, item) in enumerate(entries):
        frame: dict[str, Any] = dict(item) if isinstance(item, Mapping) else {}
        frame.update({"this": item, "@index": index, "@first": index == 0, "@last": index == last})
        if key is not None:
            frame["@key"] = key
        parts.append(_render_nodes(block.body, scopes + (frame,), state, depth + 1))
    return "".join(parts)


def _render_var(node: _Var, scopes: tuple, state: _State) -> str:
    expr = node.expr

    translate = _TRANSLATE.match(expr)
    if translate:
        text = _translate(translate.group(2), state.root)
    elif " " in expr:
        # Inline helpers are not supported in interpolation
        return ""
    else:
        value = _lookup(scopes, expr)
        if expr == "product.short_description" and not value:
            value = _lookup(scopes, "product.description")
        text = format_display_value(value, expr, state.root)

    if state.escape and not node.raw:
        text = _html_escape(text, quote=True)
    return _OPEN_BRACE_PAIR.sub(_MARKUP_BRACE if state.escape else _PLAIN_BRACE, text)


def _translate(key: str, root: Mapping[str, Any]) -> str:
    language = root.get("currentLanguage") or root.get("language") or settings.DEFAULT_LANGUAGE
    sources: list[Any] = [root.get("translations")]
    store_settings = root.get("settings")
    if isinstance(store_settings, Mapping):
        ui = store_settings.get("ui_translations")
        if isinstance(ui, Mapping):
            sources.append(ui.get(language))
            sources.append(ui.get("en"))

    for source in sources:
        if not isinstance(source, Mapping):
            continue
        flat = source.get(key)
        if isinstance(flat, str) and flat:
            return flat
        nested = _walk(source, _split_path(key))
        if isinstance(nested, str) and nested:
            return nested

    last = key.split(".")[-1]
    return " ".join(word.capitalize() for word in last.split("_"))


# ---------------------------------------------------------------------------
# Path lookup
# ---------------------------------------------------------------------------


def _split_path(path: str) -> list[str | int]:
    segments: list[str | int] = []
    for match in _PATH_SEGMENT.finditer(path):
        if match.group(1) is not None:
            segments.append(int(match.group(1)))
        else:
            segments.append(match.group(2))
    return segments


def _walk(value: Any, segments: list[str | int]) -> Any:
    for segment in segments:
        if isinstance(value, Mapping):
            value = value.get(segment if isinstance(segment, str) else str(segment))
        elif isinstance(value, (list, tuple)):
            index = segment if isinstance(segment, int) else _as_index(segment)
            if index is None or not -len(value) <= index < len(value):
                return None
            value = value[index]
        else:
            return None
        if value is None:
            return None
    return value


def _as_index(segment: str) -> int | None:
    return int(segment) if segment.isdigit() else None


def _lookup(scopes: tuple, path: str) -> Any:
    segments = _split_path(path.strip())
    if not segments:
        return None

    head = segments[0]
    if head == "this":
        loop_frames = [f for f in scopes[1:] if "this" in f]
        if not loop_frames:
            # Outside a loop, "this" is the root context
            return _walk(scopes[0], segments[1:]) if len(segments) > 1 else scopes[0]
        if len(segments) == 1:
            return loop_frames[-1]["this"]
        found = _walk(loop_frames[-1]["this"], segments[1:])
        if found is not None:
            return found
        segments = segments[1:]
        head = segments[0]

    for frame in reversed(scopes):
        if isinstance(frame, Mapping) and head in frame:
            return _walk(frame, segments)
    return None


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------


def _evaluate(scopes: tuple, expression: str) -> bool:
    expression = expression.strip()
    if not expression:
        return False

    if expression.startswith("(") and expression.endswith(")"):
        return is_truthy(_call_helper(scopes, expression[1:-1]))

    infix = _INFIX.match(expression)
    if infix:
        left, op, right = infix.groups()
        return _compare(op, _argument(scopes, left), _argument(scopes, right))

    return is_truthy(_lookup(scopes, expression))


def _call_helper(scopes: tuple, inner: str) -> Any:
    parts = _HELPER_ARG.findall(inner.strip())
    if not parts:
        return False
    name, raw_args = parts[0], parts[1:]
    args = [_argument(scopes, a) for a in raw_args]

    if name in _COMPARISONS:
        if len(args) != 2:
            return False
        return _compare(_COMPARISONS[name], args[0], args[1])
    if name == "and":
        return all(is_truthy(a) for a in args) if args else False
    if name == "or":
        return any(is_truthy(a) for a in args)
    if name == "not":
        return not is_truthy(args[0]) if args else True
    return False


_COMPARISONS: dict[str, str] = {"eq": "==", "ne": "!=", "gt": ">", "gte": ">=", "lt": "<", "lte": "<="}


def _argument(scopes: tuple, token: str) -> Any:
    token = token.strip()
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        return token[1:-1]
    if _NUMBER.match(token):
        return float(token)
    if token == "true":
        return True
    if token == "false":
        return False
    if token in ("null", "undefined"):
        return None
    if token.startswith("(") and token.endswith(")"):
        return _call_helper(scopes, token[1:-1])
    return _lookup(scopes, token)


def _compare(op: str, left: Any, right: Any) -> bool:
    if op in ("==", "!="):
        equal = _loose_equal(left, right)
        return equal if op == "==" else not equal

    a, b = to_number(left), to_number(right)
    if a is None or b is None:
        return False
    if op == ">":
        return a > b
    if op == ">=":
        return a >= b
    if op == "<":
        return a < b
    return a <= b


def _loose_equal(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is None and right is None
    a, b = to_number(left), to_number(right)
    if a is not None and b is not None:
        return a == b
    if isinstance(left, bool) or isinstance(right, bool):
        return format_display_value(left) == format_display_value(right)
    return str(left) == str(right)

"""Linear notations for regular expressions.

The array notation is a list of alphabet symbols and the five sentinels
``ALT``, ``KSTAR``, ``LEFT_PAREN``, ``RIGHT_PAREN`` and ``EPS``. Concatenation
is implicit and the precedence is Kleene star > concatenation > alternation.

The string notation is the array notation written with one character per
symbol: ``$ + * ( )`` stand for the sentinels and ``\\`` escapes any of
``$+*()\\`` to get the character itself as a symbol, e.g. ``(a+b)*\\+`` is all
strings of as and bs followed by a plus sign.
"""

from dataclasses import dataclass
from typing import Any, Hashable, Iterable

from regkit.equality import Marker
from regkit.errors import NotationError
from regkit.fsm import Automaton
from regkit.regex_simplify import simplify
from regkit.regex_tree import (
    Alt,
    Eps,
    KStar,
    Lit,
    RegexTree,
    Seq,
    make_alt,
    make_eps,
    make_kstar,
    make_lit,
    make_seq,
    precedence,
    to_automaton,
)

__all__ = [
    "ALT",
    "KSTAR",
    "LEFT_PAREN",
    "RIGHT_PAREN",
    "EPS",
    "ESCAPABLE",
    "array_to_tree",
    "tree_to_array",
    "array_to_string",
    "string_to_array",
    "string_to_tree",
    "tree_to_string",
    "array_to_automaton",
    "string_to_automaton",
    "simplify_array",
    "simplify_string",
]

ALT = Marker("ALT", "+")
KSTAR = Marker("KSTAR", "*")
LEFT_PAREN = Marker("LEFT_PAREN", "(")
RIGHT_PAREN = Marker("RIGHT_PAREN", ")")
EPS = Marker("EPS", "$")

SENTINELS = (ALT, KSTAR, LEFT_PAREN, RIGHT_PAREN, EPS)

ESCAPABLE = "$+*()\\"

_UNESCAPED = {str(marker): marker for marker in SENTINELS}

_END = Marker("END", "")


@dataclass
class _Input:
    items: list[Any]
    idx: int = 0

    def peek(self) -> Any:
        return self.items[self.idx] if self.idx < len(self.items) else _END

    def advance(self) -> None:
        self.idx += 1


def _parse_expr(source: _Input) -> Alt:
    concats = [_parse_concat(source)]
    while source.peek() is ALT:
        source.advance()
        concats.append(_parse_concat(source))
    return make_alt(concats)


def _parse_concat(source: _Input) -> Seq:
    katoms = []
    while source.peek() not in (_END, ALT, RIGHT_PAREN):
        katoms.append(_parse_katom(source))
    return make_seq(katoms)


def _parse_katom(source: _Input) -> RegexTree:
    atom = _parse_atom(source)
    if source.peek() is KSTAR:
        source.advance()
        atom = make_kstar(atom)
    return atom


def _parse_atom(source: _Input) -> RegexTree:
    token = source.peek()
    if token is LEFT_PAREN:
        source.advance()
        expr = _parse_expr(source)
        if source.peek() is not RIGHT_PAREN:
            raise NotationError(
                "Malformed regex array: missing matching right parenthesis", source.idx
            )
        source.advance()
        return expr
    if token is EPS:
        source.advance()
        return make_eps()
    if isinstance(token, Marker):
        raise NotationError(f"Malformed regex array: unexpected {token!r}", source.idx)

    source.advance()
    return make_lit(token)


def array_to_tree(arr: Iterable[Hashable]) -> RegexTree:
    source = _Input(list(arr))
    tree = _parse_expr(source)
    if source.peek() is not _END:
        raise NotationError(
            "Malformed regex array: unexpected trailing input", source.idx
        )
    return tree


def _child_to_array(parent: RegexTree, child: RegexTree, arr: list[Any]) -> None:
    parens = precedence(parent) >= precedence(child)
    if parens:
        arr.append(LEFT_PAREN)
    _to_array(child, arr)
    if parens:
        arr.append(RIGHT_PAREN)


def _to_array(tree: RegexTree, arr: list[Any]) -> None:
    if isinstance(tree, Alt):
        for i, choice in enumerate(tree.choices):
            if i > 0:
                arr.append(ALT)
            _child_to_array(tree, choice, arr)
    elif isinstance(tree, Seq):
        for element in tree.elements:
            _child_to_array(tree, element, arr)
    elif isinstance(tree, KStar):
        _child_to_array(tree, tree.expr, arr)
        arr.append(KSTAR)
    elif isinstance(tree, Lit):
        arr.append(tree.symbol)
    elif isinstance(tree, Eps):
        arr.append(EPS)
    else:
        raise TypeError(f"Not a regex tree node: {tree!r}")


def tree_to_array(tree: RegexTree) -> list[Any]:
    """Print ``tree`` in the array notation.

    A child is parenthesized whenever its precedence is not higher than its
    parent's, so the output can carry more parentheses than strictly needed.
    """
    arr: list[Any] = []
    _to_array(tree, arr)
    return arr


def array_to_string(arr: Iterable[Hashable]) -> str:
    res = []
    for i, item in enumerate(arr):
        if isinstance(item, str) and len(item) == 1:
            res.append("\\" + item if item in ESCAPABLE else item)
        elif any(item is marker for marker in SENTINELS):
            res.append(str(item))
        else:
            raise NotationError(
                "Array regex not convertible to string representation", i
            )
    return "".join(res)


def string_to_array(text: str) -> list[Any]:
    arr: list[Any] = []
    escaped = False
    for i, char in enumerate(text):
        if escaped:
            if char not in ESCAPABLE:
                raise NotationError(
                    f"Malformed string regex: illegal escape sequence \\{char}", i
                )
            arr.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        else:
            arr.append(_UNESCAPED.get(char, char))

    if escaped:
        raise NotationError(
            "Malformed string regex: unfinished escape sequence at end of string",
            len(text) - 1,
        )
    return arr


def string_to_tree(text: str) -> RegexTree:
    return array_to_tree(string_to_array(text))


def tree_to_string(tree: RegexTree) -> str:
    return array_to_string(tree_to_array(tree))


def array_to_automaton(arr: Iterable[Hashable]) -> Automaton:
    return to_automaton(array_to_tree(arr))


def string_to_automaton(text: str) -> Automaton:
    return to_automaton(string_to_tree(text))


def simplify_array(
    arr: Iterable[Hashable],
    num_iterations: int | None = None,
    applied_patterns: list[str] | None = None,
    use_fsm_patterns: bool = True,
) -> list[Any]:
    tree = simplify(
        array_to_tree(arr), num_iterations, applied_patterns, use_fsm_patterns
    )
    return tree_to_array(tree)


def simplify_string(
    text: str,
    num_iterations: int | None = None,
    applied_patterns: list[str] | None = None,
    use_fsm_patterns: bool = True,
) -> str:
    tree = simplify(
        string_to_tree(text), num_iterations, applied_patterns, use_fsm_patterns
    )
    return tree_to_string(tree)

"""Regular expressions as syntax trees.

A tree is built from five node types: ``Alt`` (union of choices), ``Seq``
(concatenation), ``KStar`` (Kleene star), ``Lit`` (a single symbol) and
``Eps`` (the empty string). ``Alt(())`` has no choices and denotes the empty
language. Nodes are immutable values, so equal trees compare equal and can
share subtrees freely.
"""

import itertools
from dataclasses import dataclass, fields
from typing import Hashable, Iterable, Iterator

from regkit.equality import freeze
from regkit.fsm import (
    Automaton,
    add_accepting_state,
    add_epsilon_transition,
    add_state,
    add_symbol,
    add_transition,
    new_automaton,
    set_initial_state,
)

__all__ = [
    "Alt",
    "Seq",
    "KStar",
    "Lit",
    "Eps",
    "RegexTree",
    "make_alt",
    "make_seq",
    "make_kstar",
    "make_lit",
    "make_eps",
    "children",
    "precedence",
    "to_automaton",
]


def _node_hash(node) -> int:
    # trees from state elimination share subtrees heavily, so each node
    # hashes its fields once and keeps the result
    try:
        return node.__dict__["_hash"]
    except KeyError:
        res = hash((type(node).__name__,) + tuple(getattr(node, f.name) for f in fields(node)))
        object.__setattr__(node, "_hash", res)
        return res


def _node_state(node) -> dict:
    # string hashes differ between interpreter runs, so the cache is not pickled
    return {k: v for k, v in node.__dict__.items() if k != "_hash"}


@dataclass(frozen=True)
class Alt:
    choices: tuple["RegexTree", ...]

    __hash__ = _node_hash
    __getstate__ = _node_state


@dataclass(frozen=True)
class Seq:
    elements: tuple["RegexTree", ...]

    __hash__ = _node_hash
    __getstate__ = _node_state


@dataclass(frozen=True)
class KStar:
    expr: "RegexTree"

    __hash__ = _node_hash
    __getstate__ = _node_state


@dataclass(frozen=True)
class Lit:
    symbol: Hashable

    __hash__ = _node_hash
    __getstate__ = _node_state


@dataclass(frozen=True)
class Eps:
    __hash__ = _node_hash
    __getstate__ = _node_state


RegexTree = Alt | Seq | KStar | Lit | Eps

_EPS = Eps()


def make_alt(choices: Iterable[RegexTree]) -> Alt:
    return Alt(tuple(choices))


def make_seq(elements: Iterable[RegexTree]) -> Seq:
    return Seq(tuple(elements))


def make_kstar(expr: RegexTree) -> KStar:
    return KStar(expr)


def make_lit(symbol: Hashable) -> Lit:
    return Lit(freeze(symbol))


def make_eps() -> Eps:
    return _EPS


def children(tree: RegexTree) -> tuple[RegexTree, ...]:
    if isinstance(tree, Alt):
        return tree.choices
    if isinstance(tree, Seq):
        return tree.elements
    if isinstance(tree, KStar):
        return (tree.expr,)
    return ()


# Lit and Eps are atoms and can't be regrouped, so they bind tighter than
# every operator.
_PRECEDENCE = {Alt: 0, Seq: 1, KStar: 2, Lit: 3, Eps: 3}


def precedence(tree: RegexTree) -> int:
    return _PRECEDENCE[type(tree)]


def _new_pair(fsm: Automaton, counter: Iterator[int]) -> tuple[int, int]:
    return add_state(fsm, next(counter)), add_state(fsm, next(counter))


def _alt_to_automaton(tree: Alt, fsm: Automaton, counter: Iterator[int]):
    left, right = _new_pair(fsm, counter)
    for choice in tree.choices:
        inner_left, inner_right = _to_automaton(choice, fsm, counter)
        add_epsilon_transition(fsm, left, [inner_left])
        add_epsilon_transition(fsm, inner_right, [right])
    return left, right


def _seq_to_automaton(tree: Seq, fsm: Automaton, counter: Iterator[int]):
    if not tree.elements:
        return _new_pair(fsm, counter)

    left = right = None
    for element in tree.elements:
        inner_left, inner_right = _to_automaton(element, fsm, counter)
        if left is None:
            left = inner_left
        else:
            add_epsilon_transition(fsm, right, [inner_left])
        right = inner_right
    return left, right


def _kstar_to_automaton(tree: KStar, fsm: Automaton, counter: Iterator[int]):
    #    -----------------ε----------------
    #   /                                  \
    # |l|--ε--|ll|...(tree.expr)...|rr|--ε--|r|
    #           \_________ε_________/
    left, right = _new_pair(fsm, counter)
    inner_left, inner_right = _to_automaton(tree.expr, fsm, counter)
    add_epsilon_transition(fsm, left, [right])  # zero times
    add_epsilon_transition(fsm, left, [inner_left])  # once or more
    add_epsilon_transition(fsm, inner_right, [inner_left])  # repeat
    add_epsilon_transition(fsm, inner_right, [right])  # done repeating
    return left, right


def _lit_to_automaton(tree: Lit, fsm: Automaton, counter: Iterator[int]):
    left, right = _new_pair(fsm, counter)
    if tree.symbol not in fsm.alphabet:
        add_symbol(fsm, tree.symbol)
    add_transition(fsm, left, [right], tree.symbol)
    return left, right


def _eps_to_automaton(tree: Eps, fsm: Automaton, counter: Iterator[int]):
    left, right = _new_pair(fsm, counter)
    add_epsilon_transition(fsm, left, [right])
    return left, right


def _to_automaton(
    tree: RegexTree, fsm: Automaton, counter: Iterator[int]
) -> tuple[int, int]:
    if isinstance(tree, Alt):
        return _alt_to_automaton(tree, fsm, counter)
    if isinstance(tree, Seq):
        return _seq_to_automaton(tree, fsm, counter)
    if isinstance(tree, KStar):
        return _kstar_to_automaton(tree, fsm, counter)
    if isinstance(tree, Lit):
        return _lit_to_automaton(tree, fsm, counter)
    if isinstance(tree, Eps):
        return _eps_to_automaton(tree, fsm, counter)
    raise TypeError(f"Not a regex tree node: {tree!r}")


def _literal_symbols(tree: RegexTree) -> set[Hashable]:
    symbols = set()
    seen: set[int] = set()
    pending = [tree]
    while pending:
        node = pending.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        if isinstance(node, Lit):
            symbols.add(node.symbol)
        pending.extend(children(node))
    return symbols


def to_automaton(tree: RegexTree) -> Automaton:
    """Thompson construction: an eNFA with integer states accepting ``tree``.

    Integers used as literal symbols are skipped when numbering states.
    """
    symbols = _literal_symbols(tree)
    counter = (i for i in itertools.count() if i not in symbols)
    fsm = new_automaton()
    left, right = _to_automaton(tree, fsm, counter)
    set_initial_state(fsm, left)
    add_accepting_state(fsm, right)
    return fsm

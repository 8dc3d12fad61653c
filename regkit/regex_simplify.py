import logging
from typing import Callable

from regkit.errors import RegkitError
from regkit.fsm import Automaton
from regkit.fsm_ops import is_subset
from regkit.fsm_utils import minimize
from regkit.regex_tree import (
    Alt,
    Eps,
    KStar,
    RegexTree,
    Seq,
    make_alt,
    make_eps,
    make_kstar,
    make_seq,
    to_automaton,
)

__all__ = ["simplify"]

logger = logging.getLogger(__name__)

Rule = Callable[[RegexTree], RegexTree | None]

_EMPTY = Alt(())


def _is_empty(tree) -> bool:
    # no choices, or nothing to concatenate
    return tree == _EMPTY or tree == Seq(())


def _without(items: tuple, idx: int) -> tuple:
    return items[:idx] + items[idx + 1 :]


def _replaced(items: tuple, idx: int, new_items: tuple) -> tuple:
    return items[:idx] + new_items + items[idx + 1 :]


def _collapse_seq(tree):
    if isinstance(tree, Seq) and len(tree.elements) == 1:
        return tree.elements[0]


def _collapse_alt(tree):
    if isinstance(tree, Alt) and len(tree.choices) == 1:
        return tree.choices[0]


def _drop_empty_choice(tree):
    if isinstance(tree, Alt):
        for i, choice in enumerate(tree.choices):
            if _is_empty(choice):
                return make_alt(_without(tree.choices, i))


def _empty_seq(tree):
    if isinstance(tree, Seq) and any(_is_empty(e) for e in tree.elements):
        return _EMPTY


def _empty_star(tree):
    if isinstance(tree, KStar) and _is_empty(tree.expr):
        return make_eps()


def _eps_star(tree):
    if isinstance(tree, KStar) and isinstance(tree.expr, Eps):
        return make_eps()


def _star_star(tree):
    if isinstance(tree, KStar) and isinstance(tree.expr, KStar):
        return tree.expr


def _star_choice_in_star(tree):
    if isinstance(tree, KStar) and isinstance(tree.expr, Alt):
        choices = tree.expr.choices
        for i, choice in enumerate(choices):
            if isinstance(choice, KStar):
                return make_kstar(make_alt(_replaced(choices, i, (choice.expr,))))


def _eps_choice_with_star(tree):
    if isinstance(tree, Alt) and any(isinstance(c, KStar) for c in tree.choices):
        for i, choice in enumerate(tree.choices):
            if isinstance(choice, Eps):
                return make_alt(_without(tree.choices, i))


def _star_seq_to_alt(tree):
    if (
        isinstance(tree, KStar)
        and isinstance(tree.expr, Seq)
        and tree.expr.elements
        and all(isinstance(e, KStar) for e in tree.expr.elements)
    ):
        return make_kstar(make_alt(tree.expr.elements))


def _eps_in_seq(tree):
    if isinstance(tree, Seq) and len(tree.elements) >= 2:
        for i, element in enumerate(tree.elements):
            if isinstance(element, Eps):
                return make_seq(_without(tree.elements, i))


def _flatten_alt(tree):
    if isinstance(tree, Alt):
        for i, choice in enumerate(tree.choices):
            if isinstance(choice, Alt):
                return make_alt(_replaced(tree.choices, i, choice.choices))


def _flatten_seq(tree):
    if isinstance(tree, Seq):
        for i, element in enumerate(tree.elements):
            if isinstance(element, Seq):
                return make_seq(_replaced(tree.elements, i, element.elements))


def _duplicate_choice(tree):
    if isinstance(tree, Alt):
        choices = tree.choices
        for i in range(len(choices)):
            for j in range(i + 1, len(choices)):
                if choices[i] == choices[j]:
                    return make_alt(_without(choices, j))


def _choice_under_star_sibling(tree):
    if isinstance(tree, Alt):
        stars = {c.expr for c in tree.choices if isinstance(c, KStar)}
        for i, choice in enumerate(tree.choices):
            if choice in stars:
                return make_alt(_without(tree.choices, i))


def _adjacent_stars(tree):
    if isinstance(tree, Seq):
        elements = tree.elements
        for i in range(len(elements) - 1):
            if isinstance(elements[i], KStar) and elements[i] == elements[i + 1]:
                return make_seq(_without(elements, i + 1))


def _repeated_choice_in_star(tree):
    if isinstance(tree, KStar) and isinstance(tree.expr, Alt):
        choices = tree.expr.choices
        for i, choice in enumerate(choices):
            for j, other in enumerate(choices):
                if (
                    i != j
                    and isinstance(other, Seq)
                    and len(other.elements) >= 2
                    and all(e == choice for e in other.elements)
                ):
                    return make_kstar(make_alt(_without(choices, j)))


def _eps_choice_in_star(tree):
    if (
        isinstance(tree, KStar)
        and isinstance(tree.expr, Alt)
        and len(tree.expr.choices) >= 2
    ):
        choices = tree.expr.choices
        for i, choice in enumerate(choices):
            if isinstance(choice, Eps):
                return make_kstar(make_alt(_without(choices, i)))


def _factor(tree, prefix: bool):
    if not isinstance(tree, Alt):
        return None

    choices = tree.choices
    for i in range(len(choices)):
        for j in range(i + 1, len(choices)):
            first, second = choices[i], choices[j]
            if not (
                isinstance(first, Seq)
                and isinstance(second, Seq)
                and len(first.elements) >= 2
                and len(second.elements) >= 2
            ):
                continue

            if prefix and first.elements[0] == second.elements[0]:
                rest = make_alt([make_seq(first.elements[1:]), make_seq(second.elements[1:])])
                factored = make_seq([first.elements[0], rest])
            elif not prefix and first.elements[-1] == second.elements[-1]:
                rest = make_alt([make_seq(first.elements[:-1]), make_seq(second.elements[:-1])])
                factored = make_seq([rest, first.elements[-1]])
            else:
                continue
            return make_alt(_without(_replaced(choices, i, (factored,)), j))


def _common_prefix(tree):
    return _factor(tree, prefix=True)


def _common_suffix(tree):
    return _factor(tree, prefix=False)


def _star_around_single(tree):
    if isinstance(tree, Seq):
        elements = tree.elements
        for i in range(1, len(elements) - 1):
            before, middle, after = elements[i - 1], elements[i], elements[i + 1]
            if isinstance(before, KStar) and before == after and before.expr == middle:
                return make_seq(_without(elements, i - 1))


_SYNTACTIC_RULES: list[tuple[str, Rule]] = [
    ("(a) => a, seq", _collapse_seq),
    ("(a) => a, alt", _collapse_alt),
    ("∅+a => a", _drop_empty_choice),
    ("a∅ => ∅", _empty_seq),
    ("∅* => $", _empty_star),
    ("$* => $", _eps_star),
    ("(a*)* => a*", _star_star),
    ("(a+b*)* => (a+b)*", _star_choice_in_star),
    ("$+a* => a*", _eps_choice_with_star),
    ("(a*b*)* => (a*+b*)*", _star_seq_to_alt),
    ("$a => a", _eps_in_seq),
    ("(a+(b+c)) => a+b+c", _flatten_alt),
    ("(a(bc)) => abc", _flatten_seq),
    ("a+a => a", _duplicate_choice),
    ("a+a* => a*", _choice_under_star_sibling),
    ("a*a* => a*", _adjacent_stars),
    ("(aa+a)* => (a)*", _repeated_choice_in_star),
    ("(a+$)* => (a)*", _eps_choice_in_star),
    ("(ab+ac) => a(b+c)", _common_prefix),
    ("(ab+cb) => (a+c)b", _common_suffix),
    ("a*aa* => aa*", _star_around_single),
]


class _Simplifier:
    def __init__(self, use_fsm_patterns: bool):
        self.rules: list[tuple[str, Rule]] = list(_SYNTACTIC_RULES)
        if use_fsm_patterns:
            self.rules += [
                ("L1+L2 => L2, if L1 is subset of L2", self._subset_choice),
                ("(L1+L2)* => L2*, if L1 is subset of L2*", self._subset_star_choice),
                ("L1*L2* => L2*, if L1 is subset of L2", self._subset_star_element),
            ]
        self._automata: dict[RegexTree, Automaton] = {}

    def _automaton(self, tree: RegexTree) -> Automaton:
        if tree not in self._automata:
            self._automata[tree] = minimize(to_automaton(tree))
        return self._automata[tree]

    def _covered(self, trees: list[RegexTree], i: int, j: int) -> int | None:
        """Index of the pair member whose language the other one contains."""
        try:
            fsm_i, fsm_j = self._automaton(trees[i]), self._automaton(trees[j])
            if is_subset(fsm_i, fsm_j):
                return j
            if is_subset(fsm_j, fsm_i):
                return i
        except RegkitError as e:
            logger.debug("Language comparison skipped: %s", e)
        return None

    def _subset_choice(self, tree):
        if isinstance(tree, Alt) and len(tree.choices) >= 2:
            choices = list(tree.choices)
            for i in range(len(choices) - 1):
                for j in range(i + 1, len(choices)):
                    found = self._covered(choices, i, j)
                    if found is not None:
                        return make_alt(_without(tree.choices, found))

    def _subset_star_choice(self, tree):
        if (
            isinstance(tree, KStar)
            and isinstance(tree.expr, Alt)
            and len(tree.expr.choices) >= 2
        ):
            starred = [make_kstar(c) for c in tree.expr.choices]
            for i in range(len(starred) - 1):
                for j in range(i + 1, len(starred)):
                    found = self._covered(starred, i, j)
                    if found is not None:
                        return make_kstar(make_alt(_without(tree.expr.choices, found)))

    def _subset_star_element(self, tree):
        if isinstance(tree, Seq) and len(tree.elements) >= 2:
            elements = list(tree.elements)
            for i in range(len(elements) - 1):
                if isinstance(elements[i], KStar) and isinstance(elements[i + 1], KStar):
                    found = self._covered(elements, i, i + 1)
                    if found is not None:
                        return make_seq(_without(tree.elements, found))

    def rewrite(self, tree: RegexTree) -> tuple[RegexTree, str] | None:
        """Apply the first matching rule in a pre-order walk of ``tree``."""
        for name, rule in self.rules:
            res = rule(tree)
            if res is not None:
                return res, name

        if isinstance(tree, Alt):
            items = tree.choices
        elif isinstance(tree, Seq):
            items = tree.elements
        elif isinstance(tree, KStar):
            found = self.rewrite(tree.expr)
            return (make_kstar(found[0]), found[1]) if found else None
        else:
            return None

        for i, item in enumerate(items):
            found = self.rewrite(item)
            if found is not None:
                new_items = _replaced(items, i, (found[0],))
                rebuilt = make_alt(new_items) if isinstance(tree, Alt) else make_seq(new_items)
                return rebuilt, found[1]
        return None


def simplify(
    tree: RegexTree,
    num_iterations: int | None = None,
    applied_patterns: list[str] | None = None,
    use_fsm_patterns: bool = True,
) -> RegexTree:
    """Rewrite ``tree`` into a smaller tree for the same language.

    Every pass applies a single rule, the first one that matches in a
    pre-order walk, and passes repeat until no rule matches or
    ``num_iterations`` passes have run. The names of the applied rules are
    appended to ``applied_patterns`` when it is given.
    """
    simplifier = _Simplifier(use_fsm_patterns)

    iteration = 0
    while num_iterations is None or iteration < num_iterations:
        found = simplifier.rewrite(tree)
        if found is None:
            break

        tree, name = found
        logger.debug("Applied %s", name)
        if applied_patterns is not None:
            applied_patterns.append(name)
        iteration += 1

    return tree

from typing import Callable, Hashable

from regkit.equality import are_equal_sets
from regkit.errors import PreconditionError
from regkit.fsm import (
    Automaton,
    FsmType,
    Transition,
    add_epsilon_transition,
    add_transition,
    copy_automaton,
    determine_type,
    transition_map,
)
from regkit.fsm_utils import are_equivalent_fsms, determinize

__all__ = [
    "union",
    "intersection",
    "difference",
    "complement",
    "concatenation",
    "kleene",
    "reverse",
    "is_subset",
    "relabel_states",
    "fresh_state",
]


def _check_alphabets(fsm_a: Automaton, fsm_b: Automaton) -> None:
    if len(fsm_a.alphabet) != len(fsm_b.alphabet) or not are_equal_sets(
        fsm_a.alphabet, fsm_b.alphabet
    ):
        raise PreconditionError("Alphabets must be the same")


def _product(
    fsm_a: Automaton, fsm_b: Automaton, is_accepting: Callable[[bool, bool], bool]
) -> Automaton:
    _check_alphabets(fsm_a, fsm_b)
    fsm_a, fsm_b = determinize(fsm_a), determinize(fsm_b)
    delta_a, delta_b = transition_map(fsm_a), transition_map(fsm_b)
    accepting_a, accepting_b = set(fsm_a.accepting_states), set(fsm_b.accepting_states)

    res = Automaton(
        alphabet=list(fsm_a.alphabet),
        initial_state=(fsm_a.initial_state, fsm_b.initial_state),
    )
    for st_a in fsm_a.states:
        for st_b in fsm_b.states:
            state = (st_a, st_b)
            res.states.append(state)
            if is_accepting(st_a in accepting_a, st_b in accepting_b):
                res.accepting_states.append(state)

            for symbol in res.alphabet:
                target = (delta_a[(st_a, symbol)][0], delta_b[(st_b, symbol)][0])
                res.transitions.append(Transition(state, [target], symbol))
    return res


def union(fsm_a: Automaton, fsm_b: Automaton) -> Automaton:
    return _product(fsm_a, fsm_b, lambda in_a, in_b: in_a or in_b)


def intersection(fsm_a: Automaton, fsm_b: Automaton) -> Automaton:
    return _product(fsm_a, fsm_b, lambda in_a, in_b: in_a and in_b)


def difference(fsm_a: Automaton, fsm_b: Automaton) -> Automaton:
    return _product(fsm_a, fsm_b, lambda in_a, in_b: in_a and not in_b)


def complement(fsm: Automaton) -> Automaton:
    if determine_type(fsm) != FsmType.DFA:
        raise PreconditionError("FSM must be a DFA")

    res = copy_automaton(fsm)
    accepting = set(fsm.accepting_states)
    res.accepting_states = [st for st in res.states if st not in accepting]
    return res


def relabel_states(fsm: Automaton, tag: Hashable) -> Automaton:
    def relabel(st):
        return (tag, st)

    return Automaton(
        states=[relabel(st) for st in fsm.states],
        alphabet=list(fsm.alphabet),
        initial_state=relabel(fsm.initial_state),
        accepting_states=[relabel(st) for st in fsm.accepting_states],
        transitions=[
            Transition(relabel(t.from_state), [relabel(st) for st in t.to_states], t.symbol)
            for t in fsm.transitions
        ],
    )


def fresh_state(fsm: Automaton, base: str = "NEW_INITIAL") -> str:
    taken = set(fsm.states) | set(fsm.alphabet)
    candidate = base
    suffix = 0
    while candidate in taken:
        suffix += 1
        candidate = f"{base}_{suffix}"
    return candidate


def concatenation(fsm_a: Automaton, fsm_b: Automaton) -> Automaton:
    """Automaton for L(A)L(B).

    Operands that share states are relabeled to ``(0, state)`` and
    ``(1, state)`` first.
    """
    _check_alphabets(fsm_a, fsm_b)
    if set(fsm_a.states) & set(fsm_b.states):
        fsm_a, fsm_b = relabel_states(fsm_a, 0), relabel_states(fsm_b, 1)

    res = copy_automaton(fsm_a)
    res.states.extend(fsm_b.states)
    res.accepting_states = list(fsm_b.accepting_states)
    res.transitions.extend(copy_automaton(fsm_b).transitions)

    for st in fsm_a.accepting_states:
        add_epsilon_transition(res, st, [fsm_b.initial_state])
    return res


def kleene(fsm: Automaton) -> Automaton:
    res = copy_automaton(fsm)
    new_initial = fresh_state(res)

    res.states.append(new_initial)
    add_epsilon_transition(res, new_initial, [res.initial_state])
    for st in fsm.accepting_states:
        add_epsilon_transition(res, st, [new_initial])

    res.initial_state = new_initial
    res.accepting_states.append(new_initial)
    return res


def reverse(fsm: Automaton) -> Automaton:
    res = copy_automaton(fsm)
    res.transitions = []
    for t in fsm.transitions:
        for to_state in t.to_states:
            if t.symbol in res.alphabet:
                add_transition(res, to_state, [t.from_state], t.symbol)
            else:
                add_epsilon_transition(res, to_state, [t.from_state])

    new_initial = fresh_state(res)
    res.states.append(new_initial)
    if fsm.accepting_states:
        add_epsilon_transition(res, new_initial, fsm.accepting_states)

    res.initial_state = new_initial
    res.accepting_states = [fsm.initial_state]
    return res


def is_subset(fsm_a: Automaton, fsm_b: Automaton) -> bool:
    """Check whether the language of ``fsm_b`` is a subset of the language of ``fsm_a``."""
    return are_equivalent_fsms(fsm_b, intersection(fsm_a, fsm_b))

import logging
from typing import Hashable, Iterable

import networkx as nx

from regkit.adjacency_matrix import AdjacencyMatrixFA
from regkit.equality import are_equal_sets, contains_all, freeze, set_union
from regkit.errors import PreconditionError
from regkit.fsm import (
    EPSILON,
    Automaton,
    FsmType,
    Transition,
    copy_automaton,
    determine_type,
    transition_map,
)
from regkit.regex_tree import RegexTree, make_alt, make_eps, make_kstar, make_lit, make_seq

__all__ = [
    "SINK_STATE",
    "epsilon_closure",
    "step",
    "extended_transition",
    "read_string",
    "is_accepted",
    "transition_trail",
    "get_reachable_states",
    "remove_unreachable_states",
    "convert_enfa_to_nfa",
    "convert_nfa_to_dfa",
    "determinize",
    "are_equivalent_states",
    "are_equivalent_fsms",
    "remove_equivalent_states",
    "minimize",
    "to_regex",
    "is_language_non_empty",
    "is_language_infinite",
]

logger = logging.getLogger(__name__)

State = Hashable
Symbol = Hashable
Delta = dict[tuple[State, Symbol], list[State]]

# The empty subset never collides with a wrapped original state, so it is
# used as the dead state that makes subset-construction results total.
SINK_STATE = frozenset()


def _closure(delta: Delta, states: Iterable[State]) -> list[State]:
    res = set_union([], states)
    seen = set(res)
    pending = list(res)

    while pending:
        current = pending.pop()
        for target in delta.get((current, EPSILON), ()):
            if target not in seen:
                seen.add(target)
                res.append(target)
                pending.append(target)
    return res


def _step(delta: Delta, states: Iterable[State], symbol: Symbol) -> list[State]:
    res = []
    seen = set()
    for st in states:
        for target in delta.get((st, symbol), ()):
            if target not in seen:
                seen.add(target)
                res.append(target)
    return res


def _extended(delta: Delta, states: Iterable[State], symbol: Symbol) -> list[State]:
    return _closure(delta, _step(delta, _closure(delta, states), symbol))


def _check_states(fsm: Automaton, states: list[State]) -> None:
    if not contains_all(fsm.states, states):
        raise PreconditionError("FSM must contain all the specified states")


def _check_symbol(fsm: Automaton, symbol: Symbol) -> None:
    if symbol not in fsm.alphabet:
        raise PreconditionError("FSM must contain the specified input symbol")


def epsilon_closure(fsm: Automaton, states: Iterable[State]) -> list[State]:
    states = [freeze(st) for st in states]
    _check_states(fsm, states)
    return _closure(transition_map(fsm), states)


def step(fsm: Automaton, states: Iterable[State], symbol: Symbol) -> list[State]:
    states = [freeze(st) for st in states]
    symbol = freeze(symbol)
    _check_states(fsm, states)
    _check_symbol(fsm, symbol)
    return _step(transition_map(fsm), states, symbol)


def extended_transition(
    fsm: Automaton, states: Iterable[State], symbol: Symbol
) -> list[State]:
    states = [freeze(st) for st in states]
    symbol = freeze(symbol)
    _check_states(fsm, states)
    _check_symbol(fsm, symbol)
    return _extended(transition_map(fsm), states, symbol)


def read_string(fsm: Automaton, symbols: Iterable[Symbol]) -> list[State]:
    symbols = [freeze(sym) for sym in symbols]
    if not contains_all(fsm.alphabet, symbols):
        raise PreconditionError("FSM must contain all the symbols of the input")

    delta = transition_map(fsm)
    states = _closure(delta, [fsm.initial_state])
    for symbol in symbols:
        states = _extended(delta, states, symbol)
    return states


def is_accepted(fsm: Automaton, symbols: Iterable[Symbol]) -> bool:
    accepting = set(fsm.accepting_states)
    return any(st in accepting for st in read_string(fsm, symbols))


def transition_trail(
    fsm: Automaton, state: State, symbols: Iterable[Symbol]
) -> list[list[State]]:
    symbols = [freeze(sym) for sym in symbols]
    if not contains_all(fsm.alphabet, symbols):
        raise PreconditionError("FSM must contain all the symbols of the input")

    delta = transition_map(fsm)
    states = [freeze(state)]
    _check_states(fsm, states)
    trail = [list(states)]
    for symbol in symbols:
        states = _extended(delta, states, symbol)
        trail.append(list(states))
    return trail


def get_reachable_states(
    fsm: Automaton, state: State, include_start: bool = True
) -> list[State]:
    state = freeze(state)
    successors: dict[State, list[State]] = {}
    for t in fsm.transitions:
        successors[t.from_state] = set_union(successors.get(t.from_state, []), t.to_states)

    reachable = [state] if include_start else []
    seen = set(reachable)
    pending = [state]
    while pending:
        current = pending.pop()
        for target in successors.get(current, ()):
            if target not in seen:
                seen.add(target)
                reachable.append(target)
                pending.append(target)
    return reachable


def remove_unreachable_states(fsm: Automaton) -> Automaton:
    reachable = set(get_reachable_states(fsm, fsm.initial_state, True))
    res = copy_automaton(fsm)
    res.states = [st for st in res.states if st in reachable]
    res.accepting_states = [st for st in res.accepting_states if st in reachable]
    res.transitions = [t for t in res.transitions if t.from_state in reachable]
    return res


def convert_enfa_to_nfa(fsm: Automaton) -> Automaton:
    if determine_type(fsm) != FsmType.ENFA:
        # already an NFA, or a DFA which is also an NFA
        return copy_automaton(fsm)

    delta = transition_map(fsm)
    res = copy_automaton(fsm)

    accepting = set(res.accepting_states)
    initial_closure = _closure(delta, [res.initial_state])
    if any(st in accepting for st in initial_closure) and res.initial_state not in accepting:
        res.accepting_states.append(res.initial_state)

    res.transitions = []
    for st in res.states:
        for symbol in res.alphabet:
            targets = _extended(delta, [st], symbol)
            if targets:
                res.transitions.append(Transition(st, targets, symbol))
    return res


def convert_nfa_to_dfa(fsm: Automaton) -> Automaton:
    """Subset construction.

    Every original state ``q`` becomes ``frozenset({q})``, subsets reached
    through multi-target transitions are added as they are discovered, and
    missing transitions are sent to ``SINK_STATE`` so the result is total.
    """
    fsm_type = determine_type(fsm)
    if fsm_type == FsmType.ENFA:
        raise PreconditionError("FSM must be an NFA")
    if fsm_type == FsmType.DFA:
        return copy_automaton(fsm)

    delta = transition_map(fsm)
    accepting = set(fsm.accepting_states)
    res = Automaton(
        states=[frozenset([st]) for st in fsm.states],
        alphabet=list(fsm.alphabet),
        initial_state=frozenset([fsm.initial_state]),
        accepting_states=[frozenset([st]) for st in fsm.accepting_states],
    )
    known = set(res.states)

    pending: list[frozenset] = []
    for t in fsm.transitions:
        if not t.to_states:
            continue
        target = frozenset(t.to_states)
        res.transitions.append(Transition(frozenset([t.from_state]), [target], t.symbol))
        if len(target) > 1 and target not in known and target not in pending:
            pending.append(target)

    while pending:
        composite = pending.pop()
        res.states.append(composite)
        known.add(composite)
        if composite & accepting:
            res.accepting_states.append(composite)

        for symbol in res.alphabet:
            target = frozenset(_extended(delta, composite, symbol))
            if target:
                res.transitions.append(Transition(composite, [target], symbol))
            if len(target) > 1 and target not in known and target not in pending:
                pending.append(target)

    defined = {(t.from_state, t.symbol) for t in res.transitions}
    missing = [
        (st, symbol)
        for st in res.states
        for symbol in res.alphabet
        if (st, symbol) not in defined
    ]
    if missing:
        res.states.append(SINK_STATE)
        for st, symbol in missing:
            res.transitions.append(Transition(st, [SINK_STATE], symbol))
        for symbol in res.alphabet:
            res.transitions.append(Transition(SINK_STATE, [SINK_STATE], symbol))

    logger.debug(
        "Subset construction: %d NFA states -> %d DFA states",
        len(fsm.states),
        len(res.states),
    )
    return res


def determinize(fsm: Automaton) -> Automaton:
    if determine_type(fsm) == FsmType.ENFA:
        fsm = convert_enfa_to_nfa(fsm)
    return convert_nfa_to_dfa(fsm)


def _check_dfa_pair(fsm_a: Automaton, fsm_b: Automaton) -> None:
    if determine_type(fsm_a) != FsmType.DFA or determine_type(fsm_b) != FsmType.DFA:
        raise PreconditionError("FSMs must be DFAs")
    if len(fsm_a.alphabet) != len(fsm_b.alphabet) or not are_equal_sets(
        fsm_a.alphabet, fsm_b.alphabet
    ):
        raise PreconditionError("FSM alphabets must be the same")


def _equivalent(
    delta_a: Delta,
    accepting_a: set[State],
    delta_b: Delta,
    accepting_b: set[State],
    alphabet: list[Symbol],
    state_a: State,
    state_b: State,
) -> bool:
    # explore the pairs reachable by reading the same symbols from both states
    pending = [(state_a, state_b)]
    processed = {(state_a, state_b)}

    while pending:
        st_a, st_b = pending.pop()
        if (st_a in accepting_a) != (st_b in accepting_b):
            return False

        for symbol in alphabet:
            pair = (delta_a[(st_a, symbol)][0], delta_b[(st_b, symbol)][0])
            if pair not in processed:
                processed.add(pair)
                pending.append(pair)
    return True


def are_equivalent_states(
    fsm_a: Automaton, state_a: State, fsm_b: Automaton, state_b: State
) -> bool:
    _check_dfa_pair(fsm_a, fsm_b)
    state_a, state_b = freeze(state_a), freeze(state_b)
    if state_a not in fsm_a.states or state_b not in fsm_b.states:
        raise PreconditionError("FSMs must contain states")

    return _equivalent(
        transition_map(fsm_a),
        set(fsm_a.accepting_states),
        transition_map(fsm_b),
        set(fsm_b.accepting_states),
        fsm_a.alphabet,
        state_a,
        state_b,
    )


def are_equivalent_fsms(fsm_a: Automaton, fsm_b: Automaton) -> bool:
    fsm_a, fsm_b = determinize(fsm_a), determinize(fsm_b)
    return are_equivalent_states(fsm_a, fsm_a.initial_state, fsm_b, fsm_b.initial_state)


def remove_equivalent_states(fsm: Automaton) -> Automaton:
    if determine_type(fsm) != FsmType.DFA:
        raise PreconditionError("FSM must be a DFA")

    delta = transition_map(fsm)
    accepting = set(fsm.accepting_states)

    # every state maps to the earliest state it is equivalent to
    representative: dict[State, State] = {}
    for i, st in enumerate(fsm.states):
        if st in representative:
            continue
        representative[st] = st
        for other in fsm.states[i + 1 :]:
            if other not in representative and _equivalent(
                delta, accepting, delta, accepting, fsm.alphabet, st, other
            ):
                representative[other] = st

    def is_kept(st: State) -> bool:
        return representative[st] == st

    return Automaton(
        states=[st for st in fsm.states if is_kept(st)],
        alphabet=list(fsm.alphabet),
        initial_state=representative[fsm.initial_state],
        accepting_states=[st for st in fsm.accepting_states if is_kept(st)],
        transitions=[
            Transition(
                t.from_state,
                set_union([], (representative[st] for st in t.to_states)),
                t.symbol,
            )
            for t in fsm.transitions
            if is_kept(t.from_state)
        ],
    )


def minimize(fsm: Automaton) -> Automaton:
    fsm_type = determine_type(fsm)
    res = remove_equivalent_states(remove_unreachable_states(determinize(fsm)))
    logger.debug(
        "Minimized %s with %d states to a DFA with %d states",
        fsm_type.value,
        len(fsm.states),
        len(res.states),
    )
    return res


def to_regex(fsm: Automaton) -> RegexTree:
    """State elimination.

    ``r[i][j]`` holds the expression for the paths from state ``i`` to state
    ``j`` that only pass through the states eliminated so far; states are
    eliminated in the order of ``fsm.states``.
    """
    n = len(fsm.states)
    index = {st: i for i, st in enumerate(fsm.states)}

    labels: dict[tuple[int, int], list[RegexTree]] = {}
    for t in fsm.transitions:
        node = make_eps() if t.symbol is EPSILON else make_lit(t.symbol)
        for to_state in t.to_states:
            labels.setdefault((index[t.from_state], index[to_state]), []).append(node)

    r = [
        [
            make_alt(labels.get((i, j), []) + ([make_eps()] if i == j else []))
            for j in range(n)
        ]
        for i in range(n)
    ]

    for k in range(n):
        r = [
            [
                make_alt([r[i][j], make_seq([r[i][k], make_kstar(r[k][k]), r[k][j]])])
                for j in range(n)
            ]
            for i in range(n)
        ]

    start = index[fsm.initial_state]
    accepting = set(fsm.accepting_states)
    return make_alt([r[start][index[st]] for st in fsm.states if st in accepting])


def is_language_non_empty(fsm: Automaton) -> bool:
    return not AdjacencyMatrixFA(fsm).is_empty()


def is_language_infinite(fsm: Automaton) -> bool:
    dfa = minimize(fsm)
    accepting = set(dfa.accepting_states)

    graph = nx.DiGraph()
    graph.add_nodes_from(dfa.states)
    for t in dfa.transitions:
        for to_state in t.to_states:
            graph.add_edge(t.from_state, to_state)

    # a minimal DFA has every state reachable, so only states that can still
    # reach an accepting state matter
    live = set(accepting)
    for st in accepting:
        live |= nx.ancestors(graph, st)
    return not nx.is_directed_acyclic_graph(graph.subgraph(live))

from pathlib import Path
from typing import Any, Hashable, Iterable

import networkx as nx

from regkit.equality import freeze, set_union
from regkit.fsm import EPSILON, Automaton, Transition, add_epsilon_transition
from regkit.fsm_ops import fresh_state

__all__ = [
    "state_label",
    "automaton_to_graph",
    "graph_to_automaton",
    "automaton_to_dot",
    "save_automaton_to_dot",
    "read_graph_from_dot",
]


def state_label(state: Hashable) -> str:
    if isinstance(state, frozenset):
        return "{" + ",".join(sorted(state_label(st) for st in state)) + "}"
    if isinstance(state, tuple):
        return "(" + ",".join(state_label(st) for st in state) + ")"
    return str(state)


def automaton_to_graph(fsm: Automaton, epsilon: str = "$") -> nx.MultiDiGraph:
    graph = nx.MultiDiGraph()
    accepting = set(fsm.accepting_states)
    for st in fsm.states:
        graph.add_node(st, is_start=st == fsm.initial_state, is_final=st in accepting)

    for t in fsm.transitions:
        label = epsilon if t.symbol is EPSILON else t.symbol
        for to_st in t.to_states:
            graph.add_edge(t.from_state, to_st, label=label)
    return graph


def graph_to_automaton(
    graph: nx.MultiDiGraph,
    start_states: Iterable[Any] | None = None,
    final_states: Iterable[Any] | None = None,
    epsilon: str = "$",
) -> Automaton:
    """Read an edge-labeled graph as an automaton.

    Without explicit start or final states every node is both, like a
    graph database query where a path may start and end anywhere.
    """
    states = [freeze(n) for n in graph.nodes]
    start_states = [freeze(st) for st in start_states] if start_states else states
    final_states = [freeze(st) for st in final_states] if final_states else states

    fsm = Automaton(states=list(states), accepting_states=set_union([], final_states))
    targets: dict[tuple[Hashable, Hashable], list[Hashable]] = {}
    for u, v, label in graph.edges(data="label"):
        symbol = EPSILON if label == epsilon else freeze(label)
        if symbol is not EPSILON and symbol not in fsm.alphabet:
            fsm.alphabet.append(symbol)
        key = (freeze(u), symbol)
        targets[key] = set_union(targets.get(key, []), [freeze(v)])

    for (u, symbol), to_sts in targets.items():
        if symbol is EPSILON:
            add_epsilon_transition(fsm, u, to_sts)
        else:
            fsm.transitions.append(Transition(u, to_sts, symbol))

    if len(start_states) == 1:
        fsm.initial_state = start_states[0]
    else:
        fsm.initial_state = fresh_state(fsm, "START")
        fsm.states.append(fsm.initial_state)
        add_epsilon_transition(fsm, fsm.initial_state, start_states)
    return fsm


def _dot_graph(fsm: Automaton, epsilon: str) -> nx.MultiDiGraph:
    names = {st: f"q{i}" for i, st in enumerate(fsm.states)}
    accepting = set(fsm.accepting_states)

    graph = nx.MultiDiGraph()
    graph.graph["graph"] = {"rankdir": "LR"}
    graph.add_node("secret_node", style="invis", shape="point")
    for st in fsm.states:
        shape = "doublecircle" if st in accepting else "circle"
        graph.add_node(names[st], label=f'"{state_label(st)}"', shape=shape)
    graph.add_edge("secret_node", names[fsm.initial_state], style="bold")

    # parallel transitions are drawn as one edge listing all their symbols
    symbols: dict[tuple[str, str], list[str]] = {}
    for t in fsm.transitions:
        text = epsilon if t.symbol is EPSILON else state_label(t.symbol)
        for to_st in t.to_states:
            symbols.setdefault((names[t.from_state], names[to_st]), []).append(text)
    for (u, v), texts in symbols.items():
        graph.add_edge(u, v, label=f'"{",".join(texts)}"')
    return graph


def automaton_to_dot(fsm: Automaton, epsilon: str = "$") -> str:
    return nx.drawing.nx_pydot.to_pydot(_dot_graph(fsm, epsilon)).to_string()


def save_automaton_to_dot(fsm: Automaton, output_file: Path, epsilon: str = "$") -> None:
    nx.drawing.nx_pydot.write_dot(_dot_graph(fsm, epsilon), output_file)


def read_graph_from_dot(path: Path) -> nx.MultiDiGraph:
    return nx.MultiDiGraph(nx.drawing.nx_pydot.read_dot(path))

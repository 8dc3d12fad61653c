from pyformlang.finite_automaton import Epsilon
from pyformlang.finite_automaton import EpsilonNFA
from pyformlang.finite_automaton import State
from pyformlang.finite_automaton import Symbol

from regkit.fsm import EPSILON, Automaton, Transition, add_epsilon_transition
from regkit.fsm_ops import fresh_state
from regkit.fsm_utils import minimize
from regkit.regex_notation import string_to_automaton

__all__ = ["automaton_to_enfa", "enfa_to_automaton", "regex_to_dfa"]


def regex_to_dfa(regex: str) -> Automaton:
    return minimize(string_to_automaton(regex))


def automaton_to_enfa(fsm: Automaton) -> EpsilonNFA:
    enfa = EpsilonNFA()
    enfa.add_start_state(State(fsm.initial_state))
    for st in fsm.accepting_states:
        enfa.add_final_state(State(st))

    for t in fsm.transitions:
        symbol = Epsilon() if t.symbol is EPSILON else Symbol(t.symbol)
        for to_st in t.to_states:
            enfa.add_transition(State(t.from_state), symbol, State(to_st))

    return enfa


def enfa_to_automaton(enfa: EpsilonNFA) -> Automaton:
    """Convert a pyformlang automaton back into an ``Automaton``.

    Several start states are joined under a fresh initial state with epsilon
    transitions to each of them.
    """
    fsm = Automaton(
        states=sorted((st.value for st in enfa.states), key=repr),
        alphabet=sorted(
            (sym.value for sym in enfa.symbols if not isinstance(sym, Epsilon)), key=repr
        ),
        accepting_states=sorted((st.value for st in enfa.final_states), key=repr),
    )

    for from_st, edges in enfa.to_dict().items():
        for symbol, to_sts in edges.items():
            if not isinstance(to_sts, (set, frozenset)):
                to_sts = {to_sts}
            fsm.transitions.append(
                Transition(
                    from_st.value,
                    sorted((st.value for st in to_sts), key=repr),
                    EPSILON if isinstance(symbol, Epsilon) else symbol.value,
                )
            )

    start_states = sorted((st.value for st in enfa.start_states), key=repr)
    if len(start_states) == 1:
        fsm.initial_state = start_states[0]
    else:
        fsm.initial_state = fresh_state(fsm, "START")
        fsm.states.append(fsm.initial_state)
        if start_states:
            add_epsilon_transition(fsm, fsm.initial_state, start_states)

    return fsm

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Hashable, Iterable

from regkit.equality import Marker, freeze, set_union
from regkit.errors import InvariantViolation, PreconditionError, StructuralError

__all__ = [
    "EPSILON",
    "FsmType",
    "Transition",
    "Automaton",
    "new_automaton",
    "add_state",
    "add_symbol",
    "set_initial_state",
    "add_accepting_state",
    "add_transition",
    "add_epsilon_transition",
    "validate",
    "from_description",
    "to_description",
    "copy_automaton",
    "is_accepting_state",
    "determine_type",
    "transition_map",
]

State = Hashable
Symbol = Hashable

EPSILON = Marker("EPSILON", "ε")


class FsmType(str, Enum):
    DFA = "DFA"
    NFA = "NFA"
    ENFA = "eNFA"


@dataclass
class Transition:
    from_state: State
    to_states: list[State]
    symbol: Symbol


@dataclass
class Automaton:
    states: list[State] = field(default_factory=list)
    alphabet: list[Symbol] = field(default_factory=list)
    initial_state: State | None = None
    accepting_states: list[State] = field(default_factory=list)
    transitions: list[Transition] = field(default_factory=list)


def new_automaton() -> Automaton:
    return Automaton()


def _add_state_or_symbol(
    items: list[Any], obj: Any, undefined_msg: str, exists_msg: str
) -> Any:
    # None would otherwise be added as a state or symbol
    if obj is None:
        raise PreconditionError(undefined_msg)
    obj = freeze(obj)
    if obj in items:
        raise PreconditionError(exists_msg)
    items.append(obj)
    return obj


def add_state(fsm: Automaton, state: State) -> State:
    return _add_state_or_symbol(
        fsm.states, state, "No state object specified", "State already exists"
    )


def add_symbol(fsm: Automaton, symbol: Symbol) -> Symbol:
    if symbol is EPSILON:
        raise PreconditionError("Can't add the epsilon symbol to the alphabet")
    return _add_state_or_symbol(
        fsm.alphabet, symbol, "No symbol object specified", "Symbol already exists"
    )


def add_accepting_state(fsm: Automaton, state: State) -> None:
    state = freeze(state)
    if state not in fsm.states:
        raise PreconditionError("The specified object is not a state of the FSM")
    _add_state_or_symbol(
        fsm.accepting_states, state, "", "The specified state is already accepting"
    )


def set_initial_state(fsm: Automaton, state: State) -> None:
    state = freeze(state)
    if state not in fsm.states:
        raise PreconditionError("The specified object is not a state of the FSM")
    fsm.initial_state = state


def _add_transition(
    fsm: Automaton, from_state: State, to_states: Iterable[State], symbol: Symbol
) -> None:
    if not isinstance(to_states, (list, tuple, set, frozenset)):
        raise StructuralError("The to_states argument must be a collection of states")
    from_state = freeze(from_state)
    to_states = [freeze(st) for st in to_states]
    if from_state not in fsm.states or any(st not in fsm.states for st in to_states):
        raise PreconditionError("One of the specified objects is not a state of the FSM")

    for transition in fsm.transitions:
        if transition.from_state == from_state and transition.symbol == symbol:
            transition.to_states = set_union(transition.to_states, to_states)
            return
    fsm.transitions.append(Transition(from_state, set_union([], to_states), symbol))


def add_transition(
    fsm: Automaton, from_state: State, to_states: Iterable[State], symbol: Symbol
) -> None:
    """Add ``from_state --symbol--> to_states``.

    An existing transition for the same (from_state, symbol) pair gets the
    new destinations merged into it. Epsilon transitions have to go through
    ``add_epsilon_transition`` since epsilon is never in the alphabet.
    """
    symbol = freeze(symbol) if symbol is not None else None
    if symbol not in fsm.alphabet:
        raise PreconditionError("The specified object is not an alphabet symbol of the FSM")
    _add_transition(fsm, from_state, to_states, symbol)


def add_epsilon_transition(
    fsm: Automaton, from_state: State, to_states: Iterable[State]
) -> None:
    _add_transition(fsm, from_state, to_states, EPSILON)


def _check_shape(fsm: Any) -> None:
    if not (
        isinstance(fsm, Automaton)
        and isinstance(fsm.states, list)
        and isinstance(fsm.alphabet, list)
        and isinstance(fsm.accepting_states, list)
        and fsm.initial_state is not None
        and isinstance(fsm.transitions, list)
    ):
        raise StructuralError(
            "FSM must be defined and have states, alphabet, accepting_states, "
            "initial_state and transitions"
        )
    for transition in fsm.transitions:
        if not isinstance(transition, Transition) or not isinstance(
            transition.to_states, list
        ):
            raise StructuralError("Transitions must have from_state, to_states and symbol")


def _has_duplicates(items: list[Any]) -> bool:
    return len(set(items)) != len(items)


def validate(fsm: "Automaton | Mapping[str, Any]") -> Automaton:
    """Check every automaton invariant and return the automaton.

    A mapping is read with ``from_description`` first. The first violation
    found is raised; nothing is fixed up silently.
    """
    if isinstance(fsm, Mapping):
        fsm = from_description(fsm)
    _check_shape(fsm)

    if len(fsm.states) < 1:
        raise InvariantViolation("Set of states must not be empty")
    if len(fsm.alphabet) < 1:
        raise InvariantViolation("Alphabet must not be empty")
    if _has_duplicates(fsm.states):
        raise InvariantViolation("Equivalent states")
    if _has_duplicates(fsm.alphabet):
        raise InvariantViolation("Equivalent alphabet symbols")
    if EPSILON in fsm.alphabet:
        raise InvariantViolation("FSM alphabet must not contain the epsilon symbol")

    states = set(fsm.states)
    if any(symbol in states for symbol in fsm.alphabet):
        raise InvariantViolation("States and alphabet symbols must not overlap")

    if _has_duplicates(fsm.accepting_states):
        raise InvariantViolation("Equivalent accepting states")
    if any(st not in states for st in fsm.accepting_states):
        raise InvariantViolation("Each accepting state must be in states")
    if fsm.initial_state not in states:
        raise InvariantViolation("Initial state must be in states")

    alphabet = set(fsm.alphabet)
    for transition in fsm.transitions:
        if transition.from_state not in states:
            raise InvariantViolation("Transition from_state must be in states")
        if transition.symbol is not EPSILON and transition.symbol not in alphabet:
            raise InvariantViolation("Transition symbol must be in alphabet")
        if any(st not in states for st in transition.to_states):
            raise InvariantViolation("Transition to_states must be in states")
        if _has_duplicates(transition.to_states):
            raise InvariantViolation("Transition to_states must not contain duplicates")

    if _has_duplicates([(t.from_state, t.symbol) for t in fsm.transitions]):
        raise InvariantViolation(
            "Transitions for the same from_state and symbol must be defined "
            "in a single transition"
        )

    return fsm


def from_description(description: Mapping[str, Any], epsilon: str = "$") -> Automaton:
    keys = ("states", "alphabet", "initial_state", "accepting_states", "transitions")
    if not isinstance(description, Mapping) or any(k not in description for k in keys):
        raise StructuralError(
            "FSM must be defined and have states, alphabet, accepting_states, "
            "initial_state and transitions"
        )
    for key in ("states", "alphabet", "accepting_states", "transitions"):
        if not isinstance(description[key], list):
            raise StructuralError(f"FSM {key} must be a list")

    def to_symbol(value):
        return EPSILON if value == epsilon else freeze(value)

    transitions = []
    for transition in description["transitions"]:
        if not isinstance(transition, Mapping) or any(
            k not in transition for k in ("from_state", "to_states", "symbol")
        ):
            raise StructuralError("Transitions must have from_state, to_states and symbol")
        if not isinstance(transition["to_states"], list):
            raise StructuralError("Transition to_states must be a list")
        transitions.append(
            Transition(
                freeze(transition["from_state"]),
                [freeze(st) for st in transition["to_states"]],
                to_symbol(transition["symbol"]),
            )
        )

    initial_state = description["initial_state"]
    return Automaton(
        states=[freeze(st) for st in description["states"]],
        alphabet=[to_symbol(sym) for sym in description["alphabet"]],
        initial_state=freeze(initial_state) if initial_state is not None else None,
        accepting_states=[freeze(st) for st in description["accepting_states"]],
        transitions=transitions,
    )


def _thaw(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    if isinstance(value, frozenset):
        return [_thaw(v) for v in sorted(value, key=repr)]
    return value


def to_description(fsm: Automaton, epsilon: str = "$") -> dict[str, Any]:
    def from_symbol(value):
        return epsilon if value is EPSILON else _thaw(value)

    return {
        "states": [_thaw(st) for st in fsm.states],
        "alphabet": [from_symbol(sym) for sym in fsm.alphabet],
        "initial_state": _thaw(fsm.initial_state),
        "accepting_states": [_thaw(st) for st in fsm.accepting_states],
        "transitions": [
            {
                "from_state": _thaw(t.from_state),
                "to_states": [_thaw(st) for st in t.to_states],
                "symbol": from_symbol(t.symbol),
            }
            for t in fsm.transitions
        ],
    }


def copy_automaton(fsm: Automaton) -> Automaton:
    # states and symbols are frozen values, so copying the containers is enough
    return Automaton(
        states=list(fsm.states),
        alphabet=list(fsm.alphabet),
        initial_state=fsm.initial_state,
        accepting_states=list(fsm.accepting_states),
        transitions=[
            Transition(t.from_state, list(t.to_states), t.symbol)
            for t in fsm.transitions
        ],
    )


def is_accepting_state(fsm: Automaton, state: State) -> bool:
    return freeze(state) in fsm.accepting_states


def determine_type(fsm: Automaton) -> FsmType:
    if any(t.symbol is EPSILON for t in fsm.transitions):
        return FsmType.ENFA
    if any(len(t.to_states) != 1 for t in fsm.transitions):
        return FsmType.NFA
    if len(fsm.transitions) < len(fsm.states) * len(fsm.alphabet):
        return FsmType.NFA
    return FsmType.DFA


def transition_map(fsm: Automaton) -> dict[tuple[State, Symbol], list[State]]:
    delta: dict[tuple[State, Symbol], list[State]] = {}
    for t in fsm.transitions:
        key = (t.from_state, t.symbol)
        delta[key] = set_union(delta.get(key, []), t.to_states)
    return delta

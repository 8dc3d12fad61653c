import random
from typing import Any, Hashable, Sequence

from regkit.errors import PreconditionError
from regkit.fsm import EPSILON, Automaton, FsmType, Transition, validate
from regkit.fsm_utils import minimize
from regkit.regex_notation import tree_to_array, tree_to_string
from regkit.regex_tree import RegexTree, make_alt, make_eps, make_kstar, make_lit, make_seq

__all__ = [
    "create_random_fsm",
    "random_string_in_language",
    "random_string_not_in_language",
    "random_regex",
    "random_regex_array",
    "random_regex_string",
]


def create_random_fsm(
    fsm_type: FsmType,
    num_states: int,
    num_alphabet: int,
    max_num_to_states: int = 1,
    rng: random.Random | None = None,
) -> Automaton:
    """Random automaton with states ``s0..`` and symbols ``a0..``.

    A DFA gets exactly one target per (state, symbol). NFA and eNFA
    transitions get up to ``max_num_to_states`` targets and may be missing;
    an eNFA also gets random epsilon transitions.
    """
    if num_states < 1 or num_alphabet < 1:
        raise PreconditionError("An FSM needs at least one state and one symbol")
    rng = rng or random.Random()

    states_width, alphabet_width = len(str(num_states)), len(str(num_alphabet))
    fsm = Automaton(
        states=[f"s{i:0{states_width}d}" for i in range(num_states)],
        alphabet=[f"a{i:0{alphabet_width}d}" for i in range(num_alphabet)],
    )
    fsm.initial_state = fsm.states[0]
    fsm.accepting_states = [st for st in fsm.states if rng.random() < 0.5]

    symbols: list[Hashable] = list(fsm.alphabet)
    if fsm_type == FsmType.ENFA:
        symbols.append(EPSILON)

    max_num_to_states = min(max_num_to_states, num_states)
    for st in fsm.states:
        for symbol in symbols:
            if fsm_type == FsmType.DFA:
                num_to_states = 1
            else:
                num_to_states = rng.randint(0, max_num_to_states)
            if num_to_states > 0:
                to_states = sorted(rng.sample(fsm.states, num_to_states))
                fsm.transitions.append(Transition(st, to_states, symbol))

    return validate(fsm)


def _random_walk_to_initial(
    dfa: Automaton, state: Hashable, rng: random.Random
) -> list[Hashable]:
    trail = []
    while True:
        if state == dfa.initial_state and rng.random() < 0.5:
            break

        incoming = [t for t in dfa.transitions if t.to_states[0] == state]
        if not incoming:
            break

        transition = rng.choice(incoming)
        trail.append(transition.symbol)
        state = transition.from_state

    trail.reverse()
    return trail


def random_string_in_language(
    fsm: Automaton, rng: random.Random | None = None
) -> list[Hashable] | None:
    """Random accepted input, or ``None`` if the language is empty."""
    rng = rng or random.Random()
    dfa = minimize(fsm)

    if not dfa.accepting_states:
        return None
    return _random_walk_to_initial(dfa, rng.choice(dfa.accepting_states), rng)


def random_string_not_in_language(
    fsm: Automaton, rng: random.Random | None = None
) -> list[Hashable] | None:
    """Random rejected input, or ``None`` if every input is accepted."""
    rng = rng or random.Random()
    dfa = minimize(fsm)

    accepting = set(dfa.accepting_states)
    rejecting = [st for st in dfa.states if st not in accepting]
    if not rejecting:
        return None
    return _random_walk_to_initial(dfa, rng.choice(rejecting), rng)


def _random_kleene(num_symbols, alphabet, alt_prob, kleene_prob, eps_prob, rng):
    expr = _random_expr(num_symbols, alphabet, alt_prob, kleene_prob, eps_prob, rng)
    if rng.random() < kleene_prob:
        expr = make_kstar(expr)
    return expr


def _random_expr(num_symbols, alphabet, alt_prob, kleene_prob, eps_prob, rng):
    if num_symbols == 0:
        return make_eps()
    if num_symbols == 1:
        return make_lit(rng.choice(alphabet))
    if rng.random() < eps_prob:
        return make_alt(
            [
                make_eps(),
                _random_kleene(num_symbols, alphabet, alt_prob, kleene_prob, eps_prob, rng),
            ]
        )

    left_size = rng.randint(1, num_symbols - 1)
    left = _random_kleene(left_size, alphabet, alt_prob, kleene_prob, eps_prob, rng)
    right = _random_kleene(
        num_symbols - left_size, alphabet, alt_prob, kleene_prob, eps_prob, rng
    )
    if rng.random() < alt_prob:
        return make_alt([left, right])
    return make_seq([left, right])


def random_regex(
    num_symbols: int,
    alphabet: Sequence[Hashable],
    alt_prob: float = 0.5,
    kleene_prob: float = 0.1,
    eps_prob: float = 0.1,
    rng: random.Random | None = None,
) -> RegexTree:
    """Random regex tree with exactly ``num_symbols`` literals.

    Literals are drawn uniformly from ``alphabet``; repeating a symbol in
    ``alphabet`` makes it more likely.
    """
    if num_symbols > 0 and not alphabet:
        raise PreconditionError("Alphabet must not be empty")
    rng = rng or random.Random()
    return _random_kleene(num_symbols, list(alphabet), alt_prob, kleene_prob, eps_prob, rng)


def random_regex_array(num_symbols: int, alphabet: Sequence[Hashable], **kwargs) -> list[Any]:
    return tree_to_array(random_regex(num_symbols, alphabet, **kwargs))


def random_regex_string(num_symbols: int, alphabet: str, **kwargs) -> str:
    return tree_to_string(random_regex(num_symbols, list(alphabet), **kwargs))

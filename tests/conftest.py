import itertools

import pytest

from regkit.adjacency_matrix import AdjacencyMatrixFA
from regkit.fsm import from_description


@pytest.fixture
def dfa_even_a():
    # strings over {a, b} with an even number of a's
    return from_description(
        {
            "states": ["even", "odd"],
            "alphabet": ["a", "b"],
            "initial_state": "even",
            "accepting_states": ["even"],
            "transitions": [
                {"from_state": "even", "to_states": ["odd"], "symbol": "a"},
                {"from_state": "even", "to_states": ["even"], "symbol": "b"},
                {"from_state": "odd", "to_states": ["even"], "symbol": "a"},
                {"from_state": "odd", "to_states": ["odd"], "symbol": "b"},
            ],
        }
    )


@pytest.fixture
def dfa_redundant():
    # 'a' followed by anything, with s1 and s2 equivalent
    return from_description(
        {
            "states": ["s0", "s1", "s2", "dead"],
            "alphabet": ["a", "b"],
            "initial_state": "s0",
            "accepting_states": ["s1", "s2"],
            "transitions": [
                {"from_state": "s0", "to_states": ["s1"], "symbol": "a"},
                {"from_state": "s0", "to_states": ["dead"], "symbol": "b"},
                {"from_state": "s1", "to_states": ["s2"], "symbol": "a"},
                {"from_state": "s1", "to_states": ["s2"], "symbol": "b"},
                {"from_state": "s2", "to_states": ["s1"], "symbol": "a"},
                {"from_state": "s2", "to_states": ["s1"], "symbol": "b"},
                {"from_state": "dead", "to_states": ["dead"], "symbol": "a"},
                {"from_state": "dead", "to_states": ["dead"], "symbol": "b"},
            ],
        }
    )


@pytest.fixture
def enfa_a_or_ab():
    # a | ab, with epsilon moves
    return from_description(
        {
            "states": [0, 1, 2, 3],
            "alphabet": ["a", "b"],
            "initial_state": 0,
            "accepting_states": [3],
            "transitions": [
                {"from_state": 0, "to_states": [1], "symbol": "a"},
                {"from_state": 1, "to_states": [3, 2], "symbol": "$"},
                {"from_state": 2, "to_states": [3], "symbol": "b"},
            ],
        }
    )


@pytest.fixture
def same_language():
    """Compare two automata on every word up to ``max_len`` symbols.

    Works across automata with different alphabets, unlike
    ``are_equivalent_fsms``.
    """

    def compare(fsm_a, fsm_b, alphabet, max_len=5):
        matrix_a, matrix_b = AdjacencyMatrixFA(fsm_a), AdjacencyMatrixFA(fsm_b)
        for length in range(max_len + 1):
            for word in itertools.product(alphabet, repeat=length):
                if matrix_a.accepts(word) != matrix_b.accepts(word):
                    return False
        return True

    return compare

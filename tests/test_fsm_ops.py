import pytest

from regkit.errors import PreconditionError
from regkit.fsm import FsmType, determine_type, validate
from regkit.fsm_ops import *
from regkit.fsm_utils import are_equivalent_fsms, is_accepted, is_language_non_empty, minimize
from regkit.regex_notation import string_to_automaton


def regex(text):
    return minimize(string_to_automaton(text))


class TestProduct:
    @pytest.mark.parametrize(
        "op,word,expected",
        [
            pytest.param(union, "aa", True, id="union_left"),
            pytest.param(union, "b", True, id="union_right"),
            pytest.param(union, "aba", False, id="union_neither"),
            pytest.param(intersection, "b", False, id="intersection_right_only"),
            pytest.param(intersection, "bb", True, id="intersection_both"),
            pytest.param(difference, "aa", True, id="difference_left_only"),
            pytest.param(difference, "bb", False, id="difference_both"),
        ],
    )
    def test_product(self, op, word, expected):
        fsm = op(regex("(a+b)(a+b)"), regex("b*+aaa"))
        assert determine_type(fsm) == FsmType.DFA
        assert is_accepted(fsm, list(word)) == expected

    def test_product_of_nfas(self, enfa_a_or_ab):
        fsm = union(enfa_a_or_ab, string_to_automaton("b+bb+a"))
        validate(fsm)
        assert are_equivalent_fsms(fsm, string_to_automaton("a+ab+b+bb"))

    def test_alphabets_must_match(self):
        with pytest.raises(PreconditionError):
            intersection(regex("a*"), regex("b*"))

    def test_alphabet_order_does_not_matter(self):
        fsm = union(regex("ab"), regex("ba"))
        assert are_equivalent_fsms(fsm, regex("ab+ba"))

    def test_de_morgan(self):
        a, b = regex("a(a+b)*"), regex("(a+b)*b")
        left = complement(minimize(union(a, b)))
        right = intersection(complement(a), complement(b))
        assert are_equivalent_fsms(left, right)


class TestComplement:
    def test_complement(self, dfa_even_a):
        fsm = complement(dfa_even_a)
        assert fsm.accepting_states == ["odd"]
        assert dfa_even_a.accepting_states == ["even"]

    def test_double_complement(self, dfa_redundant):
        assert are_equivalent_fsms(complement(complement(dfa_redundant)), dfa_redundant)

    def test_requires_dfa(self, enfa_a_or_ab):
        with pytest.raises(PreconditionError):
            complement(enfa_a_or_ab)


class TestConstructions:
    def test_concatenation(self):
        fsm = concatenation(regex("a+b"), regex("b*a*"))
        validate(fsm)
        assert determine_type(fsm) == FsmType.ENFA
        assert are_equivalent_fsms(fsm, regex("(a+b)b*a*"))

    def test_concatenation_relabels_shared_states(self, dfa_even_a):
        fsm = concatenation(dfa_even_a, dfa_even_a)
        validate(fsm)
        assert len(fsm.states) == 4
        assert (0, "even") in fsm.states and (1, "even") in fsm.states
        assert are_equivalent_fsms(fsm, dfa_even_a)

    def test_kleene(self):
        fsm = kleene(regex("ab"))
        validate(fsm)
        assert fsm.initial_state in fsm.accepting_states
        assert are_equivalent_fsms(fsm, regex("(ab)*"))

    def test_kleene_fresh_state(self):
        fsm = string_to_automaton("a")
        fsm.states.append("NEW_INITIAL")
        res = kleene(fsm)
        assert res.initial_state == "NEW_INITIAL_1"

    def test_reverse(self):
        fsm = reverse(regex("a(a+b)*b+bba"))
        validate(fsm)
        assert are_equivalent_fsms(fsm, regex("b(a+b)*a+abb"))

    def test_reverse_empty_language(self, dfa_even_a):
        dfa_even_a.accepting_states = []
        fsm = reverse(dfa_even_a)
        validate(fsm)
        assert not is_accepted(fsm, [])
        assert not is_accepted(fsm, ["a", "a"])


class TestSubset:
    @pytest.mark.parametrize(
        "big,small,expected",
        [
            pytest.param("(a+b)*", "ab", True, id="universal"),
            pytest.param("a*b", "aab", True, id="word"),
            pytest.param("ab", "(a+b)*", False, id="reverse"),
            pytest.param("a(a+b)*", "a+ab", True, id="prefix"),
        ],
    )
    def test_is_subset(self, big, small, expected):
        assert is_subset(regex(big), regex(small)) == expected

    def test_is_subset_of_itself(self, dfa_redundant):
        assert is_subset(dfa_redundant, dfa_redundant)


def test_relabel_states(dfa_even_a):
    fsm = relabel_states(dfa_even_a, "x")
    assert fsm.states == [("x", "even"), ("x", "odd")]
    assert fsm.initial_state == ("x", "even")
    assert fsm.transitions[0].to_states == [("x", "odd")]
    validate(fsm)


def test_fresh_state_avoids_symbols(dfa_even_a):
    dfa_even_a.alphabet.append("S")
    assert fresh_state(dfa_even_a, "S") == "S_1"
    assert fresh_state(dfa_even_a) == "NEW_INITIAL"


@pytest.mark.parametrize(
    "left,right",
    [
        pytest.param("a(a+b)*", "(a+b)*b", id="prefix_suffix"),
        pytest.param("(ab)*", "a*b*", id="stars"),
        pytest.param("b*+aaa", "(a+b)(a+b)", id="finite_and_infinite"),
        pytest.param("(a+b)*", "a+b", id="universal"),
    ],
)
class TestLaws:
    def test_union_contains_operands(self, left, right):
        a, b = regex(left), regex(right)
        assert is_subset(union(a, b), a)
        assert is_subset(union(a, b), b)

    def test_intersection_is_contained(self, left, right):
        a, b = regex(left), regex(right)
        assert is_subset(a, intersection(a, b))
        assert is_subset(b, intersection(a, b))

    def test_idempotence(self, left, right):
        a = regex(left)
        assert are_equivalent_fsms(intersection(a, a), a)
        assert are_equivalent_fsms(union(a, a), a)

    def test_commutativity(self, left, right):
        a, b = regex(left), regex(right)
        assert are_equivalent_fsms(union(a, b), union(b, a))
        assert are_equivalent_fsms(intersection(a, b), intersection(b, a))

    def test_difference_is_intersection_with_complement(self, left, right):
        a, b = regex(left), regex(right)
        assert are_equivalent_fsms(difference(a, b), intersection(a, complement(b)))
        assert not is_language_non_empty(intersection(difference(a, b), b))

import random

import pytest

from regkit.random_utils import random_regex
from regkit.regex_notation import string_to_tree, tree_to_string
from regkit.regex_simplify import simplify
from regkit.regex_tree import Alt, make_alt, make_eps, make_kstar, make_lit, make_seq, to_automaton


def simplified(text, **kwargs):
    return tree_to_string(simplify(string_to_tree(text), **kwargs))


class TestSyntacticRules:
    @pytest.mark.parametrize(
        "regex,expected",
        [
            pytest.param("((a))", "a", id="collapse"),
            pytest.param("$*", "$", id="eps_star"),
            pytest.param("(a*)*", "a*", id="star_star"),
            pytest.param("(a+b*)*", "(a+b)*", id="star_choice_in_star"),
            pytest.param("$+a*", "a*", id="eps_choice_with_star"),
            pytest.param("(a*b*)*", "(a+b)*", id="all_star_seq_in_star"),
            pytest.param("$a", "a", id="eps_in_seq"),
            pytest.param("a+(b+c)", "a+b+c", id="flatten_alt"),
            pytest.param("a(bc)", "abc", id="flatten_seq"),
            pytest.param("a+b+a", "a+b", id="duplicate_choice"),
            pytest.param("a+a*", "a*", id="choice_under_star"),
            pytest.param("a*a*", "a*", id="adjacent_stars"),
            pytest.param("(aa+a)*", "a*", id="repeated_choice_in_star"),
            pytest.param("(a+$)*", "a*", id="eps_choice_in_star"),
            pytest.param("ab+ac", "a(b+c)", id="common_prefix"),
            pytest.param("ac+bc", "(a+b)c", id="common_suffix"),
            pytest.param("a*aa*", "aa*", id="star_around_single"),
        ],
    )
    def test_rule(self, regex, expected):
        assert simplified(regex, use_fsm_patterns=False) == expected

    def test_all_star_seq_outside_star_is_kept(self):
        assert simplified("a*b*", use_fsm_patterns=False) == "a*b*"

    def test_applied_patterns(self):
        applied = []
        res = simplify(make_kstar(make_kstar(make_lit("a"))), applied_patterns=applied)
        assert res == make_kstar(make_lit("a"))
        assert applied == ["(a*)* => a*"]

    def test_num_iterations(self):
        applied = []
        res = simplify(string_to_tree("((a*)*)"), num_iterations=1, applied_patterns=applied)
        assert len(applied) == 1
        assert res != simplify(string_to_tree("((a*)*)"))

    def test_zero_iterations(self):
        tree = string_to_tree("(a*)*")
        assert simplify(tree, num_iterations=0) == tree

    def test_input_is_not_changed(self):
        tree = string_to_tree("a+a")
        simplify(tree)
        assert tree == string_to_tree("a+a")


class TestEmptyLanguage:
    def test_empty_choice(self):
        tree = make_alt([make_lit("a"), make_alt([])])
        assert simplify(tree) == make_lit("a")

    def test_empty_in_seq(self):
        tree = make_seq([make_lit("a"), make_alt([])])
        assert simplify(tree) == Alt(())

    def test_empty_star(self):
        assert simplify(make_kstar(make_alt([]))) == make_eps()

    def test_empty_seq_is_empty_language(self):
        assert simplified("a+()b") == "a"
        assert simplified("()*") == "$"


class TestSemanticRules:
    def test_subset_choice(self):
        assert simplified("a*+aa") == "a*"

    def test_subset_choice_disabled(self):
        assert simplified("a*+aa", use_fsm_patterns=False) == "a*+aa"

    def test_subset_star_choice(self):
        assert simplified("(a+aaa)*") == "a*"

    def test_subset_star_element(self):
        assert simplified("(ab)*(a+b)*") == "(a+b)*"

    def test_different_alphabets_are_skipped(self):
        assert simplified("a+b") == "a+b"


@pytest.mark.parametrize(
    "regex",
    [
        pytest.param("(a+b)*a(a+b)", id="second_to_last"),
        pytest.param("(a*b*)*+ab*a", id="mixed"),
        pytest.param("$+a+(aa)*+a*", id="redundant"),
        pytest.param("(ab+ac)*a*", id="factor_under_star"),
    ],
)
def test_language_is_preserved(regex, same_language):
    tree = string_to_tree(regex)
    res = simplify(tree)
    assert same_language(to_automaton(res), to_automaton(tree), "abc")


@pytest.mark.parametrize("use_fsm_patterns", [True, False])
@pytest.mark.parametrize("seed", range(15))
def test_random_tree_language_is_preserved(seed, use_fsm_patterns, same_language):
    tree = random_regex(6, "abc", kleene_prob=0.3, eps_prob=0.2, rng=random.Random(seed))
    res = simplify(tree, use_fsm_patterns=use_fsm_patterns)
    assert same_language(to_automaton(res), to_automaton(tree), "abc", max_len=4)

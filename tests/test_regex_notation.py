import pytest

from regkit.errors import NotationError
from regkit.fsm_utils import are_equivalent_fsms, is_accepted
from regkit.regex_notation import *
from regkit.regex_tree import make_alt, make_eps, make_kstar, make_lit, make_seq


class TestArrayToTree:
    def test_star_then_symbol(self):
        tree = array_to_tree(["a", KSTAR, "b"])
        assert tree == make_alt([make_seq([make_kstar(make_lit("a")), make_lit("b")])])

    def test_precedence(self):
        # a+bc* is a+(b(c*))
        tree = array_to_tree(["a", ALT, "b", "c", KSTAR])
        assert tree == make_alt(
            [
                make_seq([make_lit("a")]),
                make_seq([make_lit("b"), make_kstar(make_lit("c"))]),
            ]
        )

    def test_parentheses_and_eps(self):
        tree = array_to_tree([LEFT_PAREN, "a", ALT, EPS, RIGHT_PAREN, KSTAR])
        inner = make_alt([make_seq([make_lit("a")]), make_seq([make_eps()])])
        assert tree == make_alt([make_seq([make_kstar(inner)])])

    def test_arbitrary_symbols(self):
        tree = array_to_tree([("x", 1), KSTAR])
        assert tree == make_alt([make_seq([make_kstar(make_lit(("x", 1)))])])

    def test_empty_array(self):
        assert array_to_tree([]) == make_alt([make_seq([])])

    @pytest.mark.parametrize(
        "arr,position",
        [
            pytest.param([LEFT_PAREN, "a"], 2, id="missing_right_paren"),
            pytest.param(["a", RIGHT_PAREN, "b"], 1, id="unmatched_right_paren"),
            pytest.param([KSTAR, "a"], 0, id="leading_star"),
            pytest.param(["a", KSTAR, KSTAR], 2, id="double_star"),
        ],
    )
    def test_malformed(self, arr, position):
        with pytest.raises(NotationError) as e:
            array_to_tree(arr)
        assert e.value.position == position
        assert f"at position {position}" in str(e.value)


class TestTreeToArray:
    def test_parenthesizes_lower_precedence(self):
        tree = make_seq([make_kstar(make_alt([make_lit("a"), make_lit("b")])), make_lit("c")])
        assert tree_to_array(tree) == [
            LEFT_PAREN,
            "a",
            ALT,
            "b",
            RIGHT_PAREN,
            KSTAR,
            "c",
        ]

    def test_equal_precedence_is_parenthesized(self):
        tree = make_kstar(make_kstar(make_lit("a")))
        assert tree_to_array(tree) == [LEFT_PAREN, "a", KSTAR, RIGHT_PAREN, KSTAR]

    def test_eps(self):
        assert tree_to_array(make_alt([make_lit("a"), make_eps()])) == ["a", ALT, EPS]

    def test_reparse_preserves_language(self):
        arr = [LEFT_PAREN, "a", "b", ALT, "c", RIGHT_PAREN, KSTAR, "d"]
        tree = array_to_tree(arr)
        printed = tree_to_array(tree)
        assert are_equivalent_fsms(array_to_automaton(printed), array_to_automaton(arr))


class TestStrings:
    def test_string_to_array(self):
        assert string_to_array("(a+$)*b") == [
            LEFT_PAREN,
            "a",
            ALT,
            EPS,
            RIGHT_PAREN,
            KSTAR,
            "b",
        ]

    def test_escapes(self):
        assert string_to_array(r"\$\+\*\(\)\\") == list("$+*()\\")

    @pytest.mark.parametrize(
        "text",
        [
            pytest.param("ab\\", id="trailing_backslash"),
            pytest.param(r"a\b", id="illegal_escape"),
        ],
    )
    def test_malformed(self, text):
        with pytest.raises(NotationError):
            string_to_array(text)

    def test_array_to_string_escapes(self):
        assert array_to_string(["+", KSTAR, "a", EPS]) == r"\+*a$"

    @pytest.mark.parametrize(
        "arr,position",
        [
            pytest.param(["a", "bc"], 1, id="long_symbol"),
            pytest.param([1], 0, id="not_a_string"),
        ],
    )
    def test_array_to_string_fails(self, arr, position):
        with pytest.raises(NotationError) as e:
            array_to_string(arr)
        assert e.value.position == position

    def test_tree_to_string_fails_on_long_symbol(self):
        with pytest.raises(NotationError):
            tree_to_string(make_lit("ab"))

    @pytest.mark.parametrize(
        "text",
        [
            pytest.param("a*b", id="star_then_symbol"),
            pytest.param("(a+b)*c", id="star_of_alt"),
            pytest.param(r"\++a", id="escaped_plus"),
            pytest.param("a+$", id="eps"),
            pytest.param("(ab)*", id="star_of_seq"),
        ],
    )
    def test_round_trip(self, text):
        tree = string_to_tree(text)
        printed = tree_to_string(tree)
        assert string_to_tree(printed) == tree
        assert are_equivalent_fsms(string_to_automaton(printed), string_to_automaton(text))

    def test_escaped_symbol_in_automaton(self):
        fsm = string_to_automaton(r"a\*")
        assert set(fsm.alphabet) == {"a", "*"}
        assert is_accepted(fsm, ["a", "*"])


class TestSimplifyNotations:
    def test_simplify_string(self):
        assert simplify_string("(a*)*+$") == "a*"

    def test_simplify_array(self):
        applied = []
        res = simplify_array([LEFT_PAREN, "a", KSTAR, RIGHT_PAREN, KSTAR], applied_patterns=applied)
        assert res == ["a", KSTAR]
        assert applied

    def test_simplify_string_without_fsm_patterns(self):
        assert simplify_string("a*+aa", use_fsm_patterns=False) == "a*+aa"

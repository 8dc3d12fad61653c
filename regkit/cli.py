import argparse
import json
import logging
import sys
from typing import Any, Sequence

from regkit.errors import RegkitError
from regkit.fsm import Automaton, determine_type, from_description, to_description, validate
from regkit.fsm_utils import is_language_non_empty, minimize, to_regex
from regkit.graph_utils import automaton_to_dot
from regkit.regex_notation import tree_to_string
from regkit.regex_simplify import simplify

logger = logging.getLogger(__name__)


def read_automaton(path: str, epsilon: str = "$") -> Automaton:
    with open(path, "r", encoding="utf-8") as f:
        description: Any = json.load(f)
    return validate(from_description(description, epsilon))


def fsm_to_regex(
    fsm: Automaton, num_iterations: int | None = None, use_fsm_patterns: bool = False
) -> str:
    dfa = minimize(fsm)
    logger.info("Minimal DFA has %d states", len(dfa.states))
    if not is_language_non_empty(dfa):
        logger.warning("The automaton accepts no strings")

    applied: list[str] = []
    tree = simplify(to_regex(dfa), num_iterations, applied, use_fsm_patterns)
    logger.info("Simplified the regex with %d rewrites", len(applied))
    return tree_to_string(tree)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Read an automaton from a JSON file and print an equivalent regex."
    )
    parser.add_argument("input_file", help="JSON file describing the automaton")
    parser.add_argument(
        "--mode",
        default="regex",
        choices=["regex", "minimize", "validate", "dot"],
        help="What to print: the regex, the minimal DFA as JSON, the automaton "
        "type, or a DOT graph. Default: regex",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Maximum number of simplification rewrites (default: no limit)",
    )
    parser.add_argument(
        "--fsm-patterns",
        action="store_true",
        help="Also simplify with the automaton-based rules (slow)",
    )
    parser.add_argument(
        "--epsilon",
        default="$",
        help="How epsilon is spelled in the input and output files. Default: $",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s: %(message)s",
    )

    try:
        logger.info("Reading automaton from %s ...", args.input_file)
        fsm = read_automaton(args.input_file, args.epsilon)
    except OSError as e:
        logger.error("Error reading file '%s': %s", args.input_file, e)
        return 1
    except json.JSONDecodeError as e:
        logger.error("Malformed JSON in '%s': %s", args.input_file, e)
        return 1
    except RegkitError as e:
        logger.error("Invalid automaton: %s", e)
        return 1

    try:
        if args.mode == "validate":
            print(determine_type(fsm).value)
        elif args.mode == "minimize":
            print(json.dumps(to_description(minimize(fsm), args.epsilon), indent=2))
        elif args.mode == "dot":
            print(automaton_to_dot(fsm, args.epsilon))
        else:
            print(fsm_to_regex(fsm, args.iterations, args.fsm_patterns))
    except RegkitError as e:
        logger.error("%s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
import argparse
import json
import logging
import os
import shlex
import sys

import numpy as np

from wordvec_db.config import get_settings
from wordvec_db.engine.embedding_session import EmbeddingSession


def parse_vector(vector_str):
    """
    Parse a comma-separated list of floats or JSON-style list into a NumPy array.
    Examples:
      "0.1,0.2,0.3"
      "[0.1, 0.2, 0.3]"
    """
    try:
        s = vector_str.strip()
        if s.startswith("[") and s.endswith("]"):
            arr = json.loads(s)
            if not isinstance(arr, list):
                raise ValueError("Not a JSON list")
            vec = np.array(arr, dtype=np.float64)
        else:
            nums = [float(x.strip()) for x in s.split(",")]
            vec = np.array(nums, dtype=np.float64)
        return vec
    except Exception as e:
        raise argparse.ArgumentTypeError(f"Invalid vector format: {e}")


def get_parser():
    parser = argparse.ArgumentParser(
        prog="wordvec",
        description="wordvec CLI: build a word embedding database and query it"
    )
    default_db = os.environ.get("WORDVEC_DB_PATH", "wordvec.db")
    parser.add_argument(
        "--db",
        default=default_db,
        help="Path of the SQLite embedding database"
    )
    parser.add_argument(
        "--in-memory",
        action="store_true",
        help="Load the database into memory before querying"
    )
    parser.add_argument(
        "--dim",
        type=int,
        default=None,
        help="Vector dimensionality of the database (default: WORDVEC_DIM or 300)"
    )
    subparsers = parser.add_subparsers(dest="command")

    c_build = subparsers.add_parser("build", help="Import a .vec file into a new database")
    c_build.add_argument("vec_file", help="Word vector file ('<vocab_size> <dim>' header)")

    c_get = subparsers.add_parser("get", help="Print the embedding of a word")
    c_get.add_argument("word", help="Word to look up")

    c_similar = subparsers.add_parser("similar", help="Find the most similar stored vector")
    c_similar.add_argument("vector", type=parse_vector,
                           help="Vector as 0.1,0.2,0.3 or [0.1, 0.2, 0.3]")

    c_average = subparsers.add_parser("average", help="Average the embeddings of several words")
    c_average.add_argument("words", nargs="+", help="Words to average")

    subparsers.add_parser("count", help="Print the number of stored words")

    return parser


# Map command names to handler functions
_COMMAND_HANDLERS = {
    "build":    "_handle_build",
    "get":      "_handle_get",
    "similar":  "_handle_similar",
    "average":  "_handle_average",
    "count":    "_handle_count",
}


def execute_command(session, args):
    """Dispatch to handlers; errors are reported on stderr."""
    handler_name = _COMMAND_HANDLERS.get(args.command)
    if not handler_name:
        return False
    handler = globals().get(handler_name)
    try:
        handler(session, args)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
    return True


def _handle_build(session, args):
    count = session.build_from_file(args.vec_file)
    print(f"Stored {count} embeddings")


def _handle_get(session, args):
    vec = session.embedding_vector(args.word)
    print(json.dumps(vec.tolist()))


def _handle_similar(session, args):
    result = session.most_similar_word(args.vector)
    print(json.dumps(result.to_dict(), indent=2))


def _handle_average(session, args):
    vec = session.multi_word_embedding_vector(args.words)
    print(json.dumps(vec.tolist()))


def _handle_count(session, args=None):  #NOSONAR
    print(session.count())


def _run_with_session(args):
    """Open a session, dispatch, then close."""
    # a fresh database cannot be copied into memory before it is built
    in_memory = args.in_memory and args.command != "build"
    try:
        settings = get_settings()
        if args.dim is not None:
            settings = settings.model_copy(update={"dim": args.dim})
        session = EmbeddingSession.open(args.db, in_memory=in_memory, settings=settings)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return
    with session:
        execute_command(session, args)


def _has_direct_command_args() -> bool:
    # options may come before the subcommand, e.g. "wordvec --db x.db get cat"
    return any(arg in _COMMAND_HANDLERS for arg in sys.argv[1:])


def _configure_logging():
    logging.basicConfig(level=get_settings().log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main():
    _configure_logging()
    parser = get_parser()
    if _has_direct_command_args():
        _handle_direct(parser)
    else:
        _handle_interactive(parser)


def _handle_direct(parser):
    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(0)
    _run_with_session(args)


def _handle_interactive(parser):
    print("Entering interactive mode (type 'help' for commands, 'exit' to quit)")
    while True:
        try:
            raw = input("wordvec> ")
        except EOFError:
            break

        line = raw.strip()
        if not line or _is_exit_command(line):
            break

        if _is_help_command(line):
            parser.print_help()
            continue

        _process_interactive_line(line, parser)

    print("Bye!")


def _process_interactive_line(line, parser):
    try:
        parts = shlex.split(line)
        args = parser.parse_args(parts)
        if not args.command:
            print("No command given. Type 'help' for commands.")
            return
        _run_with_session(args)
    except SystemExit as e:
        if e.code == 0:
            raise
        print(f"Error: {e}", file=sys.stderr)


def _is_exit_command(line: str) -> bool:
    return line.lower() in ("exit", "quit")


def _is_help_command(line: str) -> bool:
    return line.lower() in ("help", "?", "h")


def entry_point():
    main()


if __name__ == "__main__":
    main()

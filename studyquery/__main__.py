"""
Command line entry point for the study query builder.

Usage:
    python -m studyquery serve [--host 0.0.0.0] [--port 8000] [--reload]
    python -m studyquery tokens "[-22,-4,18] AND NOT emotion"
    python -m studyquery remove "A AND B AND C" 2
    python -m studyquery studies "amygdala AND fear" [--sort year] [--page 1]
"""

import argparse
import json
import logging
import sys

from studyquery.services.editor import editor, EditorError, join_tokens
from studyquery.services.normalizer import normalize
from studyquery.services.studies import SORT_KEYS, StudiesService
from studyquery.services.tokenizer import tokenize_and_classify


def cmd_serve(args):
    import uvicorn
    uvicorn.run("studyquery.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_tokens(args):
    tokens = tokenize_and_classify(args.query)
    for i, token in enumerate(tokens):
        print(f"{i:3d}  {token.kind.value:<4}  {token.text}")
    print(f"\nNormalized: {join_tokens(normalize(tokens))}")
    return 0


def cmd_remove(args):
    try:
        print(editor.remove_chip(args.query, args.index))
    except EditorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_studies(args):
    service = StudiesService.from_settings()
    page = service.search(args.query, sort=args.sort, direction=args.direction, page=args.page)
    print(json.dumps(page.model_dump(), indent=2, ensure_ascii=False))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Study query builder")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Start the API server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve.set_defaults(func=cmd_serve)

    tokens = subparsers.add_parser("tokens", help="Show how a query is tokenized")
    tokens.add_argument("query")
    tokens.set_defaults(func=cmd_tokens)

    remove = subparsers.add_parser("remove", help="Remove the term at a token index")
    remove.add_argument("query")
    remove.add_argument("index", type=int)
    remove.set_defaults(func=cmd_remove)

    studies = subparsers.add_parser("studies", help="Look up studies for a query")
    studies.add_argument("query")
    studies.add_argument("--sort", default="year", choices=SORT_KEYS)
    studies.add_argument("--direction", default="desc", choices=("asc", "desc"))
    studies.add_argument("--page", type=int, default=1)
    studies.set_defaults(func=cmd_studies)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

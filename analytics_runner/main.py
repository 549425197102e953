# main.py
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import yaml

from .constants import LOG_DATEFMT, LOG_FORMAT, SERVER_HOST, SERVER_PORT
from .errors import PASS, InvalidInput, RunnerError
from .models import parse_options, parse_test_definition, results_to_json
from .runner import run_test

logger = logging.getLogger(__name__)


def load_document(path: str):
    """Read a YAML or JSON file (JSON is loaded through the YAML parser)."""
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise InvalidInput(f"Cannot read {path}: {e}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Step-driven browser tests with analytics request assertions')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    run = sub.add_parser('run', help='Run a test definition file')
    run.add_argument('test_file', help='Test definition (YAML or JSON)')
    run.add_argument('--options', dest='options_file', help='Run options (YAML or JSON)')
    run.add_argument('--headful', action='store_true', help='Show browser')
    run.add_argument('--output', help='Write the result list to this file')

    serve = sub.add_parser('serve', help='Serve the HTTP runTest endpoint')
    serve.add_argument('--host', default=SERVER_HOST)
    serve.add_argument('--port', type=int, default=SERVER_PORT)
    return parser


async def run_command(args) -> int:
    try:
        document = load_document(args.test_file)
        # A file may hold a bare test or a full {test, options} request body
        if isinstance(document, dict) and "test" in document:
            raw_test, raw_options = document["test"], document.get("options")
        else:
            raw_test, raw_options = document, None
        if args.options_file:
            raw_options = load_document(args.options_file)
        if args.headful and (raw_options is None or isinstance(raw_options, dict)):
            raw_options = dict(raw_options or {}, headless=False)

        test = parse_test_definition(raw_test)
        options = parse_options(raw_options)
    except InvalidInput as e:
        logger.error(str(e))
        return 2

    try:
        results = await run_test(test, options)
    except RunnerError as e:
        logger.error(f"Run failed: {e}")
        return 1

    output = json.dumps(results_to_json(results), indent=2, ensure_ascii=False)
    print(output)
    if args.output:
        Path(args.output).write_text(output + "\n", encoding="utf-8")
        logger.info(f"Results written to {args.output}")

    return 0 if all(r.outcome == PASS for r in results) else 1


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT, datefmt=LOG_DATEFMT)

    if args.command == 'serve':
        import uvicorn

        uvicorn.run("analytics_runner.server:app", host=args.host, port=args.port)
        return 0

    return asyncio.run(run_command(args))


if __name__ == '__main__':
    sys.exit(main())

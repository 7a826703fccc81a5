import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from role_matching.matching.errors import InvalidMatchRequest
from role_matching.matching.requests import parse_match_request
from role_matching.resources.embeddings import EmbeddingAPIResource
from role_matching.resources.matching_engine import MatchingEngineResource

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def local_dev():
    os.chdir(PROJECT_ROOT)
    os.environ.setdefault("DAGSTER_HOME", str(PROJECT_ROOT))
    os.execvp(
        sys.executable,
        [sys.executable, "-m", "dagster", "dev", "-m", "role_matching.definitions"]
        + sys.argv[1:],
    )


def _build_engine(args: argparse.Namespace) -> MatchingEngineResource:
    return MatchingEngineResource(
        embeddings=EmbeddingAPIResource(),
        worker_kind=args.workers or os.getenv("MATCHING_WORKER_KIND", "thread"),
    )


async def _rank(engine: MatchingEngineResource, payload: dict) -> dict:
    role, candidates, catalog = parse_match_request(payload)
    result = await engine.get_orchestrator().match_role(role, candidates, catalog)
    return result.to_dict()


def rank(argv: list[str] | None = None) -> int:
    """Rank the employees in a JSON request file and print the result as JSON."""
    parser = argparse.ArgumentParser(
        description="Rank employees for a role from a JSON request (role, employees, skillMap)"
    )
    parser.add_argument("request", help="Path to the request JSON file, or - for stdin")
    parser.add_argument(
        "--workers",
        choices=["process", "thread"],
        default=None,
        help="Similarity worker pool (default: MATCHING_WORKER_KIND or thread)",
    )
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (0 for compact)")
    args = parser.parse_args(argv)

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    logger = logging.getLogger("role_matching.cli")

    if args.request == "-":
        raw = sys.stdin.read()
    else:
        raw = Path(args.request).read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"Request is not valid JSON: {e}")
        return 2

    engine = _build_engine(args)
    try:
        result = asyncio.run(_rank(engine, payload))
    except InvalidMatchRequest as e:
        logger.error(f"Invalid request: {e}")
        return 2
    finally:
        engine.shutdown()

    print(json.dumps(result, indent=args.indent or None, ensure_ascii=False))
    return 0


def check_provider(argv: list[str] | None = None) -> int:
    """Probe the embeddings API with the configured key. Exit code 0 when it answers."""
    parser = argparse.ArgumentParser(description="Check the embeddings API key and latency")
    parser.parse_args(argv)

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    engine = MatchingEngineResource(embeddings=EmbeddingAPIResource(), worker_kind="thread")
    ok, elapsed_ms = asyncio.run(engine.get_orchestrator().embedding_service.check_provider())
    print(json.dumps({"ok": ok, "elapsed_ms": elapsed_ms}))
    return 0 if ok else 1

"""Entry point for querying a Spotify streaming history export"""
import argparse
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

from spotify_stats.config import settings
from spotify_stats.errors import StreamingHistoryError
from spotify_stats.models.entry import RecordKind
from spotify_stats.models.history import StreamingHistory
from spotify_stats.models.response import QueryResponse
from spotify_stats.query import Component, search_by_identity_component, summarize, top_n
from spotify_stats.services.cache import load_or_build
from spotify_stats.utils.json_encoder import json_dumps

logging.basicConfig(level=settings.LOG_LEVEL, format='%(message)s')
logger = logging.getLogger(__name__)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='spotify_stats',
        description="Aggregate and query your Spotify streaming history export"
    )
    parser.add_argument('-d', '--data', default=settings.DATA_DIR,
                        help="Folder containing the exported JSON files")
    parser.add_argument('--cache', default=settings.CACHE_PATH,
                        help="Cache file for the aggregated history")
    parser.add_argument('--no-cache', action='store_true',
                        help="Always rebuild from the JSON files and do not write a cache")
    parser.add_argument('-w', '--workers', type=int, default=settings.LOAD_WORKERS,
                        help="Threads used when rebuilding from the JSON files")

    commands = parser.add_subparsers(dest='command', required=True)

    top = commands.add_parser('top', help="Rank by total listening time")
    top.add_argument('n', type=int, help="Number of entries to show")
    top.add_argument('--group-by', choices=[c.value for c in Component], default=Component.PRIMARY.value)
    top.add_argument('--kind', choices=[k.value for k in RecordKind], default=None)

    search = commands.add_parser('search', help="Find identities by exact (case-sensitive) name")
    search.add_argument('text')
    search.add_argument('--by', choices=[Component.PRIMARY.value, Component.SECONDARY.value],
                        default=Component.PRIMARY.value)
    search.add_argument('--substring', action='store_true', default=settings.SUBSTRING_SEARCH,
                        help="Match names containing the text")

    commands.add_parser('summary', help="Overall listening statistics")
    return parser

def resolve_history(args: argparse.Namespace) -> StreamingHistory:
    return load_or_build(args.data, args.cache, args.workers, use_cache=False if args.no_cache else None)

def answer(args: argparse.Namespace, history: StreamingHistory) -> QueryResponse:
    """Run the requested query and shape its rows for output"""
    if args.command == 'top':
        ranked = top_n(history, args.n, group_by=args.group_by, kind=args.kind)
        results = [
            {'rank': rank, 'key': key, 'total_ms_played': total}
            for rank, (key, total) in enumerate(ranked, start=1)
        ]
        parameters = {'n': args.n, 'group_by': args.group_by, 'kind': args.kind}
    elif args.command == 'search':
        matches = search_by_identity_component(history, args.text, which=args.by, substring=args.substring)
        results = [
            {
                'primary': primary,
                'secondary': secondary,
                'total_ms_played': stats.total_duration_ms,
                'play_count': stats.play_count,
                'kinds': stats.kinds,
                'first_played': stats.first_played,
                'last_played': stats.last_played
            }
            for (primary, secondary), stats in matches
        ]
        parameters = {'text': args.text, 'by': args.by, 'substring': args.substring}
    else:
        results = [asdict(summarize(history))]
        parameters = {}

    return QueryResponse(query=args.command, data_dir=str(args.data), parameters=parameters, results=results)

def run(argv: Optional[List[str]] = None) -> None:
    """Resolve the history (from cache when fresh) and print the query result as JSON."""
    args = build_parser().parse_args(argv)
    try:
        history = resolve_history(args)
        response = answer(args, history)
    except StreamingHistoryError as e:
        logger.error(f"Error processing streaming history: {e}")
        sys.exit(1)

    print(json_dumps(response.model_dump(), indent=2))

if __name__ == "__main__":
    run()

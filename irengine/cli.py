# irengine/cli.py
"""
Command line entry point.

  irengine build data/corpus.tsv --index data/index --stem --stop-words data/stop_words.txt
  irengine search --index data/index --query "falkland petroleum" --dates --entities
  irengine search --index data/index --queries data/queries.txt --semantic --neighbors data/neighbors.tsv --output results.txt
  irengine dictionary --index data/index --stem
  irengine reset --index data/index
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

from irengine import paths
from irengine.analyzer import load_stop_words, read_corpus, read_queries
from irengine.config import EngineConfig
from irengine.engine import SearchEngine
from irengine.errors import IREngineError
from irengine.expansion import NeighborTable
from irengine.results import SINGLE_QUERY_ID

logger = logging.getLogger(__name__)


def _stop_words(path):
    try:
        return load_stop_words(path)
    except FileNotFoundError:
        logger.warning("stop words file %s not found; no stop words will be removed", path)
        return set()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="irengine", description="Build and query a blended-ranking inverted index.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = ap.add_subparsers(dest="command", required=True)

    def common(p):
        p.add_argument("--index", default=paths.INDEX_DIR, help="Index root directory.")
        p.add_argument("--stem", action="store_true", help="Use the stemmed index variant.")
        p.add_argument("--partitions", type=int, default=paths.NUM_PARTITIONS, help="Document-store partition count.")
        p.add_argument("--stop-words", default=paths.STOP_WORDS_PATH, help="Stop words file (one per line).")

    b = sub.add_parser("build", help="Index a corpus TSV (docNo, date, header, text).")
    b.add_argument("corpus", help="Corpus TSV path.")
    b.add_argument("--codec", default="raw", choices=["raw", "varbyte"], help="Postings codec.")
    b.add_argument("--limit", type=int, default=None, help="Only index the first N lines.")
    common(b)

    s = sub.add_parser("search", help="Run one query or a query file.")
    q = s.add_mutually_exclusive_group(required=True)
    q.add_argument("--query", help="Single free-text query.")
    q.add_argument("--queries", help="Query file (TREC topics or queryId<TAB>text).")
    s.add_argument("--semantic", action="store_true", help="Blend in semantic neighbor terms.")
    s.add_argument("--neighbors", help="Neighbor table TSV (term<TAB>n1 n2 ...).")
    s.add_argument("--dates", action="store_true", help="Show document dates.")
    s.add_argument("--entities", action="store_true", help="Show top entities per document.")
    s.add_argument("--limit", type=int, default=50, help="Results per query (0 = all).")
    s.add_argument("--output", help="Write TREC result lines to this file.")
    s.add_argument("--no-preload", action="store_true", help="Scan partitions per lookup instead of caching them.")
    common(s)

    d = sub.add_parser("dictionary", help="Print term and total count, sorted by term.")
    common(d)

    r = sub.add_parser("reset", help="Delete the index directory.")
    r.add_argument("--index", default=paths.INDEX_DIR, help="Index root directory.")
    return ap


def _print_results(query_id, results, config):
    for rank, r in enumerate(results, 1):
        cols = [query_id, str(rank), r.doc_no, f"{r.score:.4f}"]
        if config.show_dates:
            cols.append(r.date or "")
        if config.show_entities:
            cols.append(", ".join(r.entities or ()))
        print("\t".join(cols))


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "reset":
            engine = SearchEngine(EngineConfig(index_dir=args.index))
            if not engine.reset():
                print("Nothing to delete.", file=sys.stderr)
            return 0

        if args.command == "build":
            config = EngineConfig(index_dir=args.index, stemming=args.stem, num_partitions=args.partitions,
                                  preload_documents=False)
            engine = SearchEngine(config, stop_words=_stop_words(args.stop_words))
            t0 = time.perf_counter()
            dictionary = engine.build(read_corpus(args.corpus, limit=args.limit), codec=args.codec)
            print(f"Indexed {len(dictionary)} terms in {time.perf_counter() - t0:.2f}s", file=sys.stderr)
            return 0

        if args.command == "dictionary":
            config = EngineConfig(index_dir=args.index, stemming=args.stem, num_partitions=args.partitions,
                                  preload_documents=False)
            engine = SearchEngine(config)
            engine.load()
            for term, count in engine.dictionary_listing():
                print(f"{term}\t{count}")
            return 0

        config = EngineConfig(
            index_dir=args.index,
            stemming=args.stem,
            semantic=args.semantic,
            num_partitions=args.partitions,
            result_limit=args.limit or None,
            show_dates=args.dates,
            show_entities=args.entities,
            preload_documents=not args.no_preload,
        )
        neighbors = NeighborTable.load(args.neighbors) if args.neighbors else None
        if config.semantic and neighbors is None:
            logger.warning("--semantic without --neighbors: no neighbor terms available")
        engine = SearchEngine(config, stop_words=_stop_words(args.stop_words), neighbors=neighbors)
        engine.load()

        t0 = time.perf_counter()
        if args.query is not None:
            by_id = {SINGLE_QUERY_ID: engine.run_single(args.query, output=args.output)}
        else:
            by_id = engine.run_queries(read_queries(args.queries), output=args.output)
        for qid, results in by_id.items():
            _print_results(qid, results, config)
        print(f"Total time: {time.perf_counter() - t0:.3f}s", file=sys.stderr)
        return 0
    except (IREngineError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())

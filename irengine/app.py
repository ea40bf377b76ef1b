#!/usr/bin/env python3
"""
Flask web application exposing the search engine over HTTP.

    POST /search       {"query": "..."}  -> ranked results
    GET  /dictionary   ?limit=n          -> [[term, total_count], ...]
    GET  /health
"""

import logging
import time

from flask import Flask, jsonify, request

from irengine.errors import EngineStateError, IREngineError

logger = logging.getLogger(__name__)


def create_app(engine):
    """Build the app around an already constructed SearchEngine."""
    app = Flask(__name__)
    app.config["ENGINE"] = engine

    @app.route('/search', methods=['POST'])
    def search():
        """Handle search requests."""
        data = request.get_json(silent=True) or {}
        query = str(data.get('query', '')).strip()
        if not query:
            return jsonify({'error': 'Empty query'}), 400

        try:
            start_time = time.perf_counter()
            results = engine.search_text(query)
            search_time = (time.perf_counter() - start_time) * 1000  # milliseconds
        except EngineStateError as e:
            return jsonify({'error': f'Search engine not initialized: {e}'}), 500
        except (IREngineError, OSError) as e:
            logger.error("Search error: %s", e)
            return jsonify({'error': f'Search failed: {e}'}), 500

        formatted_results = []
        for r in results:
            item = {'docNo': r.doc_no, 'score': r.score}
            if r.date is not None:
                item['date'] = r.date
            if r.entities is not None:
                item['entities'] = list(r.entities)
            formatted_results.append(item)

        return jsonify({
            'results': formatted_results,
            'searchTime': search_time,
            'totalResults': len(formatted_results),
            'query': query,
            'semantic': engine.config.semantic,
        })

    @app.route('/dictionary')
    def dictionary():
        limit = request.args.get('limit', default=100, type=int)
        try:
            entries = engine.dictionary_listing()
        except EngineStateError as e:
            return jsonify({'error': f'Search engine not initialized: {e}'}), 500
        return jsonify([[t, c] for t, c in entries[:limit]])

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'searcher_initialized': engine.loaded,
        })

    return app


if __name__ == '__main__':
    import argparse

    from irengine import paths
    from irengine.config import EngineConfig
    from irengine.engine import SearchEngine

    ap = argparse.ArgumentParser(description="Serve the search engine over HTTP.")
    ap.add_argument("--index", default=paths.INDEX_DIR)
    ap.add_argument("--stem", action="store_true")
    ap.add_argument("--port", type=int, default=5001)
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO)
    engine = SearchEngine(EngineConfig(index_dir=args.index, stemming=args.stem, show_dates=True, show_entities=True))
    engine.load()
    create_app(engine).run(host='0.0.0.0', port=args.port)

# irengine/utils.py

import logging
import os
import pickle

from irengine.errors import IndexNotFoundError

logger = logging.getLogger(__name__)


def write_doc_table(doc_table, path):
    """
    Save the document table to disk using pickle.
    Args:
        doc_table: list indexed by internal docid of (docNo, length, header_terms)
        path: str, file path
    """
    with open(path, "wb") as f:
        pickle.dump(list(doc_table), f)
    logger.info("[DocTable] saved: %d docs to %s", len(doc_table), path)


def load_doc_table(path):
    """
    Load the document table written by write_doc_table().
    Returns:
        list[tuple[str, int, tuple[str, ...]]]
    """
    if not os.path.exists(path):
        raise IndexNotFoundError(f"doc table not found at {path}")
    with open(path, "rb") as f:
        doc_table = pickle.load(f)
    logger.info("[DocTable] loaded: %d docs from %s", len(doc_table), path)
    return doc_table

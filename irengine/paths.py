# irengine/paths.py

import os

# --- Base data paths ---
DATA_DIR = "data"
INDEX_DIR = os.path.join(DATA_DIR, "index")

# --- Variant folders (two independent indexes side by side) ---
STEM_DIR = "stem"
NOSTEM_DIR = "nostem"

# --- Per-variant index files ---
DICTIONARY_FILE = "dictionary.tsv"   # term \t totalCount \t df \t pointer
POSTINGS_FILE = "index.postings"     # blocked binary postings region
DOC_TABLE_FILE = "doc_table.pkl"     # internal docid -> (docNo, length, header terms)

# --- Document store partitions ---
DOCS_DIR = "docs"
DOC_FILE_PREFIX = "docFile"
NUM_PARTITIONS = 6

# --- Query side defaults ---
STOP_WORDS_PATH = os.path.join(DATA_DIR, "stop_words.txt")
RESULTS_FILE = "results.txt"


def variant_dir(index_dir: str, stemming: bool) -> str:
    """Folder holding one index variant (stemmed or not) under index_dir."""
    return os.path.join(index_dir, STEM_DIR if stemming else NOSTEM_DIR)


def dictionary_path(index_dir: str, stemming: bool) -> str:
    return os.path.join(variant_dir(index_dir, stemming), DICTIONARY_FILE)


def postings_path(index_dir: str, stemming: bool) -> str:
    return os.path.join(variant_dir(index_dir, stemming), POSTINGS_FILE)


def doc_table_path(index_dir: str, stemming: bool) -> str:
    return os.path.join(variant_dir(index_dir, stemming), DOC_TABLE_FILE)


def partition_paths(index_dir: str, stemming: bool, num_partitions: int = NUM_PARTITIONS) -> list[str]:
    """
    Paths of the document-store partition files, docFile0 .. docFile{N-1}.
    N comes from configuration; it must match the count the index was built with.
    """
    docs = os.path.join(variant_dir(index_dir, stemming), DOCS_DIR)
    return [os.path.join(docs, f"{DOC_FILE_PREFIX}{i}") for i in range(num_partitions)]

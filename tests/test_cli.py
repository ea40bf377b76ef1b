# tests/test_cli.py
import os

from irengine.cli import main

from conftest import STOP_WORDS


def _stop_file(tmp_path):
    p = tmp_path / "stop.txt"
    p.write_text("\n".join(sorted(STOP_WORDS)) + "\n", encoding="utf-8")
    return str(p)


def test_build_search_dictionary_reset(tmp_path, corpus_path, capsys):
    index_dir = str(tmp_path / "index")
    stop = _stop_file(tmp_path)

    assert main(["build", corpus_path, "--index", index_dir, "--stop-words", stop, "--stem"]) == 0
    assert os.path.isdir(os.path.join(index_dir, "stem"))

    out_file = str(tmp_path / "results.txt")
    assert main(["search", "--index", index_dir, "--stem", "--stop-words", stop,
                 "--query", "cats milk", "--dates", "--output", out_file]) == 0
    printed = capsys.readouterr().out.splitlines()
    assert printed[0].split("\t")[:3] == ["000", "1", "FT-8"]
    assert printed[0].split("\t")[-1] == "1994-01-08"
    with open(out_file, encoding="utf-8") as f:
        assert f.read().splitlines() == ["000 0 FT-8 1 1.1 mt"]

    assert main(["dictionary", "--index", index_dir, "--stem"]) == 0
    listing = capsys.readouterr().out.splitlines()
    assert "cat\t3" in listing

    assert main(["reset", "--index", index_dir]) == 0
    assert not os.path.exists(index_dir)


def test_query_file(tmp_path, corpus_path, capsys):
    index_dir = str(tmp_path / "index")
    stop = _stop_file(tmp_path)
    queries = tmp_path / "queries.tsv"
    queries.write_text("q2\tbrain neurons\nq1\tparis france\n", encoding="utf-8")
    neighbors = tmp_path / "neighbors.tsv"
    neighbors.write_text("paris\teurope\n", encoding="utf-8")

    assert main(["build", corpus_path, "--index", index_dir, "--stop-words", stop]) == 0
    out_file = str(tmp_path / "results.txt")
    assert main(["search", "--index", index_dir, "--stop-words", stop, "--queries", str(queries),
                 "--semantic", "--neighbors", str(neighbors), "--output", out_file]) == 0
    with open(out_file, encoding="utf-8") as f:
        assert f.read().splitlines() == ["q1 0 FT-2 1 1.1 mt", "q2 0 FT-6 1 1.1 mt"]


def test_missing_index_reports_error(tmp_path, capsys):
    assert main(["search", "--index", str(tmp_path / "none"), "--query", "x"]) == 2
    assert "error" in capsys.readouterr().err

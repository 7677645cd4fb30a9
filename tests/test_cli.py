"""
Smoke tests for the arabic-ontology command line.
"""
import pytest

from arabic_ontology.cli import create_parser, main


@pytest.fixture
def imported_db(tmp_path, data_dir, capsys):
    """Database file holding the fixture import with two corpora."""
    db_path = tmp_path / "ontology.db"
    code = main([
        "import", "--data-dir", str(data_dir), "--db", str(db_path),
        "--corpus", "baladi", "--corpus", "nabra",
    ])
    assert code == 0
    return db_path


class TestParser:
    """Tests for argument parsing."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_corpus_options_exclusive(self):
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args([
                "import", "--db", "x.db", "--corpus", "baladi", "--all-corpora",
            ])


class TestImport:
    """Tests for the import command."""

    def test_import_reports_counts(self, imported_db, capsys):
        out = capsys.readouterr().out
        assert imported_db.exists()
        assert "Results:" in out
        assert "lemma:" in out

    def test_import_from_manifest(self, tmp_path, data_dir, capsys):
        manifest = tmp_path / "import.yaml"
        manifest.write_text(f"data_dir: {data_dir}\ncorpora:\n  - nabra\n")
        db_path = tmp_path / "manifest.db"

        assert main(["import", "--config", str(manifest), "--db", str(db_path)]) == 0
        assert main(["stats", "--db", str(db_path)]) == 0
        assert "Forms:     1" in capsys.readouterr().out

    def test_import_needs_a_source(self, tmp_path, capsys):
        assert main(["import", "--db", str(tmp_path / "x.db")]) == 1
        assert "--data-dir" in capsys.readouterr().out

    def test_unknown_corpus(self, tmp_path, data_dir, capsys):
        code = main([
            "import", "--data-dir", str(data_dir), "--db", str(tmp_path / "x.db"),
            "--corpus", "maltese",
        ])
        assert code == 1
        assert "Unknown corpus" in capsys.readouterr().out

    def test_abort_on_missing_source(self, tmp_path, data_dir, capsys):
        (data_dir / "Concepts.csv").unlink()
        code = main([
            "import", "--data-dir", str(data_dir), "--db", str(tmp_path / "x.db"),
        ])
        assert code == 1
        assert "nothing was written" in capsys.readouterr().out


class TestQueries:
    """Tests for the stats, search and corpora commands."""

    def test_stats(self, imported_db, capsys):
        capsys.readouterr()
        assert main(["stats", "--db", str(imported_db)]) == 0
        out = capsys.readouterr().out
        assert "Lemmas:    5" in out
        assert "Dialects:  8" in out

    def test_stats_missing_db(self, tmp_path, capsys):
        assert main(["stats", "--db", str(tmp_path / "absent.db")]) == 1

    @pytest.mark.parametrize("mode, text, lemma_id", [
        ("headword", "كتاب", "L1"),
        ("gloss", "want", "L4"),
        ("form", "مكتبة", "L3"),
        ("root", "ك ت ب", "L2"),
    ])
    def test_search(self, imported_db, capsys, mode, text, lemma_id):
        capsys.readouterr()
        assert main(["search", "--db", str(imported_db), "--by", mode, text]) == 0
        assert lemma_id in capsys.readouterr().out

    def test_search_unknown_root(self, imported_db, capsys):
        capsys.readouterr()
        code = main(["search", "--db", str(imported_db), "--by", "root", "ق ل م"])
        assert code == 1
        assert "Root not found" in capsys.readouterr().out

    def test_search_no_results(self, imported_db, capsys):
        capsys.readouterr()
        assert main(["search", "--db", str(imported_db), "zzz"]) == 0
        assert "No lemmas found." in capsys.readouterr().out

    def test_corpora(self, capsys):
        assert main(["corpora"]) == 0
        out = capsys.readouterr().out
        assert "lisan_yemeni" in out
        assert "CODA" in out

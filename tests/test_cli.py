"""Tests of the command line interface."""

import json

from pytest import fixture, raises

from matchedpairs import cli


@fixture
def table(tmp_path):
    path = tmp_path / "benzenes.csv"
    path.write_text(
        "name,smiles,logD\n"
        "toluene,Cc1ccccc1,1.0\n"
        "ethylbenzene,CCc1ccccc1,2.0\n"
        "chlorobenzene,Clc1ccccc1,1.5\n"
    )
    return path


@fixture
def data_file(table, tmp_path, capsys):
    path = tmp_path / "benzenes.mmp"
    assert cli.main(["build", str(table), str(path), "--name", "demo"]) == 0
    capsys.readouterr()
    return path


class TestCli:
    def test_build(self, data_file):
        text = data_file.read_text()
        assert '<dataset="demo">' in text
        assert "<mmprowcount=8>" in text

    def test_default_name(self, table, tmp_path, capsys):
        """Test that the input file name is the default data set name."""
        path = tmp_path / "out.mmp"
        assert cli.main(["build", str(table), str(path)]) == 0
        assert "dataset=benzenes" in capsys.readouterr().out

    def test_query_transformations(self, data_file, canonical, capsys):
        code = cli.main(
            [
                "query",
                str(data_file),
                "--keys",
                canonical("[1*]c1ccccc1"),
                "--value",
                canonical("[1*]C"),
                "--min-delta",
                "0",
            ]
        )
        assert code == 0
        document = json.loads(capsys.readouterr().out)
        assert [t["value2"] for t in document["transformations"]] == [
            canonical("[1*]Cl"),
            canonical("[1*]CC"),
        ]

    def test_query_chemical_space(self, data_file, canonical, capsys):
        code = cli.main(
            ["query", str(data_file), "--keys", canonical("[1*]c1ccccc1")]
        )
        assert code == 0
        document = json.loads(capsys.readouterr().out)
        assert document["chemical_space_size"] == 3
        assert [m["name"] for m in document["molecules"]] == [
            "toluene",
            "ethylbenzene",
            "chlorobenzene",
        ]

    def test_info(self, data_file, capsys):
        assert cli.main(["info", str(data_file)]) == 0
        document = json.loads(capsys.readouterr().out)
        assert document["name"] == "demo"
        assert [f["name"] for f in document["fields"]] == ["logD"]

    def test_missing_file(self, tmp_path):
        """Test that failures are reported through the exit code."""
        assert cli.main(["info", str(tmp_path / "missing.mmp")]) == 1

    def test_usage(self):
        with raises(SystemExit):
            cli.main(["query"])

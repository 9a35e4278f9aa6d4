"""Tests for CLI output helpers."""

import json

import yaml

from catexplorer.cli._output import print_error, print_object, print_table


def test_print_table_json(capsys):
    print_table(["prefix", "CAS"], [["batch/1/", "1"], ["batch/2/", "2"]], json_mode=True)
    out = capsys.readouterr().out
    data = json.loads(out)
    assert len(data) == 2
    assert data[0] == {"prefix": "batch/1/", "CAS": "1"}


def test_print_table_text(capsys):
    print_table(["prefix", "CAS"], [["batch/1/", ("1", "2")]], json_mode=False)
    out = capsys.readouterr().out
    lines = out.splitlines()
    assert lines[0].split() == ["prefix", "CAS"]
    assert "1; 2" in lines[2]


def test_print_table_empty(capsys):
    print_table(["prefix"], [], json_mode=False)
    out = capsys.readouterr().out
    assert out == ""


def test_print_object_json(capsys):
    print_object({"key": "val"}, fmt="json")
    out = capsys.readouterr().out
    assert json.loads(out) == {"key": "val"}


def test_print_object_yaml_keeps_key_order(capsys):
    print_object({"total": 3, "rows": [{"prefix": "batch/1/"}]}, fmt="yaml")
    out = capsys.readouterr().out
    assert out.startswith("total: 3\n")
    assert yaml.safe_load(out) == {"total": 3, "rows": [{"prefix": "batch/1/"}]}


def test_print_object_text(capsys):
    print_object({"key": "val", "list": ["a", "b"]})
    out = capsys.readouterr().out
    assert "key: val" in out
    assert "list: a; b" in out


def test_print_error(capsys):
    print_error("something broke")
    err = capsys.readouterr().err
    assert "Error: something broke" in err

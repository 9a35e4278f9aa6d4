"""Tests for CLI filter and column parsers."""

import pytest

from catexplorer.cli._filters import parse_cli_columns, parse_cli_filters
from catexplorer.errors import UnknownCategoryError, ValidationError
from catexplorer.facets import FilterCategory


def test_parse_empty():
    assert parse_cli_filters([]) == {}
    assert parse_cli_filters(None) == {}


def test_parse_single():
    assert parse_cli_filters(["cas=7732-18-5"]) == {FilterCategory.CAS: ["7732-18-5"]}


def test_repeated_category_accumulates():
    result = parse_cli_filters(["DEVICE=HPLC", "DEVICE=Chemspeed"])
    assert result == {FilterCategory.DEVICE: ["HPLC", "Chemspeed"]}


def test_comma_separated_values():
    result = parse_cli_filters(["CAMPAIGN_NAME=Alpha, Beta,,"])
    assert result == {FilterCategory.CAMPAIGN_NAME: ["Alpha", "Beta"]}


def test_value_may_contain_equals():
    result = parse_cli_filters(["SMILES=C=O"])
    assert result == {FilterCategory.SMILES: ["C=O"]}


def test_missing_separator():
    with pytest.raises(ValidationError, match="CATEGORY=VALUE"):
        parse_cli_filters(["SMILES"])


def test_unknown_category():
    with pytest.raises(UnknownCategoryError):
        parse_cli_filters(["SOLVENT=water"])


def test_parse_columns():
    assert parse_cli_columns(["cas,smiles", "DEVICE"]) == [
        FilterCategory.CAS,
        FilterCategory.SMILES,
        FilterCategory.DEVICE,
    ]
    assert parse_cli_columns(None) == []

"""Facet catalog: the closed set of searchable categories and their graph patterns."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from catexplorer.errors import UnknownCategoryError

SPARQL_PREFIXES = (
    "PREFIX schema: <https://schema.org/>\n"
    "PREFIX cat: <http://example.org/cat#>\n"
    "PREFIX allores: <http://purl.allotrope.org/ontologies/result#>\n"
)

# Top-level key of one logical record and the triple that types it.
KEY_VARIABLE = "s"
BASE_PATTERN = "?s a cat:Campaign ."

# Location column: the content URL the consolidator derives its group key from.
LOCATION_VARIABLE = "contentUrl"
LOCATION_PATTERN = "?s schema:contentURL ?contentUrl ."

# Separator used when non-group-key columns are aggregated with GROUP_CONCAT.
# ASCII unit separator: it does not occur in catalog values.
LIST_SEPARATOR = "\x1f"


class FilterCategory(str, Enum):
    """Searchable facets, in display order."""

    CAMPAIGN_NAME = "CAMPAIGN_NAME"
    REACTION_TYPE = "REACTION_TYPE"
    REACTION_NAME = "REACTION_NAME"
    CHEMICAL_NAME = "CHEMICAL_NAME"
    CAS = "CAS"
    SMILES = "SMILES"
    DEVICE = "DEVICE"

    @classmethod
    def parse(cls, value: FilterCategory | str) -> FilterCategory:
        """Resolve a category from an enum member or its name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise UnknownCategoryError(value)


class MatchMode(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"


@dataclass(frozen=True)
class FacetSpec:
    """How one category is bound and filtered in the compiled query.

    ``patterns`` is a tuple of single triples so that triples shared between
    categories (for example ``?s cat:hasBatch ?batch .``) collapse to one
    occurrence when several categories are compiled together.
    """

    variable: str
    patterns: tuple[str, ...]
    is_group_key: bool
    match: MatchMode = MatchMode.EQUALS

    @property
    def output_variable(self) -> str:
        """Name of the column this facet produces in the results query."""
        if self.is_group_key:
            return self.variable
        return f"{self.variable}_list"

    def select_expression(self) -> str:
        if self.is_group_key:
            return f"?{self.variable}"
        return (
            f'(GROUP_CONCAT(DISTINCT ?{self.variable}; separator="{LIST_SEPARATOR}") '
            f"AS ?{self.output_variable})"
        )


_BATCH = "?s cat:hasBatch ?batch ."
_CHEMICAL = "?s cat:hasChemical ?chemical ."
_DEVICE = "?s allores:AFR_0002526 ?deviceSystem ."

_CATALOG: Mapping[FilterCategory, FacetSpec] = MappingProxyType(
    {
        FilterCategory.CAMPAIGN_NAME: FacetSpec(
            variable="campaignName",
            patterns=("?s schema:name ?campaignName .",),
            is_group_key=True,
        ),
        FilterCategory.REACTION_TYPE: FacetSpec(
            variable="reactionType",
            patterns=(_BATCH, "?batch cat:reactionType ?reactionType ."),
            is_group_key=True,
        ),
        FilterCategory.REACTION_NAME: FacetSpec(
            variable="reactionName",
            patterns=(_BATCH, "?batch cat:reactionName ?reactionName ."),
            is_group_key=True,
        ),
        FilterCategory.CHEMICAL_NAME: FacetSpec(
            variable="chemicalName",
            patterns=(_CHEMICAL, "?chemical allores:AFR_0002292 ?chemicalName ."),
            is_group_key=False,
        ),
        FilterCategory.CAS: FacetSpec(
            variable="casNumber",
            patterns=(_CHEMICAL, "?chemical cat:casNumber ?casNumber ."),
            is_group_key=False,
        ),
        FilterCategory.SMILES: FacetSpec(
            variable="smiles",
            patterns=(_CHEMICAL, "?chemical allores:AFR_0002295 ?smiles ."),
            is_group_key=False,
        ),
        FilterCategory.DEVICE: FacetSpec(
            variable="deviceType",
            patterns=(
                _DEVICE,
                "?deviceSystem allores:AFR_0002722/allores:AFR_0002568 ?deviceType .",
            ),
            is_group_key=False,
            match=MatchMode.CONTAINS,
        ),
    }
)


def facet_for(category: FilterCategory | str) -> FacetSpec:
    """Return the FacetSpec of a category; unknown names raise UnknownCategoryError."""
    return _CATALOG[FilterCategory.parse(category)]


def all_categories() -> tuple[FilterCategory, ...]:
    """All categories in display order."""
    return tuple(FilterCategory)


def picklist_query(category: FilterCategory | str) -> str:
    """Query returning the distinct option values of one category."""
    facet = facet_for(category)
    body = "\n  ".join((BASE_PATTERN, *facet.patterns))
    return (
        f"{SPARQL_PREFIXES}"
        f"SELECT DISTINCT ?{facet.variable} WHERE {{\n  {body}\n}}\n"
        f"ORDER BY ASC(?{facet.variable})"
    )

"""Pipeline stage names and their spellings.

Each stage has one canonical name plus the alternative spellings found in
existing LQL sources (``where`` for ``filter``, ``take`` for ``limit``,
camel-cased ``orderBy``, ...).  Lookups are exact: ``selectt`` is not a
stage.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

StageName = Literal[
    "filter",
    "join",
    "left_join",
    "group_by",
    "having",
    "select",
    "order_by",
    "limit",
    "offset",
    "distinct",
    "union",
]


@dataclass(frozen=True)
class StageSpelling:
    """How a written stage name maps onto a canonical stage.

    Attributes:
        canonical: The canonical stage name.
        default_direction: Sort direction implied by the spelling
            (``orderByDesc``), for ``order_by`` only.
    """

    canonical: StageName
    default_direction: Literal["asc", "desc"] = "asc"


STAGE_SPELLINGS: dict[str, StageSpelling] = {
    "filter": StageSpelling("filter"),
    "where": StageSpelling("filter"),
    "join": StageSpelling("join"),
    "inner_join": StageSpelling("join"),
    "left_join": StageSpelling("left_join"),
    "leftJoin": StageSpelling("left_join"),
    "group_by": StageSpelling("group_by"),
    "groupBy": StageSpelling("group_by"),
    "having": StageSpelling("having"),
    "select": StageSpelling("select"),
    "order_by": StageSpelling("order_by"),
    "orderBy": StageSpelling("order_by"),
    "orderByDesc": StageSpelling("order_by", default_direction="desc"),
    "limit": StageSpelling("limit"),
    "take": StageSpelling("limit"),
    "offset": StageSpelling("offset"),
    "skip": StageSpelling("offset"),
    "distinct": StageSpelling("distinct"),
    "union": StageSpelling("union"),
}

#: Stages that may appear at most once in a pipeline.
SINGLETON_STAGES: frozenset[str] = frozenset({"select", "limit", "offset"})


def lookup_stage(name: str) -> StageSpelling | None:
    """Return the spelling entry for ``name``, or ``None`` if unknown."""
    return STAGE_SPELLINGS.get(name)


def known_stage_names() -> list[str]:
    """Return every accepted stage spelling, sorted."""
    return sorted(STAGE_SPELLINGS)

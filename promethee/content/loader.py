"""Static content loader — reads buildings and skill trees, fails fast.

Reads ``content/buildings.json`` and ``content/skill_trees.json`` once at
startup, validates them with Pydantic, then checks the structural rules
Pydantic cannot see on a single object:

- building tiers start at exigence 0 and are strictly increasing
- one building and one skill tree per domain
- every building category and tree domain has a routing-table entry
- node ids are unique across all trees
- a node's parent exists in the same tree, and parent chains never cycle

Any violation raises ``InvariantViolation``. Broken static data is never
tolerated — the tier resolver divides by threshold differences and the
unlock gate walks parent references.

Tier 2 module: imports from ``promethee.content.schemas`` (Tier 1),
``promethee.progress.rules`` (Tier 1) and ``promethee.errors``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from promethee.content.schemas import (
    BuildingDefinition,
    SkillNode,
    SkillTreeDefinition,
)
from promethee.errors import InvariantViolation
from promethee.progress.rules import BUILDING_METRICS, DOMAIN_SKILL_KEYS

logger = logging.getLogger("promethee.content.loader")

BUILDINGS_FILE = "buildings.json"
SKILL_TREES_FILE = "skill_trees.json"

_buildings_adapter = TypeAdapter(list[BuildingDefinition])
_trees_adapter = TypeAdapter(list[SkillTreeDefinition])


@dataclass(frozen=True)
class StaticContent:
    """Validated static content, loaded once per process.

    Attributes:
        buildings: Building definitions in file order.
        skill_trees: Skill tree definitions in file order.
    """

    buildings: tuple[BuildingDefinition, ...]
    skill_trees: tuple[SkillTreeDefinition, ...]


# ---------------------------------------------------------------------------
# File reading
# ---------------------------------------------------------------------------


def _read_json(path: Path) -> Any:
    """Reads and parses a JSON file, mapping I/O and syntax errors."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvariantViolation(str(path), f"cannot read file: {exc}") from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvariantViolation(str(path), f"invalid JSON: {exc}") from exc


def _format_validation_error(exc: ValidationError) -> str:
    """Summarises the first Pydantic error as 'loc -> path: message'."""
    first = exc.errors()[0]
    loc = " -> ".join(str(part) for part in first.get("loc", []))
    return f"{loc}: {first.get('msg', 'validation error')}"


# ---------------------------------------------------------------------------
# Buildings
# ---------------------------------------------------------------------------


def validate_buildings(
    buildings: list[BuildingDefinition], source: str = "buildings"
) -> None:
    """Checks tier ordering and category coverage.

    Raises:
        InvariantViolation: On the first broken rule.
    """
    seen: set[str] = set()
    for building in buildings:
        where = f"{source}[{building.domaine}]"
        if building.domaine in seen:
            raise InvariantViolation(where, "duplicate building category")
        seen.add(building.domaine)

        if building.domaine not in BUILDING_METRICS:
            raise InvariantViolation(where, "no metric mapped for this category")

        first = building.progression[0]
        if first.exigence != 0:
            raise InvariantViolation(
                where, f"first tier must require 0, got {first.exigence}"
            )
        for previous, current in zip(building.progression, building.progression[1:]):
            if current.exigence <= previous.exigence:
                raise InvariantViolation(
                    where,
                    f"tier thresholds must be strictly increasing "
                    f"({previous.exigence} then {current.exigence})",
                )


def load_buildings(path: Path) -> tuple[BuildingDefinition, ...]:
    """Loads and validates building definitions from a JSON array file."""
    data = _read_json(path)
    try:
        buildings = _buildings_adapter.validate_python(data)
    except ValidationError as exc:
        raise InvariantViolation(str(path), _format_validation_error(exc)) from exc
    validate_buildings(buildings, source=str(path))
    return tuple(buildings)


# ---------------------------------------------------------------------------
# Skill trees
# ---------------------------------------------------------------------------


def _check_parent_chains(nodes: dict[str, SkillNode], where: str) -> None:
    """Ensures every parent resolves inside ``nodes`` and no chain loops."""
    for node in nodes.values():
        if node.parent_id is not None and node.parent_id not in nodes:
            raise InvariantViolation(
                where,
                f"node {node.id!r} references parent {node.parent_id!r} "
                f"outside its tree",
            )

    for start in nodes.values():
        visited = {start.id}
        current = start
        while current.parent_id is not None:
            if current.parent_id in visited:
                raise InvariantViolation(
                    where, f"parent cycle through node {start.id!r}"
                )
            visited.add(current.parent_id)
            current = nodes[current.parent_id]


def validate_skill_trees(
    trees: list[SkillTreeDefinition], source: str = "skill_trees"
) -> None:
    """Checks domain coverage, id uniqueness and parent references.

    Raises:
        InvariantViolation: On the first broken rule.
    """
    seen_domains: set[str] = set()
    seen_ids: set[str] = set()
    for tree in trees:
        where = f"{source}[{tree.domain}]"
        if tree.domain in seen_domains:
            raise InvariantViolation(where, "duplicate skill tree domain")
        seen_domains.add(tree.domain)

        if tree.domain not in DOMAIN_SKILL_KEYS:
            raise InvariantViolation(where, "no skill key mapped for this domain")

        tree_nodes: dict[str, SkillNode] = {}
        for branch in tree.branches:
            for node in branch.nodes:
                if node.id in seen_ids:
                    raise InvariantViolation(where, f"duplicate node id {node.id!r}")
                seen_ids.add(node.id)
                tree_nodes[node.id] = node

        _check_parent_chains(tree_nodes, where)


def load_skill_trees(path: Path) -> tuple[SkillTreeDefinition, ...]:
    """Loads and validates skill tree definitions from a JSON array file."""
    data = _read_json(path)
    try:
        trees = _trees_adapter.validate_python(data)
    except ValidationError as exc:
        raise InvariantViolation(str(path), _format_validation_error(exc)) from exc
    validate_skill_trees(trees, source=str(path))
    return tuple(trees)


def load_content(content_dir: Path) -> StaticContent:
    """Loads all static content from a content directory.

    Args:
        content_dir: Directory holding buildings.json and skill_trees.json.

    Returns:
        The validated StaticContent.

    Raises:
        InvariantViolation: If any file is missing, unparseable or breaks
            a structural rule.
    """
    buildings = load_buildings(content_dir / BUILDINGS_FILE)
    trees = load_skill_trees(content_dir / SKILL_TREES_FILE)
    node_count = sum(len(b.nodes) for t in trees for b in t.branches)
    logger.info(
        "Static content loaded: %d building(s), %d skill tree(s), %d node(s)",
        len(buildings),
        len(trees),
        node_count,
    )
    return StaticContent(buildings=buildings, skill_trees=trees)

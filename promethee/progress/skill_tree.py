"""Skill tree catalog and unlock gate.

The catalog indexes the validated skill trees by node id and records which
skill's points pay for each node — the skill of the node's tree domain,
taken from the closed DOMAIN_SKILL_KEYS table. Node ids carry no routing
meaning.

The gate is stateless: balances change after every reward, so callers ask
again at every decision point.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from promethee.content.schemas import SkillNode, SkillTreeDefinition
from promethee.progress.rules import skill_key_for
from promethee.schemas import SkillKey, UserState


@dataclass(frozen=True)
class CatalogEntry:
    """A node with the tree context needed to price it."""

    node: SkillNode
    domain: str
    branch_id: str
    skill_key: SkillKey


class SkillTreeCatalog:
    """Node-id index over validated skill trees.

    Args:
        trees: Skill trees already checked by content.loader (unique ids,
            resolvable parents, mapped domains).
    """

    def __init__(self, trees: Sequence[SkillTreeDefinition]) -> None:
        self._trees = tuple(trees)
        self._entries: dict[str, CatalogEntry] = {}
        for tree in self._trees:
            key = skill_key_for(tree.domain)
            for branch in tree.branches:
                for node in branch.nodes:
                    self._entries[node.id] = CatalogEntry(
                        node=node,
                        domain=tree.domain,
                        branch_id=branch.id,
                        skill_key=key,
                    )

    @property
    def trees(self) -> tuple[SkillTreeDefinition, ...]:
        return self._trees

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._entries

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries.values())

    def get(self, node_id: str) -> CatalogEntry | None:
        """Returns the entry for a node id, or None if unknown."""
        return self._entries.get(node_id)


def is_unlocked(state: UserState, node_id: str) -> bool:
    return node_id in state.unlocked_nodes


def can_unlock(state: UserState, node: SkillNode, skill_key: SkillKey) -> bool:
    """Decides whether ``node`` may be bought right now.

    False if the node is already unlocked, if its parent is not unlocked,
    or if the balance of its currency (build points, or the skill points of
    ``skill_key``) is below its cost.
    """
    if is_unlocked(state, node.id):
        return False
    if node.parent_id is not None and not is_unlocked(state, node.parent_id):
        return False
    if node.cost_type == "BP":
        return state.build_points >= node.cost
    return state.skill_points[skill_key] >= node.cost

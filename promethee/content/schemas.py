"""Static content models — building tiers and skill trees.

Shapes of the two files under content/: the town's buildings (one ordered
tier list per category) and the skill trees (one tree per domain, split into
branches of nodes). Structural invariants that span several objects (strictly
increasing thresholds, parent references) are checked by the loader, which
knows the file each definition came from.

Tier 1 leaf module: imports only pydantic, stdlib and promethee.schemas.

Usage:
    from promethee.content.schemas import BuildingDefinition, SkillNode
"""

from pydantic import BaseModel, ConfigDict, Field

from promethee.schemas import CostType, Domain


# ---------------------------------------------------------------------------
# Buildings
# ---------------------------------------------------------------------------


class BuildingLevel(BaseModel):
    """One tier of a building, reached when the category metric >= exigence."""

    model_config = ConfigDict(frozen=True)

    niveau: int = Field(ge=1)
    titre: str
    description_visuelle: str
    exigence: int = Field(ge=0)
    unite_exigence: str


class BuildingDefinition(BaseModel):
    """A building's full progression, ordered by ascending exigence."""

    model_config = ConfigDict(frozen=True)

    domaine: Domain
    progression: tuple[BuildingLevel, ...] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Skill trees
# ---------------------------------------------------------------------------


class SkillNode(BaseModel):
    """A purchasable node. Unlock state lives in UserState.unlocked_nodes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    description: str
    cost: int = Field(ge=0)
    cost_type: CostType = Field(alias="costType")
    parent_id: str | None = Field(default=None, alias="parentId")
    perk: str | None = None


class SkillBranch(BaseModel):
    """A named chain of nodes inside one domain's tree."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    nodes: tuple[SkillNode, ...]


class SkillTreeDefinition(BaseModel):
    """All branches for one domain."""

    model_config = ConfigDict(frozen=True)

    domain: Domain
    branches: tuple[SkillBranch, ...]

"""Closed routing tables and reward constants for the progress state machine.

Every place that turns a domain or building category into a skill key or a
stat counter goes through one of these tables. They are total over the
Domain vocabulary, except the quest stat counters: Conduite, Bibliothèque
and Horlogerie get no generated quests and have no counter here. Content
loading validates against them, so an unmapped category is a load-time
error rather than a silent fallback.

Tier 1 leaf module: imports only promethee.schemas.
"""

from promethee.schemas import Domain, SkillKey

# Domain → skill key. Total over Domain.
DOMAIN_SKILL_KEYS: dict[str, str] = {
    "Anglais": "anglais",
    "Développement Web": "webDev",
    "Ingénierie IA": "aiEngineering",
    "Conduite": "conduite",
    "Bibliothèque": "bibliotheque",
    "Horlogerie": "horlogerie",
}

# Domain → UserStats field bumped by one on quest completion.
# Conduite, Bibliothèque and Horlogerie have no generated quests.
QUEST_STAT_COUNTERS: dict[str, str] = {
    "Anglais": "words_mastered",
    "Ingénierie IA": "prompts_tested",
    "Développement Web": "code_quests_completed",
}

# Building category → UserStats field used as the tier metric. Total over Domain.
BUILDING_METRICS: dict[str, str] = {
    "Développement Web": "code_quests_completed",
    "Anglais": "words_mastered",
    "Ingénierie IA": "prompts_tested",
    "Conduite": "km_driven",
    "Bibliothèque": "books_read",
    "Horlogerie": "watches_fixed",
}

# Rewards
QUEST_COIN_RATE = 0.2
SKILL_GAIN_CHANCE = 0.5
SKILL_STEP = 0.1
STEP_XP = 10
STEP_COINS = 1
QUIZ_XP_PER_CORRECT = 30
QUIZ_COINS_PER_CORRECT = 5
CHALLENGE_XP_PER_POINT = 2
CHALLENGE_MAX_SCORE = 100

# Freecodecamp "Responsive Web Design" curriculum length. Display only.
TOTAL_STEPS = 1445


def skill_key_for(domain: Domain) -> SkillKey:
    """Returns the skill key for a domain. KeyError if the domain is unknown."""
    return DOMAIN_SKILL_KEYS[domain]  # type: ignore[return-value]

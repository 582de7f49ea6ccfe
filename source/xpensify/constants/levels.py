"""The named level tiers used by the banded leveling strategy.

Tiers are contiguous and non-overlapping; the last one is open-ended.
"""

from xpensify.models.profiles import LevelDefinition

LEVEL_DEFINITIONS: tuple[LevelDefinition, ...] = (
    LevelDefinition(level=1, name="Budget Beginner", min_xp=0, max_xp=100),
    LevelDefinition(level=2, name="Penny Saver", min_xp=100, max_xp=250),
    LevelDefinition(level=3, name="Smart Spender", min_xp=250, max_xp=450),
    LevelDefinition(level=4, name="Money Manager", min_xp=450, max_xp=700),
    LevelDefinition(level=5, name="Finance Expert", min_xp=700, max_xp=1000),
    LevelDefinition(level=6, name="Savings Strategist", min_xp=1000, max_xp=1400),
    LevelDefinition(level=7, name="Wealth Builder", min_xp=1400, max_xp=1900),
    LevelDefinition(level=8, name="Investment Pro", min_xp=1900, max_xp=2600),
    LevelDefinition(level=9, name="Money Mentor", min_xp=2600, max_xp=3500),
    LevelDefinition(level=10, name="Financial Freedom Master", min_xp=3500, max_xp=None),
)

import re
from typing import List, Optional, Sequence, Tuple

from backend.hiring.config import SCORING_RULES
from backend.hiring.taxonomy import SkillTaxonomy

POSITION_TOKEN_SPLIT = re.compile(r"[\s,\-/]+")


# ------------------------------------------------------
# BASIC HELPERS
# ------------------------------------------------------
def normalize(text):
    """Lowercase and trim."""
    return (text or "").strip().lower()


def tokenize_position(position) -> List[str]:
    """Split a free-text position on whitespace, commas, hyphens and slashes."""
    return [tok for tok in POSITION_TOKEN_SPLIT.split(normalize(position)) if tok]


def _related(a: str, b: str) -> bool:
    """True if either lower-cased string contains the other."""
    return a in b or b in a


# ------------------------------------------------------
# TAXONOMY RESOLUTION
# ------------------------------------------------------
def match_position(position, taxonomy: SkillTaxonomy) -> Optional[Tuple[str, Tuple[str, ...]]]:
    """
    Find the taxonomy entry for a free-text position.

    An entry matches when its name contains the position or the position
    contains its name, case-insensitively. The first matching entry in
    declaration order wins, so "Full Stack Frontend Developer" resolves to
    whichever of the two entries is declared first.
    """
    wanted = normalize(position)
    if not wanted:
        return None
    for name, skills in taxonomy:
        if _related(wanted, name.lower()):
            return name, skills
    return None


def extract_adhoc_skills(position, taxonomy: SkillTaxonomy) -> Tuple[str, ...]:
    """Pull skills from the whole taxonomy that relate to any token of the position."""
    tokens = tokenize_position(position)
    if not tokens:
        return ()
    picked = []
    for skill in taxonomy.all_skills():
        skill_lower = skill.lower()
        if any(_related(tok, skill_lower) for tok in tokens):
            picked.append(skill)
    return tuple(picked)


def resolve_required_skills(
    position,
    taxonomy: SkillTaxonomy,
    default: Optional[Sequence[str]] = None,
) -> Tuple[str, ...]:
    """
    Required skills for the recommendation path.

    Resolution order:
    1. Taxonomy entry matched by name (see match_position).
    2. Skills extracted ad hoc from the position's tokens.
    3. The fixed default set from SCORING_RULES.
    """
    matched = match_position(position, taxonomy)
    if matched:
        return matched[1]
    adhoc = extract_adhoc_skills(position, taxonomy)
    if adhoc:
        return adhoc
    if default is None:
        default = SCORING_RULES["default_required_skills"]
    return tuple(default)

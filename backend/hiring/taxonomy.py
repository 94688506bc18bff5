"""
Skill taxonomies: canonical position names mapped to their required skills.

A taxonomy is an immutable value that is passed to the matcher and the
scorers, so callers (and tests) can swap in their own.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple


@dataclass(frozen=True)
class SkillTaxonomy:
    entries: Tuple[Tuple[str, Tuple[str, ...]], ...]

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Sequence[str]]) -> "SkillTaxonomy":
        """Build a taxonomy from an ordered dict; declaration order is kept."""
        entries = []
        for position, skills in mapping.items():
            cleaned = tuple(s.strip() for s in skills if s and s.strip())
            if not position or not position.strip():
                raise ValueError("Taxonomy position names must be non-empty")
            if not cleaned:
                raise ValueError(f"Taxonomy entry '{position}' has no skills")
            entries.append((position.strip(), cleaned))
        return cls(tuple(entries))

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)

    def skills_for(self, position: str) -> Optional[Tuple[str, ...]]:
        """Exact (case-insensitive) lookup by canonical name."""
        wanted = (position or "").strip().lower()
        for name, skills in self.entries:
            if name.lower() == wanted:
                return skills
        return None

    def all_skills(self) -> Tuple[str, ...]:
        """Union of every entry's skills, first occurrence wins."""
        seen = set()
        ordered = []
        for _, skills in self.entries:
            for skill in skills:
                key = skill.lower()
                if key not in seen:
                    seen.add(key)
                    ordered.append(skill)
        return tuple(ordered)


# Used when a candidate is created; its score is stored with the record.
MATCHING_TAXONOMY = SkillTaxonomy.from_mapping({
    "Frontend Developer": ["React", "TypeScript", "JavaScript", "CSS", "HTML"],
    "Backend Developer": ["Node.js", "Python", "SQL", "REST API", "Docker"],
    "Full Stack Developer": ["React", "Node.js", "TypeScript", "SQL", "Docker"],
    "Data Scientist": ["Python", "SQL", "Machine Learning", "TensorFlow", "Pandas"],
    "DevOps Engineer": ["Docker", "Kubernetes", "AWS", "CI/CD", "Linux"],
    "Mobile Developer": ["React Native", "TypeScript", "iOS", "Android", "REST API"],
})

# Used by the recommendation endpoint; wider than the matching taxonomy.
RECOMMENDATION_TAXONOMY = SkillTaxonomy.from_mapping({
    "Frontend Developer": ["React", "TypeScript", "JavaScript", "CSS", "HTML", "Vue.js", "Angular"],
    "Backend Developer": ["Node.js", "Python", "Java", "SQL", "REST API", "Docker", "MongoDB"],
    "Full Stack Developer": ["React", "Node.js", "TypeScript", "SQL", "Docker", "MongoDB", "AWS"],
    "Data Scientist": ["Python", "SQL", "Machine Learning", "TensorFlow", "Pandas", "R", "Statistics"],
    "DevOps Engineer": ["Docker", "Kubernetes", "AWS", "CI/CD", "Linux", "Terraform", "Jenkins"],
    "Mobile Developer": ["React Native", "TypeScript", "iOS", "Android", "REST API", "Swift", "Kotlin"],
    "UI/UX Designer": ["Figma", "Sketch", "Adobe XD", "CSS", "User Research", "Prototyping"],
    "QA Engineer": ["Selenium", "Jest", "Cypress", "Manual Testing", "API Testing", "SQL"],
})

"""
Standard-Entity Matcher.

Scores each entity of a SchemaModel against the standard-entity catalog and
returns ranked candidates with a confidence in [0, 1]. Matching is advisory
and read-only: nothing in the model changes.

Scoring:
- Exact id or display name (after normalization): 1.0
- Alias: 0.85 plus up to 0.1 for attribute overlap
- Otherwise: 0.4 * name similarity + 0.6 * attribute overlap

Name similarity is ``1 - levenshtein / longer length`` over normalized
names. An attribute overlaps a canonical attribute when the normalized
names are equal, when both are at least five characters and at most two
edits apart, or when both carry the same semantic role (email, phone, url).

Usage:
    from formats.erd.cdm_matcher import StandardEntityMatcher

    matcher = StandardEntityMatcher(threshold=0.3)
    matches = matcher.match_model(model)
    print(matcher.summarize(matches))
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from constants import MatchingConfig

from .cdm_catalog import DEFAULT_CATALOG, CanonicalAttribute, StandardEntity
from .erd_models import Attribute, Entity, SchemaModel, SemanticType

logger = logging.getLogger(__name__)

ROLE_TYPES = frozenset({
    SemanticType.EMAIL.value,
    SemanticType.PHONE.value,
    SemanticType.URL.value,
})


def normalize_name(name: str) -> str:
    """Lower-case, drop non-alphanumerics and one trailing ``s``."""
    normalized = re.sub(r"[^a-z0-9]", "", name.strip().lower())
    if len(normalized) > 1 and normalized.endswith("s"):
        normalized = normalized[:-1]
    return normalized


def levenshtein(left: str, right: str) -> int:
    """Edit distance (insert, delete, substitute) between two strings."""
    if left == right:
        return 0
    if not left:
        return len(right)
    if not right:
        return len(left)
    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (left_char != right_char),
            ))
        previous = current
    return previous[-1]


def name_similarity(left: str, right: str) -> float:
    longest = max(len(left), len(right))
    if longest == 0:
        return 0.0
    return 1.0 - levenshtein(left, right) / longest


def confidence_level(confidence: float) -> str:
    if confidence >= MatchingConfig.HIGH_CONFIDENCE:
        return "high"
    if confidence >= MatchingConfig.MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


@dataclass(frozen=True)
class StandardEntityMatch:
    """
    A candidate standard entity for one user entity.

    Attributes:
        entity: User entity name.
        standard_id: Catalog id (logical name).
        display_name: Catalog display name.
        confidence: Score in [0, 1], rounded to four places.
        match_type: ``exact``, ``alias`` or ``fuzzy``.
        matched_attributes: User attributes that overlap canonical ones.
        reasons: Human-readable explanation.
    """
    entity: str
    standard_id: str
    display_name: str
    confidence: float
    match_type: str
    matched_attributes: Tuple[str, ...] = ()
    reasons: Tuple[str, ...] = ()

    @property
    def level(self) -> str:
        return confidence_level(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "entity": self.entity,
            "standardEntity": self.standard_id,
            "displayName": self.display_name,
            "confidence": self.confidence,
            "level": self.level,
            "matchType": self.match_type,
        }
        if self.matched_attributes:
            result["matchedAttributes"] = list(self.matched_attributes)
        if self.reasons:
            result["reasons"] = list(self.reasons)
        return result


@dataclass
class MatchReport:
    """Matches for every entity of a model, in model order."""
    matches: Dict[str, List[StandardEntityMatch]] = field(default_factory=dict)

    def best(self, entity_name: str) -> Optional[StandardEntityMatch]:
        candidates = self.matches.get(entity_name) or []
        return candidates[0] if candidates else None

    @property
    def best_matches(self) -> List[StandardEntityMatch]:
        return [c[0] for c in self.matches.values() if c]

    def to_dict(self) -> Dict[str, Any]:
        return {
            name: [m.to_dict() for m in candidates]
            for name, candidates in self.matches.items()
        }


class StandardEntityMatcher:
    """
    Fuzzy-match user entities against the standard-entity catalog.

    Example:
        >>> matcher = StandardEntityMatcher()
        >>> matcher.match(contact_entity)[0].confidence
        1.0
    """

    def __init__(
        self,
        catalog: Sequence[StandardEntity] = DEFAULT_CATALOG,
        threshold: float = MatchingConfig.DEFAULT_THRESHOLD,
    ):
        """
        Initialize the matcher.

        Args:
            catalog: Standard entities to match against (never modified).
            threshold: Candidates scoring below this are omitted.
        """
        self.catalog: Tuple[StandardEntity, ...] = tuple(catalog)
        self.threshold = threshold

    def match(self, entity: Entity) -> List[StandardEntityMatch]:
        """Ranked candidates for one entity (confidence desc, then catalog order)."""
        scored = []
        for index, standard in enumerate(self.catalog):
            candidate = self.score(entity, standard)
            if candidate.confidence > 0 and candidate.confidence >= self.threshold:
                scored.append((index, candidate))
        scored.sort(key=lambda item: (-item[1].confidence, item[0]))
        return [candidate for _, candidate in scored]

    def match_model(self, model: SchemaModel) -> MatchReport:
        report = MatchReport()
        for entity in model.entities:
            report.matches[entity.name] = self.match(entity)
        logger.info(
            f"Standard-entity matching: {len(report.best_matches)} of "
            f"{len(model.entities)} entities have candidates"
        )
        return report

    def score(self, entity: Entity, standard: StandardEntity) -> StandardEntityMatch:
        """Score one entity against one standard entity."""
        name = normalize_name(entity.name)
        attributes = [a for a in entity.attributes if not is_synthetic_key(a)]
        matched = matched_attributes(attributes, standard.attributes)
        overlap = len(matched) / len(attributes) if attributes else 0.0

        if name and name in (normalize_name(standard.id), normalize_name(standard.display_name)):
            confidence = MatchingConfig.EXACT_MATCH_SCORE
            match_type = "exact"
            reasons = [f"Name matches standard entity '{standard.display_name}'"]
        elif name and name in {normalize_name(alias) for alias in standard.aliases}:
            confidence = MatchingConfig.ALIAS_MATCH_SCORE + MatchingConfig.ALIAS_ATTRIBUTE_BONUS * overlap
            match_type = "alias"
            reasons = [f"'{entity.name}' is a common alias of '{standard.display_name}'"]
        else:
            similarity = max(
                name_similarity(name, normalize_name(standard.id)),
                name_similarity(name, normalize_name(standard.display_name)),
            )
            confidence = MatchingConfig.NAME_WEIGHT * similarity + MatchingConfig.ATTRIBUTE_WEIGHT * overlap
            match_type = "fuzzy"
            reasons = [f"Name similarity {similarity:.2f}"]
        if matched:
            reasons.append(f"{len(matched)} of {len(attributes)} attributes match")

        return StandardEntityMatch(
            entity=entity.name,
            standard_id=standard.id,
            display_name=standard.display_name,
            confidence=round(min(confidence, 1.0), 4),
            match_type=match_type,
            matched_attributes=tuple(matched),
            reasons=tuple(reasons),
        )

    def summarize(self, report: MatchReport) -> Dict[str, Any]:
        """
        Summarize a match report.

        Returns:
            Dict with totalEntitiesAnalyzed, cdmMatchesFound, customEntities,
            overallConfidence and recommendations.
        """
        best = report.best_matches
        total = len(report.matches)
        if best:
            average = sum(m.confidence for m in best) / len(best)
            overall = confidence_level(average)
        else:
            overall = "none"

        recommendations = []
        for match in best:
            if match.match_type != "exact" and match.level in ("high", "medium"):
                recommendations.append(
                    f"Consider the standard '{match.display_name}' entity instead of custom "
                    f"entity '{match.entity}' ({match.level} confidence)."
                )
        matched_ids = {m.standard_id for m in best if m.level in ("high", "medium")}
        if {"account", "contact"} <= matched_ids:
            recommendations.append(
                "Account and Contact are both present: use the standard parent customer "
                "relationship between them."
            )
        if "opportunity" in matched_ids:
            if "account" in matched_ids:
                recommendations.append(
                    "Opportunity and Account are both present: relate opportunities to "
                    "their customer account."
                )
            else:
                recommendations.append(
                    "Opportunity without Account: consider adding Account to model the customer."
                )

        return {
            "totalEntitiesAnalyzed": total,
            "cdmMatchesFound": len(best),
            "customEntities": total - len(best),
            "overallConfidence": overall,
            "recommendations": recommendations,
        }


def attribute_role(attribute: Attribute) -> Optional[str]:
    return attribute.data_type if attribute.data_type in ROLE_TYPES else None


def attributes_match(attribute: Attribute, canonical: CanonicalAttribute) -> bool:
    left = normalize_name(attribute.name)
    right = normalize_name(canonical.name)
    if left and left == right:
        return True
    if (
        min(len(left), len(right)) >= MatchingConfig.MIN_FUZZY_ATTRIBUTE_LENGTH
        and levenshtein(left, right) <= MatchingConfig.MAX_ATTRIBUTE_EDIT_DISTANCE
    ):
        return True
    role = attribute_role(attribute)
    return role is not None and role == canonical.role


def is_synthetic_key(attribute: Attribute) -> bool:
    """Primary key added by the fix engine rather than written in the source."""
    return attribute.is_primary_key and attribute.line is None


def matched_attributes(
    attributes: Sequence[Attribute],
    canonical: Sequence[CanonicalAttribute],
) -> List[str]:
    """User attribute names that overlap at least one canonical attribute."""
    return [
        attribute.name
        for attribute in attributes
        if any(attributes_match(attribute, c) for c in canonical)
    ]

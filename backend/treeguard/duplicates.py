"""Duplicate person detection using fuzzy matching on names, dates, places and parents."""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from .config import settings
from .models import DuplicateDetectionResult, DuplicateMatch, Person
from .similarity import string_similarity

logger = logging.getLogger("treeguard.duplicates")

# Points each signal contributes to the running maximum
NAME_WEIGHT = 40
NAME_EXACT_BONUS = 5
BIRTH_YEAR_WEIGHT = 25
BIRTH_PLACE_WEIGHT = 15
PARENT_WEIGHT = 20
GENDER_CONFLICT_FACTOR = 0.3


@dataclass
class PairScore:
    """Raw evaluation of one pair, before the reporting threshold is applied."""
    score: float = 0.0
    max_score: float = 0.0
    reasons: list[str] = field(default_factory=list)

    @property
    def confidence(self) -> int:
        if self.max_score <= 0:
            return 0
        return _round_half_up(self.score / self.max_score * 100)


def _round_half_up(value: float) -> int:
    # round() would send 28.5 to 28
    return int(math.floor(value + 0.5))


def _full_name(person: Person) -> str:
    return f"{person.first_name or ''} {person.last_name or ''}".strip().lower()


def _same_text(a: str | None, b: str | None) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


def compare_people(person1: Person, person2: Person) -> PairScore:
    """
    Score how likely two people are the same individual.

    Signals are evaluated in a fixed order (name, birth year, birthplace,
    parents) and the reasons list follows that order. A definite gender
    mismatch multiplies the accumulated score by 0.3.
    """
    result = PairScore()

    # 1. NAME (40 points + exact-match bonuses)
    name1 = _full_name(person1)
    name2 = _full_name(person2)
    if name1 and name2:
        result.max_score += NAME_WEIGHT
        name_similarity = string_similarity(name1, name2)
        result.score += name_similarity * NAME_WEIGHT

        percent = _round_half_up(name_similarity * 100)
        if name_similarity > 0.8:
            result.reasons.append(f"Names are {percent}% similar")
        elif name_similarity > 0.6:
            result.reasons.append(f"Names have some similarity ({percent}%)")

        if _same_text(person1.first_name, person2.first_name):
            result.score += NAME_EXACT_BONUS
            result.max_score += NAME_EXACT_BONUS

        if _same_text(person1.last_name, person2.last_name):
            result.score += NAME_EXACT_BONUS
            result.max_score += NAME_EXACT_BONUS
            if name_similarity <= 0.8:
                result.reasons.append("Same last name")

    # 2. BIRTH YEAR PROXIMITY (25 points)
    year1 = person1.birth_year
    year2 = person2.birth_year
    if year1 is not None and year2 is not None:
        result.max_score += BIRTH_YEAR_WEIGHT
        year_diff = abs(year1 - year2)
        if year_diff == 0:
            result.score += 25
            result.reasons.append("Same birth year")
        elif year_diff <= 1:
            result.score += 20
            result.reasons.append("Birth years within 1 year")
        elif year_diff <= 3:
            result.score += 15
            result.reasons.append(f"Birth years within {year_diff} years")
        elif year_diff <= 5:
            result.score += 8
        # else: 0 points for >5 year difference

    # 3. BIRTH PLACE (15 points)
    if person1.place_of_birth and person2.place_of_birth:
        result.max_score += BIRTH_PLACE_WEIGHT
        place_similarity = string_similarity(person1.place_of_birth, person2.place_of_birth)
        result.score += place_similarity * BIRTH_PLACE_WEIGHT
        if place_similarity > 0.7:
            result.reasons.append("Similar birthplace")

    # 4. SHARED PARENTS (20 points)
    other_parents = {person2.parent_id1, person2.parent_id2} - {None}
    shared = [pid for pid in (person1.parent_id1, person1.parent_id2) if pid and pid in other_parents]
    if shared:
        result.max_score += PARENT_WEIGHT
        if len(shared) == 2:
            result.score += 20
            result.reasons.append("Same parents")
        else:
            result.score += 12
            result.reasons.append("Share one parent")

    # 5. GENDER CONFLICT (penalty on score only)
    if (
        person1.gender != "unknown"
        and person2.gender != "unknown"
        and person1.gender != person2.gender
    ):
        result.score *= GENDER_CONFLICT_FACTOR

    return result


def find_duplicate(
    person1: Person,
    person2: Person,
    min_confidence: int | None = None,
) -> DuplicateMatch | None:
    """Return a DuplicateMatch when the pair clears the reporting threshold."""
    if person1.id == person2.id:
        return None

    threshold = settings.duplicate_min_confidence if min_confidence is None else min_confidence
    pair = compare_people(person1, person2)
    confidence = pair.confidence

    if confidence >= threshold and pair.reasons:
        return DuplicateMatch(
            person1=person1,
            person2=person2,
            confidence=confidence,
            reasons=pair.reasons,
        )
    return None


def detect_duplicates(
    people: Sequence[Person],
    min_confidence: int | None = None,
) -> DuplicateDetectionResult:
    """
    Compare every unordered pair of people in a tree and collect likely duplicates.

    Args:
        people: Full roster for one tree, in insertion order
        min_confidence: Minimum confidence to report (default from settings, 50)

    Returns:
        DuplicateDetectionResult with matches sorted by confidence, highest
        first. Ties keep the order in which pairs were compared.
    """
    if people is None:
        raise ValueError("people must be a sequence of Person records, not None")
    for person in people:
        if not isinstance(person, Person):
            raise TypeError(f"Expected Person, got {type(person).__name__}")

    matches: list[DuplicateMatch] = []
    processed_pairs: set[tuple[str, str]] = set()

    for i in range(len(people)):
        for j in range(i + 1, len(people)):
            person1 = people[i]
            person2 = people[j]

            pair_key = tuple(sorted((person1.id, person2.id)))
            if pair_key in processed_pairs:
                continue
            processed_pairs.add(pair_key)

            match = find_duplicate(person1, person2, min_confidence)
            if match:
                logger.debug(
                    f"Possible duplicate {person1.id} / {person2.id}: "
                    f"{match.confidence}% ({', '.join(match.reasons)})"
                )
                matches.append(match)

    # list.sort is stable, so equal confidences keep encounter order
    matches.sort(key=lambda m: m.confidence, reverse=True)

    logger.info(
        f"Compared {len(processed_pairs)} pairs across {len(people)} people, "
        f"found {len(matches)} possible duplicates"
    )
    return DuplicateDetectionResult(has_duplicates=bool(matches), matches=matches)


def get_confidence_label(confidence: int) -> Literal["high", "medium", "low"]:
    """Display band for a confidence score."""
    if confidence >= 80:
        return "high"
    if confidence >= 60:
        return "medium"
    return "low"

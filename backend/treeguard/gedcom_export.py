"""GEDCOM 5.5.1 generator for family tree rosters.

Families are not stored anywhere in the roster; they are derived while
writing INDI records. Every distinct (unordered) pair of parent ids, and
every (person, spouse) pair, becomes one FAM record numbered in the order
it is first referenced.
"""

import logging
import math
import re
from collections.abc import Sequence
from datetime import date

from .models import Person

logger = logging.getLogger("treeguard.gedcom_export")

SOURCE_NAME = "TreeGuard"
SOURCE_VERSION = "1.0"
SOURCE_LONG_NAME = "TreeGuard Family Tree Integrity"
NOTE_LINE_LENGTH = 80

_NOTE_CHUNK = re.compile(r".{1,%d}" % NOTE_LINE_LENGTH)
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9]")

FamilyKey = tuple[str, str]


def family_key(parent_a: str | None, parent_b: str | None) -> FamilyKey | None:
    """Unordered parent pair, "" standing in for a missing parent. None if both are missing."""
    if not parent_a and not parent_b:
        return None
    first, second = sorted((parent_a or "", parent_b or ""))
    return first, second


def gedcom_filename(tree_name: str) -> str:
    """Download filename for a tree: every non-alphanumeric character becomes '_'."""
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', tree_name)}.ged"


def _single_line(value: str) -> str:
    """Line breaks inside a single-line value become spaces."""
    return " ".join(value.splitlines())


def individual_xref(person_id: str) -> str:
    return f"@I{person_id}@"


class _FamilyRegistry:
    """Assigns @F1@, @F2@, ... to parent pairs in first-seen order."""

    def __init__(self):
        self._ids: dict[FamilyKey, str] = {}

    def get_or_create(self, parent_a: str | None, parent_b: str | None) -> str | None:
        key = family_key(parent_a, parent_b)
        if key is None:
            return None
        if key not in self._ids:
            self._ids[key] = f"@F{len(self._ids) + 1}@"
        return self._ids[key]

    def items(self):
        return self._ids.items()

    def __len__(self):
        return len(self._ids)


def _header_lines(tree_name: str, today: date) -> list[str]:
    return [
        "0 HEAD",
        f"1 SOUR {SOURCE_NAME}",
        f"2 VERS {SOURCE_VERSION}",
        f"2 NAME {SOURCE_LONG_NAME}",
        f"1 DATE {today.strftime('%Y %m %d')}",
        "1 GEDC",
        "2 VERS 5.5.1",
        "2 FORM LINEAGE-LINKED",
        "1 CHAR UTF-8",
        f"1 FILE {_single_line(tree_name)}.ged",
    ]


def _individual_lines(person: Person, families: _FamilyRegistry) -> list[str]:
    lines = [f"0 {individual_xref(person.id)} INDI"]

    def add(level: int, tag: str, value: str | None = None) -> None:
        lines.append(f"{level} {tag} {_single_line(value)}" if value else f"{level} {tag}")

    # Name
    add(1, "NAME", f"{person.first_name or 'Unknown'} /{person.last_name or ''}/")
    if person.first_name:
        add(2, "GIVN", person.first_name)
    if person.last_name:
        add(2, "SURN", person.last_name)
    if person.nickname:
        add(2, "NICK", person.nickname)
    if person.maiden_name:
        add(2, "_MARNM", person.maiden_name)

    # Gender
    if person.gender == "male":
        lines.append("1 SEX M")
    elif person.gender == "female":
        lines.append("1 SEX F")
    else:
        lines.append("1 SEX U")

    # Birth
    if person.birth_date or person.place_of_birth:
        lines.append("1 BIRT")
        if person.birth_date:
            add(2, "DATE", person.birth_date)
        if person.place_of_birth:
            add(2, "PLAC", person.place_of_birth)

    # Death
    deceased = person.living_status == "deceased"
    if deceased or person.death_date or person.place_of_death:
        lines.append("1 DEAT" + (" Y" if deceased else ""))
        if person.death_date:
            add(2, "DATE", person.death_date)
        if person.place_of_death:
            add(2, "PLAC", person.place_of_death)

    if person.occupation:
        add(1, "OCCU", person.occupation)
    if person.education:
        add(1, "EDUC", person.education)
    if person.religion:
        add(1, "RELI", person.religion)

    # Biography: one CONT per source line, long lines wrapped
    if person.biography:
        lines.append("1 NOTE")
        for text_line in person.biography.splitlines():
            for chunk in _NOTE_CHUNK.findall(text_line) or [""]:
                add(2, "CONT", chunk)

    # Custom tags (leading underscore) keep canvas position and photo
    if person.x is not None:
        lines.append(f"1 _XPOS {math.floor(person.x + 0.5)}")
    if person.y is not None:
        lines.append(f"1 _YPOS {math.floor(person.y + 0.5)}")
    if person.profile_picture_url:
        add(1, "_PHOTO", person.profile_picture_url)

    # Family links
    parent_family = families.get_or_create(person.parent_id1, person.parent_id2)
    if parent_family:
        lines.append(f"1 FAMC {parent_family}")

    for spouse_id in person.spouse_ids:
        spouse_family = families.get_or_create(person.id, spouse_id)
        if spouse_family:
            lines.append(f"1 FAMS {spouse_family}")

    return lines


def _partner_tags(first: Person | None, second: Person | None) -> tuple[str | None, str | None]:
    """HUSB/WIFE for each resolved side; a couple never gets the same tag twice."""
    if first and second:
        if first.gender == "male":
            return "HUSB", "WIFE"
        if first.gender == "female":
            return "WIFE", "HUSB"
        if second.gender == "female":
            return "HUSB", "WIFE"
        if second.gender == "male":
            return "WIFE", "HUSB"
        return "HUSB", "WIFE"
    if first:
        return ("WIFE" if first.gender == "female" else "HUSB"), None
    if second:
        return None, ("WIFE" if second.gender == "female" else "HUSB")
    return None, None


def _family_lines(
    family_id: str,
    key: FamilyKey,
    person_map: dict[str, Person],
    people: Sequence[Person],
) -> list[str]:
    lines = [f"0 {family_id} FAM"]
    id1, id2 = key

    partner1 = person_map.get(id1) if id1 else None
    partner2 = person_map.get(id2) if id2 else None
    tag1, tag2 = _partner_tags(partner1, partner2)
    if partner1 and tag1:
        lines.append(f"1 {tag1} {individual_xref(partner1.id)}")
    if partner2 and tag2:
        lines.append(f"1 {tag2} {individual_xref(partner2.id)}")

    family_parents = sorted(pid for pid in key if pid)
    children = [
        p for p in people
        if p.parent_ids and sorted(p.parent_ids) == family_parents
    ]
    for child in children:
        lines.append(f"1 CHIL {individual_xref(child.id)}")

    logger.debug(
        f"FAM {family_id}: partners={[pid for pid in key if pid]}, "
        f"children={[c.id for c in children]}"
    )
    return lines


def generate_gedcom(people: Sequence[Person], tree_name: str, today: date | None = None) -> str:
    """
    Serialize a roster to a GEDCOM 5.5.1 lineage-linked document.

    The roster is written as-is: run the validator first if the caller cares
    about dangling links or cycles. Optional fields that are missing simply
    produce no line.

    Args:
        people: Full roster for one tree
        tree_name: Tree name, used in the FILE header line
        today: Date written to the header (defaults to today)

    Returns:
        The document as text, one GEDCOM line per line, joined with '\\n'
    """
    if people is None:
        raise ValueError("people must be a sequence of Person records, not None")
    for person in people:
        if not isinstance(person, Person):
            raise TypeError(f"Expected Person, got {type(person).__name__}")

    logger.info(f"Exporting GEDCOM for tree '{tree_name}' with {len(people)} people")

    lines = _header_lines(tree_name, today or date.today())
    families = _FamilyRegistry()
    person_map = {p.id: p for p in people}

    for person in people:
        lines.extend(_individual_lines(person, families))

    for key, family_id in families.items():
        lines.extend(_family_lines(family_id, key, person_map, people))

    lines.append("0 TRLR")

    logger.info(f"Generated {len(families)} families, {len(lines)} lines")
    return "\n".join(lines)

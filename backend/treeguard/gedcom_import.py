"""GEDCOM import: parse with python-gedcom and reconcile records into a Person roster.

INDI records become people; FAM records are the only source of
relationships. Each family links its HUSB and WIFE as spouses and becomes
the parent pair of every CHIL, mirroring what the exporter writes.
"""

import logging
import os
import re
import tempfile

from gedcom.element.element import Element
from gedcom.element.family import FamilyElement
from gedcom.element.individual import IndividualElement
from gedcom.parser import Parser

from .models import GedcomImportResult, Person

logger = logging.getLogger("treeguard.gedcom_import")

_NAME_PATTERN = re.compile(r"^(.*?)\s*(?:/([^/]*)/.*)?$")
PLACEHOLDER_GIVEN_NAME = "Unknown"


def parse_gedcom_content(content: str) -> Parser:
    """Parse GEDCOM content from a string."""
    # Write content to temp file (python-gedcom requires file path)
    with tempfile.NamedTemporaryFile(mode='w', suffix='.ged', delete=False, encoding='utf-8') as f:
        f.write(content if content.endswith("\n") else content + "\n")
        temp_path = f.name

    try:
        parser = Parser()
        parser.parse_file(temp_path, strict=False)
        return parser
    finally:
        os.unlink(temp_path)


def xref_to_person_id(xref: str) -> str:
    """'@I42@' -> '42'. The exporter writes ids as @I<id>@, so ids survive a round trip."""
    value = xref.strip().strip("@")
    return value[1:] if value.startswith("I") and len(value) > 1 else value


def _children(element: Element, tag: str) -> list[Element]:
    return [c for c in element.get_child_elements() if c.get_tag() == tag]


def _first_value(element: Element, tag: str) -> str | None:
    for child in _children(element, tag):
        value = (child.get_value() or "").strip()
        if value:
            return value
    return None


def _note_text(note: Element) -> str:
    parts = [note.get_value() or ""]
    for child in note.get_child_elements():
        tag = child.get_tag()
        value = child.get_value() or ""
        if tag == "CONC":
            parts[-1] += value
        elif tag == "CONT":
            parts.append(value)
    # An empty NOTE value followed by CONT lines carries no text of its own
    if len(parts) > 1 and parts[0] == "":
        parts = parts[1:]
    return "\n".join(parts)


def _parse_coordinate(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric position value: {value!r}")
        return None


def _individual_fields(individual: IndividualElement) -> dict:
    """Field values for one INDI record, relationships excluded."""
    fields: dict = {"id": xref_to_person_id(individual.get_pointer())}

    for name in _children(individual, "NAME")[:1]:
        match = _NAME_PATTERN.match((name.get_value() or "").strip())
        given = (match.group(1) or "").strip() if match else ""
        surname = (match.group(2) or "").strip() if match and match.group(2) else ""

        given_parts = given.split()
        if given_parts and not (given == PLACEHOLDER_GIVEN_NAME and not _children(name, "GIVN")):
            fields["first_name"] = given_parts[0]
            if len(given_parts) > 1:
                fields["middle_name"] = " ".join(given_parts[1:])
        if surname:
            fields["last_name"] = surname

        # Sub-tags win over the NAME value
        if _first_value(name, "GIVN"):
            fields["first_name"] = _first_value(name, "GIVN")
        if _first_value(name, "SURN"):
            fields["last_name"] = _first_value(name, "SURN")
        if _first_value(name, "NICK"):
            fields["nickname"] = _first_value(name, "NICK")
        if _first_value(name, "_MARNM"):
            fields["maiden_name"] = _first_value(name, "_MARNM")

    sex = (_first_value(individual, "SEX") or "").upper()
    fields["gender"] = {"M": "male", "F": "female"}.get(sex, "unknown")

    for birth in _children(individual, "BIRT")[:1]:
        fields["birth_date"] = _first_value(birth, "DATE")
        fields["place_of_birth"] = _first_value(birth, "PLAC")

    deaths = _children(individual, "DEAT")
    fields["living_status"] = "deceased" if deaths else "living"
    for death in deaths[:1]:
        fields["death_date"] = _first_value(death, "DATE")
        fields["place_of_death"] = _first_value(death, "PLAC")

    fields["occupation"] = _first_value(individual, "OCCU")
    fields["education"] = _first_value(individual, "EDUC")
    fields["religion"] = _first_value(individual, "RELI")

    notes = [_note_text(n) for n in _children(individual, "NOTE")]
    notes = [n for n in notes if n]
    if notes:
        fields["biography"] = "\n\n".join(notes)

    fields["x"] = _parse_coordinate(_first_value(individual, "_XPOS"))
    fields["y"] = _parse_coordinate(_first_value(individual, "_YPOS"))
    fields["profile_picture_url"] = _first_value(individual, "_PHOTO")

    fields["spouse_ids"] = []
    fields["children_ids"] = []
    return fields


def _append_unique(values: list[str], value: str) -> None:
    if value not in values:
        values.append(value)


def import_gedcom(content: str) -> GedcomImportResult:
    """
    Convert a GEDCOM document into a Person roster.

    Returns:
        GedcomImportResult with people in document order, the number of FAM
        records read, selected header values and a list of non-fatal problems
        (references to unknown individuals, children claimed by two families).
    """
    if content is None:
        raise ValueError("content must be a GEDCOM string, not None")

    parser = parse_gedcom_content(content)
    errors: list[str] = []
    header: dict[str, str] = {}
    records: dict[str, dict] = {}
    families: list[FamilyElement] = []

    for element in parser.get_root_child_elements():
        if isinstance(element, IndividualElement):
            fields = _individual_fields(element)
            if fields["id"] in records:
                errors.append(f"Duplicate individual {element.get_pointer()}; keeping the first record")
                continue
            records[fields["id"]] = fields
        elif isinstance(element, FamilyElement):
            families.append(element)
        elif element.get_tag() == "HEAD":
            for tag, key in (("SOUR", "source"), ("DATE", "date"), ("CHAR", "charset")):
                value = _first_value(element, tag)
                if value:
                    header[key] = value

    for family in families:
        family_ref = family.get_pointer()

        def resolve(tag: str) -> list[str]:
            ids = []
            for member in _children(family, tag):
                person_id = xref_to_person_id(member.get_value() or "")
                if person_id in records:
                    ids.append(person_id)
                else:
                    errors.append(f"Family {family_ref}: {tag} {member.get_value()} is not an individual in this file")
            return ids

        husbands = resolve("HUSB")
        wives = resolve("WIFE")
        husband = husbands[0] if husbands else None
        wife = wives[0] if wives else None
        partners = [pid for pid in (husband, wife) if pid]
        children = resolve("CHIL")

        if len(partners) == 2:
            _append_unique(records[partners[0]]["spouse_ids"], partners[1])
            _append_unique(records[partners[1]]["spouse_ids"], partners[0])

        for child_id in children:
            child = records[child_id]
            if child.get("parent_id1") or child.get("parent_id2"):
                errors.append(
                    f"Individual @I{child_id}@ is a child in more than one family; "
                    f"keeping the first, ignoring {family_ref}"
                )
                continue
            child["parent_id1"] = husband
            child["parent_id2"] = wife
            for parent_id in partners:
                _append_unique(records[parent_id]["children_ids"], child_id)

    people = [Person(**fields) for fields in records.values()]
    logger.info(
        f"Imported {len(people)} individuals and {len(families)} families "
        f"({len(errors)} problems)"
    )
    return GedcomImportResult(
        people=people,
        family_count=len(families),
        header=header,
        errors=errors,
    )

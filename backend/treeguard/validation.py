"""Tree validation: impossible dates, broken links and parent cycles.

Every check is pure logic over the supplied roster. Problems are returned as
ValidationIssue records, never raised, so callers can decide whether to
export, fix or ignore them.

Severity policy:
    error   - the graph is corrupt or self-contradictory (cycles, self links,
              impossible dates); exporting it loses or scrambles data.
    warning - soft problems that are cosmetic or can be fixed automatically
              (missing names, dangling or one-sided links, isolated people).
"""

import logging
from collections import deque
from collections.abc import Sequence
from datetime import date

from .config import Settings, settings as default_settings
from .models import OrphanedReferenceFix, Person, ValidationIssue, ValidationResult

logger = logging.getLogger("treeguard.validation")

ORPHAN_MARKER = "no longer exists"
PLACEHOLDER_FIRST_NAMES = {"new person"}


class _TreeIndex:
    """Lookups shared by every per-person check of one validation run."""

    def __init__(self, people: Sequence[Person]):
        self.by_id: dict[str, Person] = {p.id: p for p in people}
        self.referenced: set[str] = set()
        for p in people:
            for ref in (*p.parent_ids, *p.spouse_ids, *p.children_ids):
                if ref != p.id:
                    self.referenced.add(ref)


def _check_roster(people: Sequence[Person] | None) -> None:
    if people is None:
        raise ValueError("people must be a sequence of Person records, not None")
    for person in people:
        if not isinstance(person, Person):
            raise TypeError(f"Expected Person, got {type(person).__name__}")


# ============================================================================
# Cycle detection
# ============================================================================

def _known_parents(by_id: dict[str, Person], person_id: str) -> list[str]:
    person = by_id.get(person_id)
    if person is None:
        return []
    parents = []
    for pid in person.parent_ids:
        if pid in by_id and pid not in parents:
            parents.append(pid)
    return parents


def find_ancestor_cycle(people_by_id: dict[str, Person], person_id: str) -> list[str] | None:
    """
    Shortest chain of parent links leading from a person back to themselves.

    Breadth-first over parent links with a visited set, so a cyclic graph
    is walked at most once per person. Returns the ids on the cycle starting
    with `person_id`, or None if the person is not their own ancestor.
    """
    came_from: dict[str, str] = {}
    queue = deque()
    for pid in _known_parents(people_by_id, person_id):
        if pid == person_id:
            return [person_id]
        came_from[pid] = person_id
        queue.append(pid)

    while queue:
        current = queue.popleft()
        for pid in _known_parents(people_by_id, current):
            if pid == person_id:
                chain = [current]
                while chain[-1] != person_id:
                    chain.append(came_from[chain[-1]])
                chain.reverse()
                return chain
            if pid not in came_from:
                came_from[pid] = current
                queue.append(pid)
    return None


def find_parent_cycles(people: Sequence[Person]) -> list[list[str]]:
    """Distinct parent-link cycles in the roster, each listed once."""
    _check_roster(people)
    by_id = {p.id: p for p in people}
    cycles: list[list[str]] = []
    seen: set[frozenset[str]] = set()
    for person in people:
        cycle = find_ancestor_cycle(by_id, person.id)
        if cycle is None:
            continue
        key = frozenset(cycle)
        if key not in seen:
            seen.add(key)
            cycles.append(cycle)
    return cycles


def would_create_cycle(people: Sequence[Person], person_id: str, potential_parent_id: str) -> bool:
    """
    Check if making potential_parent a parent of person would create circular ancestry.
    Returns True if person is already an ancestor of (or the same as) potential_parent.
    """
    if person_id == potential_parent_id:
        return True
    by_id = {p.id: p for p in people}
    visited = {potential_parent_id}
    stack = [potential_parent_id]
    while stack:
        for pid in _known_parents(by_id, stack.pop()):
            if pid == person_id:
                return True
            if pid not in visited:
                visited.add(pid)
                stack.append(pid)
    return False


# ============================================================================
# Per-person rules
# ============================================================================

def validate_person(
    person: Person,
    all_people: Sequence[Person],
    config: Settings | None = None,
    _index: _TreeIndex | None = None,
) -> list[ValidationIssue]:
    """Validate a single person against the rest of the tree (cycles excluded)."""
    config = config or default_settings
    index = _index or _TreeIndex(all_people)
    person_map = index.by_id
    person_name = person.display_name
    issues: list[ValidationIssue] = []

    def add(field: str, severity: str, message: str, how_to_fix: str) -> None:
        issues.append(ValidationIssue(
            person_id=person.id,
            person_name=person_name,
            field=field,
            severity=severity,
            message=message,
            how_to_fix=how_to_fix,
        ))

    # Required data
    if not person.first_name or not person.first_name.strip() \
            or person.first_name.strip().lower() in PLACEHOLDER_FIRST_NAMES:
        add("first_name", "warning", "Missing or default first name",
            "Edit this person and enter their first name")

    if person.gender == "unknown":
        add("gender", config.missing_gender_severity, "Gender is not set",
            "Edit this person and select either Male or Female as their gender")

    # Dates
    birth_year = person.birth_year
    death_year = person.death_year
    current_year = date.today().year

    if birth_year is not None and death_year is not None:
        if death_year < birth_year:
            add("death_date", "error", "Death date is before birth date",
                "Correct the birth or death date")
        elif death_year - birth_year > config.max_lifespan_years:
            add("death_date", "warning",
                f"Lived {death_year - birth_year} years (unusually long lifespan)",
                "Verify birth and death dates are correct")

    if birth_year is not None and birth_year > current_year:
        add("birth_date", "error", "Birth date is in the future", "Enter a valid past date")
    if death_year is not None and death_year > current_year:
        add("death_date", "error", "Death date is in the future",
            "Enter a valid past date or remove it if the person is alive")

    # Parents
    for field_name, parent_id in (("parent_id1", person.parent_id1), ("parent_id2", person.parent_id2)):
        if not parent_id or parent_id == person.id:
            continue
        parent = person_map.get(parent_id)
        if parent is None:
            add(field_name, "warning", f"References a parent ({parent_id}) that {ORPHAN_MARKER} in the tree",
                "Remove or reassign the parent reference")
            continue

        parent_birth = parent.birth_year
        if birth_year is not None and parent_birth is not None:
            age_diff = birth_year - parent_birth
            if age_diff <= 0:
                add(field_name, "error",
                    f'Parent "{parent.display_name}" (born {parent_birth}) is not older than child (born {birth_year})',
                    "Check the birth dates or remove the incorrect parent relationship")
            elif age_diff < config.min_parent_age:
                add(field_name, "error",
                    f'Parent "{parent.display_name}" was only {age_diff} years old at birth',
                    "Verify parent-child relationship and birth dates")

        if parent.gender == "female" and birth_year is not None:
            mother_death = parent.death_year
            if mother_death is not None and birth_year > mother_death:
                add("birth_date", "error", f'Born after mother "{parent.display_name}" died',
                    "Check birth date or mother assignment")

        if parent.children_ids and person.id not in parent.children_ids:
            add(field_name, "warning",
                f'References a parent "{parent.display_name}" who does not list them as a child',
                "Re-link the parent and child so both records agree")

    # Spouses
    for spouse_id in person.spouse_ids:
        if spouse_id == person.id:
            add("spouse_ids", "error", "Person is listed as their own spouse",
                "Remove self-reference from spouse list")
            continue
        spouse = person_map.get(spouse_id)
        if spouse is None:
            add("spouse_ids", "warning", f"References a spouse ({spouse_id}) that {ORPHAN_MARKER} in the tree",
                "Remove the orphaned spouse reference")
        elif person.id not in spouse.spouse_ids:
            add("spouse_ids", "warning",
                f'References a spouse "{spouse.display_name}" who does not list them as a spouse',
                "Re-link the spouses so both records agree")

    # Children
    for child_id in person.children_ids:
        if child_id == person.id:
            add("children_ids", "error", "Person is listed as their own child",
                "Remove self-reference from children list")
            continue
        child = person_map.get(child_id)
        if child is None:
            add("children_ids", "warning", f"References a child ({child_id}) that {ORPHAN_MARKER} in the tree",
                "Remove the orphaned child reference")
        elif person.id not in child.parent_ids:
            add("children_ids", "warning",
                f'References a child "{child.display_name}" who does not list them as a parent',
                "Re-link the parent and child so both records agree")

    # Isolated person
    has_links = bool(person.parent_ids or person.spouse_ids or person.children_ids)
    if not has_links and person.id not in index.referenced:
        add("relationships", "warning", "This person has no connections to anyone in the tree",
            "Add parent, spouse, or child relationships to connect this person to the family tree")

    return issues


def _cycle_issues(people: Sequence[Person], by_id: dict[str, Person]) -> list[ValidationIssue]:
    issues = []
    for person in people:
        cycle = find_ancestor_cycle(by_id, person.id)
        if cycle is None:
            continue
        next_id = cycle[1] if len(cycle) > 1 else person.id
        field_name = "parent_id1" if person.parent_id1 == next_id else "parent_id2"
        if cycle == [person.id]:
            message = "Person is listed as their own parent"
            how_to_fix = "Remove self-reference from parent fields"
        else:
            chain = " -> ".join(by_id[pid].display_name for pid in [*cycle, person.id])
            message = f"Circular ancestry: person is their own ancestor ({chain})"
            how_to_fix = "Edit relationships for one of these people and remove the incorrect parent-child link"
        issues.append(ValidationIssue(
            person_id=person.id,
            person_name=person.display_name,
            field=field_name,
            severity="error",
            message=message,
            how_to_fix=how_to_fix,
        ))
    return issues


def validate_tree(people: Sequence[Person], config: Settings | None = None) -> ValidationResult:
    """Validate an entire family tree."""
    _check_roster(people)
    index = _TreeIndex(people)

    all_issues: list[ValidationIssue] = []
    for person in people:
        all_issues.extend(validate_person(person, people, config, _index=index))
    all_issues.extend(_cycle_issues(people, index.by_id))

    # Deduplicate on (person, field, message), keeping first occurrence
    unique_issues = []
    seen = set()
    for issue in all_issues:
        key = (issue.person_id, issue.field, issue.message)
        if key not in seen:
            seen.add(key)
            unique_issues.append(issue)

    result = ValidationResult(
        has_errors=any(i.severity == "error" for i in unique_issues),
        has_warnings=any(i.severity == "warning" for i in unique_issues),
        issues=unique_issues,
    )
    logger.info(
        f"Validated {len(people)} people: {len(result.errors)} errors, "
        f"{len(result.warnings)} warnings"
    )
    return result


# ============================================================================
# Orphaned reference fixes
# ============================================================================

def is_orphaned_reference_issue(issue: ValidationIssue) -> bool:
    return ORPHAN_MARKER in issue.message


def get_orphaned_reference_fixes(people: Sequence[Person]) -> list[OrphanedReferenceFix]:
    """
    Edits that remove every dangling relationship id.

    Dangling parent slots are set to None; dangling ids are dropped from
    spouse and children lists, keeping the order of the remaining ids.
    Nothing is modified here, callers apply the returned updates.
    """
    _check_roster(people)
    person_ids = {p.id for p in people}
    fixes = []

    for person in people:
        updates: dict = {}
        descriptions = []

        valid_spouses = [sid for sid in person.spouse_ids if sid in person_ids]
        if len(valid_spouses) != len(person.spouse_ids):
            updates["spouse_ids"] = valid_spouses
            descriptions.append(
                f"Removed {len(person.spouse_ids) - len(valid_spouses)} orphaned spouse reference(s)"
            )

        if person.parent_id1 and person.parent_id1 not in person_ids:
            updates["parent_id1"] = None
            descriptions.append("Removed orphaned parent1 reference")

        if person.parent_id2 and person.parent_id2 not in person_ids:
            updates["parent_id2"] = None
            descriptions.append("Removed orphaned parent2 reference")

        valid_children = [cid for cid in person.children_ids if cid in person_ids]
        if len(valid_children) != len(person.children_ids):
            updates["children_ids"] = valid_children
            descriptions.append(
                f"Removed {len(person.children_ids) - len(valid_children)} orphaned children reference(s)"
            )

        if updates:
            fixes.append(OrphanedReferenceFix(
                person_id=person.id,
                person_name=person.display_name,
                updates=updates,
                description="; ".join(descriptions),
            ))

    logger.info(f"Prepared orphaned reference fixes for {len(fixes)} people")
    return fixes


def apply_orphaned_reference_fixes(
    people: Sequence[Person],
    fixes: Sequence[OrphanedReferenceFix],
) -> list[Person]:
    """Return a new roster with the fixes applied; the input is left untouched."""
    updates_by_id = {fix.person_id: fix.updates for fix in fixes}
    return [
        p.model_copy(update=updates_by_id[p.id]) if p.id in updates_by_id else p
        for p in people
    ]

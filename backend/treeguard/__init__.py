from .models import (
    Person,
    DuplicateMatch,
    DuplicateDetectionResult,
    ValidationIssue,
    ValidationResult,
    OrphanedReferenceFix,
    GedcomImportResult,
    extract_year,
)
from .similarity import levenshtein_distance, string_similarity
from .duplicates import (
    compare_people,
    find_duplicate,
    detect_duplicates,
    get_confidence_label,
)
from .validation import (
    validate_person,
    validate_tree,
    find_ancestor_cycle,
    find_parent_cycles,
    would_create_cycle,
    is_orphaned_reference_issue,
    get_orphaned_reference_fixes,
    apply_orphaned_reference_fixes,
)
from .gedcom_export import generate_gedcom, gedcom_filename, family_key
from .gedcom_import import import_gedcom, parse_gedcom_content

__all__ = [
    # Entity and results
    "Person",
    "DuplicateMatch",
    "DuplicateDetectionResult",
    "ValidationIssue",
    "ValidationResult",
    "OrphanedReferenceFix",
    "GedcomImportResult",
    "extract_year",
    # Similarity
    "levenshtein_distance",
    "string_similarity",
    # Duplicate detection
    "compare_people",
    "find_duplicate",
    "detect_duplicates",
    "get_confidence_label",
    # Validation
    "validate_person",
    "validate_tree",
    "find_ancestor_cycle",
    "find_parent_cycles",
    "would_create_cycle",
    "is_orphaned_reference_issue",
    "get_orphaned_reference_fixes",
    "apply_orphaned_reference_fixes",
    # GEDCOM
    "generate_gedcom",
    "gedcom_filename",
    "family_key",
    "import_gedcom",
    "parse_gedcom_content",
]

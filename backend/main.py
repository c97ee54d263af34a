"""TreeGuard - Family Tree Integrity Backend.

FastAPI server exposing duplicate detection, tree validation and GEDCOM
export/import over a roster supplied by the caller.
"""

import logging

from fastapi import FastAPI, HTTPException, UploadFile, File
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import Field

from treeguard.config import settings

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("treeguard")

from treeguard import (
    Person,
    DuplicateMatch,
    GedcomImportResult,
    OrphanedReferenceFix,
    ValidationResult,
    detect_duplicates,
    gedcom_filename,
    generate_gedcom,
    get_confidence_label,
    get_orphaned_reference_fixes,
    import_gedcom,
    validate_tree,
)
from treeguard.models import CamelModel


# Create FastAPI app
app = FastAPI(
    title="TreeGuard",
    description="Duplicate detection, validation and GEDCOM interchange for family trees",
    version="1.0.0",
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class RosterRequest(CamelModel):
    """The complete roster of one tree."""
    people: list[Person]


class DuplicatesRequest(RosterRequest):
    min_confidence: int | None = Field(default=None, ge=0, le=100)


class ExportRequest(RosterRequest):
    tree_name: str = Field(min_length=1)


class LabeledDuplicateMatch(DuplicateMatch):
    """A duplicate match with its display band (high/medium/low)."""
    label: str


class DuplicatesResponse(CamelModel):
    has_duplicates: bool
    matches: list[LabeledDuplicateMatch]


class OrphanFixesResponse(CamelModel):
    fixes: list[OrphanedReferenceFix]


# Endpoints

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    logger.debug("Health check requested")
    return {"status": "healthy"}


@app.post("/duplicates", response_model=DuplicatesResponse)
async def find_duplicates(request: DuplicatesRequest):
    """Rank likely duplicate pairs in the roster."""
    logger.info(f"Duplicate scan requested for {len(request.people)} people")
    result = detect_duplicates(request.people, request.min_confidence)
    return DuplicatesResponse(
        has_duplicates=result.has_duplicates,
        matches=[
            LabeledDuplicateMatch(**match.model_dump(), label=get_confidence_label(match.confidence))
            for match in result.matches
        ],
    )


@app.post("/validate", response_model=ValidationResult)
async def validate(request: RosterRequest):
    """Report structural and data problems in the roster."""
    logger.info(f"Validation requested for {len(request.people)} people")
    return validate_tree(request.people)


@app.post("/validate/orphan-fixes", response_model=OrphanFixesResponse)
async def orphan_fixes(request: RosterRequest):
    """Edits that remove dangling relationship references. Nothing is applied here."""
    fixes = get_orphaned_reference_fixes(request.people)
    logger.info(f"Returning {len(fixes)} orphaned reference fixes")
    return OrphanFixesResponse(fixes=fixes)


@app.post("/export-gedcom")
async def export_gedcom(request: ExportRequest):
    """Export the roster as a downloadable GEDCOM 5.5.1 file."""
    logger.info(f"GEDCOM export requested for '{request.tree_name}' ({len(request.people)} people)")
    content = generate_gedcom(request.people, request.tree_name)
    filename = gedcom_filename(request.tree_name)
    return Response(
        content=content.encode("utf-8"),
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/import-gedcom", response_model=GedcomImportResult)
async def upload_gedcom(file: UploadFile = File(...)):
    """Upload a GEDCOM file and convert it to a roster."""
    logger.info(f"Received GEDCOM file upload: {file.filename}")

    if not file.filename or not file.filename.lower().endswith(('.ged', '.gedcom')):
        logger.warning(f"Invalid file type: {file.filename}")
        raise HTTPException(status_code=400, detail="File must be a GEDCOM file (.ged or .gedcom)")

    content = await file.read()
    logger.debug(f"Read {len(content)} bytes from file")
    try:
        content_str = content.decode('utf-8-sig')
    except UnicodeDecodeError:
        logger.info("UTF-8 decode failed, trying latin-1 encoding")
        content_str = content.decode('latin-1')

    try:
        result = import_gedcom(content_str)
    except Exception as e:
        logger.error(f"Failed to parse GEDCOM file: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Failed to parse GEDCOM file: {str(e)}")

    logger.info(f"Successfully imported {len(result.people)} individuals from {file.filename}")
    return result


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

"""
Forwarder quote document API endpoints.
"""
import logging
from fastapi import APIRouter, HTTPException, status, UploadFile, File as FastAPIFile
from fastapi.responses import FileResponse
from typing import Dict, List
from freight_console.config.defaults_loader import get_quote_settings
from freight_console.schemas.quote import (
    QuoteFile,
    ForwarderQuoteCount,
    QuoteUploadResponse,
    QuoteRenameRequest,
    QuoteRenameResponse,
    QuoteCompareRequest,
)
from freight_console.services import quote_storage
from freight_console.services.quote_analyzer import analyze_quote_file, generate_comparison_report

logger = logging.getLogger(__name__)
router = APIRouter()


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def _checked_forwarder(forwarder: str) -> str:
    try:
        return quote_storage.validate_forwarder(forwarder)
    except ValueError as e:
        raise _bad_request(str(e))


def _existing_quote(forwarder: str, filename: str):
    forwarder = _checked_forwarder(forwarder)
    try:
        path = quote_storage.resolve_quote_path(forwarder, filename)
    except ValueError as e:
        raise _bad_request(str(e))
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Quote {filename} not found")
    return path


@router.get("", response_model=Dict[str, ForwarderQuoteCount])
async def get_quotes_summary():
    """Number of stored quotes per forwarder."""
    return quote_storage.quotes_summary()


@router.post("/compare")
async def compare_quotes(request: QuoteCompareRequest):
    """Analyze the selected PDFs and build a comparison report; unusable selections are skipped."""
    analyses = []
    for selection in request.quotes:
        try:
            forwarder = quote_storage.validate_forwarder(selection.forwarder)
            path = quote_storage.resolve_quote_path(forwarder, selection.filename)
        except ValueError as e:
            logger.warning("Skipping quote %s/%s: %s", selection.forwarder, selection.filename, e)
            continue
        if not path.is_file() or path.suffix.lower() != ".pdf":
            logger.warning("Skipping quote %s/%s: missing or not a PDF", forwarder, selection.filename)
            continue
        try:
            analysis = analyze_quote_file(str(path))
        except ValueError as e:
            logger.warning("Skipping quote %s/%s: %s", forwarder, selection.filename, e)
            continue
        analysis["forwarder"] = forwarder
        analyses.append(analysis)

    if not analyses:
        raise _bad_request("No valid PDF quotes to compare")
    return generate_comparison_report(analyses)


@router.get("/{forwarder}", response_model=List[QuoteFile])
async def list_forwarder_quotes(forwarder: str):
    return quote_storage.list_quotes(_checked_forwarder(forwarder))


@router.post("/{forwarder}", response_model=QuoteUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_quotes(
    forwarder: str,
    documents: List[UploadFile] = FastAPIFile(...),
):
    """Upload up to the configured number of quote documents for a forwarder."""
    forwarder = _checked_forwarder(forwarder)
    limit = get_quote_settings()["max_files_per_upload"]
    if len(documents) > limit:
        raise _bad_request(f"Too many files; at most {limit} per upload")
    try:
        for document in documents:
            quote_storage.validate_upload_name(document.filename)
            quote_storage.check_upload_size(document.filename, document.size)
    except quote_storage.QuoteFileTooLarge as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
    except ValueError as e:
        raise _bad_request(str(e))

    # All or nothing: a failure removes the files already stored by this request
    uploaded = []
    try:
        for document in documents:
            uploaded.append(quote_storage.save_quote(forwarder, document.filename, document.file))
    except quote_storage.QuoteFileTooLarge as e:
        quote_storage.discard_quotes(forwarder, [q["filename"] for q in uploaded])
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
    except Exception:
        quote_storage.discard_quotes(forwarder, [q["filename"] for q in uploaded])
        raise
    return {"forwarder": forwarder, "uploaded": uploaded}


@router.get("/{forwarder}/analyze-all")
async def analyze_all_quotes(forwarder: str):
    """Analyze every PDF stored for a forwarder; per-file failures are reported inline."""
    forwarder = _checked_forwarder(forwarder)
    results = []
    for quote in quote_storage.list_quotes(forwarder):
        if not quote["filename"].lower().endswith(".pdf"):
            continue
        path = quote_storage.resolve_quote_path(forwarder, quote["filename"])
        try:
            results.append({"filename": quote["filename"], "analysis": analyze_quote_file(str(path))})
        except ValueError as e:
            results.append({"filename": quote["filename"], "error": str(e)})
    return {"forwarder": forwarder, "results": results}


@router.get("/{forwarder}/{filename}")
async def download_quote(forwarder: str, filename: str):
    path = _existing_quote(forwarder, filename)
    return FileResponse(str(path), filename=path.name)


@router.delete("/{forwarder}/{filename}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quote(forwarder: str, filename: str):
    path = _existing_quote(forwarder, filename)
    quote_storage.delete_quote(forwarder.lower(), path.name)
    return None


@router.put("/{forwarder}/{filename}/rename", response_model=QuoteRenameResponse)
async def rename_quote(forwarder: str, filename: str, request: QuoteRenameRequest):
    forwarder = _checked_forwarder(forwarder)
    try:
        return quote_storage.rename_quote(forwarder, filename, request.new_name)
    except FileNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (ValueError, FileExistsError) as e:
        raise _bad_request(str(e))


@router.post("/{forwarder}/{filename}/analyze")
async def analyze_quote(forwarder: str, filename: str):
    path = _existing_quote(forwarder, filename)
    if path.suffix.lower() != ".pdf":
        raise _bad_request("Only PDF quotes can be analyzed")
    try:
        analysis = analyze_quote_file(str(path))
    except ValueError as e:
        raise _bad_request(str(e))
    analysis["forwarder"] = forwarder.lower()
    return analysis

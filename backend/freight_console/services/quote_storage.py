"""
Quote document storage - one directory per forwarder under the upload dir.
"""
import re
import time
import logging
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Dict, List, Any, Optional
from urllib.parse import quote

from freight_console.config.defaults_loader import get_forwarders, get_quote_settings
from freight_console.db.database import settings

logger = logging.getLogger(__name__)

INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*]')
COPY_CHUNK_SIZE = 1024 * 1024


class QuoteFileTooLarge(ValueError):
    pass


def quotes_root() -> Path:
    return Path(settings.upload_dir) / "quotes"


def validate_forwarder(forwarder: str) -> str:
    forwarder = (forwarder or "").lower()
    if forwarder not in get_forwarders():
        raise ValueError(f"Invalid forwarder '{forwarder}'")
    return forwarder


def forwarder_dir(forwarder: str, create: bool = False) -> Path:
    path = quotes_root() / validate_forwarder(forwarder)
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def resolve_quote_path(forwarder: str, filename: str) -> Path:
    """Resolve a filename inside the forwarder directory, refusing traversal."""
    base = forwarder_dir(forwarder).resolve()
    candidate = (base / filename).resolve()
    if candidate.parent != base:
        raise ValueError("Invalid file path")
    return candidate


def download_path(forwarder: str, filename: str) -> str:
    return f"/api/quotes/{forwarder}/{quote(filename)}"


def _file_info(forwarder: str, path: Path) -> Dict[str, Any]:
    stats = path.stat()
    return {
        "filename": path.name,
        "size": stats.st_size,
        "uploaded_at": datetime.utcfromtimestamp(stats.st_mtime),
        "path": download_path(forwarder, path.name),
    }


def list_quotes(forwarder: str) -> List[Dict[str, Any]]:
    """Quotes for a forwarder, newest first; a missing directory is simply empty."""
    directory = forwarder_dir(forwarder)
    if not directory.exists():
        return []
    quotes = [_file_info(forwarder, p) for p in directory.iterdir() if p.is_file()]
    quotes.sort(key=lambda q: q["uploaded_at"], reverse=True)
    return quotes


def quotes_summary() -> Dict[str, Dict[str, Any]]:
    summary = {}
    for forwarder in get_forwarders():
        directory = quotes_root() / forwarder
        count = len([p for p in directory.iterdir() if p.is_file()]) if directory.exists() else 0
        summary[forwarder] = {"forwarder": forwarder.capitalize(), "count": count}
    return summary


def stored_filename(original_name: str) -> str:
    safe = re.sub(r"[^a-zA-Z0-9.\-]", "_", original_name or "quote")
    return f"{int(time.time() * 1000)}-{safe}"


def validate_upload_name(original_name: str) -> None:
    allowed = get_quote_settings()["allowed_extensions"]
    ext = Path(original_name or "").suffix.lower()
    if ext not in allowed:
        raise ValueError(f"Invalid file extension: {ext or '(none)'}. Allowed: {', '.join(allowed)}")


def _too_large(original_name: str, size: int, max_size: int) -> QuoteFileTooLarge:
    return QuoteFileTooLarge(
        f"{original_name} is {size / (1024 * 1024):.1f} MB; limit is {max_size // (1024 * 1024)} MB"
    )


def check_upload_size(original_name: str, size: Optional[int]) -> None:
    """Reject a document whose declared size is over the limit before anything is written."""
    max_size = get_quote_settings()["max_file_size"]
    if size is not None and size > max_size:
        raise _too_large(original_name, size, max_size)


def save_quote(forwarder: str, original_name: str, source: BinaryIO) -> Dict[str, Any]:
    """Store an uploaded document; oversize files are removed and rejected."""
    validate_upload_name(original_name)
    max_size = get_quote_settings()["max_file_size"]
    directory = forwarder_dir(forwarder, create=True)
    target = directory / stored_filename(original_name)
    size = 0
    with open(target, "wb") as buffer:
        for chunk in iter(lambda: source.read(COPY_CHUNK_SIZE), b""):
            size += len(chunk)
            if size > max_size:
                break
            buffer.write(chunk)
    if size > max_size:
        target.unlink()
        raise _too_large(original_name, size, max_size)
    info = _file_info(forwarder, target)
    info["original_name"] = original_name
    logger.info("Stored quote %s for %s (%.1f KB)", target.name, forwarder, size / 1024)
    return info


def discard_quotes(forwarder: str, filenames: List[str]) -> None:
    """Remove files stored by an upload that did not complete."""
    for filename in filenames:
        path = resolve_quote_path(forwarder, filename)
        if path.is_file():
            path.unlink()
    if filenames:
        logger.info("Discarded %d quote(s) from failed upload for %s", len(filenames), forwarder)


def delete_quote(forwarder: str, filename: str) -> None:
    path = resolve_quote_path(forwarder, filename)
    if not path.is_file():
        raise FileNotFoundError(f"Quote {filename} not found")
    path.unlink()
    logger.info("Deleted quote %s/%s", forwarder, filename)


def rename_quote(forwarder: str, filename: str, new_name: str) -> Dict[str, str]:
    new_name = (new_name or "").strip()
    if not new_name:
        raise ValueError("New name is required")
    if INVALID_NAME_CHARS.search(new_name):
        raise ValueError('Filename contains invalid characters. Cannot use: < > : " / \\ | ? *')
    old_path = resolve_quote_path(forwarder, filename)
    if not old_path.is_file():
        raise FileNotFoundError(f"Quote {filename} not found")
    new_path = resolve_quote_path(forwarder, new_name)
    if new_path.exists():
        raise FileExistsError("A quote with this name already exists")
    old_path.rename(new_path)
    logger.info("Renamed quote %s/%s -> %s", forwarder, filename, new_name)
    return {"filename": new_name, "old_filename": filename}

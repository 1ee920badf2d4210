"""
Quote document schemas.
"""
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List


class QuoteFile(BaseModel):
    filename: str
    size: int
    uploaded_at: datetime
    path: str
    original_name: Optional[str] = None


class ForwarderQuoteCount(BaseModel):
    forwarder: str
    count: int


class QuoteUploadResponse(BaseModel):
    forwarder: str
    uploaded: List[QuoteFile]


class QuoteRenameRequest(BaseModel):
    new_name: str


class QuoteRenameResponse(BaseModel):
    filename: str
    old_filename: str


class QuoteSelection(BaseModel):
    forwarder: str
    filename: str


class QuoteCompareRequest(BaseModel):
    quotes: List[QuoteSelection]

#!/usr/bin/env python3
"""
Request models for the HTTP boundary.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class DateRange(BaseModel):
    """Requested scan window; either bound may be omitted."""
    model_config = ConfigDict(extra='ignore')

    start_date: Optional[str] = None
    end_date: Optional[str] = None


class RawDataItem(BaseModel):
    """One feed blob forwarded by the scraper."""
    model_config = ConfigDict(extra='ignore')

    source_url: str = ""
    raw_content: str


class ScanRequest(BaseModel):
    """Body of ``POST /scan-local-events``."""
    model_config = ConfigDict(extra='ignore')

    date_range: Optional[DateRange] = None
    raw_data: Optional[List[RawDataItem]] = Field(default=None)


def describe_validation_error(error: ValidationError) -> List[str]:
    """Flatten pydantic errors into ``"field.path: message"`` lines."""
    problems = []
    for item in error.errors():
        location = '.'.join(str(part) for part in item.get('loc', ()))
        problems.append(f"{location}: {item.get('msg')}" if location else str(item.get('msg')))
    return problems

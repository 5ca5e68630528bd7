#!/usr/bin/env python3
"""
Scan, ingestion and health endpoints.
"""

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from core.container import create_ingestion_service, create_scan_service, get_storage
from core.config import get_config_manager
from core.engine import ScanService
from core.exceptions import RequestValidationError
from core.ingestion import IngestionService
from .schemas import ScanRequest, describe_validation_error

logger = logging.getLogger(__name__)
router = APIRouter()


def get_scan_service() -> ScanService:
    return create_scan_service()


def get_ingestion_service() -> IngestionService:
    return create_ingestion_service()


def get_storage_health() -> Dict[str, Any]:
    return get_storage().health_check()


def get_integration_status() -> Dict[str, bool]:
    return get_config_manager().get_integration_status()


def _error(status_code: int, error: str, details: Any = None) -> JSONResponse:
    body: Dict[str, Any] = {'success': False, 'error': error}
    if details is not None:
        body['details'] = details
    return JSONResponse(status_code=status_code, content=body)


async def _read_json(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        return {}
    return json.loads(raw)


@router.post("/scan-local-events")
async def scan_local_events(request: Request, service: ScanService = Depends(get_scan_service)):
    """Run a scan over inline payloads or stored rows."""
    try:
        body = await _read_json(request)
    except ValueError as e:
        return _error(400, "Invalid JSON in request body", str(e))

    try:
        scan_request = ScanRequest.model_validate(body)
    except ValidationError as e:
        return _error(400, "Invalid request body", describe_validation_error(e))

    try:
        result = await run_in_threadpool(service.scan_request, scan_request.model_dump(exclude_none=True))
    except RequestValidationError as e:
        return _error(400, e.message, e.context.get('problems'))
    except Exception as e:
        logger.error(f"Event scan failed: {e}", exc_info=True)
        return _error(500, "Internal server error", str(e))

    return result.to_dict()


@router.post("/ingest-raw-events")
async def ingest_raw_events(request: Request, service: IngestionService = Depends(get_ingestion_service)):
    """Store events pushed by the scraper."""
    try:
        body = await _read_json(request)
    except ValueError as e:
        return _error(400, "Invalid JSON in request body", str(e))

    events = body.get('events') if isinstance(body, dict) else None

    try:
        result = await run_in_threadpool(service.ingest, events)
    except RequestValidationError as e:
        return _error(400, e.message)
    except Exception as e:
        logger.error(f"Ingestion failed: {e}", exc_info=True)
        return _error(500, "Internal server error", str(e))

    return result.to_dict()


@router.get("/health")
async def health_check(storage: Dict[str, Any] = Depends(get_storage_health),
                       integrations: Dict[str, bool] = Depends(get_integration_status)):
    """Storage connectivity and integration status."""
    healthy = bool(storage.get('connected'))
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            'status': 'healthy' if healthy else 'degraded',
            'storage': storage,
            'integrations': integrations,
        }
    )

#!/usr/bin/env python3
"""
JSON validation for event classification responses.

Parses LLM output for the gatekeeper and enrichment passes, extracting JSON
from mixed text and repairing common syntax slips. Structural problems
that leave no usable list raise ``JSONValidationError`` so the calling
stage can apply its fallback.
"""

import json
import logging
import re
from typing import Dict, Any, List

from .exceptions import ClassificationError
from .text_sanitizer import preprocess_llm_response

logger = logging.getLogger(__name__)

RESPONSE_KEYS = {
    "gatekeeper": "relevant_events",
    "enrichment": "events",
}


class JSONValidationError(ClassificationError):
    """Raised when LLM output cannot be turned into the expected structure."""
    pass


class EventResponseValidator:
    """Validates classification JSON output."""

    @staticmethod
    def validate_and_parse(raw_output: str, analysis_type: str) -> List[Dict[str, Any]]:
        """
        Validate and parse LLM JSON output.

        Args:
            raw_output: Raw string output from LLM
            analysis_type: "gatekeeper" or "enrichment"

        Returns:
            The list of item dicts under the response key

        Raises:
            JSONValidationError: If no usable list can be recovered
        """
        if analysis_type not in RESPONSE_KEYS:
            raise ValueError(f"Unknown analysis type: {analysis_type}")

        if raw_output is None or not str(raw_output).strip():
            raise JSONValidationError("Empty output", context={'analysis_type': analysis_type})

        data = EventResponseValidator._parse(raw_output)
        return EventResponseValidator._extract_items(data, RESPONSE_KEYS[analysis_type], analysis_type)

    @staticmethod
    def _parse(raw_output: str) -> Any:
        # Structured outputs are usually clean JSON already
        try:
            return json.loads(raw_output.strip())
        except json.JSONDecodeError:
            pass

        processed = preprocess_llm_response(raw_output)
        json_str = EventResponseValidator._extract_json(processed)
        try:
            data = json.loads(json_str)
            logger.info("Successfully parsed extracted JSON")
            return data
        except json.JSONDecodeError as e:
            logger.error(f"JSON parsing failed: {e}")
            logger.error(f"First 300 chars: {repr(json_str[:300])}")
            return EventResponseValidator._repair_json(json_str)

    @staticmethod
    def _extract_json(raw_output: str) -> str:
        """Extract the outermost JSON object from mixed text output."""
        cleaned = raw_output.replace('```json', '').replace('```', '').strip()
        if cleaned.startswith('['):
            return cleaned

        start_idx = cleaned.find('{')
        end_idx = cleaned.rfind('}')
        if start_idx != -1 and end_idx > start_idx:
            return cleaned[start_idx:end_idx + 1]

        return cleaned

    @staticmethod
    def _repair_json(broken_json: str) -> Any:
        """Attempt to repair common JSON syntax errors."""
        logger.warning(f"Attempting JSON repair on {len(broken_json)} characters")

        repaired = re.sub(r',\s*([}\]])', r'\1', broken_json)
        repaired = re.sub(r'([{,]\s*)([A-Za-z_]\w*)(\s*):', r'\1"\2"\3:', repaired)

        try:
            result = json.loads(repaired)
            logger.warning("JSON repair successful")
            return result
        except json.JSONDecodeError as e:
            logger.error(f"JSON repair failed: {e}")
            raise JSONValidationError(
                "Unparsable LLM output",
                context={'error': str(e), 'length': len(broken_json)}
            ) from e

    @staticmethod
    def _extract_items(data: Any, key: str, analysis_type: str) -> List[Dict[str, Any]]:
        if isinstance(data, list):
            items = data
        elif isinstance(data, dict) and key in data:
            items = data[key]
        else:
            raise JSONValidationError(
                f"Response missing '{key}'",
                context={'analysis_type': analysis_type}
            )

        if not isinstance(items, list):
            raise JSONValidationError(
                f"'{key}' is not a list",
                context={'analysis_type': analysis_type, 'type': type(items).__name__}
            )

        valid = [item for item in items if isinstance(item, dict)]
        if len(valid) != len(items):
            logger.warning(f"Dropped {len(items) - len(valid)} non-object entries from {analysis_type} response")
        return valid

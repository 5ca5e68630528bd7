#!/usr/bin/env python3
"""
Centralized JSON schemas for OpenAI structured outputs.

Contains all JSON schemas used for LLM responses to ensure consistency
and enable structured output validation.
"""

from typing import Dict, Any

# Schema for the competitor gatekeeper
GATEKEEPER_SCHEMA = {
    "type": "object",
    "properties": {
        "relevant_events": {
            "type": "array",
            "description": "Events a local winery could market around",
            "items": {
                "type": "object",
                "properties": {
                    "id": {
                        "type": "integer",
                        "description": "The id of the candidate event as given in the input"
                    },
                    "title": {
                        "type": "string",
                        "description": "The candidate title, unchanged"
                    },
                    "reason": {
                        "type": "string",
                        "description": "One short sentence explaining why the event was admitted"
                    }
                },
                "required": ["id", "title", "reason"],
                "additionalProperties": False
            }
        }
    },
    "required": ["relevant_events"],
    "additionalProperties": False
}

# Schema for enrichment and scoring
ENRICHMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "events": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {
                        "type": "integer",
                        "description": "The id of the candidate event this entry describes"
                    },
                    "event_name": {
                        "type": "string",
                        "description": "Clean, public-facing event name"
                    },
                    "event_date": {
                        "type": ["string", "null"],
                        "description": "Event date as YYYY-MM-DD, null when unknown"
                    },
                    "event_location": {
                        "type": "string",
                        "description": "Venue and town, or 'Location TBD'"
                    },
                    "event_summary": {
                        "type": "string",
                        "description": "Two sentences on why the event matters to a local winery"
                    },
                    "event_url": {
                        "type": "string",
                        "description": "Link to the event listing"
                    },
                    "relevance_score": {
                        "type": "integer",
                        "description": "Marketing relevance from 1 to 10"
                    }
                },
                "required": [
                    "id", "event_name", "event_date", "event_location",
                    "event_summary", "event_url", "relevance_score"
                ],
                "additionalProperties": False
            }
        }
    },
    "required": ["events"],
    "additionalProperties": False
}


def get_schema_by_type(analysis_type: str) -> Dict[str, Any]:
    """
    Get JSON schema by analysis type.

    Args:
        analysis_type: Type of analysis ("gatekeeper" or "enrichment")

    Returns:
        JSON schema dictionary

    Raises:
        ValueError: If analysis_type is not recognized
    """
    schemas = {
        "gatekeeper": GATEKEEPER_SCHEMA,
        "enrichment": ENRICHMENT_SCHEMA,
    }

    if analysis_type not in schemas:
        raise ValueError(f"Unknown analysis type: {analysis_type}")

    return schemas[analysis_type]

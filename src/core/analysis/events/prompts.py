#!/usr/bin/env python3
"""
AI prompts for local event classification.

Centralizes the prompt templates for the two classification passes: the
competitor gatekeeper and the enrichment/scoring pass.
"""

import json
from datetime import date
from typing import List

from ...models.event import CandidateEvent, DateWindow
from ...text_sanitizer import sanitize_prompt_text


def _window_text(window: DateWindow) -> str:
    return f"{window.start.isoformat()} to {window.end.isoformat()}"


def _candidates_json(candidates: List[CandidateEvent]) -> str:
    payload = []
    for index, candidate in enumerate(candidates):
        entry = candidate.to_prompt_dict(index)
        entry['title'] = sanitize_prompt_text(entry['title'])
        entry['description'] = sanitize_prompt_text(entry['description'])
        payload.append(entry)
    return json.dumps(payload, ensure_ascii=False, indent=1)


class EventClassificationPrompts:
    """Prompts for event gatekeeping and enrichment."""

    GATEKEEPER_SYSTEM_PROMPT = (
        "You are an expert marketing strategist for boutique Virginia craft beverage brands. "
        "Your job is to read a list of local events and keep ONLY the events that are good, "
        "non-competitive marketing opportunities for a winery."
        "\n\n=== ADMIT ==="
        "\n• Large community festivals, county fairs, agricultural and heritage celebrations"
        "\n• General interest events: car shows, farm tours, art festivals"
        "\n• Holiday-themed events and general tourism drivers"
        "\n• Food festivals, farmers markets, culinary events without a winery or brewery host"
        "\n• Cultural events, concerts, art shows, museum events"
        "\n• Charity galas and fundraisers"
        "\n• Outdoor activities: hikes, cycling tours, garden tours"
        "\n\n=== REJECT ==="
        "\n• Events hosted by a single winery, brewery, cidery or distillery"
        "\n• Tastings, release parties or happy hours at a specific competitor"
        "\n• Wine club events and winery-specific celebrations"
        "\n• Any event whose primary host competes in the craft beverage space"
        "\n\n=== HOW TO DECIDE ==="
        "\n1. Read the title and description carefully."
        "\n2. If a specific winery, brewery, cidery or distillery is the host or organizer, reject it."
        "\n3. A community event that happens AT such a venue but is not hosted BY it is admitted."
        "\n4. Prefer events that draw wine-buying demographics."
        "\n\nReturn every admitted event with its original id and title. "
        "Return an empty list when nothing qualifies."
    )

    ENRICHMENT_SYSTEM_PROMPT = (
        "You are an expert event analyst specializing in wine tourism and craft beverage "
        "marketing in Virginia. Every event you receive has already passed competitor screening."
        "\n\nFor each event provide:"
        "\n• id: the id from the input"
        "\n• event_name: the exact public name of the event"
        "\n• event_date: the event date as YYYY-MM-DD inside the given date range. "
        "Use derived_date when it is present and nothing in the text contradicts it. Use null when unknown."
        "\n• event_location: venue name and town, or 'Location TBD'"
        "\n• event_summary: 1-2 sentences on the event and why it suits winery marketing"
        "\n• event_url: the link field, unchanged"
        "\n• relevance_score: 8-10 for food, wine-adjacent or tourism events, 6-7 for general community events, "
        "below 6 for weak fits"
        "\n\nQUALITY STANDARDS:"
        "\n• Only events inside the date range"
        "\n• Summaries must be specific and actionable"
        "\n• Never invent links"
    )

    @staticmethod
    def get_gatekeeper_prompt(candidates: List[CandidateEvent], window: DateWindow, today: date) -> str:
        """
        Build the gatekeeper user prompt.

        Args:
            candidates: Candidate events to screen
            window: Requested date window
            today: Reference date

        Returns:
            Prompt text listing the candidates as JSON
        """
        return (
            f"Today's date is {today.isoformat()} and the date range is {_window_text(window)}.\n\n"
            f"Screen these {len(candidates)} events and keep only the non-competitive opportunities.\n\n"
            f"EVENTS TO ANALYZE:\n{_candidates_json(candidates)}"
        )

    @staticmethod
    def get_enrichment_prompt(candidates: List[CandidateEvent], window: DateWindow, today: date) -> str:
        """
        Build the enrichment user prompt.

        Args:
            candidates: Events admitted by the gatekeeper
            window: Requested date window
            today: Reference date

        Returns:
            Prompt text listing the events as JSON
        """
        return (
            f"Today's date is {today.isoformat()}. IMPORTANT: the date range is {_window_text(window)}.\n\n"
            f"Provide enhanced details for these {len(candidates)} pre-screened events.\n\n"
            f"FILTERED NON-COMPETITOR EVENTS TO ANALYZE:\n{_candidates_json(candidates)}"
        )

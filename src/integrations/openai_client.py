#!/usr/bin/env python3
"""
OpenAI integration for event classification.

Provides the two completion calls the classification pipeline makes:
- Competitor gatekeeping of candidate events
- Enrichment and relevance scoring of admitted events

Both use structured outputs; the raw response text is returned so that
parsing and fallback stay with the pipeline stages.
"""

import os
import logging
from datetime import date
from typing import List, Dict, Optional, Any

from openai import OpenAI
from core.analysis.events.prompts import EventClassificationPrompts
from core.models.event import CandidateEvent, DateWindow
from core.schemas import get_schema_by_type

logger = logging.getLogger(__name__)


class OpenAIClient:
    """Client for OpenAI API integration with structured outputs."""

    def __init__(self, api_key: Optional[str] = None, model: str = "gpt-4o",
                 max_tokens: int = 4000, temperature: float = 0.1):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key. If None, tries to get from environment.
            model: Chat model name
            max_tokens: Completion token ceiling per call
            temperature: Sampling temperature
        """
        api_key = api_key or os.getenv('OPENAI_API_KEY')
        if not api_key:
            raise ValueError("OpenAI API key not provided and not found in OPENAI_API_KEY environment variable")

        self.client = OpenAI(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    def _make_structured_request(self, messages: List[Dict[str, str]], schema: Dict[str, Any],
                                 analysis_type: str = "unknown") -> str:
        """Make a structured request to OpenAI API with JSON schema enforcement."""
        logger.info(f"Making OpenAI structured API call for {analysis_type}")
        for i, msg in enumerate(messages):
            content = msg.get('content', '')
            if len(content) > 1000:
                content = content[:500] + "\n...\n" + content[-500:]
            logger.debug(f"Message {i+1} [{msg.get('role', 'unknown').upper()}]:\n{content}")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": f"{analysis_type}_response",
                        "schema": schema,
                        "strict": True
                    }
                }
            )
        except Exception as e:
            logger.error(f"OpenAI structured API request failed: {e}")
            raise

        if not response.choices:
            raise ValueError("OpenAI response contained no choices")

        # Detect truncated responses early
        finish_reason = getattr(response.choices[0], "finish_reason", None)
        if finish_reason == "length":
            logger.error(
                "OpenAI response for %s was truncated due to max_tokens=%s. Consider increasing the limit.",
                analysis_type,
                self.max_tokens,
            )
            raise ValueError("OpenAI response truncated (finish_reason=length)")

        content = response.choices[0].message.content or ""
        logger.debug(f"=== LLM OUTPUT ({analysis_type}) ===\n{content}")

        usage = getattr(response, 'usage', None)
        if usage is not None:
            logger.info(
                f"OpenAI API call successful - tokens: {usage.prompt_tokens} prompt + "
                f"{usage.completion_tokens} completion = {usage.total_tokens} total"
            )
        return content

    def screen_events(self, candidates: List[CandidateEvent], window: DateWindow, today: date) -> str:
        """
        Ask the model which candidates are non-competitive opportunities.

        Returns:
            Raw JSON text shaped like ``{"relevant_events": [...]}``
        """
        messages = [
            {"role": "system", "content": EventClassificationPrompts.GATEKEEPER_SYSTEM_PROMPT},
            {"role": "user", "content": EventClassificationPrompts.get_gatekeeper_prompt(candidates, window, today)}
        ]
        return self._make_structured_request(messages, get_schema_by_type("gatekeeper"), "gatekeeper")

    def enrich_events(self, candidates: List[CandidateEvent], window: DateWindow, today: date) -> str:
        """
        Ask the model to enrich and score admitted events.

        Returns:
            Raw JSON text shaped like ``{"events": [...]}``
        """
        messages = [
            {"role": "system", "content": EventClassificationPrompts.ENRICHMENT_SYSTEM_PROMPT},
            {"role": "user", "content": EventClassificationPrompts.get_enrichment_prompt(candidates, window, today)}
        ]
        return self._make_structured_request(messages, get_schema_by_type("enrichment"), "enrichment")

    def test_connection(self) -> bool:
        """Test OpenAI API connection."""
        try:
            response = self.client.chat.completions.create(
                model="gpt-4o-mini",
                messages=[{"role": "user", "content": "Hello"}],
                max_tokens=5
            )

            if response and response.choices:
                logger.info("OpenAI API connection test successful")
                return True
            else:
                logger.error("OpenAI API connection test failed: no response")
                return False

        except Exception as e:
            logger.error(f"OpenAI API connection test failed: {e}")
            return False

#!/usr/bin/env python3
"""
Event classification pipeline stages.

GatekeeperStage drops events hosted by competing craft beverage producers.
EnrichmentStage turns the admitted candidates into scored, dated events.
Both call the completion service and both degrade to a deterministic local
fallback when it is unavailable or returns something unusable.
"""

import logging
from datetime import date, timedelta
from enum import Enum
from typing import List, Dict, Any, Optional

from ..pipeline import AnalysisPipeline, AnalysisStage
from ...json_validator import EventResponseValidator
from ...models.event import CandidateEvent, DateWindow, EnrichedEvent, parse_date_safe

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "Location TBD"
DEFAULT_SUMMARY = "Marketing opportunity discovered through event scanning"

STATUS_OK = "ok"
STATUS_FAIL_OPEN = "fail_open"
STATUS_FAIL_CLOSED = "fail_closed"
STATUS_FALLBACK = "fallback"


class FailurePolicy(Enum):
    """What the gatekeeper does when it cannot get a verdict."""
    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"

    @classmethod
    def from_value(cls, value: str) -> 'FailurePolicy':
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(f"Unknown failure policy '{value}'. Expected one of: "
                             f"{', '.join(policy.value for policy in cls)}") from None


def _norm(text: Optional[str]) -> str:
    return ' '.join((text or '').lower().split())


class CandidateIndex:
    """Looks up the candidate an LLM item refers to, by id, then link, then title."""

    def __init__(self, candidates: List[CandidateEvent]):
        self.candidates = candidates
        self._by_link = {}
        self._by_title = {}
        for index, candidate in enumerate(candidates):
            if candidate.link:
                self._by_link.setdefault(candidate.link.strip().lower(), index)
            self._by_title.setdefault(_norm(candidate.title), index)

    def locate(self, item: Dict[str, Any], url_key: str, name_key: str) -> Optional[int]:
        raw_id = item.get('id')
        if isinstance(raw_id, int) and not isinstance(raw_id, bool) and 0 <= raw_id < len(self.candidates):
            return raw_id

        url = item.get(url_key)
        if isinstance(url, str) and url.strip().lower() in self._by_link:
            return self._by_link[url.strip().lower()]

        name = item.get(name_key)
        if isinstance(name, str) and _norm(name) in self._by_title:
            return self._by_title[_norm(name)]

        return None


class GatekeeperStage(AnalysisStage):
    """Screens out competitor-hosted events."""

    def __init__(self, openai_client=None, failure_policy: FailurePolicy = FailurePolicy.FAIL_OPEN,
                 config: Dict[str, Any] = None):
        """
        Initialize gatekeeper stage.

        Args:
            openai_client: Completion client; ``None`` counts as unavailable
            failure_policy: Behaviour when no verdict can be obtained
            config: Stage configuration
        """
        super().__init__(config)
        self.openai_client = openai_client
        self.failure_policy = failure_policy

    def _apply_policy(self, candidates: List[CandidateEvent], reason: str) -> Dict[str, Any]:
        if self.failure_policy is FailurePolicy.FAIL_OPEN:
            logger.warning(f"Gatekeeper unavailable ({reason}); failing open with all {len(candidates)} candidates")
            admitted = list(candidates)
            status = STATUS_FAIL_OPEN
        else:
            logger.warning(f"Gatekeeper unavailable ({reason}); failing closed, admitting nothing")
            admitted = []
            status = STATUS_FAIL_CLOSED

        return {
            'admitted_events': admitted,
            'gatekeeper_status': status,
            'gatekeeper_error': reason,
        }

    def process(self, candidates: List[CandidateEvent], context: Dict[str, Any]) -> Dict[str, Any]:
        """Ask the completion service which candidates to keep."""
        window: DateWindow = context['window']
        today: date = context['today']

        if self.openai_client is None:
            return self._apply_policy(candidates, "no completion client configured")

        try:
            raw = self.openai_client.screen_events(candidates, window, today)
            items = EventResponseValidator.validate_and_parse(raw, "gatekeeper")
        except Exception as e:
            logger.error(f"Gatekeeper call failed: {e}")
            return self._apply_policy(candidates, str(e))

        index = CandidateIndex(candidates)
        admitted_ids = set()
        for item in items:
            position = index.locate(item, 'link', 'title')
            if position is None:
                logger.warning(f"Gatekeeper returned an event that matches no candidate: {item.get('title')!r}")
                continue
            admitted_ids.add(position)

        # original candidates, original order
        admitted = [candidate for i, candidate in enumerate(candidates) if i in admitted_ids]

        logger.info(
            f"Gatekeeper admitted {len(admitted)}/{len(candidates)} candidates "
            f"({len(candidates) - len(admitted)} competitor events filtered)"
        )
        return {
            'admitted_events': admitted,
            'gatekeeper_status': STATUS_OK,
        }


class EnrichmentStage(AnalysisStage):
    """Scores and fills in details for admitted events."""

    def __init__(self, openai_client=None, min_score: int = 6, fallback_score: int = 7,
                 fallback_offset_days: int = 30, config: Dict[str, Any] = None):
        """
        Initialize enrichment stage.

        Args:
            openai_client: Completion client; ``None`` triggers the local fallback
            min_score: Lowest relevance score that survives
            fallback_score: Score given to every event by the local fallback
            fallback_offset_days: Days after today used for undated fallback events
            config: Stage configuration
        """
        super().__init__(config)
        self.openai_client = openai_client
        self.min_score = min_score
        self.fallback_score = fallback_score
        self.fallback_offset_days = fallback_offset_days

    def get_dependencies(self) -> List[str]:
        """Enrichment only sees what the gatekeeper admitted."""
        return ['GatekeeperStage']

    def can_process(self, candidates: List[CandidateEvent], context: Dict[str, Any]) -> bool:
        return bool(context.get('admitted_events'))

    def process(self, candidates: List[CandidateEvent], context: Dict[str, Any]) -> Dict[str, Any]:
        """Enrich admitted candidates, falling back to a local mapping on failure."""
        admitted: List[CandidateEvent] = context.get('admitted_events', [])
        window: DateWindow = context['window']
        today: date = context['today']

        if self.openai_client is None:
            logger.warning("No completion client configured, creating basic events")
            return self._fallback_results(admitted, today, "no completion client configured")

        try:
            raw = self.openai_client.enrich_events(admitted, window, today)
            items = EventResponseValidator.validate_and_parse(raw, "enrichment")
        except Exception as e:
            logger.error(f"Enrichment call failed, creating basic events: {e}")
            return self._fallback_results(admitted, today, str(e))

        try:
            events = self._reconcile(items, admitted, window, today)
        except Exception as e:
            logger.error(f"Could not reconcile enrichment response, creating basic events: {e}")
            return self._fallback_results(admitted, today, str(e))

        logger.info(f"Enrichment kept {len(events)}/{len(admitted)} events at score >= {self.min_score}")
        return {
            'enriched_events': events,
            'enrichment_status': STATUS_OK,
        }

    def fallback_event(self, candidate: CandidateEvent, today: date) -> EnrichedEvent:
        """Deterministic enrichment used when the completion service fails."""
        return EnrichedEvent(
            event_name=candidate.title,
            event_date=candidate.event_date or today + timedelta(days=self.fallback_offset_days),
            event_location=DEFAULT_LOCATION,
            event_summary=candidate.description or DEFAULT_SUMMARY,
            event_url=candidate.link,
            relevance_score=self.fallback_score,
            source_url=candidate.source_url,
            source_name=candidate.source_name
        )

    def _fallback_results(self, admitted: List[CandidateEvent], today: date, reason: str) -> Dict[str, Any]:
        events = [self.fallback_event(candidate, today) for candidate in admitted]
        events = [event for event in events if event.relevance_score >= self.min_score]
        return {
            'enriched_events': events,
            'enrichment_status': STATUS_FALLBACK,
            'enrichment_error': reason,
        }

    def _score(self, item: Dict[str, Any]) -> Optional[int]:
        raw_score = item.get('relevance_score')
        if isinstance(raw_score, bool):
            return None
        try:
            score = int(round(float(raw_score)))
        except (TypeError, ValueError):
            return None
        return max(1, min(10, score))

    def _resolve_date(self, item: Dict[str, Any], origin: CandidateEvent,
                      window: DateWindow, today: date) -> date:
        proposed = parse_date_safe(item.get('event_date'))

        # undated candidates are judged on relevance only, never on the window
        if origin.event_date is None:
            return proposed or today + timedelta(days=self.fallback_offset_days)

        if proposed and window.contains(proposed):
            return proposed
        if proposed:
            logger.info(f"Replacing out-of-window date {proposed} with derived date {origin.event_date} for '{origin.title[:50]}'")
        return origin.event_date

    @staticmethod
    def _text(item: Dict[str, Any], key: str) -> str:
        """String field from a model entry; anything else counts as missing."""
        value = item.get(key)
        return value.strip() if isinstance(value, str) else ''

    def _reconcile(self, items: List[Dict[str, Any]], admitted: List[CandidateEvent],
                   window: DateWindow, today: date) -> List[EnrichedEvent]:
        index = CandidateIndex(admitted)
        used = set()
        events: List[EnrichedEvent] = []

        for item in items:
            position = index.locate(item, 'event_url', 'event_name')
            if position is None:
                logger.warning(f"Enrichment returned an entry matching no candidate: {item.get('event_name')!r}")
                continue
            if position in used:
                logger.debug(f"Duplicate enrichment entry for candidate {position}, keeping the first")
                continue
            origin = admitted[position]

            score = self._score(item)
            if score is None:
                logger.warning(f"Dropping enrichment entry with unusable score: {item.get('event_name')!r}")
                continue
            if score < self.min_score:
                logger.debug(f"Dropping '{origin.title[:50]}' with score {score}")
                continue

            summary = self._text(item, 'event_summary') or origin.description or DEFAULT_SUMMARY

            # never trust a model-supplied link over the one the feed gave us
            url = origin.link or self._text(item, 'event_url')

            events.append(EnrichedEvent(
                event_name=self._text(item, 'event_name') or origin.title,
                event_date=self._resolve_date(item, origin, window, today),
                event_location=self._text(item, 'event_location') or DEFAULT_LOCATION,
                event_summary=summary,
                event_url=url,
                relevance_score=score,
                source_url=origin.source_url,
                source_name=origin.source_name
            ))
            used.add(position)

        return events


def build_classification_pipeline(openai_client=None,
                                  failure_policy: FailurePolicy = FailurePolicy.FAIL_OPEN,
                                  min_score: int = 6, fallback_score: int = 7,
                                  fallback_offset_days: int = 30):
    """Assemble the gatekeeper + enrichment pipeline."""
    pipeline = AnalysisPipeline()
    pipeline.add_stage(GatekeeperStage(openai_client=openai_client, failure_policy=failure_policy))
    pipeline.add_stage(EnrichmentStage(
        openai_client=openai_client,
        min_score=min_score,
        fallback_score=fallback_score,
        fallback_offset_days=fallback_offset_days
    ))
    return pipeline

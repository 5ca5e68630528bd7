from datetime import date, timedelta

import pytest

from core.analysis.events import (
    DEFAULT_LOCATION, DEFAULT_SUMMARY, EnrichmentStage, FailurePolicy, GatekeeperStage,
    build_classification_pipeline,
)
from core.models import CandidateEvent, DateWindow


def candidate(title, link, event_date=None, description="A public community event"):
    return CandidateEvent(
        title=title,
        description=description,
        link=link,
        source_name="Visit Loudoun Events",
        source_url="https://www.visitloudoun.org/event/rss/",
        event_date=event_date,
    )


@pytest.fixture
def candidates():
    return [
        candidate("Loudoun Wine Festival", "https://visitloudoun.org/e/wine", date(2025, 3, 15)),
        candidate("CompetitorCo Winery Tasting", "https://competitorco.example/tasting", date(2025, 4, 5)),
        candidate("Ongoing Art Exhibit", "https://visitloudoun.org/e/art"),
    ]


@pytest.fixture
def context(window, today):
    return {"window": window, "today": today}


class TestGatekeeper:

    def test_admits_only_listed_candidates_in_original_order(self, candidates, context, fake_openai_client_factory):
        client = fake_openai_client_factory(gatekeeper_response={"relevant_events": [
            {"id": 2, "title": "Ongoing Art Exhibit", "reason": "museum"},
            {"id": 0, "title": "Loudoun Wine Festival", "reason": "county festival"},
        ]})

        result = GatekeeperStage(openai_client=client).process(candidates, context)

        assert result["admitted_events"] == [candidates[0], candidates[2]]
        assert result["gatekeeper_status"] == "ok"

    def test_items_matched_by_link_or_title_when_id_missing(self, candidates, context, fake_openai_client_factory):
        client = fake_openai_client_factory(gatekeeper_response={"relevant_events": [
            {"title": "  loudoun   wine festival ", "reason": "title match"},
            {"link": "https://visitloudoun.org/e/art", "title": "Renamed", "reason": "link match"},
            {"title": "Invented Event", "reason": "no match"},
        ]})

        result = GatekeeperStage(openai_client=client).process(candidates, context)

        assert result["admitted_events"] == [candidates[0], candidates[2]]

    def test_fail_open_passes_everything_through(self, candidates, context, fake_openai_client_factory):
        client = fake_openai_client_factory(gatekeeper_error=TimeoutError("upstream timed out"))

        result = GatekeeperStage(openai_client=client).process(candidates, context)

        assert result["admitted_events"] == candidates
        assert result["gatekeeper_status"] == "fail_open"
        assert "timed out" in result["gatekeeper_error"]

    def test_unparsable_verdict_triggers_policy(self, candidates, context, fake_openai_client_factory):
        client = fake_openai_client_factory(gatekeeper_response="I cannot help with that")

        result = GatekeeperStage(openai_client=client).process(candidates, context)

        assert result["admitted_events"] == candidates
        assert result["gatekeeper_status"] == "fail_open"

    def test_fail_closed_admits_nothing(self, candidates, context, fake_openai_client_factory):
        client = fake_openai_client_factory(gatekeeper_error=ConnectionError("refused"))
        stage = GatekeeperStage(openai_client=client, failure_policy=FailurePolicy.FAIL_CLOSED)

        result = stage.process(candidates, context)

        assert result["admitted_events"] == []
        assert result["gatekeeper_status"] == "fail_closed"

    def test_missing_client_counts_as_unavailable(self, candidates, context):
        result = GatekeeperStage(openai_client=None).process(candidates, context)
        assert result["admitted_events"] == candidates
        assert result["gatekeeper_status"] == "fail_open"


class TestEnrichment:

    def test_fallback_mapping(self, candidates, context, today):
        admitted = {**context, "admitted_events": candidates}

        result = EnrichmentStage(openai_client=None).process(candidates, admitted)

        events = result["enriched_events"]
        assert result["enrichment_status"] == "fallback"
        assert [e.event_name for e in events] == [c.title for c in candidates]
        assert events[0].event_date == date(2025, 3, 15)
        assert events[2].event_date == today + timedelta(days=30)
        assert all(e.event_location == DEFAULT_LOCATION for e in events)
        assert all(e.relevance_score == 7 for e in events)
        assert events[1].event_url == "https://competitorco.example/tasting"

    def test_fallback_uses_stock_summary_for_empty_description(self, context):
        bare = candidate("Town Parade", "https://example.org/parade", date(2025, 5, 1), description="")
        result = EnrichmentStage().process([bare], {**context, "admitted_events": [bare]})
        assert result["enriched_events"][0].event_summary == DEFAULT_SUMMARY

    def test_service_error_uses_fallback(self, candidates, context, fake_openai_client_factory):
        client = fake_openai_client_factory(enrichment_error=RuntimeError("500 from upstream"))
        result = EnrichmentStage(openai_client=client).process(
            candidates, {**context, "admitted_events": candidates}
        )
        assert result["enrichment_status"] == "fallback"
        assert len(result["enriched_events"]) == 3

    def test_reconciliation_rules(self, candidates, context, fake_openai_client_factory):
        client = fake_openai_client_factory(enrichment_response={"events": [
            # out-of-window date replaced by derived date; model link ignored
            {"id": 0, "event_name": "Loudoun Wine Festival", "event_date": "2025-12-01",
             "event_location": "Morven Park", "event_summary": "Wine and music",
             "event_url": "https://tracker.example/redirect", "relevance_score": 9},
            # below the floor
            {"id": 1, "event_name": "CompetitorCo Winery Tasting", "event_date": "2025-04-05",
             "event_location": "", "event_summary": "", "event_url": "", "relevance_score": 3},
            # undated origin with null date gets today + 30
            {"id": 2, "event_name": "Ongoing Art Exhibit", "event_date": None,
             "event_location": "", "event_summary": "", "event_url": "", "relevance_score": "15"},
            # duplicate of candidate 0
            {"id": 0, "event_name": "Loudoun Wine Festival", "event_date": "2025-03-15",
             "event_location": "", "event_summary": "", "event_url": "", "relevance_score": 10},
        ]})

        result = EnrichmentStage(openai_client=client).process(
            candidates, {**context, "admitted_events": candidates}
        )
        events = result["enriched_events"]

        assert result["enrichment_status"] == "ok"
        assert [e.event_name for e in events] == ["Loudoun Wine Festival", "Ongoing Art Exhibit"]

        wine, art = events
        assert wine.event_date == date(2025, 3, 15)
        assert wine.event_url == "https://visitloudoun.org/e/wine"
        assert wine.event_location == "Morven Park"
        assert wine.relevance_score == 9
        assert wine.source_name == "Visit Loudoun Events"

        assert art.event_date == date(2025, 3, 31)
        assert art.relevance_score == 10
        assert art.event_location == DEFAULT_LOCATION
        assert art.event_summary == "A public community event"

    def test_item_matching_no_candidate_is_dropped(self, candidates, context, fake_openai_client_factory):
        client = fake_openai_client_factory(enrichment_response={"events": [
            {"event_name": "Invented Gala", "event_date": "2025-04-10", "event_location": "Leesburg, VA",
             "event_summary": "", "event_url": "https://invented.example/gala", "relevance_score": 9},
        ]})
        result = EnrichmentStage(openai_client=client).process(
            candidates, {**context, "admitted_events": candidates}
        )
        assert result["enrichment_status"] == "ok"
        assert result["enriched_events"] == []

    def test_undated_candidate_keeps_model_date_outside_window(self, candidates, context, fake_openai_client_factory):
        client = fake_openai_client_factory(enrichment_response={"events": [
            {"id": 2, "event_name": "Ongoing Art Exhibit", "event_date": "2025-09-01",
             "event_location": "", "event_summary": "", "event_url": "", "relevance_score": 9},
        ]})
        result = EnrichmentStage(openai_client=client).process(
            candidates, {**context, "admitted_events": candidates}
        )
        assert [(e.event_name, e.event_date) for e in result["enriched_events"]] == [
            ("Ongoing Art Exhibit", date(2025, 9, 1)),
        ]

    def test_undated_candidate_gets_offset_date_even_outside_window(self, candidates, today, fake_openai_client_factory):
        late_window = DateWindow(date(2025, 5, 1), date(2025, 6, 1))
        client = fake_openai_client_factory(enrichment_response={"events": [
            {"id": 2, "event_name": "Ongoing Art Exhibit", "event_date": None,
             "event_location": "", "event_summary": "", "event_url": "", "relevance_score": 9},
        ]})
        result = EnrichmentStage(openai_client=client).process(
            candidates, {"window": late_window, "today": today, "admitted_events": candidates}
        )
        assert [e.event_date for e in result["enriched_events"]] == [today + timedelta(days=30)]

    def test_non_string_fields_treated_as_missing(self, candidates, context, fake_openai_client_factory):
        client = fake_openai_client_factory(enrichment_response={"events": [
            {"id": 0, "event_name": 42, "event_date": "2025-03-15", "event_location": ["x"],
             "event_summary": {"text": "nope"}, "event_url": 7, "relevance_score": 8},
        ]})
        result = EnrichmentStage(openai_client=client).process(
            candidates, {**context, "admitted_events": candidates}
        )

        assert result["enrichment_status"] == "ok"
        [event] = result["enriched_events"]
        assert event.event_name == "Loudoun Wine Festival"
        assert event.event_location == DEFAULT_LOCATION
        assert event.event_summary == "A public community event"
        assert event.event_url == "https://visitloudoun.org/e/wine"

    def test_unexpected_reconcile_error_uses_fallback(self, candidates, context, fake_openai_client_factory, monkeypatch):
        stage = EnrichmentStage(openai_client=fake_openai_client_factory())

        def explode(*args):
            raise TypeError("unexpected entry shape")

        monkeypatch.setattr(stage, "_reconcile", explode)
        result = stage.process(candidates, {**context, "admitted_events": candidates})

        assert result["enrichment_status"] == "fallback"
        assert len(result["enriched_events"]) == 3


class TestPipeline:

    def test_gatekeeper_runs_before_enrichment(self, candidates, context, fake_openai_client_factory):
        client = fake_openai_client_factory(gatekeeper_response={"relevant_events": [
            {"id": 0, "title": "Loudoun Wine Festival", "reason": "public"},
        ]})

        result = build_classification_pipeline(openai_client=client).run(candidates, context)

        assert client.calls["enrich"] == [[candidates[0]]]
        assert [e.event_name for e in result["enriched_events"]] == ["Loudoun Wine Festival"]

    def test_enrichment_skipped_when_nothing_admitted(self, candidates, context, fake_openai_client_factory):
        client = fake_openai_client_factory(gatekeeper_response={"relevant_events": []})

        result = build_classification_pipeline(openai_client=client).run(candidates, context)

        assert result["admitted_events"] == []
        assert "enriched_events" not in result
        assert client.calls["enrich"] == []

    def test_no_candidates_returns_context_untouched(self, context):
        assert build_classification_pipeline().run([], context) == context

    def test_unknown_failure_policy_rejected(self):
        with pytest.raises(ValueError):
            FailurePolicy.from_value("fail_sideways")

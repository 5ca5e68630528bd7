from datetime import date

import pytest

from core.engine import NO_ADMITTED_MESSAGE, NO_EVENTS_MESSAGE, NO_FINAL_MESSAGE
from core.exceptions import DatabaseError, RequestValidationError
from core.models import DateWindow, RawFeedPayload

from conftest import FailingBriefRepository, FailingTenantRepository, rss_feed, rss_item

FEED_URL = "https://www.visitloudoun.org/event/rss/"


@pytest.fixture
def loudoun_feed():
    return rss_feed(
        rss_item("Loudoun Wine Festival", "Join us on 3/15/2025 at Morven Park", "https://visitloudoun.org/e/wine"),
        rss_item("CompetitorCo Winery Tasting", "Tasting flights April 5, 2025", "https://competitorco.example/t"),
        rss_item("Harvest Gala", "Black tie dinner 11/20/2025", "https://visitloudoun.org/e/gala"),
    )


def scan_body(feed, start="2025-03-01", end="2025-06-01"):
    return {
        "date_range": {"start_date": start, "end_date": end},
        "raw_data": [{"source_url": FEED_URL, "raw_content": feed}],
    }


def test_inline_scan_end_to_end(storage, loudoun_feed, scan_service_factory, fake_openai_client_factory):
    client = fake_openai_client_factory(gatekeeper_response={"relevant_events": [
        {"id": 0, "title": "Loudoun Wine Festival", "reason": "county festival"},
    ]})

    result = scan_service_factory(openai_client=client).scan_request(scan_body(loudoun_feed))
    body = result.to_dict()

    assert body["success"] is True
    assert body["data_source"] == "inline_payload"
    assert body["raw_sources_processed"] == 1
    assert body["events_extracted"] == 2
    assert body["events_after_gatekeeper"] == 1
    assert body["competitor_events_filtered"] == 1
    assert body["events_final"] == 1
    assert body["tenants_processed"] == 2
    assert body["briefs_created"] == 2
    assert body["briefs_failed"] == 0
    assert body["gatekeeper_status"] == "ok"
    assert body["enrichment_status"] == "ok"
    assert body["date_range"] == {"start": "2025-03-01", "end": "2025-06-01", "duration_days": 92}
    assert body["events"][0]["name"] == "Loudoun Wine Festival"
    assert body["events"][0]["date"] == "2025-03-15"
    assert body["sources_processed"] == [
        {"source_url": FEED_URL, "content_length": len(loudoun_feed), "candidates": 2}
    ]
    assert body["message"] == (
        "Event scan complete: processed 1 non-competitor events from 1 sources for 2 tenants"
    )

    briefs = storage.briefs.briefs
    assert {b.tenant_id for b in briefs} == {"tenant-1", "tenant-2"}
    assert all(b.theme == "Event Opportunity: Loudoun Wine Festival" for b in briefs)
    assert "Data Source: inline_payload" in briefs[0].key_points
    assert "Source Name: Visit Loudoun Events" in briefs[0].key_points


def test_out_of_window_items_never_reach_classification(loudoun_feed, scan_service_factory,
                                                       fake_openai_client_factory):
    client = fake_openai_client_factory()

    scan_service_factory(openai_client=client).scan_request(scan_body(loudoun_feed))

    screened = [c.title for c in client.calls["screen"][0]]
    assert "Harvest Gala" not in screened


def test_unavailable_classifier_fails_open(storage, loudoun_feed, scan_service_factory):
    result = scan_service_factory(openai_client=None).scan_request(scan_body(loudoun_feed))

    assert result.gatekeeper_status == "fail_open"
    assert result.enrichment_status == "fallback"
    assert result.events_after_gatekeeper == 2
    assert result.events_final == 2
    assert result.briefs_created == 4
    assert all(e.relevance_score == 7 for e in result.events)


def test_fail_closed_reports_nothing_admitted(loudoun_feed, scan_service_factory, fake_openai_client_factory):
    from core.analysis.events import FailurePolicy

    client = fake_openai_client_factory(gatekeeper_error=TimeoutError("slow"))
    service = scan_service_factory(openai_client=client, failure_policy=FailurePolicy.FAIL_CLOSED)

    result = service.scan_request(scan_body(loudoun_feed))

    assert result.events_after_gatekeeper == 0
    assert result.gatekeeper_status == "fail_closed"
    assert result.message == NO_ADMITTED_MESSAGE
    assert result.briefs_created == 0


def test_low_scores_leave_nothing_final(loudoun_feed, scan_service_factory, fake_openai_client_factory):
    client = fake_openai_client_factory(enrichment_response={"events": [
        {"id": 0, "event_name": "Loudoun Wine Festival", "event_date": "2025-03-15",
         "event_location": "", "event_summary": "", "event_url": "", "relevance_score": 2},
    ]})

    result = scan_service_factory(openai_client=client).scan_request(scan_body(loudoun_feed))

    assert result.events_final == 0
    assert result.message == NO_FINAL_MESSAGE
    assert result.tenants_processed == 0


def test_stored_rows_are_scanned_and_marked(storage, scan_service_factory, ingestion_service_factory,
                                           fake_openai_client_factory):
    ingestion_service_factory().ingest([
        {"title": "Loudoun Wine Festival", "description": "Join us on 3/15/2025",
         "link": "https://www.visitloudoun.org/e/wine"},
        {"title": "Harvest Gala", "description": "Dinner on 11/20/2025",
         "link": "https://www.fxva.com/e/gala"},
    ])
    service = scan_service_factory(openai_client=fake_openai_client_factory())

    result = service.scan(window=DateWindow(date(2025, 3, 1), date(2025, 6, 1)))

    assert result.data_source == "stored_rows"
    assert result.raw_sources_processed == 2
    assert result.events_extracted == 1
    assert result.events_final == 1
    assert result.briefs_created == 2
    assert storage.raw_events.list_unprocessed() == []
    assert all(row.processed for row in storage.raw_events.all_rows())
    assert "Data Source: stored_rows" in storage.briefs.briefs[0].key_points

    again = service.scan(window=DateWindow(date(2025, 3, 1), date(2025, 6, 1)))
    assert again.data_source == "none_found"
    assert again.message == NO_EVENTS_MESSAGE


def test_inline_payload_leaves_stored_rows_alone(storage, loudoun_feed, scan_service_factory,
                                                ingestion_service_factory):
    ingestion_service_factory().ingest([{"title": "Spring Farm Tour", "description": "Tour on 4/12/2025"}])

    result = scan_service_factory().scan_request(scan_body(loudoun_feed))

    assert result.data_source == "inline_payload"
    assert len(storage.raw_events.list_unprocessed()) == 1


def test_empty_raw_data_never_reads_stored_rows(storage, scan_service_factory, ingestion_service_factory):
    ingestion_service_factory().ingest([{"title": "Spring Farm Tour", "description": "Tour on 4/12/2025"}])

    result = scan_service_factory().scan_request({"raw_data": []})

    assert result.data_source == "inline_payload"
    assert result.raw_sources_processed == 0
    assert result.events_extracted == 0
    assert result.message == NO_EVENTS_MESSAGE
    assert len(storage.raw_events.list_unprocessed()) == 1


def test_undated_event_survives_out_of_window_enrichment_date(scan_service_factory, fake_openai_client_factory):
    feed = rss_feed(rss_item("Ongoing Art Exhibit", "Paintings from local artists", "https://visitloudoun.org/e/art"))
    client = fake_openai_client_factory(enrichment_response={"events": [
        {"id": 0, "event_name": "Ongoing Art Exhibit", "event_date": "2025-09-01",
         "event_location": "Leesburg, VA", "event_summary": "", "event_url": "", "relevance_score": 9},
    ]})

    result = scan_service_factory(openai_client=client).scan_request(scan_body(feed))

    assert result.events_extracted == 1
    assert result.events_final == 1
    assert result.events[0].event_date == date(2025, 9, 1)


def test_undated_event_with_no_enrichment_date_survives_late_window(scan_service_factory,
                                                                   fake_openai_client_factory):
    feed = rss_feed(rss_item("Ongoing Art Exhibit", "Paintings from local artists", "https://visitloudoun.org/e/art"))
    client = fake_openai_client_factory(enrichment_response={"events": [
        {"id": 0, "event_name": "Ongoing Art Exhibit", "event_date": None,
         "event_location": "", "event_summary": "", "event_url": "", "relevance_score": 9},
    ]})

    result = scan_service_factory(openai_client=client).scan_request(scan_body(feed, start="2025-05-01"))

    assert result.events_final == 1
    assert result.events[0].event_date == date(2025, 3, 31)


def test_malformed_enrichment_fields_still_produce_events(loudoun_feed, scan_service_factory,
                                                          fake_openai_client_factory):
    client = fake_openai_client_factory(enrichment_response={"events": [
        {"id": 0, "event_name": 42, "event_date": "2025-03-15", "event_location": ["x"],
         "event_summary": None, "event_url": "", "relevance_score": 8},
    ]})

    result = scan_service_factory(openai_client=client).scan_request(scan_body(loudoun_feed))

    assert result.enrichment_status == "ok"
    assert result.events_final == 1
    assert result.events[0].event_name == "Loudoun Wine Festival"


def test_nothing_to_scan(scan_service_factory):
    result = scan_service_factory().scan_request({})

    assert result.success is True
    assert result.data_source == "none_found"
    assert result.events_extracted == 0
    assert result.message == NO_EVENTS_MESSAGE


def test_empty_inline_feed_reports_no_events(scan_service_factory):
    result = scan_service_factory().scan_request({"raw_data": [{"source_url": FEED_URL, "raw_content": ""}]})

    assert result.data_source == "inline_payload"
    assert result.raw_sources_processed == 1
    assert result.message == NO_EVENTS_MESSAGE


def test_roster_failure_propagates(loudoun_feed, scan_service_factory):
    service = scan_service_factory(tenant_repository=FailingTenantRepository())

    with pytest.raises(DatabaseError):
        service.scan_request(scan_body(loudoun_feed))


def test_empty_roster(storage, loudoun_feed, scan_service_factory):
    storage.tenants.tenants = []

    result = scan_service_factory().scan_request(scan_body(loudoun_feed))

    assert result.tenants_processed == 0
    assert result.briefs_created == 0
    assert result.message == "Events found but no tenants to generate briefs for"


def test_partial_brief_failures_are_counted(loudoun_feed, scan_service_factory):
    repository = FailingBriefRepository(["tenant-2"])
    service = scan_service_factory(brief_repository=repository, max_workers=2)

    result = service.scan_request(scan_body(loudoun_feed))

    assert result.briefs_created == 2
    assert result.briefs_failed == 2
    assert result.success is True


def test_scan_accepts_payload_objects(scan_service_factory, loudoun_feed):
    result = scan_service_factory().scan(payloads=[RawFeedPayload(FEED_URL, loudoun_feed)])

    assert result.window == DateWindow(date(2025, 3, 1), date(2025, 6, 1))
    assert result.events_extracted == 2


class TestResolveWindow:

    def test_defaults_to_today_plus_three_months(self, scan_service_factory):
        window = scan_service_factory().resolve_window()
        assert window == DateWindow(date(2025, 3, 1), date(2025, 6, 1))

    def test_missing_end_follows_start(self, scan_service_factory):
        window = scan_service_factory().resolve_window("2025-11-30")
        assert window == DateWindow(date(2025, 11, 30), date(2026, 2, 28))

    def test_accepts_timestamps_and_loose_dates(self, scan_service_factory):
        window = scan_service_factory().resolve_window("2025-04-01T00:00:00Z", "May 31, 2025")
        assert window == DateWindow(date(2025, 4, 1), date(2025, 5, 31))

    def test_single_day_window(self, scan_service_factory):
        window = scan_service_factory().resolve_window("2025-04-01", "2025-04-01")
        assert window.duration_days == 0

    def test_reversed_range_rejected(self, scan_service_factory):
        with pytest.raises(RequestValidationError) as exc:
            scan_service_factory().resolve_window("2025-06-01", "2025-03-01")
        assert exc.value.message == "Invalid date_range"

    @pytest.mark.parametrize("value", ["not a date", "", 20250301])
    def test_unparsable_dates_rejected(self, scan_service_factory, value):
        with pytest.raises(RequestValidationError):
            scan_service_factory().resolve_window(value)


class TestScanRequestValidation:

    @pytest.mark.parametrize("body", [
        [],
        {"date_range": "2025-03-01"},
        {"raw_data": {"source_url": FEED_URL}},
        {"raw_data": [{"source_url": FEED_URL}]},
        {"raw_data": [{"source_url": FEED_URL, "raw_content": 42}]},
        {"raw_data": ["<rss/>"]},
    ])
    def test_malformed_bodies(self, scan_service_factory, body):
        with pytest.raises(RequestValidationError):
            scan_service_factory().scan_request(body)

    def test_problems_name_the_offending_entry(self, scan_service_factory):
        body = {"raw_data": [{"source_url": FEED_URL, "raw_content": "<rss/>"}, {"source_url": FEED_URL}]}
        with pytest.raises(RequestValidationError) as exc:
            scan_service_factory().scan_request(body)
        assert exc.value.context["problems"] == ["raw_data[1].raw_content must be a string"]

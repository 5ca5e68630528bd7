import json
import sys
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from core.analysis.events import FailurePolicy, build_classification_pipeline  # noqa: E402
from core.briefs import BriefFanout  # noqa: E402
from core.database import InMemoryStorage  # noqa: E402
from core.engine import ScanService  # noqa: E402
from core.exceptions import DatabaseOperationError  # noqa: E402
from core.ingestion import IngestionService  # noqa: E402
from core.models import CandidateEvent, DateWindow, ResearchBrief, TenantProfile  # noqa: E402

FIXED_TODAY = date(2025, 3, 1)


def no_sleep(_seconds: float) -> None:
    return None


def rss_item(title: str, description: str = "", link: str = "", pub_date: str = "") -> str:
    parts = [f"<title>{title}</title>"]
    if description:
        parts.append(f"<description><![CDATA[{description}]]></description>")
    if link:
        parts.append(f"<link>{link}</link>")
    if pub_date:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    return "<item>" + "".join(parts) + "</item>"


def rss_feed(*items: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>Events</title>'
        + "".join(items)
        + "</channel></rss>"
    )


class FakeOpenAIClient:
    """Stands in for ``OpenAIClient``; returns canned JSON or raises."""

    model = "fake-model"

    def __init__(
        self,
        gatekeeper_response: Optional[Any] = None,
        enrichment_response: Optional[Any] = None,
        gatekeeper_error: Optional[Exception] = None,
        enrichment_error: Optional[Exception] = None,
    ) -> None:
        self.gatekeeper_response = gatekeeper_response
        self.enrichment_response = enrichment_response
        self.gatekeeper_error = gatekeeper_error
        self.enrichment_error = enrichment_error
        self.calls: Dict[str, List[List[CandidateEvent]]] = {"screen": [], "enrich": []}

    @staticmethod
    def _render(response: Any) -> str:
        return response if isinstance(response, str) else json.dumps(response)

    def screen_events(self, candidates: List[CandidateEvent], window: DateWindow, today: date) -> str:
        self.calls["screen"].append(list(candidates))
        if self.gatekeeper_error:
            raise self.gatekeeper_error
        if self.gatekeeper_response is None:
            return json.dumps({
                "relevant_events": [
                    {"id": i, "title": c.title, "reason": "public event"} for i, c in enumerate(candidates)
                ]
            })
        return self._render(self.gatekeeper_response)

    def enrich_events(self, candidates: List[CandidateEvent], window: DateWindow, today: date) -> str:
        self.calls["enrich"].append(list(candidates))
        if self.enrichment_error:
            raise self.enrichment_error
        if self.enrichment_response is None:
            return json.dumps({
                "events": [
                    {
                        "id": i,
                        "event_name": c.title,
                        "event_date": c.event_date.isoformat() if c.event_date else None,
                        "event_location": "Leesburg, VA",
                        "event_summary": c.description,
                        "event_url": c.link,
                        "relevance_score": 8,
                    }
                    for i, c in enumerate(candidates)
                ]
            })
        return self._render(self.enrichment_response)

    def test_connection(self) -> bool:
        return True


class FailingBriefRepository:
    """Brief sink that rejects writes for selected tenants."""

    def __init__(self, failing_tenants: Sequence[str]) -> None:
        self.failing_tenants = set(failing_tenants)
        self.briefs: List[ResearchBrief] = []

    def insert_brief(self, brief: ResearchBrief) -> None:
        if brief.tenant_id in self.failing_tenants:
            raise DatabaseOperationError("insert", "research_briefs", RuntimeError("write rejected"))
        self.briefs.append(brief)


class FailingTenantRepository:
    def list_tenants(self) -> List[TenantProfile]:
        raise DatabaseOperationError("select", "tenant_profiles", RuntimeError("connection reset"))


@pytest.fixture
def today() -> date:
    return FIXED_TODAY


@pytest.fixture
def window() -> DateWindow:
    return DateWindow(date(2025, 3, 1), date(2025, 6, 1))


@pytest.fixture
def tenants() -> List[TenantProfile]:
    return [
        TenantProfile(id="tenant-1", display_name="Blue Ridge Cellars", location="Purcellville, VA"),
        TenantProfile(id="tenant-2", display_name="Goose Creek Vineyard", location="Leesburg, VA"),
    ]


@pytest.fixture
def storage(tenants) -> InMemoryStorage:
    return InMemoryStorage(tenants)


@pytest.fixture
def fake_openai_client_factory() -> Callable[..., FakeOpenAIClient]:
    def _factory(**kwargs: Any) -> FakeOpenAIClient:
        return FakeOpenAIClient(**kwargs)

    return _factory


@pytest.fixture
def scan_service_factory(storage, today):
    def _factory(
        openai_client: Optional[FakeOpenAIClient] = None,
        failure_policy: FailurePolicy = FailurePolicy.FAIL_OPEN,
        brief_repository=None,
        tenant_repository=None,
        max_workers: int = 1,
    ) -> ScanService:
        pipeline = build_classification_pipeline(openai_client=openai_client, failure_policy=failure_policy)
        fanout = BriefFanout(
            brief_repository or storage.briefs,
            max_workers=max_workers,
            queue_size=4,
            write_delay_seconds=0.05,
            sleep=no_sleep,
        )
        return ScanService(
            storage.raw_events,
            tenant_repository or storage.tenants,
            pipeline,
            fanout,
            default_window_months=3,
            clock=lambda: today,
        )

    return _factory


@pytest.fixture
def ingestion_service_factory(storage):
    def _factory(raw_events=None, batch_size: int = 50, sleeps: Optional[List[float]] = None) -> IngestionService:
        recorder = sleeps.append if sleeps is not None else no_sleep
        return IngestionService(
            raw_events or storage.raw_events,
            batch_size=batch_size,
            batch_delay_seconds=0.1,
            sleep=recorder,
        )

    return _factory

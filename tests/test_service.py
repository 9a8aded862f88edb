"""Tests for service.py."""

import threading

import httpx
import pytest

import service as service_module
from api_client import ApiClient
from decoder import decode_catalog
from errors import ConfigurationError, ParseError, PersistenceError
from fetcher import AccountContext
from queries import CategoryView
from reconcile import reconcile
from service import LayoutService, LayoutsResult
from store import Store
from thumbnails import ThumbnailSize

from conftest import API_BASE_URL


SIZE = ThumbnailSize(width=160, height=240)
COMMON_URL = f"{API_BASE_URL}/common-block-layouts?preview_width=160.0&scale=2.0"
SITE_URL = f"{API_BASE_URL}/sites/42/block-layouts?preview_width=160.0&scale=2.0"


@pytest.fixture
def layout_service(sample_config, store):
    with LayoutService(sample_config, store) as svc:
        yield svc


@pytest.fixture
def site_account():
    api = ApiClient(API_BASE_URL, token="secret-token")
    yield AccountContext(remote_accessible=True, site_id=42, api=api)
    api.close()


class CompletionRecorder:
    """Collects completion calls from worker threads."""

    def __init__(self):
        self.results: list[LayoutsResult] = []
        self.threads: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, result: LayoutsResult) -> None:
        with self._lock:
            self.results.append(result)
            self.threads.append(threading.current_thread().name)


class TestSyncLayouts:
    """Tests for LayoutService.sync_layouts()."""

    def test_anonymous_sync_persists_catalog(self, httpx_mock, layout_service, sample_payload):
        """Shared layouts are fetched and stored."""
        httpx_mock.add_response(url=COMMON_URL, json=sample_payload)

        catalog = layout_service.sync_layouts(AccountContext(), SIZE)

        assert catalog.layout_slugs == ["about-me", "blog-grid", "contact-form"]
        view = layout_service.observe_categories()
        assert [c.slug for c in view] == ["about", "blog", "contact"]
        view.close()

    def test_site_sync_uses_site_endpoint(self, httpx_mock, layout_service, site_account, sample_payload):
        """Remote-accessible accounts fetch their own layouts."""
        httpx_mock.add_response(url=SITE_URL, json=sample_payload)

        layout_service.sync_layouts(site_account, SIZE)

        assert httpx_mock.get_request().headers["Authorization"] == "Bearer secret-token"

    def test_scale_comes_from_config(self, httpx_mock, sample_config, store, sample_payload):
        """The configured display scale is sent with every request."""
        sample_config.display_scale = 3.0
        httpx_mock.add_response(
            url=f"{API_BASE_URL}/common-block-layouts?preview_width=160.0&scale=3.0",
            json=sample_payload,
        )

        with LayoutService(sample_config, store) as svc:
            svc.sync_layouts(AccountContext(), SIZE)

    def test_configuration_error_raised_before_request(self, layout_service):
        """No request is made for a misconfigured account."""
        account = AccountContext(remote_accessible=True, site_id=None, api=None)

        with pytest.raises(ConfigurationError):
            layout_service.sync_layouts(account, SIZE)

    def test_persistence_failure_after_valid_fetch(self, httpx_mock, layout_service, sample_payload, monkeypatch):
        """A storage failure fails the sync even though the data was valid."""
        httpx_mock.add_response(url=COMMON_URL, json=sample_payload)

        def failing_reconcile(store, catalog):
            raise PersistenceError("disk full")

        monkeypatch.setattr(service_module, "reconcile", failing_reconcile)

        with pytest.raises(PersistenceError):
            layout_service.sync_layouts(AccountContext(), SIZE)


class TestRequestLayouts:
    """Tests for LayoutService.request_layouts()."""

    def test_success_completes_once_with_catalog(self, httpx_mock, layout_service, sample_payload):
        """Completion fires once with the decoded catalog."""
        httpx_mock.add_response(url=COMMON_URL, json=sample_payload)
        recorder = CompletionRecorder()

        layout_service.request_layouts(AccountContext(), SIZE, recorder).result(timeout=10)

        assert len(recorder.results) == 1
        result = recorder.results[0]
        assert result.ok
        assert result.catalog.category_slugs == ["about", "blog", "contact"]
        assert recorder.threads[0].startswith("layout-fetch")

    def test_transport_error_passed_through(self, httpx_mock, layout_service):
        """The httpx exception reaches the completion unchanged."""
        httpx_mock.add_response(url=COMMON_URL, status_code=503)
        recorder = CompletionRecorder()

        layout_service.request_layouts(AccountContext(), SIZE, recorder).result(timeout=10)

        assert len(recorder.results) == 1
        assert isinstance(recorder.results[0].error, httpx.HTTPStatusError)
        assert recorder.results[0].catalog is None

    def test_parse_error_reported(self, httpx_mock, layout_service):
        """Malformed payloads complete with ParseError."""
        httpx_mock.add_response(url=COMMON_URL, json={"layouts": []})
        recorder = CompletionRecorder()

        layout_service.request_layouts(AccountContext(), SIZE, recorder).result(timeout=10)

        assert isinstance(recorder.results[0].error, ParseError)

    def test_persistence_error_reported(self, httpx_mock, layout_service, sample_payload, monkeypatch):
        """Storage failures complete with PersistenceError."""
        httpx_mock.add_response(url=COMMON_URL, json=sample_payload)

        def failing_reconcile(store, catalog):
            raise PersistenceError("disk full")

        monkeypatch.setattr(service_module, "reconcile", failing_reconcile)
        recorder = CompletionRecorder()

        layout_service.request_layouts(AccountContext(), SIZE, recorder).result(timeout=10)

        assert len(recorder.results) == 1
        assert isinstance(recorder.results[0].error, PersistenceError)

    def test_configuration_error_completes_immediately(self, layout_service):
        """Misconfigured accounts complete on the caller's thread."""
        recorder = CompletionRecorder()
        account = AccountContext(remote_accessible=True, site_id=42, api=None)

        future = layout_service.request_layouts(account, SIZE, recorder)

        assert future.done()
        assert len(recorder.results) == 1
        assert isinstance(recorder.results[0].error, ConfigurationError)
        assert recorder.threads[0] == threading.current_thread().name

    def test_completion_exception_not_redelivered(self, httpx_mock, layout_service, sample_payload):
        """A completion that raises is not called a second time."""
        httpx_mock.add_response(url=COMMON_URL, json=sample_payload)
        calls = []

        def completion(result):
            calls.append(result)
            raise RuntimeError("caller bug")

        future = layout_service.request_layouts(AccountContext(), SIZE, completion)

        with pytest.raises(RuntimeError):
            future.result(timeout=10)
        assert len(calls) == 1
        assert calls[0].ok

    def test_observer_sees_sync(self, httpx_mock, layout_service, sample_payload):
        """Category observers are notified when a background sync commits."""
        httpx_mock.add_response(url=COMMON_URL, json=sample_payload)
        view = layout_service.observe_categories()
        notified = threading.Event()
        view.subscribe(lambda categories: notified.set())

        layout_service.request_layouts(AccountContext(), SIZE, CompletionRecorder()).result(timeout=10)

        assert notified.is_set()
        assert [c.title for c in view] == ["About", "Blog", "Contact"]
        view.close()

    def test_request_after_close_still_completes(self, sample_config, store):
        """A closed service reports the failure through the completion."""
        svc = LayoutService(sample_config, store)
        svc.close()
        recorder = CompletionRecorder()

        future = svc.request_layouts(AccountContext(), SIZE, recorder)

        assert future.done()
        assert len(recorder.results) == 1
        assert isinstance(recorder.results[0].error, RuntimeError)


class TestObserveCategories:
    """Tests for LayoutService.observe_categories()."""

    def test_commit_during_first_load_is_not_missed(self, layout_service, store, sample_payload, monkeypatch):
        """A sync landing right after the initial read still reaches the view."""
        original_load = CategoryView.load
        calls = []

        def load_then_sync(view):
            categories = original_load(view)
            if not calls:
                calls.append("first")
                reconcile(store, decode_catalog(sample_payload))
            return categories

        monkeypatch.setattr(CategoryView, "load", load_then_sync)

        view = layout_service.observe_categories()

        assert len(view) == 3
        view.close()


class TestInMemoryStore:
    """Service running against an in-memory SQLite store."""

    def test_sync_with_in_memory_store(self, httpx_mock, sample_config, sample_payload):
        """Tables created on the caller's thread are visible to the writer thread."""
        httpx_mock.add_response(url=COMMON_URL, json=sample_payload)
        memory_store = Store("sqlite://")
        memory_store.create_tables()

        with LayoutService(sample_config, memory_store) as svc:
            svc.sync_layouts(AccountContext(), SIZE)
            view = svc.observe_categories()

        assert [c.slug for c in view] == ["about", "blog", "contact"]
        view.close()
        memory_store.dispose()

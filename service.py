"""Layout sync service: fetch, decode, reconcile, then report back once."""

from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

from api_client import ApiClient
from config import Config
from decoder import Catalog
from errors import ConfigurationError
from fetcher import AccountContext, Endpoint, fetch_layouts, resolve_endpoint
from logging_setup import get_logger
from queries import CategoryView
from reconcile import reconcile
from store import Store
from thumbnails import ThumbnailSize


@dataclass
class LayoutsResult:
    catalog: Catalog | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


Completion = Callable[[LayoutsResult], None]


def _fail_now(completion: Completion, error: Exception) -> Future:
    """Complete with ``error`` on the caller's thread and return a finished future."""
    get_logger().error("Cannot request layouts: %s", error)
    done: Future = Future()
    done.set_result(None)
    completion(LayoutsResult(error=error))
    return done


class LayoutService:
    """Keeps the local layouts cache in step with the server.

    Fetching runs on a small worker pool; reconciliation always runs on a
    single dedicated writer thread.
    """

    def __init__(
        self,
        config: Config,
        store: Store,
        anonymous_api: ApiClient | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self._owns_anonymous_api = anonymous_api is None
        self.anonymous_api = anonymous_api or ApiClient.anonymous(
            config.api_base_url,
            user_agent=config.user_agent,
            timeout=config.request_timeout,
        )
        self._fetch_executor = ThreadPoolExecutor(
            max_workers=config.fetch_workers, thread_name_prefix="layout-fetch"
        )
        self._write_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="layout-writer")

    def sync_layouts(self, account: AccountContext, size: ThumbnailSize) -> Catalog:
        """Fetch the catalog for ``account`` and store it, blocking until done.

        Raises:
            ConfigurationError: account cannot be addressed.
            httpx.HTTPError: the request failed.
            ParseError: the response was not a valid catalog.
            PersistenceError: the catalog could not be stored.
        """
        endpoint = resolve_endpoint(account, self.anonymous_api)
        return self._run_pipeline(endpoint, size)

    def request_layouts(
        self,
        account: AccountContext,
        size: ThumbnailSize,
        completion: Completion,
    ) -> Future:
        """Sync in the background and call ``completion`` exactly once.

        Configuration problems, and calls after ``close()``, are reported
        before this returns, without a request being made.
        """
        try:
            endpoint = resolve_endpoint(account, self.anonymous_api)
        except ConfigurationError as e:
            return _fail_now(completion, e)

        try:
            return self._fetch_executor.submit(self._dispatch, endpoint, size, completion)
        except RuntimeError as e:
            # Service already closed
            return _fail_now(completion, e)

    def observe_categories(self) -> CategoryView:
        """Categories view that reloads after every sync."""
        view = CategoryView(self.store)
        # Follow commits before the first read so none is missed in between
        view.attach()
        view.load()
        return view

    def close(self) -> None:
        self._fetch_executor.shutdown(wait=True)
        self._write_executor.shutdown(wait=True)
        if self._owns_anonymous_api:
            self.anonymous_api.close()

    def __enter__(self) -> "LayoutService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _run_pipeline(self, endpoint: Endpoint, size: ThumbnailSize) -> Catalog:
        catalog = fetch_layouts(endpoint, size, self.config.display_scale)
        self._write_executor.submit(reconcile, self.store, catalog).result()
        return catalog

    def _dispatch(self, endpoint: Endpoint, size: ThumbnailSize, completion: Completion) -> None:
        try:
            catalog = self._run_pipeline(endpoint, size)
        except Exception as e:
            get_logger().error("Layouts sync failed: %s", e)
            result = LayoutsResult(error=e)
        else:
            result = LayoutsResult(catalog=catalog)
        completion(result)

"""Fetching the block-layouts catalog for a site."""

from dataclasses import dataclass

from api_client import ApiClient
from decoder import Catalog, decode_catalog
from errors import ConfigurationError, ParseError
from logging_setup import get_logger
from thumbnails import ThumbnailSize, thumbnail_parameters


SITE_LAYOUTS_PATH = "/sites/{site_id}/block-layouts"
COMMON_LAYOUTS_PATH = "/common-block-layouts"


@dataclass
class AccountContext:
    """The site layouts are requested for.

    ``remote_accessible`` sites are addressed by ``site_id`` through their
    own authenticated ``api``; everything else gets the shared layouts.
    """

    remote_accessible: bool = False
    site_id: int | None = None
    api: ApiClient | None = None


@dataclass
class Endpoint:
    api: ApiClient
    path: str


def resolve_endpoint(account: AccountContext, anonymous_api: ApiClient) -> Endpoint:
    """Pick the layouts endpoint for ``account``.

    Raises:
        ConfigurationError: if an authenticated account lacks a numeric site
            ID or an API client. No request is made in that case.
    """
    if not account.remote_accessible:
        return Endpoint(api=anonymous_api, path=COMMON_LAYOUTS_PATH)

    site_id = account.site_id
    if not isinstance(site_id, int) or isinstance(site_id, bool) or account.api is None:
        raise ConfigurationError("API or site ID not found")

    return Endpoint(api=account.api, path=SITE_LAYOUTS_PATH.format(site_id=site_id))


def fetch_layouts(endpoint: Endpoint, size: ThumbnailSize, scale: float) -> Catalog:
    """Fetch and decode the layouts catalog from ``endpoint``.

    httpx errors propagate unchanged.

    Raises:
        ParseError: if the response is not a valid layouts catalog.
    """
    logger = get_logger()
    logger.info("Fetching layouts from %s", endpoint.path)

    try:
        response = endpoint.api.get(endpoint.path, params=thumbnail_parameters(size, scale))
    except (ValueError, RecursionError) as e:
        # Body was not JSON, or nested too deeply to load
        raise ParseError("Unable to parse response") from e

    catalog = decode_catalog(response)
    if catalog is None:
        raise ParseError("Unable to parse response")

    logger.info(
        "Fetched %d categories and %d layouts",
        len(catalog.categories),
        len(catalog.layouts),
    )
    return catalog

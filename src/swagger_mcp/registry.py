"""Registry of backend APIs and their endpoint catalogs.

Built once at startup from a list of ApiSource and never mutated afterwards.
Every lookup (API name, tag, operationId) uses the same policy: exact match
first, then a case-insensitive match; ``None`` when neither hits.
"""

from collections.abc import Callable, Iterable, Iterator

from pydantic import BaseModel, ConfigDict

from swagger_mcp.client import DEFAULT_TIMEOUT, HttpClient
from swagger_mcp.errors import SpecLoadError
from swagger_mcp.logger import get_logger
from swagger_mcp.parser.base import ApiEndpoint, ParsedSpec
from swagger_mcp.parser.swagger import parse_openapi

log = get_logger("registry")

DEFAULT_TAG = "default"
DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 50


def match_key(keys: Iterable[str], name: str) -> str | None:
    """Return the key equal to ``name``, else the first one equal ignoring case."""
    keys = list(keys)
    if name in keys:
        return name
    folded = name.casefold()
    for key in keys:
        if key.casefold() == folded:
            return key
    return None


def effective_limit(limit) -> int:
    """Search result cap: default for missing/non-integer/below-1 values, never above the max."""
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        return DEFAULT_SEARCH_LIMIT
    return min(limit, MAX_SEARCH_LIMIT)


class EndpointCatalog:
    """Flat endpoint list plus a tag index, both in document order."""

    def __init__(self, endpoints: Iterable[ApiEndpoint]):
        self.endpoints: list[ApiEndpoint] = list(endpoints)
        self.tag_index: dict[str, list[ApiEndpoint]] = {}
        for ep in self.endpoints:
            for tag in ep.tags or [DEFAULT_TAG]:
                self.tag_index.setdefault(tag, []).append(ep)

    def __len__(self) -> int:
        return len(self.endpoints)

    @property
    def tags(self) -> list[str]:
        return list(self.tag_index)

    def by_tag(self, tag: str) -> tuple[str, list[ApiEndpoint]] | None:
        """Endpoints under ``tag``, together with the tag's canonical spelling."""
        key = match_key(self.tag_index, tag)
        if key is None:
            return None
        return key, self.tag_index[key]

    def by_operation_id(self, operation_id: str) -> ApiEndpoint | None:
        for ep in self.endpoints:
            if ep.operation_id == operation_id:
                return ep
        folded = operation_id.casefold()
        for ep in self.endpoints:
            if ep.operation_id.casefold() == folded:
                return ep
        return None

    def search(self, keyword: str, limit=None) -> list[ApiEndpoint]:
        cap = effective_limit(limit)
        needle = keyword.casefold()
        matches = []
        for ep in self.endpoints:
            if len(matches) >= cap:
                break
            if _matches(ep, needle):
                matches.append(ep)
        return matches


def _matches(ep: ApiEndpoint, needle: str) -> bool:
    fields = [ep.operation_id, ep.path, ep.summary, ep.description, *ep.tags]
    return any(needle in field.casefold() for field in fields if field)


class ApiSource(BaseModel):
    """One configured backend: where its document lives and how to reach it."""

    name: str
    source: str
    base_url: str | None = None  # overrides the document's declared server
    auth: str | None = None  # fixed Authorization header value


class ApiEntry(BaseModel):
    """A loaded backend API."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    source: str
    base_url: str
    title: str | None = None
    version: str | None = None
    catalog: EndpointCatalog
    auth: str | None = None
    client: HttpClient

    @property
    def display_name(self) -> str:
        title = self.title or self.name
        return f"{title} (v{self.version})" if self.version else title


class ApiRegistry:
    """Ordered, case-insensitively addressed collection of ApiEntry."""

    def __init__(self, entries: Iterable[ApiEntry] = ()):
        self._entries: dict[str, ApiEntry] = {}
        for entry in entries:
            if match_key(self._entries, entry.name) is not None:
                log.warning(f"Duplicate API name {entry.name!r} ignored")
                continue
            self._entries[entry.name] = entry

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ApiEntry]:
        return iter(self._entries.values())

    @property
    def names(self) -> list[str]:
        return list(self._entries)

    @property
    def is_multi(self) -> bool:
        return len(self._entries) > 1

    def resolve(self, name: str | None) -> ApiEntry | None:
        """Find the entry a caller means.

        With a single registered API the name is ignored entirely.
        """
        if len(self._entries) == 1:
            return next(iter(self._entries.values()))
        if not name:
            return None
        key = match_key(self._entries, name)
        return self._entries[key] if key is not None else None

    def close(self) -> None:
        for entry in self._entries.values():
            entry.client.close()


def load_entry(
    source: ApiSource,
    parse: Callable[[str], ParsedSpec] = parse_openapi,
    timeout: float = DEFAULT_TIMEOUT,
) -> ApiEntry:
    spec = parse(source.source)
    base_url = source.base_url or spec.base_url
    if not base_url:
        raise SpecLoadError(source.source, "no base URL declared; configure one explicitly")

    catalog = EndpointCatalog(spec.endpoints)
    log.info(
        f"API {source.name!r}: {len(catalog)} endpoints in {len(catalog.tags)} categories, "
        f"base URL {base_url}"
    )
    return ApiEntry(
        name=source.name,
        source=source.source,
        base_url=base_url,
        title=spec.title,
        version=spec.version,
        catalog=catalog,
        auth=source.auth,
        client=HttpClient(base_url, timeout=timeout),
    )


def load_registry(
    sources: Iterable[ApiSource],
    parse: Callable[[str], ParsedSpec] = parse_openapi,
    timeout: float = DEFAULT_TIMEOUT,
) -> ApiRegistry:
    """Load every source; the ones that fail are logged and left out."""
    entries = []
    for source in sources:
        try:
            entries.append(load_entry(source, parse=parse, timeout=timeout))
        except SpecLoadError as e:
            log.error(f"Skipping API {source.name!r}: {e}")
        except Exception as e:
            log.exception(f"Skipping API {source.name!r}: unexpected error: {e}")

    registry = ApiRegistry(entries)
    if not len(registry):
        log.warning("No API could be loaded; serving an empty tool set")
    return registry

import asyncio
import logging
import sys
import time
from typing import Any, Dict, List, Optional

import requests

from config import (
    BASE_URL,
    CACHE_TTL_SECONDS,
    DEFAULT_PAGE_SIZE,
    MIN_REQUEST_INTERVAL,
    REQUEST_TIMEOUT,
    USER_FILE,
    configure_logging,
)
from errors import ApiError, CodeforcesError, NotFoundError, TransportError
from process import calculate_problem_stats, calculate_streak, predict_rating
from structs import (
    CacheEntry,
    CacheStats,
    Contest,
    Dashboard,
    Envelope,
    FetchResult,
    RatingChange,
    Submission,
    UserProfile,
)
from utils import dict_to_model, list_to_models, load_handles

logger = logging.getLogger(__name__)


class CodeforcesClient:
    """
    Read-only Codeforces API client.

    Successful responses are memoized per resolved URL for `cache_ttl` seconds.
    Outgoing requests are spaced at least `min_interval` seconds apart, across
    every coroutine sharing this instance. Create one per process and pass it around.
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        cache_ttl: float = CACHE_TTL_SECONDS,
        min_interval: float = MIN_REQUEST_INTERVAL,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
        clock=time.monotonic,
        sleep=asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.cache_ttl = cache_ttl
        self.min_interval = min_interval
        self.timeout = timeout
        self.session = session or requests.Session()
        self._clock = clock
        self._sleep = sleep
        self._cache: Dict[str, CacheEntry] = {}
        self._last_request: Optional[float] = None
        self._rate_lock = asyncio.Lock()

    # --- public API ---

    async def fetch_user_profile(self, handle: str) -> UserProfile:
        users = await self._fetch("user.info", {"handles": handle}, handle=handle)
        if not users:
            raise NotFoundError(handle, url=self._resolve("user.info", {"handles": handle}))
        return dict_to_model(UserProfile, users[0])

    async def fetch_rating_history(self, handle: str) -> List[RatingChange]:
        changes = await self._fetch("user.rating", {"handle": handle}, handle=handle)
        return list_to_models(RatingChange, changes or [])

    async def fetch_submissions(
        self, handle: str, from_: int = 1, count: int = DEFAULT_PAGE_SIZE
    ) -> List[Submission]:
        params = {"handle": handle, "from": from_, "count": count}
        submissions = await self._fetch("user.status", params, handle=handle)
        return list_to_models(Submission, submissions or [])

    async def fetch_contest_list(self, include_gym: bool = False) -> List[Contest]:
        contests = await self._fetch("contest.list", {"gym": "true" if include_gym else "false"})
        return list_to_models(Contest, contests or [])

    async def fetch_contest_standings(
        self, contest_id: int, handle: Optional[str] = None, from_: int = 1, count: int = 1
    ) -> Dict[str, Any]:
        """Standings keep changing while a contest is judged, so they are never cached."""
        params: Dict[str, Any] = {"contestId": contest_id}
        if handle:
            params["handles"] = handle
        params["from"] = from_
        params["count"] = count
        return await self._fetch("contest.standings", params, use_cache=False)

    def clear_cache(self) -> None:
        logger.info(f"Clearing {len(self._cache)} cached responses")
        self._cache.clear()

    def cache_stats(self) -> CacheStats:
        return CacheStats(size=len(self._cache), keys=list(self._cache.keys()))

    # --- internals ---

    def _resolve(self, method: str, params: Dict[str, Any]) -> str:
        return requests.Request("GET", f"{self.base_url}/{method}", params=params).prepare().url

    def _cached(self, url: str) -> Optional[CacheEntry]:
        entry = self._cache.get(url)
        if entry is None:
            return None
        if self._clock() - entry.fetchedAt < self.cache_ttl:
            return entry
        del self._cache[url]
        return None

    async def _wait_rate_slot(self) -> None:
        async with self._rate_lock:
            if self._last_request is not None:
                wait = self.min_interval - (self._clock() - self._last_request)
                if wait > 0:
                    logger.debug(f"Rate limit: sleeping {wait:.2f}s")
                    await self._sleep(wait)
            self._last_request = self._clock()

    def _transport(self, url: str) -> FetchResult:
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            return FetchResult(url=url, transportError=str(e))

        # Codeforces reports API errors as HTTP 400 with a regular envelope
        try:
            data = response.json()
        except ValueError:
            return FetchResult(url=url, transportError=f"HTTP {response.status_code}: {response.reason}")
        if not isinstance(data, dict) or "status" not in data:
            return FetchResult(url=url, transportError=f"HTTP {response.status_code}: unexpected response body")
        return FetchResult(url=url, envelope=Envelope(**data))

    def _unwrap(self, outcome: FetchResult, handle: Optional[str] = None) -> Any:
        if outcome.transportError is not None:
            raise TransportError(f"API request failed: {outcome.transportError}", url=outcome.url)
        if not outcome.ok:
            comment = outcome.envelope.comment
            if handle and comment and "not found" in comment.lower():
                raise NotFoundError(handle, comment, url=outcome.url)
            raise ApiError(comment, url=outcome.url)
        return outcome.envelope.result

    async def _fetch(
        self,
        method: str,
        params: Dict[str, Any],
        handle: Optional[str] = None,
        use_cache: bool = True,
    ) -> Any:
        url = self._resolve(method, params)
        if use_cache:
            entry = self._cached(url)
            if entry is not None:
                logger.debug(f"Cache hit: {url}")
                return entry.payload

        await self._wait_rate_slot()
        logger.debug(f"GET {url}")
        outcome = await asyncio.to_thread(self._transport, url)
        try:
            result = self._unwrap(outcome, handle=handle)
        except CodeforcesError as e:
            logger.warning(f"Codeforces API error for {url}: {e.detail}")
            raise

        if use_cache:
            self._cache[url] = CacheEntry(payload=result, fetchedAt=self._clock())
        return result


async def collect(client: CodeforcesClient, handle: str) -> Dashboard:
    """Loads everything a dashboard session needs, with the three requests in flight together."""
    results = await asyncio.gather(
        client.fetch_user_profile(handle),
        client.fetch_rating_history(handle),
        client.fetch_submissions(handle),
        return_exceptions=True,
    )
    # every request has settled by now; surface the first failure
    for result in results:
        if isinstance(result, BaseException):
            raise result
    profile, rating_history, submissions = results
    return Dashboard(profile=profile, ratingHistory=rating_history, submissions=submissions)


async def collect_all(handles: List[str], client: Optional[CodeforcesClient] = None) -> List[Dashboard]:
    client = client or CodeforcesClient()
    dashboards = []
    for handle in handles:
        try:
            dashboard = await collect(client, handle)
        except NotFoundError:
            print(f"No such user: {handle}")
            continue
        except CodeforcesError as e:
            print(f"API Error for {handle}: {e.detail}")
            continue
        print(f"Found {len(dashboard.submissions)} submissions and "
              f"{len(dashboard.ratingHistory)} rating changes for {handle}")
        dashboards.append(dashboard)
    return dashboards


def main():
    configure_logging()
    handles = sys.argv[1:] or load_handles(USER_FILE)
    if not handles:
        print(f"Usage: python collect.py [HANDLE ...]  (or list handles in {USER_FILE})")
        sys.exit(1)

    print(f"Fetching data for {len(handles)} handles")
    for dashboard in asyncio.run(collect_all(handles)):
        stats = calculate_problem_stats(dashboard.submissions)
        streak = calculate_streak(dashboard.submissions)
        predicted = predict_rating(dashboard.ratingHistory)
        print(f"{dashboard.profile.handle}: rating {dashboard.profile.rating or 0} "
              f"(max {dashboard.profile.maxRating or 0}), "
              f"solved {stats.solved}/{stats.attempted}, "
              f"streak {streak.current} (longest {streak.longest}), "
              f"predicted {predicted if predicted is not None else 'n/a'}")


if __name__ == "__main__":
    main()

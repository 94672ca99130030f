import inspect

import pytest
import requests

from collect import CodeforcesClient, collect, collect_all
from errors import ApiError, NotFoundError, TransportError
from factories import failed, make_response, ok

USER = {
    "handle": "tourist",
    "rating": 3757,
    "maxRating": 4229,
    "rank": "legendary grandmaster",
    "registrationTimeSeconds": 1265987288,
    "contribution": 0,
    "friendOfCount": 80000,
    "avatar": "https://userpic.codeforces.org/no-avatar.jpg",
    "someNewField": "ignored",
}

RATING = [
    {"contestId": 1, "contestName": "Round 1", "handle": "tourist", "rank": 3,
     "ratingUpdateTimeSeconds": 1266588000, "oldRating": 1500, "newRating": 1602},
]

SUBMISSIONS = [
    {
        "id": 245001,
        "contestId": 1700,
        "creationTimeSeconds": 1700000000,
        "relativeTimeSeconds": 2147483647,
        "problem": {"contestId": 1700, "index": "A", "name": "Optimal Path",
                    "type": "PROGRAMMING", "rating": 800, "tags": ["greedy", "math"]},
        "author": {"contestId": 1700, "members": [{"handle": "tourist"}],
                   "participantType": "PRACTICE", "ghost": False},
        "programmingLanguage": "GNU C++17",
        "verdict": "OK",
        "testset": "TESTS",
        "passedTestCount": 10,
        "timeConsumedMillis": 15,
        "memoryConsumedBytes": 0,
    },
]


def route(session, responses):
    """Answer session.get by API method name."""
    def get(url, timeout=None):
        method = url.split("/api/")[1].split("?")[0]
        return responses[method]
    session.get.side_effect = get


@pytest.mark.asyncio
async def test_fetch_user_profile(client, session):
    session.get.return_value = ok([USER])

    profile = await client.fetch_user_profile("tourist")

    assert profile.handle == "tourist"
    assert profile.rating == 3757
    assert profile.maxRating == 4229
    url = session.get.call_args[0][0]
    assert url == "https://codeforces.com/api/user.info?handles=tourist"


@pytest.mark.asyncio
async def test_fetch_submissions_passes_pagination(client, session):
    session.get.return_value = ok(SUBMISSIONS)

    submissions = await client.fetch_submissions("tourist")

    assert len(submissions) == 1
    assert submissions[0].problem.key == ("1700", "A")
    assert session.get.call_args[0][0].endswith("user.status?handle=tourist&from=1&count=10000")

    await client.fetch_submissions("tourist", from_=101, count=50)
    assert session.get.call_args[0][0].endswith("from=101&count=50")


@pytest.mark.asyncio
async def test_empty_rating_history_is_not_an_error(client, session):
    session.get.return_value = ok([])

    assert await client.fetch_rating_history("newbie") == []


@pytest.mark.asyncio
async def test_fetch_contest_list_gym_flag(client, session):
    session.get.return_value = ok([
        {"id": 1900, "name": "Codeforces Round 1900", "type": "CF", "phase": "BEFORE",
         "frozen": False, "durationSeconds": 7200, "startTimeSeconds": 1900000000},
    ])

    contests = await client.fetch_contest_list()
    assert contests[0].phase == "BEFORE"
    assert session.get.call_args[0][0].endswith("contest.list?gym=false")

    await client.fetch_contest_list(include_gym=True)
    assert session.get.call_args[0][0].endswith("contest.list?gym=true")


@pytest.mark.asyncio
async def test_cache_hit_within_ttl(client, session, clock):
    session.get.return_value = ok(RATING)

    first = await client.fetch_rating_history("tourist")
    clock.advance(299)
    second = await client.fetch_rating_history("tourist")

    assert first == second
    assert session.get.call_count == 1
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_cache_expires_after_ttl(client, session, clock):
    session.get.return_value = ok(RATING)

    await client.fetch_rating_history("tourist")
    clock.advance(301)
    await client.fetch_rating_history("tourist")
    assert session.get.call_count == 2
    assert client.cache_stats().size == 1

    # the entry was refreshed, so the TTL counts from the second fetch
    clock.advance(200)
    await client.fetch_rating_history("tourist")
    assert session.get.call_count == 2


@pytest.mark.asyncio
async def test_distinct_parameters_are_distinct_entries(client, session):
    session.get.return_value = ok(SUBMISSIONS)

    await client.fetch_submissions("tourist")
    await client.fetch_submissions("tourist", from_=2)

    stats = client.cache_stats()
    assert stats.size == 2
    assert session.get.call_count == 2


@pytest.mark.asyncio
async def test_rate_limit_spaces_sequential_requests(client, session, clock):
    session.get.return_value = ok([])

    await client.fetch_rating_history("a")
    clock.advance(0.5)
    await client.fetch_rating_history("b")
    clock.advance(3)
    await client.fetch_rating_history("c")

    assert clock.sleeps == [pytest.approx(1.5)]


@pytest.mark.asyncio
async def test_rate_limit_queues_concurrent_requests(client, session, clock):
    route(session, {"user.info": ok([USER]), "user.rating": ok(RATING), "user.status": ok(SUBMISSIONS)})

    dashboard = await collect(client, "tourist")

    assert dashboard.profile.handle == "tourist"
    assert len(dashboard.ratingHistory) == 1
    assert len(dashboard.submissions) == 1
    assert session.get.call_count == 3
    assert clock.sleeps == [pytest.approx(2.0), pytest.approx(2.0)]


@pytest.mark.asyncio
async def test_clear_cache_forces_refetch_but_keeps_rate_marker(client, session, clock):
    session.get.return_value = ok(RATING)

    await client.fetch_rating_history("tourist")
    client.clear_cache()
    assert client.cache_stats().size == 0

    await client.fetch_rating_history("tourist")
    assert session.get.call_count == 2
    assert clock.sleeps == [pytest.approx(2.0)]


@pytest.mark.asyncio
async def test_unknown_handle_raises_not_found(client, session):
    session.get.return_value = failed("handles: User with handle nobody_here not found")

    with pytest.raises(NotFoundError) as exc_info:
        await client.fetch_user_profile("nobody_here")

    assert isinstance(exc_info.value, ApiError)
    assert exc_info.value.handle == "nobody_here"
    assert "not found" in exc_info.value.comment


@pytest.mark.asyncio
async def test_empty_user_info_result_raises_not_found(client, session):
    session.get.return_value = ok([])

    with pytest.raises(NotFoundError):
        await client.fetch_user_profile("ghost")


@pytest.mark.asyncio
async def test_failed_envelope_on_http_200_is_api_error(client, session):
    session.get.return_value = failed("Call limit exceeded", status_code=200)

    with pytest.raises(ApiError) as exc_info:
        await client.fetch_contest_list()

    assert not isinstance(exc_info.value, NotFoundError)
    assert exc_info.value.comment == "Call limit exceeded"


@pytest.mark.asyncio
async def test_errors_are_not_cached(client, session, clock):
    session.get.return_value = failed("Call limit exceeded")
    with pytest.raises(ApiError):
        await client.fetch_rating_history("tourist")
    assert client.cache_stats().size == 0

    session.get.return_value = ok(RATING)
    history = await client.fetch_rating_history("tourist")

    assert history[0].newRating == 1602
    assert session.get.call_count == 2


@pytest.mark.asyncio
async def test_connection_failure_raises_transport_error(client, session, clock):
    session.get.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(TransportError):
        await client.fetch_submissions("tourist")

    # the slot was still consumed
    session.get.side_effect = None
    session.get.return_value = ok(SUBMISSIONS)
    await client.fetch_submissions("tourist")
    assert clock.sleeps == [pytest.approx(2.0)]


@pytest.mark.asyncio
async def test_non_json_body_raises_transport_error(client, session):
    response = make_response(None, status_code=502)
    response.json.side_effect = ValueError("Expecting value")
    session.get.return_value = response

    with pytest.raises(TransportError) as exc_info:
        await client.fetch_rating_history("tourist")

    assert "502" in exc_info.value.detail


@pytest.mark.asyncio
async def test_standings_are_never_cached(client, session):
    session.get.return_value = ok({"contest": {"id": 1700}, "problems": [], "rows": []})

    await client.fetch_contest_standings(1700, handle="tourist")
    standings = await client.fetch_contest_standings(1700, handle="tourist")

    assert standings["contest"]["id"] == 1700
    assert session.get.call_count == 2
    assert client.cache_stats().size == 0
    assert "contestId=1700&handles=tourist&from=1&count=1" in session.get.call_args[0][0]


@pytest.mark.asyncio
async def test_collect_all_skips_unknown_handles(client, session, capsys):
    def get(url, timeout=None):
        if "nobody" in url:
            return failed("handle: User with handle nobody not found")
        method = url.split("/api/")[1].split("?")[0]
        return {"user.info": ok([USER]), "user.rating": ok(RATING), "user.status": ok(SUBMISSIONS)}[method]
    session.get.side_effect = get

    dashboards = await collect_all(["tourist", "nobody"], client=client)

    assert [d.profile.handle for d in dashboards] == ["tourist"]
    assert "No such user: nobody" in capsys.readouterr().out


def test_client_defaults():
    client = CodeforcesClient()

    assert client.cache_ttl == 300
    assert client.min_interval == 2.0
    assert client.base_url == "https://codeforces.com/api"
    assert inspect.iscoroutinefunction(client.fetch_submissions)

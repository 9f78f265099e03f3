from datetime import datetime, timedelta, timezone

from crmhub.metadata import Timestamp
from crmhub.user_stat import (
    IdQuery,
    QueryRequest,
    RawQueryRequest,
    TimeQuery,
    User,
    ids_query,
    time_query,
)

SELECT = "SELECT email, name FROM user_stats WHERE "
JAN_1 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def ts(value):
    return Timestamp.from_datetime(value)


def test_query_request_to_string_should_work():
    query = QueryRequest.new_with_dt("created_at", JAN_1, JAN_1 + timedelta(days=1))
    sql = str(query)
    assert sql == (
        "SELECT email, name FROM user_stats WHERE created_at BETWEEN "
        "'2024-01-01 00:00:00' AND '2024-01-02 00:00:00'"
    )


def test_query_with_timestamps_and_ids():
    query = QueryRequest(
        timestamps={
            "created_at": TimeQuery(lower=ts(JAN_1)),
            "last_visited_at": TimeQuery(lower=ts(JAN_1 + timedelta(days=30))),
        },
        ids={"viewed_but_not_started": IdQuery([207348])},
    )
    assert query.to_sql() == (
        SELECT
        + "created_at >= '2024-01-01 00:00:00' AND "
        + "last_visited_at >= '2024-01-31 00:00:00' AND "
        + "array[207348] && viewed_but_not_started"
    )


def test_new_with_dt_drops_subsecond_part():
    query = QueryRequest.new_with_dt(
        "created_at", JAN_1 + timedelta(microseconds=750), JAN_1 + timedelta(days=1)
    )
    tq = query.timestamps["created_at"]
    assert tq.lower == Timestamp(ts(JAN_1).seconds, 0)
    assert tq.upper.nanos == 0


def test_time_query_variants():
    assert time_query("x", None, None) == "TRUE"
    assert time_query("x", None, ts(JAN_1)) == "x <= '2024-01-01 00:00:00'"
    assert time_query("x", ts(JAN_1), None) == "x >= '2024-01-01 00:00:00'"


def test_ids_query_variants():
    assert ids_query("viewed", []) == "TRUE"
    assert ids_query("viewed", [1, 2, 3]) == "array[1, 2, 3] && viewed"


def test_empty_id_query_renders_true():
    query = QueryRequest(
        timestamps={"created_at": TimeQuery()},
        ids={"started": IdQuery()},
    )
    assert query.to_sql() == SELECT + "TRUE AND TRUE"


def test_empty_query_has_bare_where():
    assert QueryRequest().to_sql() == SELECT


def test_str_matches_to_sql():
    query = QueryRequest(ids={"a": IdQuery([5]), "b": IdQuery([6, 7])})
    assert str(query) == query.to_sql()
    assert query.to_sql().endswith("AND array[5] && a AND array[6, 7] && b")


def test_plain_records():
    raw = RawQueryRequest(query="SELECT * FROM user_stats LIMIT 5")
    assert raw.query == "SELECT * FROM user_stats LIMIT 5"
    user = User(email="alice@example.com", name="Alice")
    assert user == User("alice@example.com", "Alice")
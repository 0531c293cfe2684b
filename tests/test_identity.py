from urllib.parse import unquote

import pytest

from forum_relay.forums.identity import (
    INVITEE_PASSTHROUGH,
    READER_PASSTHROUGH,
    AdminCheck,
    acting_username,
    encode_component,
    passthrough,
    post_ids_query,
    read_timings_body,
    reply_body,
)


def test_admin_check_is_case_insensitive():
    is_admin = AdminCheck(["Boss", "ops"])

    assert is_admin("boss")
    assert is_admin("OPS")
    assert not is_admin("alice")


def test_admin_check_ignores_missing_usernames():
    is_admin = AdminCheck(["boss", ""])

    assert not is_admin(None)
    assert not is_admin("")


def test_acting_username_substitutes_admins_only():
    is_admin = AdminCheck(["boss"])

    assert acting_username("boss", is_admin, "system") == "system"
    assert acting_username("alice", is_admin, "system") == "alice"


def test_acting_username_missing_user_acts_as_system():
    is_admin = AdminCheck(["boss"])

    assert acting_username(None, is_admin, "system") == "system"
    assert acting_username("", is_admin, "system") == "system"


def test_acting_username_accepts_any_callable():
    assert acting_username("x", lambda _: True, "sys") == "sys"
    assert acting_username("x", lambda _: False, "sys") == "x"


@pytest.mark.parametrize("deviation", [INVITEE_PASSTHROUGH, READER_PASSTHROUGH])
def test_named_deviations_pass_username_through(deviation):
    assert passthrough("boss", deviation) == "boss"


def test_unknown_deviation_is_rejected():
    with pytest.raises(ValueError):
        passthrough("boss", "create_post.username")


def test_encode_component_matches_encode_uri_component():
    assert encode_component("a b&c=d/é") == "a%20b%26c%3Dd%2F%C3%A9"
    assert encode_component("keep-_.!~*'()") == "keep-_.!~*'()"
    assert encode_component("post_ids[]") == "post_ids%5B%5D"


def test_reply_body_without_reply_to():
    body = reply_body(7, "hello world")

    assert body == "topic_id=7&raw=hello%20world"
    assert "reply_to_post_number" not in body


def test_reply_body_with_reply_to():
    assert reply_body(7, "<b>hi</b>", 3) == "topic_id=7&raw=%3Cb%3Ehi%3C%2Fb%3E&reply_to_post_number=3"


def test_post_ids_query_one_entry_per_id():
    query = post_ids_query([11, 12, 13])

    assert query == "post_ids%5B%5D=11&post_ids%5B%5D=12&post_ids%5B%5D=13"
    assert not query.startswith("&") and not query.endswith("&")
    assert query.count("post_ids%5B%5D=") == 3


def test_post_ids_query_empty():
    assert post_ids_query([]) == ""


def test_read_timings_body():
    body = read_timings_body(5, [21, 22])

    assert body.split("&") == [
        "topic_id=5",
        "topic_time=5",
        "timings%5B21%5D=1000",
        "timings%5B22%5D=1000",
    ]
    assert unquote(body) == "topic_id=5&topic_time=5&timings[21]=1000&timings[22]=1000"

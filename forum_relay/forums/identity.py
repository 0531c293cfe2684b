"""Acting-identity selection and request body encoding.

Administrators of the calling application must never reach the forum as
themselves; the forum's system account acts for them instead. Two call
sites intentionally skip that rule and pass the given username through:

  grant_access          - the inviting user (``invitee``)
  mark_topic_posts_read - the reader

Both are recorded below as named deviations so callers and tests can tell
them apart from the substituted paths.
"""

from typing import Callable, Iterable, Optional
from urllib.parse import quote

IsAdmin = Callable[[Optional[str]], bool]

INVITEE_PASSTHROUGH = "grant_access.invitee"
READER_PASSTHROUGH = "mark_topic_posts_read.username"
PASSTHROUGH_DEVIATIONS = frozenset({INVITEE_PASSTHROUGH, READER_PASSTHROUGH})

READ_DWELL_MS = 1000

# Characters encodeURIComponent leaves alone besides alphanumerics
_UNRESERVED = "-_.!~*'()"


class AdminCheck:
    """Membership test against the application's administrator usernames."""

    def __init__(self, admin_usernames: Iterable[str] = ()):
        self._admins = frozenset(name.lower() for name in admin_usernames if name)

    def __call__(self, username: Optional[str]) -> bool:
        if not username:
            return False
        return str(username).lower() in self._admins

    def __repr__(self):
        return f"AdminCheck(admins={sorted(self._admins)!r})"


def acting_username(username: Optional[str], is_admin: IsAdmin, system_username: str) -> Optional[str]:
    """Return the username the forum should see acting for ``username``.

    Administrators and a missing username both act as the system account.
    """
    if not username or is_admin(username):
        return system_username
    return username


def passthrough(username: Optional[str], deviation: str) -> Optional[str]:
    """Return ``username`` unchanged for one of the named deviations."""
    if deviation not in PASSTHROUGH_DEVIATIONS:
        raise ValueError(f"Unknown identity deviation: {deviation!r}")
    return username


def encode_component(value) -> str:
    """Percent-encode a value the way encodeURIComponent does."""
    return quote(str(value), safe=_UNRESERVED)


def reply_body(topic_id, raw: str, response_to=None) -> str:
    """Form body for a reply, with the reply-to field only when given."""
    data = f"topic_id={topic_id}&raw={encode_component(raw)}"
    if response_to is not None:
        data += f"&reply_to_post_number={response_to}"
    return data


def post_ids_query(post_ids: Iterable) -> str:
    """``post_ids[]`` query entries, one per id, joined with ``&``."""
    key = encode_component("post_ids[]")
    return "&".join(f"{key}={encode_component(post_id)}" for post_id in post_ids)


def read_timings_body(topic_id, post_ids: Iterable) -> str:
    """Form body recording a fixed dwell time for each post read."""
    parts = [f"topic_id={topic_id}", f"topic_time={topic_id}"]
    for post_id in post_ids:
        parts.append(f"{encode_component(f'timings[{post_id}]')}={READ_DWELL_MS}")
    return "&".join(parts)

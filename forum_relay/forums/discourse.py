"""Discourse API client acting on behalf of application users.

Each method performs exactly one request. The acting username sent to
Discourse is chosen by ``identity.acting_username``: administrators of the
calling application are replaced by the forum's system account.

Key endpoints:
  /users, /users/{username}.json       - user lookup and creation
  /admin/users/{id}/trust_level        - trust level changes
  /posts, /posts/{id}.json             - posts and private messages
  /t/{id}.json, /t/{id}/posts.json     - topics and their posts
  /t/{id}/invite, /remove-allowed-user - private message membership
  /uploads.json                        - image uploads
  /topics/timings.json                 - read receipts
"""

from typing import Any, Optional, Sequence, Union

import aiohttp

from ..errors import Conflict, NotFound, UpstreamHTTPError
from ..models import ForumConfig, PostRef, UploadFile
from ..utils.http_client import ForumHttpClient
from ..utils.logger import get_logger
from .identity import (
    INVITEE_PASSTHROUGH,
    READER_PASSTHROUGH,
    AdminCheck,
    IsAdmin,
    acting_username,
    passthrough,
    post_ids_query,
    read_timings_body,
    reply_body,
)

logger = get_logger("discourse")

CONFLICT_STATUSES = (409, 422)


class DiscourseClient:
    """Forum access client.

    Usage:
        client = DiscourseClient.from_config(config.forum)
        topic = await client.get_topic(42, "alice")
        await client.close()
    """

    def __init__(self, http: ForumHttpClient, system_username: str, is_admin: IsAdmin):
        self.http = http
        self.system_username = system_username
        self.is_admin = is_admin

    @classmethod
    def from_config(cls, config: ForumConfig) -> "DiscourseClient":
        http = ForumHttpClient(
            base_url=config.url,
            api_key=config.api_key,
            system_username=config.system_username,
            timeout=config.timeout,
        )
        return cls(http, config.system_username, AdminCheck(config.admin_usernames))

    async def close(self):
        await self.http.close()

    def _as(self, username: Optional[str]) -> dict:
        """Query params making ``username`` (or the system account) act."""
        return {"api_username": acting_username(username, self.is_admin, self.system_username)}

    # ==================== Users ====================

    async def get_user(self, username: str) -> dict:
        """Fetch a user record by forum username.

        Raises:
            NotFound: If Discourse has no such user.
        """
        try:
            return await self.http.get(
                f"/users/{username}.json",
                params=self._as(username),
            )
        except UpstreamHTTPError as e:
            if e.status == 404:
                raise NotFound.from_error(e) from e
            raise

    async def create_user(
        self,
        name: str,
        user_id: Union[int, str],
        handle: str,
        email: str,
        password: str,
    ) -> dict:
        """Create a forum user for an application user.

        The forum username is the application user id; the handle goes into
        custom user field 1. Accounts are always active since sign-in happens
        through SSO and the password is never used.

        Raises:
            Conflict: If the email or username is already taken.
        """
        logger.debug("creating_user", name=name, user_id=user_id, handle=handle)
        try:
            result = await self.http.post(
                "/users",
                json={
                    "name": name,
                    "username": user_id,
                    "email": email,
                    "password": password,
                    "active": True,
                    "user_fields": {"1": handle},
                },
            )
        except UpstreamHTTPError as e:
            if e.status in CONFLICT_STATUSES:
                raise Conflict.from_error(e) from e
            raise

        # Discourse reports duplicates with a 200 and success=false
        if isinstance(result, dict) and result.get("success") is False:
            raise Conflict("/users", 200, result)
        return result

    async def change_trust_level(self, user_id: int, level: int) -> Any:
        """Set the trust level of a forum user id, acting as the system account."""
        logger.debug("changing_trust_level", user_id=user_id, level=level)
        return await self.http.put(
            f"/admin/users/{user_id}/trust_level",
            json={"user_id": user_id, "level": level},
        )

    # ==================== Topics ====================

    async def create_private_post(
        self,
        title: str,
        body: str,
        target_usernames: Union[str, Sequence[str]],
        owner: Optional[str],
    ) -> PostRef:
        """Start a private message thread.

        Args:
            title: Topic title.
            body: First post, markup allowed.
            target_usernames: Recipients, sent as given.
            owner: User opening the thread. Administrators and a missing
                owner are replaced by the system account.

        Returns:
            Ids of the created post and topic.
        """
        if not isinstance(target_usernames, str):
            target_usernames = ",".join(str(u) for u in target_usernames)

        try:
            result = await self.http.post(
                "/posts",
                json={
                    "archetype": "private_message",
                    "target_usernames": target_usernames,
                    "title": title,
                    "raw": body,
                },
                params=self._as(owner),
            )
        except Exception as e:
            logger.error("create_private_topic_failed", title=title, owner=owner, error=str(e))
            raise

        return PostRef(post_id=result["id"], topic_id=result["topic_id"])

    async def get_topic(self, topic_id: int, username: str) -> dict:
        """Fetch a topic with raw post content included."""
        logger.debug("retrieving_topic", topic_id=topic_id, username=username)
        return await self.http.get(f"/t/{topic_id}.json?include_raw=1", params=self._as(username))

    async def update_topic(self, username: str, topic_id: int, title: str) -> Any:
        logger.debug("updating_topic", topic_id=topic_id, username=username)
        return await self.http.put(
            f"/t/{topic_id}.json",
            json={"topic_id": topic_id, "title": title},
            params=self._as(username),
        )

    async def delete_topic(self, username: str, topic_id: int) -> Any:
        return await self.http.delete(f"/t/{topic_id}.json", params=self._as(username))

    async def grant_access(self, username: str, topic_id: int, invitee: str = "system") -> Any:
        """Invite ``username`` into a private thread.

        The inviting user is sent unchanged, administrators included.
        """
        return await self.http.post(
            f"/t/{topic_id}/invite",
            json={"user": username},
            params={"api_username": passthrough(invitee, INVITEE_PASSTHROUGH)},
        )

    async def remove_access(self, username: str, topic_id: int) -> Any:
        """Drop ``username`` from a private thread, acting as the system account."""
        return await self.http.put(
            f"/t/{topic_id}/remove-allowed-user",
            json={"username": username},
            params={"api_username": self.system_username},
        )

    # ==================== Posts ====================

    async def create_post(
        self,
        username: str,
        body: str,
        topic_id: int,
        response_to: Optional[int] = None,
    ) -> Any:
        """Reply in a topic, optionally to a given post number."""
        return await self.http.post(
            "/posts",
            data=reply_body(topic_id, body, response_to),
            params=self._as(username),
        )

    async def get_post(self, username: str, post_id: int) -> Any:
        logger.debug("retrieving_post", post_id=post_id)
        return await self.http.get(f"/posts/{post_id}.json", params=self._as(username))

    async def get_posts(self, username: str, topic_id: int, post_ids: Sequence[int]) -> Any:
        """Fetch several posts of one topic in a single request."""
        logger.debug("retrieving_posts", topic_id=topic_id, post_ids=list(post_ids))
        path = f"/t/{topic_id}/posts.json?include_raw=1"
        query = post_ids_query(post_ids)
        if query:
            path += "&" + query
        return await self.http.get(path, params=self._as(username))

    async def update_post(self, username: str, post_id: int, body: str) -> Any:
        return await self.http.put(
            f"/posts/{post_id}.json",
            json={"post": {"raw": body}},
            params=self._as(username),
        )

    async def delete_post(self, username: str, post_id: int) -> Any:
        return await self.http.delete(f"/posts/{post_id}.json", params=self._as(username))

    async def upload_image(self, username: str, file: UploadFile) -> Any:
        """Stream a local image into a composer upload.

        The file name and content type come from ``file``, not from the file
        on disk.
        """
        with open(file.path, "rb") as fh:
            form = aiohttp.FormData()
            form.add_field("type", "composer")
            form.add_field("synchronous", "true")
            form.add_field("file", fh, filename=file.original_name, content_type=file.mimetype)
            writer = form()

            return await self.http.post(
                "/uploads.json",
                data=writer,
                headers={"Content-Type": f"multipart/form-data; boundary={writer.boundary}"},
                params=self._as(username),
            )

    async def mark_topic_posts_read(self, username: str, topic_id: int, post_ids: Sequence[int]) -> Any:
        """Record read timings for posts of a topic.

        The reader is sent unchanged, administrators included.
        """
        return await self.http.post(
            "/topics/timings.json",
            data=read_timings_body(topic_id, post_ids),
            params={"api_username": passthrough(username, READER_PASSTHROUGH)},
        )

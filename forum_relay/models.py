"""Data models for the forum relay."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ForumConfig(BaseModel):
    """Connection settings for the Discourse instance."""

    url: str
    api_key: str
    system_username: str = "system"
    admin_usernames: list[str] = Field(default_factory=list)
    timeout: Optional[int] = None  # seconds, None = no client timeout

    @field_validator("admin_usernames", mode="before")
    @classmethod
    def usernames_to_str(cls, v):
        # Forum usernames are application ids, so YAML may hold bare numbers
        if isinstance(v, list):
            return [str(name) for name in v]
        return v


class LoggingConfig(BaseModel):
    """Log output configuration."""

    level: str = "DEBUG"
    json_output: bool = False
    capture_logs: bool = False
    logentries_token: Optional[str] = None

    @field_validator("logentries_token", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        if v == "":
            return None
        return v


class ServerConfig(BaseModel):
    """Settings consumed by the hosting HTTP layer."""

    port: int = 3000


class AppConfig(BaseModel):
    """Complete application configuration."""

    name: str = "forum-relay"
    forum: ForumConfig
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


class UploadFile(BaseModel):
    """A local file handed over by the caller for upload."""

    path: str
    original_name: str
    mimetype: str


class PostRef(BaseModel):
    """Identifiers of a newly created post and its topic."""

    post_id: int
    topic_id: int

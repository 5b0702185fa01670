"""Serializable session state of API connections."""

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_USER_AGENT = "wikibase-toolkit/0.1.0 (python-requests)"


class ConnectionState(BaseModel):
    """Session state shared by all connection types.

    Field aliases are the JSON names used when a session is saved.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    base_url: str = Field(alias="baseUrl")
    logged_in: bool = Field(default=False, alias="loggedIn")
    username: str = ""
    tokens: dict[str, str] = Field(default_factory=dict)
    connect_timeout_ms: int = Field(default=-1, alias="connectTimeoutMs")
    read_timeout_ms: int = Field(default=-1, alias="readTimeoutMs")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, alias="userAgent")

    @model_validator(mode="after")
    def validate_login(self) -> "ConnectionState":
        """A logged in session always has a user name."""
        if self.logged_in and not self.username:
            raise ValueError("username required when loggedIn=true")
        return self

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class CookieState(BaseModel):
    name: str
    value: str
    domain: str = ""
    path: str = "/"


class BasicConnectionState(ConnectionState):
    """State of a password based connection; session cookies carry the login."""

    cookies: list[CookieState] = Field(default_factory=list)


class TokenConnectionState(ConnectionState):
    """State of a connection authenticated with a pre-issued access token."""

    access_token: str | None = Field(default=None, alias="accessToken")

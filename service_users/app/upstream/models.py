"""
Raw upstream data models for the Users Service.

These mirror the subset of the provider payload requested through
``inc=gender,name,location,login``. Missing or null values decode to empty
strings; a payload of the wrong shape fails validation.
"""

from typing import Any, List

from pydantic import BaseModel, Field, field_validator


class RawName(BaseModel):
    """Name block of a raw upstream user."""
    first: str = ""
    last: str = ""

    @field_validator("first", "last", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class RawLocation(BaseModel):
    """Location block of a raw upstream user."""
    city: str = ""
    country: str = ""

    @field_validator("city", "country", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class RawLogin(BaseModel):
    """Login block of a raw upstream user."""
    uuid: str = ""

    @field_validator("uuid", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class RawUser(BaseModel):
    """One raw upstream user record."""
    gender: str = ""
    name: RawName = Field(default_factory=RawName)
    email: str = ""
    location: RawLocation = Field(default_factory=RawLocation)
    login: RawLogin = Field(default_factory=RawLogin)

    @field_validator("gender", "email", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("name", "location", "login", mode="before")
    @classmethod
    def null_as_blank_block(cls, value: Any) -> Any:
        return {} if value is None else value


class RawPage(BaseModel):
    """Upstream response for one page."""
    results: List[RawUser] = Field(default_factory=list)

    @field_validator("results", mode="before")
    @classmethod
    def null_as_no_results(cls, value: Any) -> Any:
        return [] if value is None else value

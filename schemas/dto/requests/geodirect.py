"""
Request DTOs for geodirect management and prompt logging endpoints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class CreateGeodirectRequest(BaseModel):
    """Request body for creating a geodirect.

    Accepts ``country`` / ``url`` as aliases, matching the storefront admin.
    """

    model_config = ConfigDict(populate_by_name=True)

    country_code: str = Field(
        min_length=2,
        max_length=2,
        validation_alias=AliasChoices("country_code", "country"),
    )
    target_url: str = Field(validation_alias=AliasChoices("target_url", "url"))
    message: str = Field(min_length=1)

    @field_validator("country_code")
    @classmethod
    def upper_country(cls, value: Optional[str]) -> Optional[str]:
        return value.upper() if value is not None else None


class UpdateGeodirectRequest(BaseModel):
    """Request body for editing a geodirect.

    ``_rev`` is the revision the client read; a stale one is rejected with 409.
    Only provided fields are changed.
    """

    model_config = ConfigDict(populate_by_name=True)

    revision: str = Field(validation_alias=AliasChoices("_rev", "revision"))
    country_code: Optional[str] = Field(
        default=None,
        min_length=2,
        max_length=2,
        validation_alias=AliasChoices("country_code", "country"),
    )
    target_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("target_url", "url")
    )
    message: Optional[str] = Field(default=None, min_length=1)

    @field_validator("country_code")
    @classmethod
    def upper_country(cls, value: Optional[str]) -> Optional[str]:
        return value.upper() if value is not None else None

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True, exclude={"revision"})


class LogPromptRequest(BaseModel):
    """Body posted by the storefront tag when a geodirect prompt is shown."""

    model_config = ConfigDict(populate_by_name=True)

    geodirect_revision: str = Field(
        validation_alias=AliasChoices("geodirect_revision", "geodirect_rev")
    )
    shop_id: int

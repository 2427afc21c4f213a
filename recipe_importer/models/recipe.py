"""
Recipe data models for the Recipe Importer.

This module defines the Pydantic models used to carry recipe data between
the extraction pipeline and its callers. Serialized payloads use the
camelCase keys of the import API.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..const import ERROR_BLOCKED


class Ingredient(BaseModel):
    """A single ingredient line.

    Attributes:
        raw: The full original ingredient text (e.g., '1 cup butter, softened')
        amount: Optional leading quantity (e.g., '1', '1/2', '1 1/2')
        unit: Optional unit of measurement (e.g., 'cup', 'tbsp')
        name: Optional ingredient name (e.g., 'butter')
        notes: Optional preparation notes (e.g., 'softened')
    """

    model_config = ConfigDict(frozen=True)

    raw: str = Field(
        min_length=1,
        description="The full original ingredient text"
    )
    amount: str | None = Field(
        default=None,
        description="The leading quantity, e.g., '1 1/2'"
    )
    unit: str | None = Field(
        default=None,
        description="The unit of measurement, e.g., 'cups', 'tbsp'"
    )
    name: str | None = Field(
        default=None,
        description="The name of the ingredient, e.g., 'all-purpose flour'"
    )
    notes: str | None = Field(
        default=None,
        description="Preparation notes, e.g., 'softened'"
    )


class InstructionStep(BaseModel):
    """One numbered cooking step."""

    model_config = ConfigDict(frozen=True)

    step: int = Field(ge=1, description="1-based position of the step")
    text: str = Field(description="The instruction text")


class ScrapedRecipe(BaseModel):
    """The canonical output of one extraction attempt.

    Times are in minutes. The record is immutable; the review UI edits a copy
    before it is persisted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str | None = None
    description: str | None = None
    ingredients: list[Ingredient] = Field(default_factory=list)
    instructions: list[InstructionStep] = Field(default_factory=list)
    prep_time: int | None = Field(default=None, alias="prepTime", gt=0)
    cook_time: int | None = Field(default=None, alias="cookTime", gt=0)
    servings: int | None = Field(default=None, gt=0)
    image_url: str | None = Field(default=None, alias="imageUrl")
    source_name: str | None = Field(default=None, alias="sourceName")
    tags: list[str] | None = None

    @model_validator(mode="after")
    def _check_step_numbers(self) -> ScrapedRecipe:
        for position, step in enumerate(self.instructions, start=1):
            if step.step != position:
                raise ValueError(
                    f"Instruction step {step.step} is at position {position}")
        return self

    def to_payload(self) -> dict[str, Any]:
        """Serialize with camelCase keys, dropping absent fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PageMeta(BaseModel):
    """Page-level hints used when the structured data omits a field."""

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = Field(default=None, alias="pageTitle")
    og_image: str | None = Field(default=None, alias="ogImage")
    site_name: str | None = Field(default=None, alias="siteName")

    @field_validator("title", "og_image", "site_name")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


class ScrapeResult(BaseModel):
    """Outcome of a server-side scrape.

    Attributes:
        recipe: The extracted recipe, or None when nothing could be fetched
        raw_payload: Opaque audit blob stored verbatim by the caller
        error: Optional diagnostic; 'blocked' marks bot protection
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    recipe: ScrapedRecipe | None = None
    raw_payload: dict[str, Any] = Field(default_factory=dict, alias="rawPayload")
    error: str | None = None

    @property
    def blocked(self) -> bool:
        """Whether the site refused the request (offer the bookmarklet)."""
        return self.error == ERROR_BLOCKED

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "recipe": self.recipe.to_payload() if self.recipe else None,
            "rawPayload": self.raw_payload,
        }
        if self.error:
            payload["error"] = self.error
        return payload


class BookmarkletPayload(BaseModel):
    """Data captured by the bookmarklet on the recipe page."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    jsonld: list[Any] = Field(default_factory=list)
    url: str | None = None
    title: str | None = None
    og_image: str | None = Field(default=None, alias="ogImage")
    site_name: str | None = Field(default=None, alias="siteName")

    def page_meta(self) -> PageMeta:
        return PageMeta(
            title=self.title, og_image=self.og_image, site_name=self.site_name)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

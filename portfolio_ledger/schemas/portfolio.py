"""Pydantic schemas for portfolio and category definitions."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from ..errors import InvalidPortfolioData
from ..models import EntityDefinition, EntityKind


class _DefinitionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class AssetDefinitionSchema(_DefinitionModel):
    name: str = Field(..., min_length=1, examples=["活期"])
    kind: EntityKind = Field(validation_alias=AliasChoices("type", "kind"))
    currency: str | None = Field(default=None, examples=["USD"])
    tags: tuple[str, ...] = ()

    def to_entity(self, account: str | None = None) -> EntityDefinition:
        return EntityDefinition(
            name=self.name,
            kind=self.kind,
            currency=self.currency,
            tags=self.tags,
            account=account,
        )


class AccountDefinitionSchema(_DefinitionModel):
    name: str = Field(..., min_length=1)
    type: str = "account"
    assets: tuple[AssetDefinitionSchema, ...] = ()

    def entities(self) -> list[EntityDefinition]:
        return [asset.to_entity(account=self.name) for asset in self.assets]


class PortfolioDefinition(_DefinitionModel):
    assets: tuple[AssetDefinitionSchema, ...] = ()
    accounts: tuple[AccountDefinitionSchema, ...] = ()

    def entities(self) -> list[EntityDefinition]:
        """Standalone assets first, then account assets in definition order."""

        entities = [asset.to_entity() for asset in self.assets]
        for account in self.accounts:
            entities.extend(account.entities())
        return entities


class CategorySchema(_DefinitionModel):
    name: str
    tags: tuple[str, ...] | None = None
    exclude_tags: tuple[str, ...] | None = Field(
        default=None,
        validation_alias=AliasChoices("excludeTags", "exclude_tags"),
    )
    categories: tuple["CategorySchema", ...] | None = None
    target_value: float | None = Field(
        default=None,
        validation_alias=AliasChoices("targetValue", "target_value"),
    )


CategorySchema.model_rebuild()


class CategoryDefinitions(_DefinitionModel):
    category_types: tuple[CategorySchema, ...] = Field(
        default=(),
        validation_alias=AliasChoices("categoryTypes", "category_types"),
    )


def parse_portfolio(payload: Any) -> PortfolioDefinition:
    try:
        return PortfolioDefinition.model_validate(payload)
    except ValidationError as exc:
        raise InvalidPortfolioData(f"Invalid portfolio definition: {exc}") from exc


def parse_categories(payload: Any) -> CategoryDefinitions:
    try:
        return CategoryDefinitions.model_validate(payload)
    except ValidationError as exc:
        raise InvalidPortfolioData(f"Invalid category definition: {exc}") from exc


__all__ = [
    "AssetDefinitionSchema",
    "AccountDefinitionSchema",
    "PortfolioDefinition",
    "CategorySchema",
    "CategoryDefinitions",
    "parse_portfolio",
    "parse_categories",
]

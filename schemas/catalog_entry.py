"""Pydantic models for the commerce catalog snapshot."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CatalogEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slug: str
    name: str
    attributes: Dict[str, str] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list, description="Genetics / strain tags")
    categories: List[str] = Field(default_factory=list)
    link: str = ""
    stock_status: Optional[str] = Field(None, alias="stockStatus")

    @property
    def in_stock(self) -> bool:
        return not self.stock_status or self.stock_status == "instock"


class MatchedProduct(BaseModel):
    slug: str
    name: str
    attributes: Dict[str, str] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    link: str = ""

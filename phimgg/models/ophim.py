"""Payload shapes returned by the Ophim catalog API.

The upstream schema is loose: strings come back as ``null`` or as bare numbers,
numbers as strings, and fields appear or vanish between titles. These models fix
the nesting and stringify numbers in text fields; numeric parsing happens in the
transformer.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _OphimModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # null fields fall back to the declared defaults
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class OphimTaxonomy(_OphimModel):
    id: str = ""
    name: str = ""
    slug: str = ""


class OphimEpisodeEntry(_OphimModel):
    name: str = ""
    slug: str = ""
    filename: str = ""
    link_embed: str = ""
    link_m3u8: str = ""


class OphimServer(_OphimModel):
    server_name: str = ""
    server_data: list[OphimEpisodeEntry] = Field(default_factory=list)


class MovieListItem(_OphimModel):
    id: str = Field(default="", alias="_id")
    name: str = ""
    slug: str = ""
    origin_name: str = ""
    type: str = ""
    thumb_url: str = ""
    poster_url: str = ""
    year: Any = None
    episode_current: str = ""
    quality: str = ""
    lang: str = ""


class Pagination(_OphimModel):
    total_items: int = Field(default=0, alias="totalItems")
    total_items_per_page: int = Field(default=0, alias="totalItemsPerPage")
    current_page: int = Field(default=1, alias="currentPage")
    total_pages: int = Field(default=0, alias="totalPages")


class MovieListPage(_OphimModel):
    items: list[MovieListItem] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class OphimMovie(_OphimModel):
    id: str = Field(default="", alias="_id")
    name: str = ""
    slug: str = ""
    origin_name: str = ""
    content: str = ""
    type: str = ""
    status: str = ""
    thumb_url: str = ""
    poster_url: str = ""
    trailer_url: str = ""
    time: str = ""
    episode_current: str = ""
    episode_total: str = ""
    quality: str = ""
    lang: str = ""
    year: Any = None
    view: Any = None
    actor: list[Any] = Field(default_factory=list)
    director: list[Any] = Field(default_factory=list)
    category: list[OphimTaxonomy] = Field(default_factory=list)
    country: list[OphimTaxonomy] = Field(default_factory=list)
    episodes: list[OphimServer] = Field(default_factory=list)


class MovieDetail(_OphimModel):
    item: OphimMovie
    cdn_image_domain: str | None = Field(default=None, alias="APP_DOMAIN_CDN_IMAGE")

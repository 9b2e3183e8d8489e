from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Backend replies

class RawIndexInfo(BaseModel):
    """One row of `_cat/indices?format=json`."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    index: str
    health: Optional[str] = None
    status: Optional[str] = None
    uuid: Optional[str] = None
    docs_count: Optional[str] = Field(default=None, alias="docs.count")
    docs_deleted: Optional[str] = Field(default=None, alias="docs.deleted")
    store_size: Optional[str] = Field(default=None, alias="store.size")
    primary_size: Optional[str] = Field(default=None, alias="pri.store.size")
    pri: Optional[str] = None
    rep: Optional[str] = None
    creation_date: Optional[str] = Field(default=None, alias="creation.date")
    creation_time: Optional[str] = Field(default=None, alias="creation.date.string")


class RawTotalHits(BaseModel):
    value: int
    relation: Optional[str] = None


class RawHits(BaseModel):
    total: Optional[Union[RawTotalHits, int]] = None
    max_score: Optional[float] = None
    hits: List[Dict[str, Any]] = Field(default_factory=list)


class RawSearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    took: int
    timed_out: bool
    shards: Dict[str, Any] = Field(default_factory=dict, alias="_shards")
    hits: RawHits
    aggregations: Optional[Dict[str, Any]] = None

# Tool results

Health = Literal["green", "yellow", "red", "unknown"]
Status = Literal["open", "close", "unknown"]


class IndexSummary(BaseModel):
    name: str
    health: Health = "unknown"
    status: Status = "unknown"
    uuid: Optional[str] = None
    docs_count: Optional[str] = None
    docs_deleted: Optional[str] = None
    store_size: Optional[str] = None
    primary_size: Optional[str] = None
    primary_count: Optional[str] = None
    replica_count: Optional[str] = None
    creation_date: Optional[str] = None
    creation_time: Optional[str] = None

    @field_validator("health", mode="before")
    @classmethod
    def _known_health(cls, value: Any) -> str:
        return value if value in ("green", "yellow", "red") else "unknown"

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value: Any) -> str:
        return value if value in ("open", "close") else "unknown"

    @classmethod
    def from_raw(cls, raw: RawIndexInfo) -> 'IndexSummary':
        return cls(
            name=raw.index,
            health=raw.health,
            status=raw.status,
            uuid=raw.uuid,
            docs_count=raw.docs_count,
            docs_deleted=raw.docs_deleted,
            store_size=raw.store_size,
            primary_size=raw.primary_size,
            primary_count=raw.pri,
            replica_count=raw.rep,
            creation_date=raw.creation_date,
            creation_time=raw.creation_time,
        )


class IndexListing(BaseModel):
    total_indices: int
    pattern: str
    indices: List[IndexSummary]


class IndexMappings(BaseModel):
    index: str
    mappings: Dict[str, Any]


class SearchRequest(BaseModel):
    """A validated search; optional JSON parts are None when not supplied."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    index: str
    query: Dict[str, Any]
    size: int = 10
    from_: int = Field(default=0, alias="from")
    sort: Optional[Any] = None
    aggs: Optional[Dict[str, Any]] = None
    source: Optional[Any] = Field(default=None, alias="_source")
    highlight: Optional[Dict[str, Any]] = None
    track_total_hits: bool = True
    timeout: Optional[str] = None


class SearchResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    index: str
    took: int
    timed_out: bool
    total_hits: int
    total_hits_relation: Optional[str] = None
    max_score: Optional[float] = None
    hits: List[Dict[str, Any]]
    shards: Dict[str, Any]
    from_: int = Field(alias="from")
    size: int
    aggregations: Optional[Dict[str, Any]] = None

    def to_response(self) -> Dict[str, Any]:
        """Wire shape: `from` spelled out, `aggregations` only when present."""
        exclude = None if self.aggregations else {"aggregations"}
        return self.model_dump(by_alias=True, exclude=exclude)

"""Data models for conference metadata and its cache entry."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any


def clean_text(value: Any) -> str:
    """Normalise a raw YAML/JSON scalar to a trimmed string."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def clean_date(value: Any) -> str:
    """Like ``clean_text`` but also drops the stray quotes some sources wrap dates in.

    YAML turns unquoted dates into ``date`` objects; those come back as ISO text.
    """
    return clean_text(value).replace('"', "").replace("'", "").strip()


def _optional_text(value: Any) -> str | None:
    text = clean_text(value)
    return text or None


def _optional_date(value: Any) -> str | None:
    text = clean_date(value)
    return text or None


@dataclass
class TimelineItem:
    """One named milestone of a conference edition."""
    name: str
    deadline: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "deadline": self.deadline}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimelineItem":
        return cls(
            name=clean_text(data.get("name")),
            deadline=clean_date(data.get("deadline")),
        )


@dataclass
class ConferenceInstance:
    """One edition (year) of a conference."""
    year: int
    date: str = ""
    place: str = ""
    deadline: str = ""
    instance_id: str | None = None
    abstract_deadline: str | None = None
    link: str | None = None
    timezone: str | None = None
    timeline: list[TimelineItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "instance_id": self.instance_id,
            "date": self.date,
            "place": self.place,
            "abstract_deadline": self.abstract_deadline,
            "deadline": self.deadline,
            "link": self.link,
            "timezone": self.timezone,
            "timeline": [t.to_dict() for t in self.timeline],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConferenceInstance":
        return cls(
            year=int(data["year"]),
            instance_id=_optional_text(data.get("instance_id")),
            date=clean_date(data.get("date")),
            place=clean_text(data.get("place")),
            abstract_deadline=_optional_date(data.get("abstract_deadline")),
            deadline=clean_date(data.get("deadline")),
            link=_optional_text(data.get("link")),
            timezone=_optional_text(data.get("timezone")),
            timeline=[
                TimelineItem.from_dict(t)
                for t in data.get("timeline") or []
                if isinstance(t, dict)
            ],
        )


@dataclass
class ConferenceRecord:
    """A conference and all of its known editions.

    Immutable once fetched for a given cache generation.
    """
    id: str
    title: str
    description: str
    category: str
    rank: dict[str, str] = field(default_factory=dict)
    dblp_key: str | None = None
    instances: list[ConferenceInstance] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "rank": dict(self.rank),
            "dblp_key": self.dblp_key,
            "instances": [i.to_dict() for i in self.instances],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConferenceRecord":
        rank = data.get("rank") or {}
        return cls(
            id=clean_text(data["id"]),
            title=clean_text(data["title"]),
            description=clean_text(data.get("description")),
            category=clean_text(data.get("category")),
            rank={str(k): clean_text(v) for k, v in rank.items()} if isinstance(rank, dict) else {},
            dblp_key=_optional_text(data.get("dblp_key")),
            instances=[
                ConferenceInstance.from_dict(i)
                for i in data.get("instances") or []
                if isinstance(i, dict)
            ],
        )

    def find_instance(self, year: int) -> ConferenceInstance | None:
        """Return the edition for ``year``, if known."""
        for instance in self.instances:
            if instance.year == year:
                return instance
        return None


@dataclass
class CacheEntry:
    """The single cached snapshot of remote conference data."""
    records: list[ConferenceRecord]
    fetched_at_ms: int

    def is_fresh(self, now_ms: int, ttl_ms: int) -> bool:
        return now_ms - self.fetched_at_ms < ttl_ms

    def to_dict(self) -> dict[str, Any]:
        return {
            "conferences": [r.to_dict() for r in self.records],
            "timestamp": self.fetched_at_ms,
        }

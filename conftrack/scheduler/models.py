"""Data models for subscriptions."""
from dataclasses import dataclass
from typing import Any

from ..conferences.models import ConferenceInstance, ConferenceRecord, clean_date, clean_text


@dataclass(frozen=True)
class Subscription:
    """A subscribed conference edition.

    Created on subscribe, deleted on unsubscribe; re-subscribing replaces
    the stored entry with the same id.
    """
    id: str
    title: str
    year: int
    deadline: str
    date: str

    @staticmethod
    def make_id(title: str, year: int, instance_id: str | None = None) -> str:
        """Edition id if the source has one, otherwise ``"{title}-{year}"``."""
        return instance_id or f"{title}-{year}"

    @classmethod
    def from_instance(cls, record: ConferenceRecord, instance: ConferenceInstance) -> "Subscription":
        return cls(
            id=cls.make_id(record.title, instance.year, instance.instance_id),
            title=record.title,
            year=instance.year,
            deadline=instance.deadline,
            date=instance.date,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "year": self.year,
            "deadline": self.deadline,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Subscription":
        """Create from dictionary; raises KeyError/ValueError on malformed input."""
        title = clean_text(data["title"])
        year = int(data["year"])
        return cls(
            id=clean_text(data.get("id")) or cls.make_id(title, year),
            title=title,
            year=year,
            deadline=clean_date(data.get("deadline")),
            date=clean_date(data.get("date")),
        )

"""Item model: one immutable unit of published news."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class Item(BaseModel):
    """Represents an item posted to a notifier. Identity is the id alone."""

    model_config = ConfigDict(frozen=True)

    id: int
    headline: str = ""
    body: str = ""

    def render(self) -> str:
        return render(self)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize item for logging or fixtures."""
        return {"id": self.id, "headline": self.headline, "body": self.body}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        return cls(
            id=int(data["id"]),
            headline=str(data.get("headline", "")),
            body=str(data.get("body", "")),
        )


def render(item: Item) -> str:
    """Semicolon-joined id, headline and body."""
    return f"{item.id};{item.headline};{item.body}"

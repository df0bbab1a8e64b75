from __future__ import annotations

import uuid


class Genre:
    """A genre that books on the reading list can belong to."""

    def __init__(self, name: str, id: str | None = None) -> None:
        self.id = id if id is not None else str(uuid.uuid4())
        self.name = name

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return self.name

    def __repr__(self) -> str:
        return f"Genre(id={self.id!r}, name={self.name!r})"

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Genre):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    @staticmethod
    def from_dict(data: dict) -> "Genre":
        return Genre(name=data["name"], id=data.get("id"))

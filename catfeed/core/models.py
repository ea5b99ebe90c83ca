from __future__ import annotations
from dataclasses import dataclass
import json
from typing import Generic, TypeVar, Union

from pydantic import BaseModel, ConfigDict, conint

T = TypeVar("T")

Dimension = conint(ge=0)


class Cat(BaseModel):
    """One image entry of the cat feed. Identity is the ``id`` alone."""

    model_config = ConfigDict(frozen=True, extra="ignore", strict=True)

    id: str
    url: str
    width: Dimension
    height: Dimension

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cat):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def dimensions_label(self) -> str:
        return f"{self.width} x {self.height}"

    def thumbnail_width(self, height: float) -> float:
        """Width that keeps the aspect ratio when drawn ``height`` pixels tall."""
        if self.height == 0:
            return 0.0
        return self.width * height / self.height

    def to_pretty_json(self) -> str:
        return json.dumps(self.model_dump(), indent=2, ensure_ascii=False)


# ---------------- Slots ----------------

@dataclass(frozen=True)
class Pending:
    """Reserved position whose item has not arrived yet."""


@dataclass(frozen=True)
class Loaded(Generic[T]):
    item: T


@dataclass(frozen=True)
class Failed:
    """Reserved position whose page fetch failed."""
    reason: str


PENDING = Pending()

Slot = Union[Pending, Loaded, Failed]

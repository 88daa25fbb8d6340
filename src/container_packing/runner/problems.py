"""
Problem files: YAML descriptions of containers and their items.

Example::

    problems:
      - name: crate
        container: {id: 1, length: 10, width: 10, height: 10}
        items:
          - {id: 1, length: 10, width: 10, height: 6, quantity: 2}
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from container_packing.core.models import Container, Item


class ContainerSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int = 0
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)

    def to_container(self) -> Container:
        return Container(length=self.length, width=self.width, height=self.height, id=self.id)


class ItemSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    quantity: int = Field(default=1, ge=0)

    def to_item(self) -> Item:
        return Item(id=self.id, length=self.length, width=self.width,
                    height=self.height, quantity=self.quantity)


class Problem(BaseModel):
    """One container and the items to pack into it."""
    model_config = ConfigDict(extra="forbid")

    name: str
    container: ContainerSpec
    items: List[ItemSpec] = Field(default_factory=list)
    description: Optional[str] = None

    def build(self) -> tuple[Container, List[Item]]:
        return self.container.to_container(), [i.to_item() for i in self.items]


class ProblemSet(BaseModel):
    model_config = ConfigDict(extra="forbid")

    problems: List[Problem] = Field(min_length=1)


def load_problems(path: Path | str) -> List[Problem]:
    """
    Read and validate a problem file.

    Raises:
        FileNotFoundError:        the file does not exist.
        pydantic.ValidationError: the content does not match the schema.
    """
    path = Path(path)
    with path.open() as f:
        data = yaml.safe_load(f) or {}
    return ProblemSet.model_validate(data).problems


def dump_problems(problems: List[Problem], path: Path | str) -> None:
    """Write *problems* back out as YAML."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"problems": [p.model_dump(exclude_none=True) for p in problems]}
    with path.open("w") as f:
        yaml.safe_dump(data, f, sort_keys=False)

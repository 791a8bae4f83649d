import pytest
from pydantic import Field, ValidationError

from savekit.core.entity import EntityModel


class Lantern(EntityModel):
    id: str
    fuel: int = Field(default=10, ge=0)
    tags: list[str] = Field(default_factory=list)


def test_clone_is_deep():
    lantern = Lantern(id="l1", tags=["brass"])
    copy = lantern.clone()
    copy.tags.append("dented")

    assert lantern.tags == ["brass"]
    assert copy == Lantern(id="l1", tags=["brass", "dented"])


def test_validation():
    with pytest.raises(ValidationError):
        Lantern(id="l1", colour="red")

    lantern = Lantern(id="l1")
    with pytest.raises(ValidationError):
        lantern.fuel = -1

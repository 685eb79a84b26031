"""Tests for shared model behaviour."""

from dailydose.models import Team
from dailydose.models.base import BaseModel


def test_repr_shows_class_and_id():
    assert repr(Team(id=5, name="Core")) == "<Team id=5>"
    assert repr(Team(name="Core")) == "<Team id=None>"


def test_no_dict_serializer():
    assert not hasattr(BaseModel, "to_dict")


async def test_repr_of_expired_row_does_not_load(db, seed):
    team = await seed.team(await seed.org())
    team_id = team.id
    db.expire(team)

    # A lazy load here would fail outside the async greenlet
    assert repr(team) in ("<Team id=None>", f"<Team id={team_id}>")

"""Shared fixtures: an in-memory repository with a three change stack."""

import pytest
from _pytest.fixtures import FixtureRequest

from pyjr.config import Config
from pyjr.review import StackedReview
from pyjr.tests.fakes import FakeGit, FakeGithub, FakeJujutsu, FakeWorld
from pyjr.tests.utils import ALPHA, BETA, GAMMA, TRUNK, make_config


@pytest.fixture(params=[0, 4], ids=["sequential", "threaded"])
def config(request: FixtureRequest) -> Config:
    return make_config(request.param)


@pytest.fixture
def world() -> FakeWorld:
    """Trunk plus Alpha -> Beta -> Gamma, each touching its own file."""
    w = FakeWorld()
    w.add_trunk(TRUNK, {"README": "hello"})
    w.add_change(ALPHA, [TRUNK], {"alpha.txt": "alpha v1"}, "Alpha\n\nFirst change")
    w.add_change(BETA, [ALPHA], {"beta.txt": "beta v1"}, "Beta")
    w.add_change(GAMMA, [BETA], {"gamma.txt": "gamma v1"}, "Gamma")
    return w


@pytest.fixture
def jj(world: FakeWorld) -> FakeJujutsu:
    return FakeJujutsu(world)


@pytest.fixture
def git(world: FakeWorld) -> FakeGit:
    return FakeGit(world)


@pytest.fixture
def github(world: FakeWorld) -> FakeGithub:
    return FakeGithub(world)


@pytest.fixture
def review(config: Config, jj: FakeJujutsu, git: FakeGit, github: FakeGithub) -> StackedReview:
    return StackedReview(config, jj, git, github)

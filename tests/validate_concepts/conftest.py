"""Shared fixtures for validate_concepts tests."""

from pathlib import Path

import pytest

TEAM_SPEC = """\
concept Team

purpose
    group users so they can collaborate on projects

state
    Teams
        name: String
        owner: User

actions
    create(name: String, owner: User) -> {team: Team} | {error: String}
        - creates a new team owned by owner
    addMember(team: Team, user: User) -> {team: Team} | {error: String}

queries
    _getByOwner(owner: User) -> Team[]
        - teams owned by owner

operational principle
    after create(name, owner), _getByOwner(owner) includes the new team
"""

TEAM_IMPL = """\
import { PrismaClient } from "@prisma/client";

export class TeamConcept {
  constructor(private prisma: PrismaClient) {}

  async create(input: { name: string; owner: string }): Promise<{ team: any } | { error: string }> {
    try {
      const team = await this.prisma.team.create({ data: input });
      return { team };
    } catch (e) {
      return { error: "Failed to create team" };
    }
  }

  async addMember(input: { team: string; user: string }): Promise<{ team: any } | { error: string }> {
    const team = await this.prisma.team.findUnique({ where: { id: input.team } });
    if (!team) {
      return { error: "Team not found" };
    }
    return { team };
  }

  async _getByOwner(input: { owner: string }): Promise<any[]> {
    return await this.prisma.team.findMany({ where: { owner: input.owner } });
  }
}
"""

SESSION_SPEC = """\
concept Session

purpose
    track which users are currently signed in

state
    Sessions
        user: User
        active: Flag

actions
    start(user: User) -> {session: Session} | {error: String}

queries
    _getActive() -> Session[]
"""

SESSION_IMPL = """\
export class SessionConcept {
  async start(input: { user: string }): Promise<{ session: any } | { error: string }> {
    return { error: "not implemented" };
  }

  async getActive(): Promise<any[]> {
    return [];
  }
}
"""


@pytest.fixture
def project(tmp_path) -> Path:
    """A project root with empty specs, concepts and syncs directories."""
    for name in ("specs", "concepts", "syncs"):
        (tmp_path / name).mkdir()
    return tmp_path


@pytest.fixture
def team_project(project) -> Path:
    """A project with one fully aligned concept."""
    (project / "specs" / "team.concept").write_text(TEAM_SPEC)
    (project / "concepts" / "team.ts").write_text(TEAM_IMPL)
    return project


@pytest.fixture
def team_spec_text() -> str:
    return TEAM_SPEC


@pytest.fixture
def team_impl_text() -> str:
    return TEAM_IMPL


@pytest.fixture
def session_project(project) -> Path:
    """A project whose query lacks the underscore marker."""
    (project / "specs" / "session.concept").write_text(SESSION_SPEC)
    (project / "concepts" / "session.ts").write_text(SESSION_IMPL)
    return project

"""
Seeder model — a named list of WP-CLI commands that fill the database
with test content.

Seeders live in ``seeders/<name>.json`` (or ``.yml`` / ``.yaml``).
Each step's ``command`` is a WP-CLI argument string such as
``user create editor editor@example.com --role=editor``.
"""

from __future__ import annotations

import shlex

from pydantic import BaseModel, Field


class SeederStep(BaseModel):
    command: str
    description: str = ""

    def argv(self) -> list[str]:
        """WP-CLI arguments, split with shell quoting rules."""
        return shlex.split(self.command)

    @property
    def label(self) -> str:
        return self.description or self.command


class Seeder(BaseModel):
    name: str = ""
    description: str = ""
    steps: list[SeederStep] = Field(default_factory=list)


DEFAULT_SEEDER = Seeder(
    name="Default Seeder",
    description="Seeds the database with test data",
    steps=[
        SeederStep(
            command="user create editor editor@example.com --role=editor --user_pass=password",
            description="Create editor user",
        ),
        SeederStep(
            command="user create author author@example.com --role=author --user_pass=password",
            description="Create author user",
        ),
        SeederStep(command="post generate --count=10", description="Generate 10 test posts"),
        SeederStep(
            command='post create --post_type=page --post_title="About" --post_status=publish',
            description="Create About page",
        ),
        SeederStep(
            command='post create --post_type=page --post_title="Contact" --post_status=publish',
            description="Create Contact page",
        ),
    ],
)

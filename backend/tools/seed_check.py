"""Validate a registry seed file before deploying it.

Applies the YAML seed to a fresh in-memory registry, so every invariant the
running service enforces (email syntax and uniqueness, Faculty professors,
Student-only rosters) is checked, and prints what would be created.

Usage example:

    python -m tools.seed_check --seed-file deploy/seed.yml

Exit status is non-zero when the file is unreadable or any entry is rejected.
"""

from __future__ import annotations

from pathlib import Path

import click
import yaml

from academics.registry import InMemoryRegistry
from academics.seed import SeedError, apply_seed, load_seed_file
from identity_access.errors import RecordsError

# Seed hashes are discarded; keep the check fast.
_CHECK_ITERATIONS = 1_000


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--seed-file", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML seed document.")
def cli(seed_file: Path) -> None:
    try:
        data = load_seed_file(seed_file)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"invalid YAML: {exc}")
    except SeedError as exc:
        raise click.ClickException(str(exc))
    try:
        summary = apply_seed(InMemoryRegistry(), data, hash_iterations=_CHECK_ITERATIONS)
    except SeedError as exc:
        raise click.ClickException(str(exc))
    except RecordsError as exc:
        raise click.ClickException(f"rejected by registry: {exc.message}")
    click.echo(
        "Seed OK: users={users}, courses={courses}, enrollments={enrollments}, assignments={assignments}".format(
            users=summary.users,
            courses=summary.courses,
            enrollments=summary.enrollments,
            assignments=summary.assignments,
        )
    )


if __name__ == "__main__":  # pragma: no cover - manual entry point
    cli()

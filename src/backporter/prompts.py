"""Interactive prompts for choosing commits and branches.

All operator input goes through Prompter so the backport engine can be
driven by a fake in tests.
"""

from typing import List, Sequence

import click

from .models import BranchChoice, Commit
from .utils.naming import commit_summary


def parse_selection(answer: str, count: int, allow_multiple: bool) -> List[int]:
    """Parse "1", "1,3" or "1 3" into zero-based indexes.

    Raises:
        click.BadParameter: If the answer is empty, out of range, or selects
            more than one item when only one is allowed.
    """
    parts = [p for p in answer.replace(",", " ").split() if p]
    if not parts:
        raise click.BadParameter("Select at least one item.")

    indexes = []
    for part in parts:
        if not part.isdigit() or not 1 <= int(part) <= count:
            raise click.BadParameter(f"'{part}' is not a number between 1 and {count}.")
        index = int(part) - 1
        if index not in indexes:
            indexes.append(index)

    if len(indexes) > 1 and not allow_multiple:
        raise click.BadParameter("Only one item can be selected.")

    return indexes


class Prompter:
    def _choose(
        self, title: str, labels: Sequence[str], allow_multiple: bool, default=None
    ) -> List[int]:
        click.echo(title)
        for idx, label in enumerate(labels):
            click.echo(f"  {idx + 1}) {label}")

        hint = "Numbers separated by commas" if allow_multiple else "Number"
        return click.prompt(
            hint,
            default=default,
            value_proc=lambda answer: parse_selection(answer, len(labels), allow_multiple),
        )

    def choose_commits(
        self, commits: Sequence[Commit], allow_multiple: bool
    ) -> List[Commit]:
        indexes = self._choose(
            "Select commit" + ("s" if allow_multiple else ""),
            [commit_summary(c) for c in commits],
            allow_multiple,
        )
        # Commits are listed newest first; apply them in the order they were made
        return [commits[i] for i in sorted(indexes, reverse=True)]

    def choose_branches(
        self, branches: Sequence[BranchChoice], allow_multiple: bool
    ) -> List[str]:
        checked = [str(i + 1) for i, b in enumerate(branches) if b.checked]
        if not allow_multiple:
            checked = checked[:1]
        indexes = self._choose(
            "Select branch" + ("es" if allow_multiple else ""),
            [b.name for b in branches],
            allow_multiple,
            default=",".join(checked) if checked else None,
        )
        return [branches[i].name for i in sorted(indexes)]

    def confirm_conflict_resolved(self) -> bool:
        return click.confirm(
            "Press enter when you have committed all changes", default=True
        )

"""
Role Registry Audit Tool — consistency checks over the role table.

Verifies that the static role table is coherent before it is shipped:
every role has a configuration, legacy aliases mirror the role they stand
for, escalation targets exist and rank at or above the escalating role, the
super admin holds every permission, and hierarchy levels respect category
order.

Usage:
    python -m eureka_roles.roles.audit
    python -m eureka_roles.roles.audit --verbose
"""

from __future__ import annotations

import argparse
import sys
from typing import Mapping, Sequence

from rich.console import Console
from rich.table import Table

from eureka_roles.policy.escalation import ESCALATION_TABLE
from eureka_roles.policy.hierarchy import CATEGORY_LEVELS, level_of
from eureka_roles.roles.registry import RoleRegistry, role_registry
from eureka_roles.roles.schema import LEGACY_ALIASES, Permission, Role, RoleCategory

console = Console()


def _name(role: Role | str) -> str:
    return role.value if isinstance(role, Role) else str(role)


def find_problems(
    registry: RoleRegistry = role_registry,
    escalation_table: Mapping[Role | str, Sequence[Role | str]] = ESCALATION_TABLE,
    category_levels: Mapping[RoleCategory, int] = CATEGORY_LEVELS,
) -> list[str]:
    """
    Return a human-readable list of inconsistencies; empty when clean.

    ``escalation_table`` and ``category_levels`` default to the shipped
    tables and can be replaced to audit a candidate before it is adopted.
    """
    problems: list[str] = []

    for role in registry.missing_roles():
        problems.append(f"{role.value}: no configuration")
    if problems:
        return problems

    for alias, target in LEGACY_ALIASES.items():
        alias_config, target_config = registry.lookup(alias), registry.lookup(target)
        for field in ("portal", "category", "permissions", "can_delete", "can_suspend"):
            if getattr(alias_config, field) != getattr(target_config, field):
                problems.append(
                    f"{alias.value}: legacy alias differs from {target.value} on {field}"
                )

    missing = set(Permission) - registry.permissions_of(Role.SUPER_ADMIN)
    if missing:
        problems.append(
            "super_admin: missing " + ", ".join(sorted(p.value for p in missing))
        )

    for source, targets in escalation_table.items():
        if source not in registry:
            problems.append(f"escalation: unknown source role {_name(source)}")
            continue
        for target in targets:
            if target not in registry:
                problems.append(f"escalation: {_name(source)} -> unknown role {_name(target)}")
            elif level_of(target, registry, category_levels) < level_of(
                source, registry, category_levels
            ):
                problems.append(
                    f"escalation: {_name(source)} -> {_name(target)} escalates downwards"
                )

    categories = list(RoleCategory)
    for higher, lower in zip(categories, categories[1:]):
        higher_roles = registry.roles_by_category(higher)
        lower_roles = registry.roles_by_category(lower)
        if not higher_roles or not lower_roles:
            continue
        if min(level_of(r, registry, category_levels) for r in higher_roles) <= max(
            level_of(r, registry, category_levels) for r in lower_roles
        ):
            problems.append(
                f"hierarchy: {higher.value} roles do not all outrank {lower.value} roles"
            )

    return problems


def run_audit(registry: RoleRegistry = role_registry, verbose: bool = False) -> bool:
    """
    Run the registry audit and print a report.

    Args:
        registry: Registry to audit.
        verbose: Print the full role table if True.

    Returns:
        True if the registry is consistent, False otherwise.
    """
    console.print("\n[bold blue]═══ Role Registry Audit ═══[/bold blue]")
    console.print(f"  Roles in registry: [bold]{len(registry)}[/bold]")
    console.print(f"  Permissions defined: [bold]{len(Permission)}[/bold]")

    problems = find_problems(registry)

    if problems:
        console.print(f"[bold red]✗ {len(problems)} problem(s)[/bold red]")
        for problem in problems:
            console.print(f"  • {problem}")
    else:
        console.print("[bold green]✓ CONSISTENT[/bold green]")

    if verbose:
        table = Table(show_lines=True)
        table.add_column("Role", style="cyan")
        table.add_column("Portal", style="green")
        table.add_column("Category", style="yellow")
        table.add_column("Level", justify="right")
        table.add_column("Permissions", justify="right")
        table.add_column("Flags", style="dim")

        for role, config in registry.items():
            flags = [
                name
                for name, enabled in (
                    ("delete", config.can_delete),
                    ("suspend", config.can_suspend),
                    ("agreement", config.requires_agreement),
                )
                if enabled
            ]
            table.add_row(
                role.value,
                config.portal.value,
                config.category.value,
                str(level_of(role, registry)),
                str(len(config.permissions)),
                ", ".join(flags) or "—",
            )
        console.print(table)

    console.print("\n[bold blue]═══ Audit Complete ═══[/bold blue]\n")
    return not problems


def main() -> None:
    parser = argparse.ArgumentParser(description="Eureka role registry consistency audit")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show the full role table",
    )
    args = parser.parse_args()

    is_valid = run_audit(role_registry, verbose=args.verbose)
    sys.exit(0 if is_valid else 1)


if __name__ == "__main__":
    main()

"""Match employee names from an imported schedule to team members."""

from collections.abc import Iterable, Sequence


def split_name(full_name: str | None) -> tuple[str, str]:
    """Split a display name: the last word is the last name, the rest the first."""
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return " ".join(parts[:-1]), parts[-1]


def _full_name(member) -> str:
    return " ".join(f"{member.first_name} {member.last_name or ''}".split()).lower()


def auto_match(schedule_employees: Iterable, team_members: Sequence) -> dict:
    """Map schedule employee names to team members.

    Tiers, first match wins:
    1. full name equal, case-insensitive
    2. first name equal and same last initial
    3. first name equal, when exactly one team member has that first name

    Employees without explicit first/last names get them from ``split_name``.
    Unmatched employees are left out of the result.
    """
    matches = {}
    for employee in schedule_employees:
        derived_first, derived_last = split_name(employee.name)
        first = (employee.first_name or derived_first).strip().lower()
        last = (employee.last_name or derived_last).strip().lower()
        wanted = " ".join(employee.name.split()).lower()

        match = next((m for m in team_members if _full_name(m) == wanted), None)

        if match is None and first and last:
            match = next(
                (
                    m
                    for m in team_members
                    if m.first_name.lower() == first
                    and (m.last_name or "")[:1].lower() == last[:1]
                ),
                None,
            )

        if match is None and first:
            same_first = [m for m in team_members if m.first_name.lower() == first]
            if len(same_first) == 1:
                match = same_first[0]

        if match is not None:
            matches[employee.name] = match
    return matches

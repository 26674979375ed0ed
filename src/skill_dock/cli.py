"""skill-dock command line.

Command functions return plain dicts; everything user-facing is printed here.
"""

import asyncio
import logging
from pathlib import Path

import click

from skill_dock.commands.add import add_skills
from skill_dock.commands.listing import list_skills
from skill_dock.commands.remove import remove_skills
from skill_dock.commands.sync import install_from_file
from skill_dock.commands.update import check_updates, update_skills
from skill_dock.config import settings
from skill_dock.errors import SkillDockError


def _fail(message: str) -> None:
    click.echo(f"{click.style('Error:', fg='red')} {message}", err=True)
    raise SystemExit(1)


def _run(coro):
    try:
        return asyncio.run(coro)
    except SkillDockError as e:
        _fail(str(e))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.version_option(package_name="skill-dock")
def cli(verbose: bool) -> None:
    """Install agent skills once, link them into every coding agent."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.argument("source")
@click.option("--global", "-g", "is_global", is_flag=True, help="Install into the home directory")
@click.option("--agent", "-a", "agents", multiple=True, help="Target agent (repeatable)")
@click.option("--skill", "-s", "skills", multiple=True, help="Skill to install (repeatable, '*' for all)")
@click.option("--list", "-l", "list_only", is_flag=True, help="List the skills in the source and exit")
@click.option("--yes", "-y", is_flag=True, help="Install for all agents when none are detected")
@click.option("--no-symlink", is_flag=True, help="Copy into agent dirs instead of linking")
@click.option("--license-key", envvar="SKILL_DOCK_LICENSE_KEY", help="License key for private skills")
def add(
    source: str,
    is_global: bool,
    agents: tuple[str, ...],
    skills: tuple[str, ...],
    list_only: bool,
    yes: bool,
    no_symlink: bool,
    license_key: str | None,
) -> None:
    """Install skills from SOURCE (path, URL, owner/repo[@skill])."""
    result = _run(add_skills(
        source,
        agents=list(agents) or None,
        skills=list(skills) or None,
        is_global=is_global,
        no_symlink=no_symlink,
        list_only=list_only,
        yes=yes,
        license_key=license_key,
    ))

    if list_only:
        click.echo(f"Skills in {source}:")
        for skill in result["available"]:
            click.echo(f"  {click.style(skill['name'], fg='cyan')}  {skill['description']}")
        return

    for item in result["installed"]:
        note = " (copied, symlink failed)" if item.get("symlink_failed") else ""
        click.echo(f"{click.style('✓', fg='green')} {item['skill']} -> {item['agent']}: {item['path']}{note}")
    for item in result["failed"]:
        click.echo(f"{click.style('✗', fg='red')} {item['skill']} -> {item['agent']}: {item.get('error')}")
    for name, hints in result["suggestions"].items():
        hint = f" (did you mean {', '.join(hints)}?)" if hints else ""
        click.echo(click.style(f"Skill not found: {name}{hint}", fg="yellow"))

    if result["failed"]:
        raise SystemExit(1)


@cli.command("list")
@click.option("--global/--local", "-g/-l", "is_global", default=None, help="Only one scope (default: both)")
@click.option("--agent", "-a", "agents", multiple=True, help="Only show links for these agents")
def list_cmd(is_global: bool | None, agents: tuple[str, ...]) -> None:
    """List installed skills."""
    try:
        result = list_skills(is_global=is_global, agents=list(agents) or None)
    except SkillDockError as e:
        _fail(str(e))

    if not result["total"]:
        click.echo("No skills installed.")
        return

    for scope in ("project", "global"):
        if not result[scope]:
            continue
        click.echo(click.style(f"{scope.capitalize()} skills", bold=True))
        for skill in result[scope]:
            agents_label = ", ".join(skill["agents"]) or "no agents"
            click.echo(f"  {click.style(skill['name'], fg='cyan')}  {skill['path']}")
            click.echo(f"    {agents_label}")


@cli.command()
@click.argument("names", nargs=-1)
@click.option("--global/--local", "-g/-l", "is_global", default=False, help="Scope to remove from")
@click.option("--agent", "-a", "agents", multiple=True, help="Only remove from these agents")
@click.option("--all", "remove_all", is_flag=True, help="Remove every skill in the scope")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def remove(names: tuple[str, ...], is_global: bool, agents: tuple[str, ...], remove_all: bool, yes: bool) -> None:
    """Remove installed skills."""
    if remove_all and not yes:
        click.confirm("Remove all skills in this scope?", abort=True)

    try:
        result = remove_skills(
            list(names),
            agents=list(agents) or None,
            is_global=is_global,
            remove_all=remove_all,
        )
    except SkillDockError as e:
        _fail(str(e))

    failed = False
    for item in result["results"]:
        if item["removed"]:
            where = ", ".join(item["agents"]) or "canonical store"
            click.echo(f"{click.style('✓', fg='green')} Removed {item['skill']} ({where})")
        else:
            failed = True
            also = f" Installed for: {', '.join(item['installed_for'])}" if item.get("installed_for") else ""
            click.echo(f"{click.style('✗', fg='red')} {item['skill']}: {item['error']}.{also}")
        for agent, error in item.get("errors", {}).items():
            failed = True
            click.echo(f"{click.style('✗', fg='red')} {item['skill']} -> {agent}: {error}")

    if failed:
        raise SystemExit(1)


@cli.command()
@click.option("--sync", is_flag=True, help="Also remove locked skills not listed in .skills")
@click.option("--agent", "-a", "agents", multiple=True, help="Target agent (repeatable)")
@click.option("--no-symlink", is_flag=True, help="Copy into agent dirs instead of linking")
def install(sync: bool, agents: tuple[str, ...], no_symlink: bool) -> None:
    """Install every source listed in ./.skills or ~/.skills."""
    result = _run(install_from_file(agents=list(agents) or None, sync=sync, no_symlink=no_symlink))

    if not result["found"]:
        click.echo(click.style("No .skills file found", fg="yellow"))
        click.echo(f"Create ./{settings.skills_file} (project) or ~/{settings.skills_file} (global), one source per line:")
        click.echo("  vercel-labs/agent-skills")
        click.echo("  owner/repo specific-skill 'skill with spaces'")
        click.echo("  ./local-path/to/skill")
        return

    click.echo(f"Using {result['path']} ({result['scope']} scope)")
    for item in result["succeeded"]:
        click.echo(f"{click.style('✓', fg='green')} {item['source']}: {', '.join(item['installed']) or 'nothing new'}")
    for item in result["failed"]:
        click.echo(f"{click.style('✗', fg='red')} {item['source']}: {item['error']}")
    for name in result["removed"]:
        click.echo(f"{click.style('-', fg='yellow')} Removed {name} (not in .skills)")

    if result["failed"]:
        raise SystemExit(1)


@cli.command()
@click.option("--global/--local", "-g/-l", "is_global", default=True, help="Which lock file to check")
def check(is_global: bool) -> None:
    """Report skills with upstream changes."""
    result = _run(check_updates(is_global=is_global, cwd=Path.cwd()))

    if not result["updates"]:
        click.echo(f"All {result['checked']} tracked skill(s) are up to date.")
    for item in result["updates"]:
        click.echo(f"{click.style('↑', fg='yellow')} {item['name']} ({item['source']})")
    for item in result["errors"]:
        click.echo(f"{click.style('?', fg='red')} {item['name']}: {item['error']}")


@cli.command()
@click.option("--global/--local", "-g/-l", "is_global", default=True, help="Which lock file to update")
def update(is_global: bool) -> None:
    """Reinstall skills with upstream changes."""
    result = _run(update_skills(is_global=is_global, cwd=Path.cwd()))

    if not result["updates"]:
        click.echo("Nothing to update.")
    for name in result["updated"]:
        click.echo(f"{click.style('✓', fg='green')} Updated {name}")
    for item in result["failed"]:
        click.echo(f"{click.style('✗', fg='red')} {item['name']}: {item['error']}")

    if result["failed"]:
        raise SystemExit(1)


def main():
    """Entry point for the skill-dock CLI."""
    cli()


if __name__ == "__main__":
    main()

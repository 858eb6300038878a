"""CLI application using Typer."""
import os
import re
from pathlib import Path
from typing import Optional

import questionary
import typer

from .about import update_about
from .colors import Colors, init_colors
from .config import (
    CONFIG_FILE_NAMES,
    DEPENDENCY_TYPES,
    find_config,
    get_context,
    load_config,
    save_config,
    update_mod_info,
)
from .dependency import PACKAGE_ID_PATTERN, add_dependency, create_dependency, list_dependencies, remove_dependency
from .errors import ModToolsError
from .files import clear_directory
from .git import Git
from .log import Task
from .merge import check_target, create_version_branch, get_version_branches, merge_versions
from .release import create_release_archive, install_mod, update_mod
from .version import VERSION_PARTS, bump_version, create_version, version_dict

VERSION = '1.1.0'

RESOURCES = list(CONFIG_FILE_NAMES)

DEFAULT_EXCLUDE = ['.git', '.vs', '.vscode', 'obj', 'Source', '*.pdb', 'modinfo.json', 'description.md']

app = typer.Typer(
    help="Build and release helper for game mods",
    add_completion=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

dependency_app = typer.Typer(help="List, add and remove mod dependencies")
app.add_typer(dependency_app, name="dependency")

branch_app = typer.Typer(help="Create version branches")
app.add_typer(branch_app, name="branch")


def _complete_resource(incomplete: str) -> list[str]:
    """Autocompletion for config resource types."""
    return [r for r in RESOURCES if r.startswith(incomplete.lower())]


def _complete_version_part(incomplete: str) -> list[str]:
    """Autocompletion for version parts."""
    return [p for p in VERSION_PARTS if p.startswith(incomplete.lower())]


def _complete_none(incomplete: str) -> list[str]:
    """Return empty list to prevent file completion fallback."""
    return []


def _fail(error: Exception) -> None:
    print(f"{Colors.FAIL}Error: {error}{Colors.ENDC}")
    raise typer.Exit(1)


def _ask(question):
    """Ask a questionary prompt; cancelling (Ctrl+C) exits."""
    answer = question.ask()
    if answer is None:
        raise typer.Exit()
    return answer


def _validate_existing_path(text: str, required: bool = True):
    if not text:
        return "please provide a path" if required else True
    if not os.path.exists(text):
        return "path does not exist"
    return True


def _validate_target_dir(text: str):
    if re.match(r'^[a-zA-Z][a-zA-Z0-9_-]+[a-zA-Z0-9]$', text or ''):
        return True
    return ("folder name is invalid: it must start with a letter, contain only letters, "
            "numbers, dashes and underscores, and end with a letter or number")


def do_create_mod_info(directory: str) -> None:
    """Scaffold modinfo.json from prompts, with defaults from existing configs and git."""
    game = load_config('game', directory, required=False)
    system = load_config('system', directory, required=False)
    git = Git(directory)

    game_author = game.get('defaultAuthor') or {}
    system_author = system.get('defaultAuthor') or {}

    print(f"{Colors.HEADER}Creating {CONFIG_FILE_NAMES['mod']} in {directory}{Colors.ENDC}")

    author_name = _ask(questionary.text(
        "Your name:",
        default=game_author.get('name') or system_author.get('name') or git.config_value('user.name') or '',
        validate=lambda text: True if text else "you do need a name...",
    ))
    author_url = _ask(questionary.text(
        "Your personal website:",
        default=game_author.get('url') or system_author.get('url') or '',
    ))
    author_email = _ask(questionary.text(
        "Your email:",
        default=game_author.get('email') or system_author.get('email') or git.config_value('user.email') or '',
    ))

    name = _ask(questionary.text(
        "Mod name:",
        default=Path(directory).resolve().name,
        validate=lambda text: True if text else "the mod does need a name...",
    ))
    source_dir = _ask(questionary.text(
        "Folder that contains a distributable version of the mod, relative to the mod folder:",
        default='.',
    ))
    target_dir = _ask(questionary.text(
        "Folder in which to install the mod, relative to the game mods folder:",
        default=''.join(c for c in name if c.isalnum()),
        validate=_validate_target_dir,
    ))
    url = _ask(questionary.text("Mod website:"))
    version = _ask(questionary.text("Mod version:", default='0.0.0'))

    author = {'name': author_name}
    if author_url:
        author['url'] = author_url
    if author_email:
        author['email'] = author_email

    mod = {
        'name': name,
        'author': author,
        'version': version_dict(create_version(version)),
        'sourceDir': source_dir,
        'targetDir': target_dir,
    }
    if url:
        mod['url'] = url

    path = save_config('mod', mod, directory)
    Task.log('create modinfo', 'success', str(path))


def do_create_game_config(directory: str) -> None:
    """Scaffold gameconfig.json from prompts."""
    print(f"{Colors.HEADER}Creating {CONFIG_FILE_NAMES['game']} in {directory}{Colors.ENDC}")

    name = _ask(questionary.text(
        "Game name:",
        default='RimWorld',
        validate=lambda text: True if text else "the game does need a name...",
    ))
    steam_id = _ask(questionary.text(
        "Steam game id:",
        validate=lambda text: True if not text or text.isdigit() else "steam ids are numeric",
    ))
    target_dir = _ask(questionary.text("Base path for installing mods:", validate=_validate_existing_path))
    archive_dir = _ask(questionary.text(
        "Path where release archives should be stored:",
        validate=_validate_existing_path,
    ))

    game = {
        'name': name,
        'targetDir': target_dir,
        'archiveDir': archive_dir,
        'exclude': DEFAULT_EXCLUDE,
    }
    if steam_id:
        game['steamId'] = int(steam_id)

    path = save_config('game', game, directory)
    Task.log('create game config', 'success', str(path))


def do_create_system_config(directory: str) -> None:
    """Scaffold systemconfig.json from prompts."""
    print(f"{Colors.HEADER}Creating {CONFIG_FILE_NAMES['system']} in {directory}{Colors.ENDC}")

    ms_build_path = _ask(questionary.text(
        "Path to msbuild / dotnet:",
        validate=lambda text: _validate_existing_path(text, required=False),
    ))
    uploader_path = _ask(questionary.text(
        "Path to SteamWorkshopUpdater:",
        validate=lambda text: _validate_existing_path(text, required=False),
    ))
    github_token = _ask(questionary.password("GitHub personal access token:"))

    system = {
        'msBuildPath': ms_build_path,
        'workshopUploaderPath': uploader_path,
        'githubToken': github_token,
    }
    path = save_config('system', system, directory)
    Task.log('create system config', 'success', str(path))


def do_bump(part: Optional[str], set_to: Optional[str]) -> None:
    """Bump or set the mod version and save modinfo.json."""
    context = get_context()
    old_version = context.version

    if set_to:
        context.version = create_version(set_to)
    else:
        context.version = bump_version(old_version, part or 'build')

    update_mod_info(context)
    Task.log('bump version', 'success', f"{old_version} → {Colors.CYAN}{context.version}{Colors.ENDC}")


def do_merge(target: Optional[str], clear: bool, debug: bool) -> None:
    """Merge all version branches into the release folder."""
    context = get_context(debug=debug)
    if target:
        context.build.target_dir = os.path.abspath(target)
    check_target(context.build.base_dir, context.build.target_dir)

    if clear:
        Task.log('clear out directory', 'info', context.build.target_dir)
        clear_directory(context.build.target_dir)

    about = merge_versions(context)

    print(f"\n{Colors.GREEN}{Colors.BOLD}✓ Merged {len(about.supported_versions)} versions{Colors.ENDC}")
    print(f"{Colors.CYAN}Versions:{Colors.ENDC} {', '.join(about.supported_versions)}")
    print(f"{Colors.CYAN}Output:{Colors.ENDC} {context.build.target_dir}")


def do_copy(target: Optional[str]) -> None:
    """Replace the installed mod with a plain copy of the source folder."""
    context = get_context()
    if target:
        context.build.target_dir = os.path.abspath(target)
    install_mod(context)


def do_update(bump_part: Optional[str], force: bool) -> None:
    """Bump, regenerate About.xml and install the mod into the game."""
    context = get_context()
    update_mod(context, bump_part, force)


def do_archive(merged: bool) -> None:
    """Zip the installed mod into the game's archive folder."""
    if merged:
        do_merge(None, True, False)
    context = get_context()
    archive_path = create_release_archive(context)
    print(f"\n{Colors.GREEN}{Colors.BOLD}✓ Archive created!{Colors.ENDC}")
    print(f"{Colors.CYAN}Version:{Colors.ENDC} {context.version}")
    print(f"{Colors.CYAN}File:{Colors.ENDC} {archive_path}")


def do_add_dependency() -> None:
    """Prompt for a dependency and add it to modinfo.json."""
    context = get_context()
    dep_type = _ask(questionary.select("Dependency type:", choices=list(DEPENDENCY_TYPES), default='required'))
    dep_id = _ask(questionary.text(
        "Dependency package id:",
        validate=lambda text: True if PACKAGE_ID_PATTERN.match(text or '') else "package ids look like 'author.mod'",
    ))
    name = _ask(questionary.text(
        "Dependency name:",
        validate=lambda text: True if text or dep_type != 'required' else "required dependencies need a name",
    ))
    version = _ask(questionary.text("Dependency version (empty for any):"))
    steam_id = download = None
    if dep_type == 'required':
        steam_id = _ask(questionary.text(
            "Steam workshop id:",
            validate=lambda text: True if not text or text.isdigit() else "steam ids are numeric",
        ))
        download = _ask(questionary.text("Download url:"))

    add_dependency(context, create_dependency(dep_type, dep_id, name, version, steam_id, download))


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    show_version: bool = typer.Option(False, "--version", help="Show the tool version and exit"),
):
    """Build and release helper for game mods."""
    init_colors()

    if show_version:
        print(VERSION)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        print(f"{Colors.HEADER}Mod Tools{Colors.ENDC}\n")

        choice = _ask(questionary.select(
            "What would you like to do?",
            choices=[
                "Merge version branches into a release",
                "Update and install the mod",
                "Update About.xml",
                "Create release archive",
                "Bump version",
                "Create a config file",
                "Show help",
            ]
        ))

        try:
            if choice == "Show help":
                print(ctx.get_help())
            elif choice == "Merge version branches into a release":
                debug = _ask(questionary.confirm("Warn about unversioned files?", default=False))
                do_merge(None, True, debug)
            elif choice == "Update and install the mod":
                do_update('build', False)
            elif choice == "Create release archive":
                do_archive(False)
            elif choice == "Update About.xml":
                update_about(get_context())
            elif choice == "Bump version":
                part = _ask(questionary.select("Version part to bump:", choices=list(VERSION_PARTS)))
                do_bump(part, None)
            elif choice == "Create a config file":
                resource = _ask(questionary.select("Config file:", choices=RESOURCES))
                config(resource, os.getcwd())
        except ModToolsError as e:
            _fail(e)


@app.command()
def config(
    resource: str = typer.Argument("mod", help="Config to create: mod, game or system", autocompletion=_complete_resource),
    directory: Optional[str] = typer.Option(None, "-d", "--dir", help="Directory in which to create the config file (default: current directory)", autocompletion=_complete_none),
):
    """Create a mod, game or system config file."""
    init_colors()
    if resource not in CONFIG_FILE_NAMES:
        print(f"{Colors.FAIL}Error: Unknown config '{resource}' (expected one of {', '.join(RESOURCES)}){Colors.ENDC}")
        raise typer.Exit(1)

    directory = os.path.abspath(directory or os.getcwd())
    existing = find_config(resource, directory)
    if existing is not None and existing.parent == Path(directory).resolve():
        overwrite = _ask(questionary.confirm(f"{existing} already exists. Overwrite?", default=False))
        if not overwrite:
            raise typer.Exit()

    try:
        if resource == 'mod':
            do_create_mod_info(directory)
        elif resource == 'game':
            do_create_game_config(directory)
        else:
            do_create_system_config(directory)
    except ModToolsError as e:
        _fail(e)


@app.command()
def bump(
    part: str = typer.Argument("build", help="Version part to bump: major, minor or build", autocompletion=_complete_version_part),
    set_to: Optional[str] = typer.Option(None, "--set", help="Set an explicit version instead", autocompletion=_complete_none),
):
    """Bump the mod version in modinfo.json.

    build counts up forever; bumping major resets minor only.
    """
    init_colors()
    if part not in VERSION_PARTS:
        print(f"{Colors.FAIL}Error: Unknown version part '{part}' (expected one of {', '.join(VERSION_PARTS)}){Colors.ENDC}")
        raise typer.Exit(1)
    try:
        do_bump(part, set_to)
    except ModToolsError as e:
        _fail(e)


@app.command()
def about():
    """Regenerate About/About.xml from modinfo.json."""
    init_colors()
    try:
        update_about(get_context())
    except ModToolsError as e:
        _fail(e)


@app.command()
def branches():
    """List the version branches a merge would walk, in order."""
    init_colors()
    try:
        context = get_context()
        versions = get_version_branches(context.build.base_dir)
    except ModToolsError as e:
        _fail(e)

    if not versions:
        print(f"{Colors.WARNING}No version branches found{Colors.ENDC}")
        return
    for version in versions:
        print(version)


@app.command()
def merge(
    target: Optional[str] = typer.Option(None, "-t", "--target", help="Output folder (default: the installed mod folder)", autocompletion=_complete_none),
    clear: bool = typer.Option(True, "--clear/--no-clear", help="Empty the output folder first"),
    debug: bool = typer.Option(False, "--debug", help="Warn about files that are not in versioned folders"),
):
    """Merge all version branches into a multi-version release."""
    init_colors()
    try:
        do_merge(target, clear, debug)
    except ModToolsError as e:
        _fail(e)


@app.command()
def copy(
    target: Optional[str] = typer.Option(None, "-t", "--target", help="Output folder (default: the installed mod folder)", autocompletion=_complete_none),
):
    """Copy the mod's source folder to the game, for single-version mods."""
    init_colors()
    try:
        do_copy(target)
    except ModToolsError as e:
        _fail(e)


@app.command()
def update(
    bump_part: str = typer.Option("build", "-v", "--bump", help="Version part to bump: major, minor or build", autocompletion=_complete_version_part),
    no_bump: bool = typer.Option(False, "-V", "--no-bump", help="Keep the current version"),
    force: bool = typer.Option(False, "-f", "--force", help="Continue despite uncommitted changes"),
):
    """Bump the version, regenerate About.xml and install the mod into the game."""
    init_colors()
    if bump_part not in VERSION_PARTS:
        print(f"{Colors.FAIL}Error: Unknown version part '{bump_part}' (expected one of {', '.join(VERSION_PARTS)}){Colors.ENDC}")
        raise typer.Exit(1)
    try:
        do_update(None if no_bump else bump_part, force)
    except ModToolsError as e:
        _fail(e)


@app.command()
def archive(
    merged: bool = typer.Option(False, "-m", "--merge", help="Merge the version branches into the target first"),
):
    """Zip the installed mod into '<archiveDir>/<name> v<version>.zip'."""
    init_colors()
    try:
        do_archive(merged)
    except ModToolsError as e:
        _fail(e)


@dependency_app.command("list")
def dependency_list():
    """List the dependencies in modinfo.json."""
    init_colors()
    try:
        list_dependencies(get_context())
    except ModToolsError as e:
        _fail(e)


@dependency_app.command("add")
def dependency_add():
    """Add a dependency to modinfo.json."""
    init_colors()
    try:
        do_add_dependency()
    except ModToolsError as e:
        _fail(e)


@dependency_app.command("remove")
def dependency_remove(
    dep_id: str = typer.Argument(..., metavar="ID", help="Package id of the dependency"),
):
    """Remove a dependency from modinfo.json."""
    init_colors()
    try:
        remove_dependency(get_context(), dep_id)
    except ModToolsError as e:
        _fail(e)


@branch_app.command("create")
def branch_create(
    name: str = typer.Argument(..., help="Branch name, normally a game version such as 1.5"),
):
    """Create and check out a new branch in the mod folder."""
    init_colors()
    try:
        create_version_branch(get_context().build.base_dir, name)
    except ModToolsError as e:
        _fail(e)


def run():
    """Entry point for the CLI."""
    app()

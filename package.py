import os
import re
import subprocess
import sys

import click
import packaging.version


VERSION_FILES = {"pyproject.toml": r'^version = "([^"]+)"', "quercus/__init__.py": r'^__version__ = "([^"]+)"'}
"""Files carrying the version number, and the pattern of the line holding it"""


def bump_version(version: str, part: str) -> str:
    """Returns version bumped to the next patch, minor or major release, or part itself if it is a version number

    Example:
        >>> bump_version("1.4.2", "minor")
        '1.5.0'
        >>> bump_version("1.4.2", "2.0.0rc1")
        '2.0.0rc1'
    """
    current = packaging.version.parse(version)
    major, minor, patch = (*current.release, 0, 0)[:3]
    if part == "major":
        return f"{major + 1}.0.0"
    if part == "minor":
        return f"{major}.{minor + 1}.0"
    if part == "patch":
        return f"{major}.{minor}.{patch + 1}"
    new_version = packaging.version.parse(part)  # raises InvalidVersion for anything else
    if new_version <= current:
        raise ValueError(f"New version {new_version} must be higher than the current version {current}")
    return str(new_version)


def read_version(file_path: str = "quercus/__init__.py") -> str:
    with open(file_path) as f:
        match = re.search(VERSION_FILES[file_path], f.read(), re.MULTILINE)
    if not match:
        raise ValueError(f"Couldn't find the version number in {file_path}")
    return match.group(1)


def write_version(new_version: str) -> None:
    for file_path, pattern in VERSION_FILES.items():
        with open(file_path) as f:
            content = f.read()
        with open(file_path, "w") as f:
            f.write(
                re.sub(
                    pattern,
                    lambda m: m.group(0).replace(m.group(1), new_version),
                    content,
                    count=1,
                    flags=re.MULTILINE,
                )
            )


@click.group()
def main():
    if not os.path.exists("quercus/__init__.py"):
        raise EnvironmentError(f"{sys.argv[0]} must be run from the project directory (where this script is placed)")


@main.command(help="version number, package")
@click.option(
    "-v",
    "--version",
    default=None,
    help="Bumps version number to the next patch, minor or major release, or sets it to the given version",
)
@click.option("-b", "--build", is_flag=True, help="Builds the package wheel into dist")
@click.option(
    "-p",
    "--pre-commit",
    is_flag=True,
    help="Runs pre-commit to make sure everything is formatted correctly",
)
def update(version: str, build: bool, pre_commit: bool):
    if version:
        old_version = read_version()
        try:
            new_version = bump_version(old_version, version)
        except (ValueError, packaging.version.InvalidVersion) as e:
            print(e, file=sys.stderr)
            sys.exit(1)
        write_version(new_version)
        print(f"Bumping version from {old_version} to {new_version}")
    if build:
        subprocess.run("poetry build", shell=True)
    if pre_commit:
        subprocess.run("git add -A; pre-commit run; git add -A", shell=True)


@main.command(help="unittests and doctests")
@click.option("-v", "--verbose", is_flag=True, help="verbose output from the tests")
def test(verbose: bool):
    exit(subprocess.run([sys.executable, "tests/test_quercus.py", *(("-v",) if verbose else ()), "all"]).returncode)


if __name__ == "__main__":
    main()

# type: ignore
import os

from invoke import task


@task
def venv(ctx):
    """Create the development environment with all extras."""
    print("Syncing ecpfleet development environment with uv...")
    ctx.run("uv sync --all-extras")


@task
def clean(ctx):
    """
    Remove untracked files (build output, caches, coverage data).
    Asks for confirmation after a dry run, since it cannot be undone.
    """

    ctx.run("git clean -nfdx")

    response = (
        input("Are you sure you want to remove all untracked files? (y/n) [n]: ")
        .strip()
        .lower()
    )
    if response == "y":
        ctx.run("git clean -fdx")


@task
def lint(ctx):
    """Run ruff and mypy over the package and tests."""
    ctx.run("ruff check src tests", pty=True)
    ctx.run("ruff format --check src tests", pty=True)
    ctx.run("mypy src", pty=True)


@task
def test(ctx):
    """Run tests with coverage of the ecpfleet package."""
    ctx.run("pytest --cov=ecpfleet --cov-report=term-missing", pty=True)


@task
def mock(ctx, port=8060, name="Mock Roku"):
    """Serve a mock ECP device for manual testing."""
    ctx.run(f"ecpfleet mock --port {port} --name '{name}'", pty=True)


@task
def build_package(ctx):
    """Build sdist and wheel with uv."""

    ctx.run("rm -rf dist")
    ctx.run("uv build")


@task
def release(ctx):
    """Build the package and publish it to PyPI using uv."""
    token = os.getenv("PYPI_TOKEN")
    if not token:
        raise ValueError("PYPI_TOKEN environment variable is not set")

    print("Building package...")
    ctx.run("invoke build-package")

    print("Publishing to PyPI...")
    ctx.run(f"uv publish --token {token}")

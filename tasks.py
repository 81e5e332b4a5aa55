# type: ignore
import os

from invoke import task


@task
def venv(ctx):
    """Create the development environment with uv (installs test and dev extras)."""
    ctx.run("uv sync --extra test --extra dev")


@task
def lint(ctx):
    """
    Run ruff and mypy over the package.
    """
    ctx.run("ruff check src tests", pty=True)
    ctx.run("ruff format --check src tests", pty=True)
    ctx.run("mypy src", pty=True)


@task
def fmt(ctx):
    """Apply ruff formatting and autofixes."""
    ctx.run("ruff check --fix src tests", pty=True)
    ctx.run("ruff format src tests", pty=True)


@task
def test(ctx):
    """
    Run tests with coverage information.
    """
    ctx.run("pytest --cov=rokuoff --cov-report=term-missing", pty=True)


@task
def scheduler(ctx, loglevel="DEBUG"):
    """Run the scheduler in the foreground against the configured data dir."""
    ctx.run(f"LOGLEVEL={loglevel} rokuoff run", pty=True)


@task
def build_package(ctx):
    """
    Build sdist and wheel with uv.
    """
    ctx.run("rm -rf dist")
    ctx.run("uv build")


@task
def release(ctx):
    """Run lint and tests, build, and publish to PyPI using uv."""
    token = os.getenv("PYPI_TOKEN")
    if not token:
        raise ValueError("PYPI_TOKEN environment variable is not set")

    ctx.run("invoke lint test build-package")
    ctx.run(f"uv publish --token {token}")

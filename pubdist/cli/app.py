from __future__ import annotations

import os
from pathlib import Path

import typer

from pubdist.core.config import ConfigError, DeployConfig, load_config
from pubdist.core.errors import ErrorCode
from pubdist.core.result import Err
from pubdist.output.console import ConsoleProtocol, RichConsole
from pubdist.output.errors import (
    deploy_error_exit_code,
    deploy_error_title,
    github_annotation,
    print_deploy_error,
)
from pubdist.services.deploy import PackageDeployer
from pubdist.services.deploy.outputs import write_step_outputs
from pubdist.storage.cos import CosObjectStore, ObjectStore

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    rich_markup_mode="rich",
)


def build_store(config: DeployConfig) -> ObjectStore:
    return CosObjectStore(config.cos)


def build_console() -> ConsoleProtocol:
    return RichConsole()


def _fail_config(error: ConfigError, console: ConsoleProtocol) -> typer.Exit:
    console.error(error.message)
    typer.echo(github_annotation("Invalid input", error.message), err=True)
    return typer.Exit(code=int(ErrorCode.USER_ERROR))


@app.command()
def publish(
    secret_id: str | None = typer.Option(None, "--secret-id", envvar="INPUT_SECRET_ID"),
    secret_key: str | None = typer.Option(
        None, "--secret-key", envvar="INPUT_SECRET_KEY", show_default=False
    ),
    cos_bucket: str | None = typer.Option(None, "--cos-bucket", envvar="INPUT_COS_BUCKET"),
    cos_region: str | None = typer.Option(None, "--cos-region", envvar="INPUT_COS_REGION"),
    package_name: str | None = typer.Option(
        None, "--package-name", envvar="INPUT_PACKAGE_NAME", help="Package name (URL path segment)"
    ),
    package_path: Path | None = typer.Option(
        None, "--package-path", envvar="INPUT_PACKAGE_PATH", help="Directory holding pubspec.yaml"
    ),
    release_version: str | None = typer.Option(
        None,
        "--release-version",
        envvar="INPUT_VERSION",
        help="Version to publish (default: tag name from --ref)",
    ),
    ref: str | None = typer.Option(
        None, "--ref", envvar="GITHUB_REF", help="Triggering ref (e.g. refs/tags/1.2.3)"
    ),
    dist_base_url: str | None = typer.Option(
        None, "--dist-base-url", envvar="INPUT_DIST_BASE_URL", help="Public base URL of the bucket"
    ),
    work_dir: Path | None = typer.Option(
        None, "--work-dir", envvar="RUNNER_TEMP", help="Directory for the archive and index"
    ),
    accelerate: bool = typer.Option(
        True,
        "--accelerate/--no-accelerate",
        envvar="INPUT_USE_ACCELERATE",
        help="Use the COS global acceleration endpoint",
    ),
    github_output: Path | None = typer.Option(
        None, "--github-output", envvar="GITHUB_OUTPUT", hidden=True
    ),
) -> None:
    """Publish a package version to object storage and update its index."""
    console = build_console()

    config_result = load_config(
        secret_id=secret_id,
        secret_key=secret_key,
        cos_bucket=cos_bucket,
        cos_region=cos_region,
        package_name=package_name,
        package_path=package_path,
        ref=ref,
        version=release_version,
        dist_base_url=dist_base_url,
        work_dir=work_dir,
        accelerate=accelerate,
    )
    if isinstance(config_result, Err):
        raise _fail_config(config_result.error, console)
    config = config_result.value

    deployer = PackageDeployer(config, store=build_store(config), console=console)
    result = deployer.deploy()
    if isinstance(result, Err):
        error = result.error
        print_deploy_error(error, console)
        typer.echo(github_annotation(deploy_error_title(error), error.message), err=True)
        raise typer.Exit(code=deploy_error_exit_code(error))

    if github_output is not None:
        written = write_step_outputs(
            github_output,
            {"version": result.value.version, "archive_url": result.value.archive_url},
        )
        if isinstance(written, Err):
            console.warning(f"cannot write step outputs: {written.error.message}")


def main() -> None:
    # Relative package_path inputs are relative to the workspace checkout.
    workspace = os.environ.get("GITHUB_WORKSPACE")
    if workspace and Path(workspace).is_dir():
        os.chdir(workspace)
    app()

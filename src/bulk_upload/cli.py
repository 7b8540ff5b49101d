"""Command-line entry point: bulk-upload a file or directory to S3."""

import contextlib
import sys

import click

from bulk_upload import __version__
from bulk_upload.common.config import UploadConfig
from bulk_upload.common.exceptions import ConfigError, PreflightError
from bulk_upload.common.s3_client import create_s3_client
from bulk_upload.upload_files.handler import PreparedBatch, run_upload
from bulk_upload.upload_files.report import UploadReport, write_report


def _print_rejected(validation) -> None:
    if validation is None or not validation.invalid:
        return
    click.secho(f"\nFound {validation.invalid_count} invalid file(s):", fg="red")
    for i, verdict in enumerate(validation.invalid, 1):
        click.secho(f"  {i}. {verdict.path}", fg="red")
        click.secho(f"     Error: {verdict.error}", fg="bright_black")


def _print_report(report: UploadReport) -> None:
    total = len(report.results)
    click.secho(f"\nUpload complete! Succeeded: {len(report.succeeded)}/{total}", fg="green")
    if report.ok:
        return
    click.secho(f"Failed: {len(report.failed)}/{total}", fg="red")
    click.secho("\nFailed files:", fg="red")
    for group in report.failure_groups().values():
        click.secho(f"\n{group.description} ({len(group.files)} file(s)):", fg="yellow")
        click.secho(f"  Suggestion: {group.suggestion}", fg="bright_black")
        for i, entry in enumerate(group.files, 1):
            click.secho(f"  {i}. {entry['file']}", fg="red")
            click.secho(f"     Error: {entry['error']}", fg="bright_black")


@click.command()
@click.version_option(version=__version__)
@click.option("-s", "--source", required=True, type=click.Path(), help="Local file or directory")
@click.option("-t", "--target", default=None, help="Remote key prefix")
@click.option("-b", "--bucket", default=None, help="Destination bucket")
@click.option("-r", "--region", default=None, help="Bucket region")
@click.option("--access-key-id", default=None, help="Access key id")
@click.option("--secret-access-key", default=None, help="Secret access key")
@click.option("--endpoint-url", default=None, help="S3-compatible endpoint URL")
@click.option("-c", "--concurrency", type=int, default=None, help="Maximum parallel uploads")
@click.option("--max-size-mb", type=float, default=None, help="Largest accepted file in MB")
@click.option("--report", "report_path", type=click.Path(), default=None,
              help="Write a JSON report to this path")
def main(
    source,
    target,
    bucket,
    region,
    access_key_id,
    secret_access_key,
    endpoint_url,
    concurrency,
    max_size_mb,
    report_path,
):
    """Upload local files to an S3 bucket."""
    try:
        config = UploadConfig.from_env().with_overrides(
            bucket=bucket,
            region=region,
            target_prefix=target,
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            endpoint_url=endpoint_url,
            max_concurrency=concurrency,
            max_file_size_bytes=(
                int(max_size_mb * 1024 * 1024) if max_size_mb is not None else None
            ),
        )
        config.validate()
    except ConfigError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    click.secho("Checking files...", fg="blue")
    with contextlib.ExitStack() as stack:
        progress = {}

        def on_prepared(batch: PreparedBatch) -> None:
            if not batch.descriptors:
                return
            _print_rejected(batch.validation)
            click.secho(
                f"File check complete: {batch.validation.valid_count} valid file(s), "
                f"total size {batch.validation.total_size_mb}MB",
                fg="green",
            )
            progress["bar"] = stack.enter_context(
                click.progressbar(length=len(batch.descriptors), label="Uploading")
            )

        try:
            report = run_upload(
                source,
                config,
                create_s3_client(config),
                on_progress=lambda completed, total, result: progress["bar"].update(1),
                on_prepared=on_prepared,
            )
        except PreflightError as e:
            _print_rejected(e.details.get("validation"))
            click.secho(f"\n{e}", fg="red", err=True)
            sys.exit(1)

    if not report.descriptors:
        click.secho("No files found to upload", fg="yellow")
        return

    _print_report(report)
    if report_path:
        write_report(report, report_path)
        click.echo(f"Report written to {report_path}")
    if not report.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()

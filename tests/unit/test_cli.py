"""Tests for the bulk-upload command."""

import json

from click.testing import CliRunner

from bulk_upload.cli import main


class TestCli:
    def test_uploads_directory(self, destination_bucket, source_dir, tmp_path):
        report_path = tmp_path / "report.json"
        result = CliRunner().invoke(
            main, ["--source", str(source_dir), "--report", str(report_path)]
        )

        assert result.exit_code == 0, result.output
        assert "Succeeded: 10/10" in result.output
        assert json.loads(report_path.read_text())["status"] == "COMPLETED"

    def test_reports_rejected_files(self, destination_bucket, source_dir):
        (source_dir / "installer.msi").write_bytes(b"msi")
        result = CliRunner().invoke(main, ["-s", str(source_dir), "-t", "backup"])

        assert result.exit_code == 0, result.output
        assert "Found 1 invalid file(s)" in result.output
        assert "installer.msi" in result.output
        keys = [
            o["Key"]
            for o in destination_bucket.list_objects_v2(Bucket="destination-bucket")["Contents"]
        ]
        assert "backup/nested/inner0.txt" in keys

    def test_missing_bucket_exits_with_error(self, s3_client, source_dir):
        result = CliRunner().invoke(main, ["-s", str(source_dir), "-b", "absent-bucket"])
        assert result.exit_code == 1
        assert "Cannot reach destination bucket absent-bucket" in result.output

    def test_missing_source_exits_with_error(self, destination_bucket, tmp_path):
        result = CliRunner().invoke(main, ["-s", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_missing_required_settings(self, monkeypatch, source_dir):
        monkeypatch.delenv("DESTINATION_BUCKET")
        result = CliRunner().invoke(main, ["-s", str(source_dir)])
        assert result.exit_code == 1
        assert "bucket" in result.output

    def test_empty_directory(self, destination_bucket, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        result = CliRunner().invoke(main, ["-s", str(empty)])
        assert result.exit_code == 0
        assert "No files found" in result.output

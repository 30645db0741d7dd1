"""
Tests for the command line entry point.

These tests verify:
1. Argument parsing mirrors the documented options
2. Missing input is rejected before any network call
3. Results are printed (paths or JSON) and mapped to exit codes
"""

import asyncio
import json

import pytest

from asvp_relay.cli import EXIT_BAD_INPUT, EXIT_NOT_STORED, EXIT_OK, create_parser, main, run

from conftest import RecordingNotifier


def invoke(argv, settings, registry, notifier=None):
    args = create_parser().parse_args(argv)
    return asyncio.run(run(args, settings, transport=registry.transport(), notifier=notifier or RecordingNotifier()))


class TestParser:

    def test_short_options(self):
        args = create_parser().parse_args(["-n", "12345", "-s", "abc", "-f", "-v"])

        assert args.case_number == "12345"
        assert args.secret == "abc"
        assert args.force is True
        assert args.verbose is True
        assert args.document_id is None
        assert args.json is False

    def test_long_options(self):
        args = create_parser().parse_args(["--secret", "abc", "--download-document", "d9"])

        assert args.document_id == "d9"
        assert args.force is False


class TestRun:

    def test_missing_secret(self, settings, registry, capsys):
        code = invoke(["-n", "12345"], settings, registry)

        assert code == EXIT_BAD_INPUT
        assert registry.requests == []
        assert "secret" in capsys.readouterr().err

    def test_missing_case_and_document(self, settings, registry):
        code = invoke(["-s", "abc"], settings, registry)

        assert code == EXIT_BAD_INPUT
        assert registry.requests == []

    def test_case_prints_stored_paths(self, settings, registry, out_dir, capsys):
        registry.cases[("12345", "abc")] = {"otherDocs": [{"id": "d1", "fileName": "a.pdf"}]}
        registry.add_document("d1", "a.pdf", b"a")
        notifier = RecordingNotifier()

        code = invoke(["-n", "12345", "-s", "abc"], settings, registry, notifier)

        assert code == EXIT_OK
        assert capsys.readouterr().out.splitlines() == [str(out_dir / "d1_a.pdf")]
        assert notifier.names == ["d1_a.pdf"]

    def test_case_not_found(self, settings, registry, capsys):
        code = invoke(["-n", "404", "-s", "abc"], settings, registry)

        assert code == EXIT_NOT_STORED
        assert capsys.readouterr().out == ""

    def test_single_document(self, settings, registry, out_dir, capsys):
        registry.add_document("d9", "order.pdf", b"order")

        code = invoke(["-d", "d9", "-s", "abc"], settings, registry)

        assert code == EXIT_OK
        assert capsys.readouterr().out.strip() == str(out_dir / "d9_order.pdf")

    def test_single_document_failure(self, settings, registry):
        registry.documents["d9"] = 500

        assert invoke(["-d", "d9", "-s", "abc"], settings, registry) == EXIT_NOT_STORED

    def test_case_json_output(self, settings, registry, out_dir, capsys):
        registry.cases[("12345", "abc")] = {
            "otherDocs": [{"id": "d1", "fileName": "a.pdf"}, {"id": "d2", "fileName": "b.pdf"}],
        }
        registry.add_document("d1", "a.pdf", b"a")
        registry.documents["d2"] = 500

        code = invoke(["-n", "12345", "-s", "abc", "-j"], settings, registry)

        report = json.loads(capsys.readouterr().out)
        assert code == EXIT_OK
        assert report["found"] is True
        assert report["summary_path"] == str(out_dir / "getSharedInfoByVP_12345_abc.json")
        assert [o["state"] for o in report["outcomes"]] == ["NOTIFIED", "FAILED"]
        assert report["outcomes"][0]["document"]["path"] == str(out_dir / "d1_a.pdf")
        assert report["outcomes"][0]["document"]["provenance"]["document_hint"] == "d1"
        assert report["outcomes"][1]["error_kind"] == "TRANSPORT_FAILURE"

    def test_single_document_json_output(self, settings, registry, out_dir, capsys):
        registry.add_document("d9", "order.pdf", b"order")

        code = invoke(["-d", "d9", "-s", "abc", "--json"], settings, registry)

        report = json.loads(capsys.readouterr().out)
        assert code == EXIT_OK
        assert report["document_id"] == "d9"
        assert report["state"] == "NOTIFIED"
        assert report["document"]["size_bytes"] == 5

    def test_unconfigured_channel_still_stores(self, settings, registry, out_dir, capsys):
        registry.add_document("d9", "order.pdf", b"order")
        args = create_parser().parse_args(["-d", "d9", "-s", "abc", "-j"])

        code = asyncio.run(run(args, settings, transport=registry.transport()))

        report = json.loads(capsys.readouterr().out)
        assert code == EXIT_OK
        assert report["state"] == "PERSISTED"
        assert report["error_kind"] is None

    def test_main_validates_before_network(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ASVP_OUT_DIR", str(tmp_path / "out"))

        assert main(["-n", "12345"]) == EXIT_BAD_INPUT

    def test_help_exits(self):
        with pytest.raises(SystemExit):
            main(["--help"])

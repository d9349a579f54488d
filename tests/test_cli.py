"""
Tests for the command-line interface.

Runs each command against a temporary database.
"""

from claimsflow.cli import main, parse_args
from claimsflow.fnol.schema import ClaimStatus
from claimsflow.storage.claim_store import ClaimStore


def test_demo_files_and_assigns_a_claim(tmp_path):
    db = tmp_path / "cli.db"
    assert main(["--db", str(db), "demo"]) == 0

    claims = ClaimStore(db_path=db).list_all()
    assert len(claims) == 1
    assert claims[0].status == ClaimStatus.ASSIGNED
    assert claims[0].photo_count == 3


def test_list_show_and_stats(tmp_path, capsys):
    db = tmp_path / "cli.db"
    main(["--db", str(db), "demo", "--no-photos"])
    claim = ClaimStore(db_path=db).list_all()[0]
    capsys.readouterr()

    assert main(["--db", str(db), "list", "--view", "active"]) == 0
    assert main(["--db", str(db), "show", claim.id[:8].upper()]) == 0
    assert main(["--db", str(db), "stats"]) == 0
    output = capsys.readouterr().out
    assert claim.customer_name in output


def test_unknown_claim_reports_error(tmp_path):
    assert main(["--db", str(tmp_path / "cli.db"), "show", "missing"]) == 1


def test_empty_database_lists_nothing(tmp_path, capsys):
    assert main(["--db", str(tmp_path / "cli.db"), "list"]) == 0
    assert "No claims found" in capsys.readouterr().out


def test_parse_args_defaults():
    args = parse_args(["list"])
    assert args.command == "list"
    assert args.limit == 50
    assert args.view is None

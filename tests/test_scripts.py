"""Table generator and verifier script tests."""
import json

from scripts.generate_tables import main as generate_main
from scripts.verify_tables import main as verify_main
from slotcore.config_hash import get_config_hash


class TestGenerateAndVerify:
    """Generate artifacts into a temp dir, then verify them."""

    def test_generate_then_verify(self, tmp_path, capsys):
        report_path = tmp_path / "report.json"
        rc = generate_main([
            "--reels", "3", "4", "5",
            "--out", str(tmp_path),
            "--report", str(report_path),
        ])
        assert rc == 0
        for reel_count in (3, 4, 5):
            assert (tmp_path / f"payout_table_{reel_count}.json").exists()

        report = json.loads(report_path.read_text())
        assert report["rules_hash"] == get_config_hash()
        assert [t["reel_count"] for t in report["tables"]] == [3, 4, 5]

        assert verify_main(["--dir", str(tmp_path), "--reels", "3", "4", "5"]) == 0
        assert "All tables verified" in capsys.readouterr().out

    def test_forced_layout(self, tmp_path):
        assert generate_main(["--reels", "5", "--out", str(tmp_path), "--layout", "chunked"]) == 0
        data = json.loads((tmp_path / "payout_table_5.json").read_text())
        assert data["layout"] == "chunked"
        assert data["chunks"]
        assert verify_main(["--dir", str(tmp_path), "--reels", "5"]) == 0

    def test_tampered_artifact_fails(self, tmp_path, capsys):
        generate_main(["--reels", "4", "--out", str(tmp_path)])
        path = tmp_path / "payout_table_4.json"
        data = json.loads(path.read_text())
        data["entries"] = {"1111": 1}
        path.write_text(json.dumps(data))

        assert verify_main(["--dir", str(tmp_path), "--reels", "4"]) == 1
        assert "FAILED" in capsys.readouterr().out

    def test_missing_artifact_fails(self, tmp_path, capsys):
        assert verify_main(["--dir", str(tmp_path), "--reels", "3"]) == 1
        assert "MISSING" in capsys.readouterr().out

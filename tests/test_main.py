import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from main import main


def write_csv(tmp_path, lines):
    csv_file = tmp_path / "transactions.csv"
    csv_file.write_text('\n'.join(lines))
    return str(csv_file)


class TestMain:
    def test_prints_snapshot(self, tmp_path, capsys):
        csv_file = write_csv(tmp_path, [
            "type, client, tx, amount",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 1, 1.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        ])

        exit_code = main([csv_file])

        assert exit_code == 0
        assert capsys.readouterr().out == (
            "client,available,held,total,locked\n"
            "1,1.5,0,1.5,false\n"
            "2,2,0,2,false\n"
        )

    def test_chargeback_snapshot(self, tmp_path, capsys):
        csv_file = write_csv(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 10.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
            "deposit, 1, 2, 5.0",
        ])

        assert main([csv_file]) == 0
        assert capsys.readouterr().out.splitlines()[1] == "1,0,0,0,true"

    def test_usage(self, capsys):
        assert main([]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Usage" in captured.err

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.csv")]) == 1
        assert capsys.readouterr().out == ""

    def test_malformed_file_prints_nothing(self, tmp_path, capsys):
        csv_file = write_csv(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "refund, 1, 2, 1.0",
        ])

        assert main([csv_file]) == 1
        assert capsys.readouterr().out == ""

    def test_invalid_config(self, tmp_path, capsys, monkeypatch):
        csv_file = write_csv(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
        ])
        monkeypatch.setenv("PAYMENTS_LOOKUP", "btree")

        assert main([csv_file]) == 1
        assert capsys.readouterr().out == ""

    def test_balance_overflow_prints_nothing(self, tmp_path, capsys):
        lines = ["type,client,tx,amount"]
        for tx_id in range(1, 201):
            lines.append(f"deposit,1,{tx_id},9999999999999999999999999999")
        csv_file = write_csv(tmp_path, lines)

        assert main([csv_file]) == 1
        assert capsys.readouterr().out == ""

    def test_undecodable_file_prints_nothing(self, tmp_path, capsys):
        csv_file = tmp_path / "transactions.csv"
        csv_file.write_bytes(b"type,client,tx,amount\ndeposit,1,1,\xff\n")

        assert main([str(csv_file)]) == 1
        assert capsys.readouterr().out == ""

import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from errors import InputError, MalformedRecord
from payments_engine import PaymentsEngine


def process_csv(tmp_path, *rows):
    csv_file = tmp_path / "test.csv"
    csv_file.write_text('\n'.join(("type, client, tx, amount",) + rows))
    return PaymentsEngine().process_file(str(csv_file))


class TestPaymentsEngine:
    def test_basic_transactions(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        )

        assert accounts[1].available == Decimal("1.5")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("1.5")
        assert accounts[1].locked is False

        # Withdrawal of 3.0 rejected: insufficient funds
        assert accounts[2].available == Decimal("2.0")
        assert accounts[2].held == Decimal("0")
        assert accounts[2].total == Decimal("2.0")
        assert accounts[2].locked is False

    def test_accounts_in_creation_order(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 3, 1, 1.0",
            "deposit, 1, 2, 1.0",
            "withdrawal, 2, 3, 1.0",
        )
        assert list(accounts) == [3, 1, 2]

    def test_dispute_resolve(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 5.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
        )

        assert accounts[1].available == Decimal("5")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].locked is False

    def test_chargeback_then_deposit_rejected(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 5.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
            "deposit, 1, 2, 1.0",
        )

        assert accounts[1].available == Decimal("0")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("0")
        assert accounts[1].locked is True

    def test_dispute_before_deposit_rejected(self, tmp_path):
        """Arrival order is authoritative: a dispute for a not-yet-seen deposit is dropped, not retried."""
        accounts = process_csv(
            tmp_path,
            "dispute, 1, 1,",
            "deposit, 1, 1, 100.0",
        )

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")

    def test_withdrawal_before_covering_deposit_rejected(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "withdrawal, 1, 1, 10",
            "deposit, 1, 2, 10",
        )

        assert accounts[1].available == Decimal("10")

    def test_decimal_precision(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 1.2345",
            "deposit, 1, 2, 0.0001",
            "withdrawal, 1, 3, 0.2346",
        )

        # 1.2345 + 0.0001 - 0.2346 = 1.0000
        assert accounts[1].available == Decimal("1.0000")

    def test_dispute_withdrawal_rejected(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "withdrawal, 1, 2, 50.0",
            "dispute, 1, 2,",
        )

        assert accounts[1].available == Decimal("50")
        assert accounts[1].held == Decimal("0")

    def test_duplicate_dispute_rejected(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "dispute, 1, 1,",
        )

        assert accounts[1].available == Decimal("0")
        assert accounts[1].held == Decimal("100")

    def test_wrong_client_dispute_rejected(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "dispute, 2, 1,",
        )

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        # The disputing client still gets an (empty) account
        assert accounts[2].total == Decimal("0")

    def test_chargeback_after_resolve_rejected(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
            "chargeback, 1, 1,",
        )

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].locked is False

    def test_redispute_after_resolve_rejected(self, tmp_path):
        """A deposit can be disputed at most once in its lifetime."""
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
        )

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].locked is False

    def test_partial_withdrawal_then_dispute(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "withdrawal, 1, 2, 30.0",
            "dispute, 1, 1,",
        )

        # available = 70 - 100 = -30, held = 100
        assert accounts[1].available == Decimal("-30")
        assert accounts[1].held == Decimal("100")
        assert accounts[1].total == Decimal("70")

    def test_multiple_disputes_same_client(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "deposit, 1, 2, 50.0",
            "dispute, 1, 1,",
            "dispute, 1, 2,",
            "resolve, 1, 1,",
            "chargeback, 1, 2,",
        )

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("100")
        assert accounts[1].locked is True

    def test_dispute_on_locked_account_still_holds(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "deposit, 1, 2, 50.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
            "dispute, 1, 2,",
            "resolve, 1, 2,",
        )

        assert accounts[1].available == Decimal("50")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].locked is True

    @pytest.mark.parametrize("row", [
        "deposit, 1, 2, -50.0",
        "deposit, 1, 2, 0",
        "withdrawal, 1, 2, -50.0",
        "withdrawal, 1, 2, 0.0",
    ])
    def test_non_positive_amount_rejected(self, tmp_path, row):
        accounts = process_csv(tmp_path, "deposit, 1, 1, 100.0", row)
        assert accounts[1].available == Decimal("100")

    def test_duplicate_deposit_rejected(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "deposit, 1, 1, 100.0",
            "deposit, 2, 1, 100.0",
        )

        assert accounts[1].available == Decimal("100")
        assert accounts[2].available == Decimal("0")

    def test_deposit_reusing_withdrawal_id_rejected(self, tmp_path):
        accounts = process_csv(
            tmp_path,
            "deposit, 1, 1, 200.0",
            "withdrawal, 1, 2, 50.0",
            "withdrawal, 1, 2, 50.0",
            "deposit, 1, 2, 10.0",
        )

        assert accounts[1].available == Decimal("150")

    def test_stats_count_rejections(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 10",
            "withdrawal, 1, 2, 20",
            "dispute, 1, 99,",
            "resolve, 1, 1,",
        ]))

        engine = PaymentsEngine()
        engine.process_file(str(csv_file))

        assert engine.stats.processed == 1
        assert engine.stats.rejected == 3
        assert engine.stats.rejections_by_kind == {
            "InsufficientFunds": 1,
            "UnknownTransaction": 1,
            "InvalidDisputeState": 1,
        }

    def test_malformed_row_aborts_run(self, tmp_path):
        with pytest.raises(MalformedRecord, match="line 3"):
            process_csv(
                tmp_path,
                "deposit, 1, 1, 10",
                "refund, 1, 2, 10",
                "deposit, 1, 3, 10",
            )

    def test_missing_file_aborts_run(self, tmp_path):
        with pytest.raises(InputError):
            PaymentsEngine().process_file(str(tmp_path / "missing.csv"))

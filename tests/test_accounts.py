from decimal import Decimal

from monetrix.models.account import Account, AccountFilters
from monetrix.models.enums import AccountType
from monetrix.services.account_service import summarize_accounts
from monetrix.utils.audit import fetch_audit_events


def _account(kind, balance, is_active=True):
    return Account(
        user_id="u",
        name=f"{kind} account",
        type=kind,
        balance=Decimal(balance),
        is_active=is_active,
    )


class TestSummarizeAccounts:
    def test_credit_card_balance_counts_as_debt(self):
        summary = summarize_accounts(
            [
                _account(AccountType.CHECKING, "1500.00"),
                _account(AccountType.INVESTMENT, "10000.00"),
                _account(AccountType.CREDIT_CARD, "-800.00"),
            ]
        )
        assert summary.total_assets == Decimal("11500.00")
        assert summary.total_debts == Decimal("800.00")
        assert summary.net_worth == Decimal("10700.00")
        assert summary.credit_card_balance == Decimal("-800.00")
        assert summary.total_balance == Decimal("10700.00")

    def test_inactive_accounts_are_only_counted(self):
        summary = summarize_accounts(
            [
                _account(AccountType.SAVINGS, "200.00"),
                _account(AccountType.SAVINGS, "999.00", is_active=False),
            ]
        )
        assert summary.active_accounts == 1
        assert summary.inactive_accounts == 1
        assert summary.savings_balance == Decimal("200.00")

    def test_no_accounts(self):
        summary = summarize_accounts([])
        assert summary.net_worth == Decimal("0")
        assert summary.active_accounts == 0


class TestAccountService:
    def test_currency_defaults_to_user_currency(self, make_account):
        account = make_account()
        assert account.currency.value == "BRL"

    def test_negative_opening_balance_for_credit_card(self, make_account):
        account = make_account(name="Cartão", type="credit_card", initial_balance="-1.500,00")
        assert account.initial_balance == Decimal("-1500.00")
        assert account.balance == Decimal("-1500.00")

    def test_blank_name_is_rejected(self, services, user):
        result = services["account_service"].create_account(
            user, {"name": "   ", "type": "checking"}
        )
        assert result.status_code == 400

    def test_balance_cannot_be_updated(self, supabase, services, user, make_account):
        account = make_account()
        result = services["account_service"].update_account(
            user, account.id, {"balance": "5000", "name": "Nova"}
        )
        assert result.status_code == 400
        assert "balance" in result.error
        assert supabase.balance_of(account.id) == Decimal("1000.00")

    def test_update_descriptive_fields(self, services, user, make_account):
        account = make_account()
        result = services["account_service"].update_account(
            user, account.id, {"name": "Conta Salário", "institution": "Banco X"}
        )
        assert result.success, result.error
        assert result.data.name == "Conta Salário"
        assert result.data.institution == "Banco X"
        assert result.data.balance == Decimal("1000.00")

    def test_toggle_active(self, services, user, make_account):
        account = make_account()
        result = services["account_service"].toggle_active(user, account.id)
        assert result.data.is_active is False
        result = services["account_service"].toggle_active(user, account.id)
        assert result.data.is_active is True

    def test_list_with_filters(self, services, user, make_account):
        make_account(name="B Corrente")
        make_account(name="A Poupança", type="savings")
        result = services["account_service"].list_accounts(
            user, AccountFilters(type=AccountType.SAVINGS)
        )
        assert [a.name for a in result.data] == ["A Poupança"]

        result = services["account_service"].list_accounts(user)
        assert [a.name for a in result.data] == ["A Poupança", "B Corrente"]

    def test_accounts_are_scoped_to_the_owner(self, services, other_user, make_account):
        account = make_account()
        assert services["account_service"].get_account(other_user, account.id).status_code == 404
        assert services["account_service"].list_accounts(other_user).data == []

    def test_financial_summary(self, services, user, make_account):
        make_account(initial_balance="1000")
        make_account(name="Cartão", type="credit_card", initial_balance="-250")
        result = services["account_service"].get_financial_summary(user)
        assert result.success
        assert result.data.net_worth == Decimal("750.00")

    def test_delete_is_audited(self, db, services, user, make_account):
        account = make_account()
        assert services["account_service"].delete_account(user, account.id).success
        assert services["account_service"].delete_account(user, account.id).status_code == 404

        actions = [e.action for e in fetch_audit_events(db.sqlite, "Account", account.id)]
        assert actions == ["CREATE", "DELETE"]

    def test_remote_outage_is_a_server_error(self, supabase, services, user):
        supabase.failing.add(("accounts", "select"))
        result = services["account_service"].list_accounts(user)
        assert result.success is False
        assert result.status_code == 500

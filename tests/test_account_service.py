"""Tests for AccountService."""

import pytest
from decimal import Decimal

from shopledger.domain.account import EXPENSE_ACCOUNT_TEMPLATES, MAX_EXPENSE_DEPTH
from shopledger.domain.entities import AccountCategory, TransactionType
from shopledger.domain.errors import (
    AccessDeniedError,
    ConflictError,
    InvalidAccountError,
    InvalidAmountError,
    InvalidHierarchyError,
    NonZeroBalanceError,
    ValidationError,
)


class TestCreateAccount:
    """Tests for account creation."""

    def test_current_balance_starts_at_opening(self, account_service, admin, sample_shop):
        """New accounts start with current balance equal to the opening balance."""
        account = account_service.create_account(
            admin, sample_shop.id, "BANK", "SNB", "الأهلي", opening_balance="2500.50", bank_name="SNB"
        )

        assert account.category == AccountCategory.BANK
        assert account.opening_balance == Decimal("2500.50")
        assert account.current_balance == Decimal("2500.50")
        assert account.bank_name == "SNB"
        assert account.is_active
        assert not account.is_default

    def test_negative_opening_balance_allowed(self, account_service, admin, sample_shop):
        """Opening balances may be negative (e.g. a customer already owing)."""
        account = account_service.create_account(
            admin, sample_shop.id, "CUSTOMER", "Ali", "علي", opening_balance="-75"
        )
        assert account.current_balance == Decimal("-75.00")

    def test_opening_balance_precision(self, account_service, admin, sample_shop):
        """Opening balances are limited to two decimals."""
        with pytest.raises(InvalidAmountError):
            account_service.create_account(
                admin, sample_shop.id, "CASH", "Till", "الصندوق", opening_balance="1.005"
            )

    def test_names_required(self, account_service, admin, sample_shop):
        """Both locale names are required."""
        with pytest.raises(ValidationError):
            account_service.create_account(admin, sample_shop.id, "CASH", "Till", "  ")

    def test_unknown_category(self, account_service, admin, sample_shop):
        """Categories are a closed set."""
        with pytest.raises(ValidationError, match="Unknown account category"):
            account_service.create_account(admin, sample_shop.id, "LOAN", "Loan", "قرض")

    def test_duplicate_code(self, account_service, admin, sample_shop):
        """Account codes are unique within a shop."""
        account_service.create_account(admin, sample_shop.id, "CASH", "Till", "الصندوق", code="T1")
        with pytest.raises(ConflictError, match="T1"):
            account_service.create_account(admin, sample_shop.id, "CASH", "Till 2", "الصندوق ٢", code="T1")

    def test_create_as_default_replaces_previous(self, account_service, admin, sample_shop):
        """Creating a default account clears the previous default."""
        seeded = account_service.get_default_account(admin, sample_shop.id, AccountCategory.CASH)
        new = account_service.create_account(
            admin, sample_shop.id, "CASH", "Till", "الصندوق", is_default=True
        )

        assert new.is_default
        assert not account_service.get_account(admin, seeded.id).is_default
        assert account_service.get_default_account(admin, sample_shop.id, "cash").id == new.id

    def test_user_from_other_shop_denied(self, account_service, other_admin, sample_shop):
        """Callers without scope cannot create accounts in the shop."""
        with pytest.raises(AccessDeniedError):
            account_service.create_account(other_admin, sample_shop.id, "CASH", "Till", "الصندوق")

    def test_shop_user_cannot_create(self, account_service, admin, shop_user, sample_shop):
        """Creating accounts is an administrator action."""
        with pytest.raises(AccessDeniedError, match="Administrator role required"):
            account_service.create_account(shop_user, sample_shop.id, "CASH", "Till", "الصندوق")
        assert len(account_service.list_accounts(admin, sample_shop.id, category="CASH")) == 1


class TestListAccounts:
    """Tests for listing accounts."""

    def test_seeded_accounts(self, account_service, admin, sample_shop):
        """New shops come with default cash, direct-sales and expense accounts."""
        accounts = account_service.list_accounts(admin, sample_shop.id)

        by_category = {acc.category: acc for acc in accounts}
        assert set(by_category) == {AccountCategory.CASH, AccountCategory.CUSTOMER, AccountCategory.EXPENSE}
        assert by_category[AccountCategory.CASH].name_en == "Cash-MAIN"
        assert by_category[AccountCategory.CUSTOMER].name_en == "Direct Sales-MAIN"
        assert by_category[AccountCategory.EXPENSE].name_en == "General Expenses-MAIN"
        assert all(acc.is_default for acc in accounts)
        assert all(acc.current_balance == Decimal("0.00") for acc in accounts)

    def test_filter_by_category(self, account_service, admin, sample_shop, bank_account):
        """Listing can be limited to one category."""
        accounts = account_service.list_accounts(admin, sample_shop.id, category="BANK")
        assert [acc.id for acc in accounts] == [bank_account.id]

    def test_inactive_hidden_by_default(self, account_service, admin, sample_shop):
        """Deactivated accounts only appear when requested."""
        spare = account_service.create_account(admin, sample_shop.id, "CASH", "Spare", "احتياطي")
        account_service.deactivate(admin, spare.id)

        active_ids = [a.id for a in account_service.list_accounts(admin, sample_shop.id)]
        all_ids = [a.id for a in account_service.list_accounts(admin, sample_shop.id, include_inactive=True)]

        assert spare.id not in active_ids
        assert spare.id in all_ids


class TestSetDefault:
    """Tests for changing the default account."""

    def test_single_default_per_category(self, temp_db, account_service, admin, sample_shop):
        """Only one account per (shop, category) is ever the default."""
        first = account_service.create_account(admin, sample_shop.id, "CASH", "Till 1", "الصندوق ١")
        second = account_service.create_account(admin, sample_shop.id, "CASH", "Till 2", "الصندوق ٢")

        account_service.set_default(admin, first.id, "CASH")
        account_service.set_default(admin, second.id, AccountCategory.CASH)

        defaults = [a for a in temp_db.list_accounts(sample_shop.id, category=AccountCategory.CASH) if a.is_default]
        assert [a.id for a in defaults] == [second.id]

    def test_category_must_match(self, account_service, admin, sample_shop, bank_account):
        """An account can only be the default of its own category."""
        with pytest.raises(InvalidAccountError):
            account_service.set_default(admin, bank_account.id, "CASH")

    def test_inactive_account_cannot_be_default(self, account_service, admin, sample_shop):
        """Deactivated accounts cannot become the default."""
        spare = account_service.create_account(admin, sample_shop.id, "CASH", "Spare", "احتياطي")
        account_service.deactivate(admin, spare.id)

        with pytest.raises(InvalidAccountError):
            account_service.set_default(admin, spare.id, "CASH")

    def test_shop_user_cannot_set_default(self, account_service, admin, shop_user, sample_shop, bank_account):
        """Changing defaults is an administrator action."""
        with pytest.raises(AccessDeniedError, match="Administrator role required"):
            account_service.set_default(shop_user, bank_account.id, "BANK")
        assert not account_service.get_account(admin, bank_account.id).is_default


class TestDeactivate:
    """Tests for deactivating accounts."""

    def test_zero_balance_account(self, account_service, admin, sample_shop):
        """Accounts with a zero balance can be deactivated."""
        spare = account_service.create_account(admin, sample_shop.id, "CASH", "Spare", "احتياطي")
        deactivated = account_service.deactivate(admin, spare.id)
        assert not deactivated.is_active

    def test_nonzero_balance_blocked(self, account_service, admin, bank_account):
        """A balance blocks deactivation."""
        with pytest.raises(NonZeroBalanceError):
            account_service.deactivate(admin, bank_account.id)
        assert account_service.get_account(admin, bank_account.id).is_active

    def test_admin_override(self, account_service, admin, bank_account):
        """Administrators may override the balance check."""
        deactivated = account_service.deactivate(admin, bank_account.id, override=True)
        assert not deactivated.is_active
        assert deactivated.current_balance == Decimal("5000.00")

    def test_shop_user_cannot_deactivate(self, account_service, admin, shop_user, sample_shop):
        """Deactivation is an administrator action, with or without override."""
        spare = account_service.create_account(admin, sample_shop.id, "CASH", "Spare", "احتياطي")

        for override in (False, True):
            with pytest.raises(AccessDeniedError):
                account_service.deactivate(shop_user, spare.id, override=override)
        assert account_service.get_account(admin, spare.id).is_active

    def test_deactivating_default_clears_flag(
        self, account_service, ledger_service, admin, sample_shop
    ):
        """A deactivated default leaves the category without a default."""
        seeded_expense = account_service.get_default_account(admin, sample_shop.id, AccountCategory.EXPENSE)

        account_service.deactivate(admin, seeded_expense.id)

        assert account_service.get_default_account(admin, sample_shop.id, AccountCategory.EXPENSE) is None
        with pytest.raises(InvalidAccountError, match="No default expense account"):
            ledger_service.record_transaction(admin, sample_shop.id, TransactionType.EXPENSE, "5")


@pytest.fixture
def expense(account_service, admin, sample_shop):
    """Create expense accounts, optionally grouped under a parent."""

    def make(name, parent=None):
        return account_service.create_account(
            admin,
            sample_shop.id,
            "EXPENSE",
            name,
            f"{name}-ar",
            code=name.upper(),
            parent_id=parent.id if parent is not None else None,
        )

    return make


class TestExpenseHierarchy:
    """Tests for grouping expense accounts."""

    def test_create_under_parent(self, expense):
        """Expense accounts can be created under another expense account."""
        utilities = expense("Utilities")
        power = expense("Power", parent=utilities)

        assert power.parent_id == utilities.id
        assert utilities.parent_id is None

    def test_only_expense_accounts_have_parents(self, account_service, admin, sample_shop, expense):
        """Other categories cannot be grouped."""
        utilities = expense("Utilities")
        with pytest.raises(InvalidHierarchyError):
            account_service.create_account(
                admin, sample_shop.id, "CASH", "Till", "الصندوق", parent_id=utilities.id
            )

    def test_parent_must_be_expense(self, account_service, admin, sample_shop, cash_account):
        """A cash account cannot group expense accounts."""
        with pytest.raises(InvalidHierarchyError, match="parent"):
            account_service.create_account(
                admin, sample_shop.id, "EXPENSE", "Rent", "الإيجار", parent_id=cash_account.id
            )

    def test_depth_limit(self, expense):
        """Trees are at most MAX_EXPENSE_DEPTH levels deep."""
        top = expense("Top")
        middle = expense("Middle", parent=top)
        bottom = expense("Bottom", parent=middle)
        assert MAX_EXPENSE_DEPTH == 3

        with pytest.raises(InvalidHierarchyError, match="at most 3 levels"):
            expense("Deeper", parent=bottom)

    def test_move_rejects_cycle(self, account_service, admin, expense):
        """An account cannot be moved under its own descendant."""
        top = expense("Top")
        child = expense("Child", parent=top)

        with pytest.raises(InvalidHierarchyError):
            account_service.set_parent(admin, top.id, child.id)
        with pytest.raises(InvalidHierarchyError):
            account_service.set_parent(admin, top.id, top.id)
        assert account_service.get_account(admin, top.id).parent_id is None

    def test_move_counts_subtree_height(self, account_service, admin, expense):
        """Moving a subtree checks the depth of its deepest member."""
        branch = expense("Branch")
        expense("Leaf", parent=branch)
        other = expense("Other")
        other_child = expense("OtherChild", parent=other)

        with pytest.raises(InvalidHierarchyError, match="at most"):
            account_service.set_parent(admin, branch.id, other_child.id)

        moved = account_service.set_parent(admin, branch.id, other.id)
        assert moved.parent_id == other.id

    def test_move_to_top_level(self, account_service, admin, expense):
        """Moving without a parent makes the account top level."""
        top = expense("Top")
        child = expense("Child", parent=top)

        assert account_service.set_parent(admin, child.id, None).parent_id is None

    def test_move_non_expense_rejected(self, account_service, admin, expense, cash_account):
        """Only expense accounts can be moved into a tree."""
        top = expense("Top")
        with pytest.raises(InvalidHierarchyError, match="Only expense accounts"):
            account_service.set_parent(admin, cash_account.id, top.id)

    def test_foreign_parent_denied(self, account_service, admin, other_admin, other_shop, expense):
        """A parent from another shop is rejected before any change."""
        mine = expense("Mine")
        theirs = account_service.create_account(other_admin, other_shop.id, "EXPENSE", "Theirs", "لهم")

        with pytest.raises(AccessDeniedError):
            account_service.set_parent(admin, mine.id, theirs.id)

    def test_shop_user_cannot_move(self, account_service, shop_user, expense):
        """Grouping is an administrator action."""
        top = expense("Top")
        child = expense("Child")
        with pytest.raises(AccessDeniedError):
            account_service.set_parent(shop_user, child.id, top.id)

    def test_parent_with_active_children_stays_active(self, account_service, admin, expense):
        """A parent is only deactivated once its children are."""
        top = expense("Top")
        child = expense("Child", parent=top)

        with pytest.raises(InvalidHierarchyError):
            account_service.deactivate(admin, top.id)

        account_service.deactivate(admin, child.id)
        assert not account_service.deactivate(admin, top.id).is_active

    def test_expense_tree(self, account_service, admin, sample_shop, expense):
        """The tree nests children under parents with their depth."""
        utilities = expense("Utilities")
        power = expense("Power", parent=utilities)
        expense("Meter", parent=power)
        expense("Water", parent=utilities)

        tree = account_service.get_expense_tree(admin, sample_shop.id)
        by_name = {node["account"].name_en: node for node in tree}

        assert set(by_name) == {"General Expenses-MAIN", "Utilities"}
        node = by_name["Utilities"]
        assert node["depth"] == 0
        assert [c["account"].name_en for c in node["children"]] == ["Power", "Water"]
        power_node = node["children"][0]
        assert power_node["depth"] == 1
        assert [(c["account"].name_en, c["depth"]) for c in power_node["children"]] == [("Meter", 2)]


class TestExpenseTemplates:
    """Tests for importing the standard expense accounts."""

    def test_import_creates_grouped_accounts(self, account_service, admin, sample_shop):
        """Every template is created, children under their parents."""
        created, skipped = account_service.import_expense_templates(admin, sample_shop.id)

        assert skipped == 0
        assert len(created) == len(EXPENSE_ACCOUNT_TEMPLATES)
        by_code = {acc.code: acc for acc in created}
        assert by_code["UTILITIES_ELECTRIC"].parent_id == by_code["UTILITIES"].id
        assert by_code["TRANSPORT_FUEL"].parent_id == by_code["TRANSPORT"].id
        assert by_code["SALARIES"].parent_id is None
        assert by_code["OTHER"].name_ar == "أخرى"
        assert all(acc.category == AccountCategory.EXPENSE for acc in created)

    def test_import_is_repeatable(self, account_service, admin, sample_shop):
        """Existing codes are skipped on a second import."""
        account_service.create_account(admin, sample_shop.id, "EXPENSE", "Payroll", "الرواتب", code="SALARIES")

        first, first_skipped = account_service.import_expense_templates(admin, sample_shop.id)
        second, second_skipped = account_service.import_expense_templates(admin, sample_shop.id)

        assert first_skipped == 1
        assert len(first) == len(EXPENSE_ACCOUNT_TEMPLATES) - 1
        assert second == []
        assert second_skipped == len(EXPENSE_ACCOUNT_TEMPLATES)

    def test_shop_user_cannot_import(self, account_service, shop_user, sample_shop):
        """Importing is an administrator action."""
        with pytest.raises(AccessDeniedError):
            account_service.import_expense_templates(shop_user, sample_shop.id)

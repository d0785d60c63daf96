# accounting/policies.py
"""
Business policy functions for accounting operations.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action; that's the command's job.

Usage:
    from accounting.policies import can_reverse_entry

    allowed, reason = can_reverse_entry(actor, entry)
    if not allowed:
        return CommandResult.fail(reason)

Policies are pure functions returning (bool, str) tuples.
"""

# =============================================================================
# Tenant Boundary Policies
# =============================================================================

def check_tenant_boundary(actor, entity) -> bool:
    """
    Verify entity belongs to actor's company.
    This is the fundamental multi-tenant security check.
    """
    entity_company_id = getattr(entity, "company_id", None)
    if entity_company_id is None:
        company = getattr(entity, "company", None)
        entity_company_id = getattr(company, "id", None) if company else None
    return entity_company_id == actor.company.id


# =============================================================================
# Account Policies
# =============================================================================

def can_delete_account(actor, account) -> tuple[bool, str]:
    """
    Check if an account can be deleted.

    Rules:
    - Must belong to actor's company
    - System accounts are used by automatic postings
    - Cannot have journal lines
    - Cannot have child accounts
    """
    if not check_tenant_boundary(actor, account):
        return False, "Cross-company action denied."

    if account.is_system:
        return False, "System accounts cannot be deleted."

    if account.journal_lines.exists():
        return False, "Cannot delete an account that has transactions."

    if account.children.exists():
        return False, "Cannot delete an account that has child accounts."

    return True, ""


def can_change_account_type(actor, account) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, account):
        return False, "Cross-company action denied."

    if account.journal_lines.exists():
        return False, "Cannot change type of an account with transactions."

    return True, ""


def can_post_to_account(account) -> tuple[bool, str]:
    if not account.is_active:
        return False, f"Cannot post to inactive account: {account.code}"
    return True, ""


# =============================================================================
# Journal Entry Policies
# =============================================================================

def can_reverse_entry(actor, entry) -> tuple[bool, str]:
    """
    Check if a journal entry can be reversed.

    Rules:
    - Must belong to actor's company
    - Must be POSTED (not already reversed)
    - Reversal entries themselves cannot be reversed
    """
    if not check_tenant_boundary(actor, entry):
        return False, "Cross-company action denied."

    from accounting.models import JournalEntry

    if entry.status != JournalEntry.Status.POSTED:
        return False, f"Cannot reverse entry in {entry.status} status."

    if entry.source == JournalEntry.Source.REVERSAL:
        return False, "A reversal entry cannot be reversed."

    return True, ""


# =============================================================================
# Tax rate / bank policies
# =============================================================================

def can_delete_bank_account(actor, bank_account) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, bank_account):
        return False, "Cross-company action denied."

    if bank_account.transactions.filter(status="matched").exists():
        return False, "Cannot delete a bank account with matched transactions."

    return True, ""


"""
API Services Layer.

Workflow operations for the engagement engine. Every function takes the
caller's ``AsyncSession`` first and, for writes, the acting
``ActorContext``; each write is one unit of work.
"""

from api.services.documents import (
    submit_document,
    approve_document,
    reject_document,
    review_document,
    withdraw_document,
    get_document,
    list_documents,
    list_pending_documents,
)

from api.services.verification import (
    compute_eligibility,
    submit_for_verification,
    resolve_verification,
    revoke_verification,
    admin_revoke_verification,
    update_profile,
    get_verification,
)

from api.services.pipeline import (
    ensure_entry,
    set_pipeline_status,
    get_entry,
    list_entries,
)

from api.services.quotes import (
    request_quote,
    resolve_quote,
    add_quote_option,
    select_quote_option,
    finalize_quote,
    update_quote_status,
    find_open_quote,
    get_quote,
    list_quotes,
)

from api.services.interviews import (
    schedule_interview,
    respond_to_slot,
    cancel_interview,
    complete_interview,
    get_interview,
    list_interviews,
)

from api.services.talent_demands import (
    create_talent_demand,
    suggest_pool_candidate,
    add_manual_profile,
    set_demand_status,
    delete_talent_demand,
    get_talent_demand,
    list_talent_demands,
)

from api.services.expiry import sweep_expired

from api.services.audit import (
    record_audit,
    list_audit_entries,
)

__all__ = [
    # Documents
    "submit_document",
    "approve_document",
    "reject_document",
    "review_document",
    "withdraw_document",
    "get_document",
    "list_documents",
    "list_pending_documents",
    # Verification
    "compute_eligibility",
    "submit_for_verification",
    "resolve_verification",
    "revoke_verification",
    "admin_revoke_verification",
    "update_profile",
    "get_verification",
    # Pipeline
    "ensure_entry",
    "set_pipeline_status",
    "get_entry",
    "list_entries",
    # Quotes
    "request_quote",
    "resolve_quote",
    "add_quote_option",
    "select_quote_option",
    "finalize_quote",
    "update_quote_status",
    "find_open_quote",
    "get_quote",
    "list_quotes",
    # Interviews
    "schedule_interview",
    "respond_to_slot",
    "cancel_interview",
    "complete_interview",
    "get_interview",
    "list_interviews",
    # Talent demands
    "create_talent_demand",
    "suggest_pool_candidate",
    "add_manual_profile",
    "set_demand_status",
    "delete_talent_demand",
    "get_talent_demand",
    "list_talent_demands",
    # Expiry
    "sweep_expired",
    # Audit
    "record_audit",
    "list_audit_entries",
]

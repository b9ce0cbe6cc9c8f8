"""
UTBMS code catalogue: canonical activity and expense code definitions.

Format: each entry is a plain dict. These are the ground-truth closed sets
that LEDES configurations are validated against; nothing else in the
codebase may hard-code a UTBMS code list.

Activity codes are grouped by phase (the hundreds code):
  L100  Case Assessment, Development and Administration
  L200  Pre-Trial Pleadings and Motions
  L300  Discovery
  L400  Trial Preparation and Trial
  L500  Appeal
"""

from typing import Optional

UTBMS_ACTIVITIES: list[dict] = [
    # ══════════════════════════════════════════════════════════════════════════
    # L100 Case Assessment, Development and Administration
    # ══════════════════════════════════════════════════════════════════════════
    {
        "code": "L100",
        "phase": "L100",
        "label": "Case Assessment, Development and Administration",
        "category": "case_assessment",
    },
    {
        "code": "L110",
        "phase": "L100",
        "label": "Fact Investigation/Development",
        "category": "case_management",
    },
    {
        "code": "L120",
        "phase": "L100",
        "label": "Analysis/Strategy",
        "category": "case_assessment",
    },
    {
        "code": "L130",
        "phase": "L100",
        "label": "Experts/Consultants",
        "category": "experts",
    },
    {
        "code": "L140",
        "phase": "L100",
        "label": "Document/File Management",
        "category": "case_management",
    },
    {
        "code": "L150",
        "phase": "L100",
        "label": "Budgeting",
        "category": "case_assessment",
    },
    {
        "code": "L160",
        "phase": "L100",
        "label": "Settlement/Non-Binding ADR",
        "category": "settlement",
    },
    {
        "code": "L170",
        "phase": "L100",
        "label": "Other Case Assessment, Development and Administration",
        "category": "case_assessment",
    },
    # ══════════════════════════════════════════════════════════════════════════
    # L200 Pre-Trial Pleadings and Motions
    # ══════════════════════════════════════════════════════════════════════════
    {
        "code": "L200",
        "phase": "L200",
        "label": "Pre-Trial Pleadings and Motions",
        "category": "document_drafting",
    },
    {
        "code": "L210",
        "phase": "L200",
        "label": "Pleadings",
        "category": "document_drafting",
    },
    {
        "code": "L220",
        "phase": "L200",
        "label": "Preliminary Injunctions/Provisional Remedies",
        "category": "document_drafting",
    },
    {
        "code": "L230",
        "phase": "L200",
        "label": "Court Mandated Conferences",
        "category": "court_appearance",
    },
    {
        "code": "L240",
        "phase": "L200",
        "label": "Dispositive Motions",
        "category": "document_drafting",
    },
    {
        "code": "L250",
        "phase": "L200",
        "label": "Other Written Motions and Submissions",
        "category": "document_drafting",
    },
    # ══════════════════════════════════════════════════════════════════════════
    # L300 Discovery
    # ══════════════════════════════════════════════════════════════════════════
    {
        "code": "L300",
        "phase": "L300",
        "label": "Discovery",
        "category": "legal_research",
    },
    {
        "code": "L310",
        "phase": "L300",
        "label": "Written Discovery",
        "category": "document_drafting",
    },
    {
        "code": "L320",
        "phase": "L300",
        "label": "Document Production",
        "category": "document_review",
    },
    # ══════════════════════════════════════════════════════════════════════════
    # L400 Trial Preparation and Trial
    # ══════════════════════════════════════════════════════════════════════════
    {
        "code": "L400",
        "phase": "L400",
        "label": "Trial Preparation and Trial",
        "category": "document_review",
    },
    {
        "code": "L410",
        "phase": "L400",
        "label": "Fact Witnesses",
        "category": "trial",
    },
    {
        "code": "L420",
        "phase": "L400",
        "label": "Expert Witnesses",
        "category": "trial",
    },
    # ══════════════════════════════════════════════════════════════════════════
    # L500 Appeal
    # ══════════════════════════════════════════════════════════════════════════
    {
        "code": "L500",
        "phase": "L500",
        "label": "Appeal",
        "category": "document_drafting",
    },
    {
        "code": "L510",
        "phase": "L500",
        "label": "Appellate Motions and Submissions",
        "category": "document_drafting",
    },
    {
        "code": "L520",
        "phase": "L500",
        "label": "Appellate Briefs",
        "category": "document_drafting",
    },
    {
        "code": "L530",
        "phase": "L500",
        "label": "Oral Argument",
        "category": "court_appearance",
    },
]

UTBMS_EXPENSES: list[dict] = [
    {"code": "E100", "label": "Court and Other Fees", "requires_receipt": True},
    {"code": "E110", "label": "Service of Process", "requires_receipt": True},
    {"code": "E120", "label": "Investigation", "requires_receipt": True},
    {"code": "E130", "label": "Experts", "requires_receipt": True},
    {"code": "E140", "label": "Technology", "requires_receipt": True},
    {"code": "E150", "label": "Travel", "requires_receipt": True},
    {"code": "E160", "label": "Copying and Printing", "requires_receipt": False},
    {"code": "E170", "label": "Postage and Delivery", "requires_receipt": False},
    {"code": "E200", "label": "Transcripts", "requires_receipt": True},
    {"code": "E210", "label": "Filing and Recording Fees", "requires_receipt": True},
    {"code": "E220", "label": "Mediation and Arbitration", "requires_receipt": True},
    {"code": "E300", "label": "Other Expenses", "requires_receipt": True},
]

ACTIVITY_CODES: frozenset[str] = frozenset(item["code"] for item in UTBMS_ACTIVITIES)
EXPENSE_CODES: frozenset[str] = frozenset(item["code"] for item in UTBMS_EXPENSES)

# Firm activity types with a conventional code, used when a configuration
# does not map the type itself.
DEFAULT_ACTIVITY_MAP: dict[str, str] = {
    "legal_research": "L300",
    "document_review": "L400",
    "document_drafting": "L500",
    "client_meeting": "L110",
    "court_appearance": "L500",
    "correspondence": "L110",
    "phone_call": "L110",
    "general_work": "L110",
}

FALLBACK_ACTIVITY_CODE = "L110"


def get_activity(code: str) -> Optional[dict]:
    """Return the activity definition for a code, or None."""
    return next((item for item in UTBMS_ACTIVITIES if item["code"] == code), None)


def get_expense(code: str) -> Optional[dict]:
    """Return the expense definition for a code, or None."""
    return next((item for item in UTBMS_EXPENSES if item["code"] == code), None)


def get_activities_by_phase(phase: str) -> list[dict]:
    return [item for item in UTBMS_ACTIVITIES if item["phase"] == phase]

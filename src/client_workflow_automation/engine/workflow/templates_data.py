"""Built-in task catalog.

Pure data; loading and validation live in ``templates.py``. The shape matches
what ``TemplateRegistry.from_json_file`` accepts, so a deployment can copy this
structure into a JSON file and adjust it.
"""

from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Individual returns
# ---------------------------------------------------------------------------

_INDIVIDUAL_WORKFLOW: list[dict[str, Any]] = [
    {
        "stage": "intake_complete",
        "tasks": [
            {
                "title": "Send welcome email and document checklist",
                "description": "Send personalized welcome email with document collection checklist",
                "category": "client_communication",
                "priority": "high",
                "estimated_duration_minutes": 15,
                "completion_triggers": ["document_collection_setup"],
            },
            {
                "title": "Set up client folder and document collection",
                "description": (
                    "Create organized folder structure and set up document collection portal"
                ),
                "category": "document_collection",
                "priority": "high",
                "estimated_duration_minutes": 10,
                "completion_triggers": ["client_follow_up"],
            },
        ],
    },
    {
        "stage": "documents_pending",
        "tasks": [
            {
                "title": "Follow up on missing documents",
                "description": "Contact client about any missing or incomplete documents",
                "category": "client_communication",
                "priority": "medium",
                "estimated_duration_minutes": 20,
                "completion_triggers": ["document_review"],
            },
            {
                "title": "Review uploaded documents",
                "description": "Check all uploaded documents for completeness and accuracy",
                "category": "review",
                "priority": "medium",
                "estimated_duration_minutes": 30,
                "completion_triggers": ["form_preparation"],
            },
        ],
    },
    {
        "stage": "documents_received",
        "tasks": [
            {
                "title": "Organize and categorize documents",
                "description": "Sort documents by type and verify all required forms are present",
                "category": "document_collection",
                "priority": "high",
                "estimated_duration_minutes": 45,
                "completion_triggers": ["ai_processing"],
            },
            {
                "title": "Initial document review",
                "description": "Perform preliminary review of all submitted documents",
                "category": "review",
                "priority": "medium",
                "estimated_duration_minutes": 60,
                "completion_triggers": ["form_preparation"],
            },
        ],
    },
    {
        "stage": "ai_processing",
        "tasks": [
            {
                "title": "Review AI-extracted data",
                "description": "Verify accuracy of AI-extracted information from documents",
                "category": "review",
                "priority": "high",
                "estimated_duration_minutes": 30,
                "completion_triggers": ["form_preparation"],
            },
            {
                "title": "Resolve data extraction issues",
                "description": "Address any flagged issues or low-confidence extractions",
                "category": "review",
                "priority": "medium",
                "estimated_duration_minutes": 20,
            },
        ],
    },
    {
        "stage": "forms_generated",
        "tasks": [
            {
                "title": "Review auto-generated tax forms",
                "description": "Thoroughly review all auto-filled tax forms for accuracy",
                "category": "form_preparation",
                "priority": "high",
                "estimated_duration_minutes": 90,
                "completion_triggers": ["client_approval"],
            },
            {
                "title": "Calculate tax liability and refund",
                "description": "Verify tax calculations and optimize for best outcome",
                "category": "form_preparation",
                "priority": "high",
                "estimated_duration_minutes": 45,
            },
        ],
    },
    {
        "stage": "review_needed",
        "tasks": [
            {
                "title": "Final quality review",
                "description": "Comprehensive final review of completed tax return",
                "category": "review",
                "priority": "high",
                "estimated_duration_minutes": 60,
                "completion_triggers": ["client_approval"],
            },
            {
                "title": "Prepare client review package",
                "description": "Compile return summary and supporting documents for client review",
                "category": "client_communication",
                "priority": "medium",
                "estimated_duration_minutes": 30,
            },
        ],
    },
    {
        "stage": "client_approval",
        "tasks": [
            {
                "title": "Send return to client for approval",
                "description": "Email completed return to client with approval instructions",
                "category": "client_communication",
                "priority": "high",
                "estimated_duration_minutes": 15,
                "completion_triggers": ["filing_preparation"],
            },
            {
                "title": "Schedule client review meeting",
                "description": "Set up meeting to review return with client if needed",
                "category": "client_communication",
                "priority": "medium",
                "estimated_duration_minutes": 10,
            },
        ],
    },
    {
        "stage": "ready_to_file",
        "tasks": [
            {
                "title": "Prepare e-filing submission",
                "description": "Final preparation and validation for IRS e-filing",
                "category": "filing",
                "priority": "high",
                "estimated_duration_minutes": 30,
                "completion_triggers": ["filing_complete"],
            },
            {
                "title": "Submit tax return to IRS",
                "description": "Electronic filing of completed and approved tax return",
                "category": "filing",
                "priority": "urgent",
                "estimated_duration_minutes": 15,
            },
        ],
    },
    {
        "stage": "filed",
        "tasks": [
            {
                "title": "Send filing confirmation to client",
                "description": (
                    "Notify client of successful filing and provide confirmation details"
                ),
                "category": "client_communication",
                "priority": "high",
                "estimated_duration_minutes": 10,
            },
            {
                "title": "Archive client documents",
                "description": "Organize and archive all client documents and correspondence",
                "category": "compliance",
                "priority": "medium",
                "estimated_duration_minutes": 20,
            },
        ],
    },
]

# ---------------------------------------------------------------------------
# Business returns
# ---------------------------------------------------------------------------

_BUSINESS_WORKFLOW: list[dict[str, Any]] = [
    {
        "stage": "intake_complete",
        "tasks": [
            {
                "title": "Send business tax document checklist",
                "description": "Provide comprehensive checklist for business tax documents",
                "category": "client_communication",
                "priority": "high",
                "estimated_duration_minutes": 20,
                "completion_triggers": ["document_collection_setup"],
            },
            {
                "title": "Schedule business tax consultation",
                "description": "Set up initial consultation to discuss business tax strategy",
                "category": "client_communication",
                "priority": "high",
                "estimated_duration_minutes": 15,
            },
        ],
    },
    {
        "stage": "documents_received",
        "tasks": [
            {
                "title": "Review business financial statements",
                "description": "Analyze P&L, balance sheet, and other financial documents",
                "category": "review",
                "priority": "high",
                "estimated_duration_minutes": 120,
                "completion_triggers": ["form_preparation"],
            },
            {
                "title": "Verify business deductions",
                "description": "Review and validate all claimed business deductions",
                "category": "review",
                "priority": "high",
                "estimated_duration_minutes": 90,
            },
        ],
    },
]

# ---------------------------------------------------------------------------
# Follow-ups, keyed by completion trigger tag
# ---------------------------------------------------------------------------

_FOLLOW_UPS: dict[str, dict[str, Any]] = {
    "document_collection_setup": {
        "title": "Monitor document uploads",
        "description": "Check for new document uploads and follow up if needed",
        "category": "document_collection",
        "priority": "medium",
        "estimated_duration_minutes": 15,
    },
    "document_review": {
        "title": "Process reviewed documents",
        "description": "Begin processing documents that have been reviewed",
        "category": "form_preparation",
        "priority": "high",
        "estimated_duration_minutes": 60,
    },
    "form_preparation": {
        "title": "Quality check prepared forms",
        "description": "Review prepared tax forms for accuracy and completeness",
        "category": "review",
        "priority": "high",
        "estimated_duration_minutes": 45,
    },
    "client_approval": {
        "title": "Process client approval",
        "description": "Handle approved return and prepare for filing",
        "category": "filing",
        "priority": "high",
        "estimated_duration_minutes": 30,
    },
}

BUILTIN_CATALOG: dict[str, Any] = {
    "default_category": "individual",
    "workflows": {
        "individual": _INDIVIDUAL_WORKFLOW,
        "business": _BUSINESS_WORKFLOW,
    },
    "follow_ups": _FOLLOW_UPS,
}

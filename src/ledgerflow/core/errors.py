"""Error codes and user-friendly messages.

Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

ERROR_CATALOG: dict[str, dict] = {
    "SYNC_001": {
        "code": "SYNC_001",
        "message": "Banking-data provider request failed",
        "user_message": "We couldn't sync this bank account.",
        "suggestion": "Reconnect the account and try again.",
        "retry_allowed": True,
    },
    "SYNC_002": {
        "code": "SYNC_002",
        "message": "Bank account has no stored provider credentials",
        "user_message": "This bank account isn't connected.",
        "suggestion": "Link the account with your bank before syncing.",
        "retry_allowed": False,
    },
    "AI_001": {
        "code": "AI_001",
        "message": "Language model request failed",
        "user_message": "The AI assistant is unavailable right now.",
        "suggestion": "Please try again in a moment.",
        "retry_allowed": True,
    },
    "AI_002": {
        "code": "AI_002",
        "message": "Language model returned unparsable output",
        "user_message": "The AI assistant returned an unexpected answer.",
        "suggestion": "Please try again. Contact support if this persists.",
        "retry_allowed": True,
    },
    "AI_003": {
        "code": "AI_003",
        "message": "Language model is not configured",
        "user_message": "AI features are not enabled.",
        "suggestion": "Contact support to enable AI categorization.",
        "retry_allowed": False,
    },
    "API_001": {
        "code": "API_001",
        "message": "Transaction not found",
        "user_message": "We couldn't find this transaction.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "API_002": {
        "code": "API_002",
        "message": "Category not found",
        "user_message": "We couldn't find this category.",
        "suggestion": "Choose one of your existing categories.",
        "retry_allowed": False,
    },
    "API_003": {
        "code": "API_003",
        "message": "Category type does not match transaction type",
        "user_message": "That category can't be used for this kind of transaction.",
        "suggestion": "Pick an income category for income and an expense category for expenses.",
        "retry_allowed": False,
    },
    "API_004": {
        "code": "API_004",
        "message": "Bank account not found",
        "user_message": "We couldn't find this bank account.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "API_005": {
        "code": "API_005",
        "message": "Category already exists",
        "user_message": "You already have a category with this name.",
        "suggestion": "Use the existing category or choose a different name.",
        "retry_allowed": False,
    },
    "VAL_001": {
        "code": "VAL_001",
        "message": "Request data failed validation",
        "user_message": "Invalid input data",
        "suggestion": "Please check your input and try again",
        "retry_allowed": True,
    },
    "DB_001": {
        "code": "DB_001",
        "message": "Database operation failed",
        "user_message": "A database error occurred",
        "suggestion": "Please try again later",
        "retry_allowed": True,
    },
    "DB_002": {
        "code": "DB_002",
        "message": "Resource already exists",
        "user_message": "This record already exists",
        "suggestion": "Please check if the record was already created",
        "retry_allowed": False,
    },
    "SYS_001": {
        "code": "SYS_001",
        "message": "Internal server error",
        "user_message": "An unexpected error occurred",
        "suggestion": "Please try again later or contact support",
        "retry_allowed": True,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Unknown codes resolve to a generic retryable error instead of raising.
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]


def is_retryable(error_code: str) -> bool:
    return get_error(error_code)["retry_allowed"]


def error_body(error_code: str, message: str | None = None) -> dict:
    """Build the JSON error body returned at the API boundary.

    Args:
        error_code: Code from the catalog
        message: Optional message overriding the catalog's technical message

    Returns:
        Dict with ``error`` plus the catalog fields
    """
    info = get_error(error_code)
    text = message or info["message"]
    return {
        "error": text,
        "error_code": error_code,
        "message": text,
        "user_message": info["user_message"],
        "suggestion": info["suggestion"],
        "retry_allowed": info["retry_allowed"],
    }

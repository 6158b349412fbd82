"""Structured logger for sync observability."""

import logging
from typing import Any, Optional

# Configure root logger with JSON-like structured format
_logger = logging.getLogger("field_sales_sync")
_logger.setLevel(logging.INFO)

# Create console handler if not exists
if not _logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    _logger.addHandler(handler)


def log_sync(
    user_id: Optional[str],
    component: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """
    Log structured sync event.

    Args:
        user_id: Authenticated user identifier, or None for guest/local-only
        component: Component name (e.g., 'push', 'listener', 'sign_out')
        level: Log level (default: INFO)
        **kwargs: Additional structured fields to log
    """
    fields = {
        "user_id": user_id or "-",
        "component": component,
    }
    fields.update(kwargs)

    # Format as key=value pairs for readability
    log_parts = [f"{k}={v!r}" for k, v in fields.items()]
    log_message = " | ".join(log_parts)

    _logger.log(level, log_message)


def log_push(
    user_id: Optional[str],
    collection: str,
    document_id: str,
    success: bool,
    **kwargs: Any,
) -> None:
    """
    Log a single document push.

    Args:
        user_id: Authenticated user identifier
        collection: Remote collection name
        document_id: Pushed document identifier
        success: Whether the write succeeded
        **kwargs: Additional fields
    """
    log_sync(
        user_id,
        "push",
        level=logging.INFO if success else logging.WARNING,
        collection=collection,
        document_id=document_id,
        push_success=success,
        **kwargs,
    )


def log_merge(
    user_id: Optional[str],
    outcome: str,
    local_count: int,
    remote_count: int,
    merged_count: int,
    **kwargs: Any,
) -> None:
    """
    Log merge of a remote snapshot into local state.

    Args:
        user_id: Authenticated user identifier
        outcome: Merge outcome (initial_download, skipped_empty_remote, merged)
        local_count: Local items before merge
        remote_count: Items in the remote snapshot
        merged_count: Local items after merge
        **kwargs: Additional fields
    """
    log_sync(
        user_id,
        "merge",
        merge_outcome=outcome,
        local_count=local_count,
        remote_count=remote_count,
        merged_count=merged_count,
        **kwargs,
    )


def log_listener_transition(
    user_id: Optional[str],
    state_before: str,
    state_after: str,
    **kwargs: Any,
) -> None:
    """
    Log listener state transition.

    Args:
        user_id: Authenticated user identifier
        state_before: Previous listener state
        state_after: New listener state
        **kwargs: Additional fields
    """
    log_sync(
        user_id,
        "listener",
        listener_state_before=state_before,
        listener_state_after=state_after,
        **kwargs,
    )


def log_sync_status(
    user_id: Optional[str],
    status: str,
    **kwargs: Any,
) -> None:
    """
    Log batched sync status change.

    Args:
        user_id: Authenticated user identifier
        status: New sync status
        **kwargs: Additional fields
    """
    log_sync(user_id, "batched_sync", sync_status=status, **kwargs)


def log_sign_out_phase(
    user_id: Optional[str],
    phase: str,
    **kwargs: Any,
) -> None:
    """
    Log a sign-out choreography phase.

    Args:
        user_id: User being signed out
        phase: Phase name (e.g., 'detach_listener', 'pre_sign_out_sync')
        **kwargs: Additional fields
    """
    log_sync(user_id, "sign_out", sign_out_phase=phase, **kwargs)


# Export logger instance for plain messages
logger = _logger

"""Lightweight Telegram notification for packing experiment progress.

Sends plain-text messages to a Telegram chat via the Bot API for:
- Experiment start notifications
- Problem completion milestones
- Errors
- Final results summary

No retry logic: progress updates are non-critical.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Sequence

import httpx

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"


async def send_telegram(
    message: str,
    chat_id: str | None = None,
    token: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """Send a plain-text message to a Telegram chat.

    Args:
        message: Text to send.
        chat_id: Telegram chat ID. Defaults to TELEGRAM_CHAT_ID env var.
        token: Bot token. Defaults to TELEGRAM_BOT_TOKEN env var.
        client: Optional client to send through; a short-lived one is
            created otherwise.

    Returns:
        True if message was sent successfully, False otherwise.
    """
    token = token or os.environ.get("TELEGRAM_BOT_TOKEN", "")
    if not token:
        return False

    chat_id = chat_id or os.environ.get("TELEGRAM_CHAT_ID", "")
    if not chat_id:
        return False

    url = TELEGRAM_API.format(token=token)
    payload = {"chat_id": chat_id, "text": message}

    try:
        if client is not None:
            resp = await client.post(url, json=payload)
        else:
            async with httpx.AsyncClient(timeout=10.0) as own_client:
                resp = await own_client.post(url, json=payload)
        data = resp.json()
        return bool(data.get("ok", False))
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("telegram delivery failed: %s", exc)
        return False


def format_experiment_start(
    total_problems: int,
    algorithms: Sequence[str],
    orderings: Sequence[str],
) -> str:
    """Format experiment start notification message.

    Example:
        >>> msg = format_experiment_start(4, ["layer_heuristic"], ["as_given"])
        >>> print(msg)
        🚀 Experiment Started
        Algorithms: layer_heuristic
        Orderings: as_given
        Problems: 4
    """
    return (
        f"🚀 Experiment Started\n"
        f"Algorithms: {', '.join(algorithms)}\n"
        f"Orderings: {', '.join(orderings)}\n"
        f"Problems: {total_problems}"
    )


def format_problem_milestone(
    problems_completed: int,
    total_problems: int,
    avg_utilization: float,
) -> str:
    """Format problem completion milestone notification.

    Example:
        >>> msg = format_problem_milestone(3, 10, 78.5)
        >>> print(msg)
        📊 Progress Update
        Completed: 3/10 problems (30%)
        Avg Utilization: 78.5%
    """
    progress_pct = (problems_completed / total_problems) * 100 if total_problems else 100.0
    return (
        f"📊 Progress Update\n"
        f"Completed: {problems_completed}/{total_problems} problems ({progress_pct:.0f}%)\n"
        f"Avg Utilization: {avg_utilization:.1f}%"
    )


def format_error(error_type: str, error_message: str, context: dict[str, Any] | None = None) -> str:
    """Format error notification message.

    Example:
        >>> msg = format_error("OverlapError", "units 1 and 2 overlap", {"problem": "crate"})
        >>> print(msg)
        ⚠️ Error: OverlapError
        units 1 and 2 overlap
        Context: problem=crate
    """
    lines = [
        f"⚠️ Error: {error_type}",
        error_message,
    ]
    if context:
        ctx_str = ", ".join(f"{k}={v}" for k, v in context.items())
        lines.append(f"Context: {ctx_str}")
    return "\n".join(lines)


def format_final_summary(
    total_runs: int,
    complete_packs: int,
    avg_utilization: float,
    runtime_seconds: float,
    errors: int,
) -> str:
    """Format final experiment results summary.

    Example:
        >>> msg = format_final_summary(8, 5, 79.2, 120, 0)
        >>> print(msg)
        ✅ Experiment Complete
        Runs: 8
        Complete Packs: 5
        Avg Utilization: 79.2%
        Runtime: 2.0 minutes
        Errors: 0
    """
    runtime_minutes = runtime_seconds / 60
    return (
        f"✅ Experiment Complete\n"
        f"Runs: {total_runs}\n"
        f"Complete Packs: {complete_packs}\n"
        f"Avg Utilization: {avg_utilization:.1f}%\n"
        f"Runtime: {runtime_minutes:.1f} minutes\n"
        f"Errors: {errors}"
    )

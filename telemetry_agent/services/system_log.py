"""
System Log Service.

Durable copy of collection warnings and errors in the ``system_logs`` table.
Writing is best effort: the agent keeps running when the log table is
unreachable, the failure only goes to the process log.
"""
from __future__ import annotations

import logging
import re
import traceback as tb_module

from telemetry_agent.db import base as db_base
from telemetry_agent.db.models import SystemLog

logger = logging.getLogger(__name__)

_enabled = False


def enable_db_logging(enabled: bool = True) -> None:
    """Turn the durable log on or off (requires a configured database)."""
    global _enabled
    _enabled = enabled


def is_enabled() -> bool:
    return _enabled and db_base.is_configured()


def format_error_detail(
    exc: BaseException | None = None,
    context: dict[str, str] | None = None,
) -> str:
    """
    Format an error for the log table.

    Args:
        exc: Exception to describe
        context: Business context (router, command, ...)

    Returns:
        Multi-line detail text: type, message, innermost location, context,
        full traceback.
    """
    lines: list[str] = []
    tb_text = ""

    if exc is not None:
        tb_text = "".join(tb_module.format_exception(type(exc), exc, exc.__traceback__))
        lines.append(f"Type: {type(exc).__name__}")
        message = str(exc)
        if message:
            if len(message) > 300:
                message = message[:300] + "..."
            lines.append(f"Message: {message}")

        frames = re.findall(r'File "([^"]+)", line (\d+), in (\w+)', tb_text)
        if frames:
            filepath, lineno, funcname = frames[-1]
            lines.append(f"Location: {filepath}:{lineno} ({funcname})")

    if context:
        lines.append("Context:")
        for key, value in context.items():
            if value:
                lines.append(f"  {key}: {value}")

    if exc is not None and exc.__traceback__ is not None:
        lines.append("Traceback:")
        lines.extend(f"  {line}" for line in tb_text.strip().split("\n"))

    return "\n".join(lines)


async def write_log(
    *,
    level: str,
    source: str,
    summary: str,
    detail: str | None = None,
    module: str | None = None,
    router_host: str | None = None,
) -> None:
    """
    Store one log entry.

    Args:
        level: ERROR / WARNING / INFO
        source: Component (scheduler / cycle / collector / sink / registry)
        summary: One-line description
        detail: Technical detail, see format_error_detail()
        module: Command path or job name
        router_host: Router the entry concerns
    """
    if not is_enabled():
        return

    try:
        async with db_base.get_session_context() as session:
            session.add(SystemLog(
                level=level.upper(),
                source=source,
                module=module,
                router_host=router_host,
                summary=summary[:500] if summary else "",
                detail=detail,
            ))
    except Exception as e:
        logger.warning("Failed to write system log entry: %s", e)

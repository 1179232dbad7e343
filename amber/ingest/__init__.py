from __future__ import annotations

from .agents import AGENT_DEFS, AgentStatus, SessionFile, get_agent, scan_agent_sources
from .importer import ImportProgress, iter_import, run_import
from .preview import SessionPreview, list_agent_session_previews
from .transcript import extract_session_summary, extract_text_from_content

__all__ = [
    "AGENT_DEFS",
    "AgentStatus",
    "ImportProgress",
    "SessionFile",
    "SessionPreview",
    "extract_session_summary",
    "extract_text_from_content",
    "get_agent",
    "iter_import",
    "list_agent_session_previews",
    "run_import",
    "scan_agent_sources",
]

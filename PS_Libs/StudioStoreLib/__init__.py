"""
StudioStoreLib - Session file storage and management

This module handles persistence of compositing sessions (template,
frames, filter selection and render options).
"""

from PS_Libs.StudioStoreLib.session_store import (
    get_sessions_dir,
    list_session_files,
    create_session_file,
    load_session_name,
    load_session_data,
    save_session,
    load_session,
)

__all__ = [
    "get_sessions_dir",
    "list_session_files",
    "create_session_file",
    "load_session_name",
    "load_session_data",
    "save_session",
    "load_session",
]

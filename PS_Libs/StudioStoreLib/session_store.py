"""
Session file storage for Print Studio.

A session file (.pssession, JSON) captures everything a compositing run
needs apart from the photos themselves: the template and its frames, the
selected filter and its cube text, and the render options.

Functions:
    get_sessions_dir: Get (and create) the Sessions directory
    list_session_files: List all session files in the Sessions directory
    create_session_file: Create a new session file with default structure
    load_session_name: Load just the session name from a file
    load_session_data: Load and normalize raw session data
    save_session: Save a CompositeSession to a file
    load_session: Load a CompositeSession, opening the template background
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from PIL import Image

from PS_Libs.constants import (
    DEFAULT_BACKEND,
    DEFAULT_PREVIEW_SCALE,
    FIELD_ASSIGNED_PHOTO_ID,
    FIELD_BACKGROUND_PATH,
    FIELD_CREATED_AT,
    FIELD_CUBE_TEXT,
    FIELD_FILTER_ID,
    FIELD_FRAME_HEIGHT,
    FIELD_FRAME_ID,
    FIELD_FRAME_WIDTH,
    FIELD_FRAME_X,
    FIELD_FRAME_Y,
    FIELD_FRAMES,
    FIELD_PAN_OFFSET_X,
    FIELD_PAN_OFFSET_Y,
    FIELD_SCALE,
    FIELD_SCHEMA_VERSION,
    FIELD_TEMPLATE,
    FIELD_TEMPLATE_ID,
    FIELD_TEMPLATE_NAME,
    FIELD_BACKEND,
    FIELD_USE_THREADING,
    FIELD_MAX_WORKERS,
    FILENAME_REPLACEMENT_CHAR,
    SAFE_FILENAME_CHARS,
    SCHEMA_VERSION,
    SESSION_EXTENSION,
    SESSIONS_DIR_NAME,
)
from PS_Libs.CompositeLib.composite_pipeline import CompositeSession

logger = logging.getLogger(__name__)

FIELD_SESSION_NAME = "name"


def _empty_template(name: str) -> Dict[str, Any]:
    return {
        FIELD_TEMPLATE_ID: "",
        FIELD_TEMPLATE_NAME: name,
        FIELD_BACKGROUND_PATH: None,
        FIELD_FRAMES: [],
    }


def _normalize_frame(frame: Dict[str, Any], index: int) -> Dict[str, Any]:
    """Fill in missing frame fields; frames without an id get a positional one."""
    normalized = dict(frame)
    if not str(normalized.get(FIELD_FRAME_ID) or "").strip():
        normalized[FIELD_FRAME_ID] = f"frame-{index + 1}"
    for key in (
        FIELD_FRAME_X,
        FIELD_FRAME_Y,
        FIELD_FRAME_WIDTH,
        FIELD_FRAME_HEIGHT,
        FIELD_PAN_OFFSET_X,
        FIELD_PAN_OFFSET_Y,
    ):
        try:
            normalized[key] = float(normalized.get(key) or 0.0)
        except (TypeError, ValueError):
            normalized[key] = 0.0
    normalized.setdefault(FIELD_ASSIGNED_PHOTO_ID, None)
    return normalized


def get_sessions_dir(base_dir: Path) -> Path:
    sessions_dir = base_dir / SESSIONS_DIR_NAME
    sessions_dir.mkdir(parents=True, exist_ok=True)
    return sessions_dir


def list_session_files(base_dir: Path) -> List[Path]:
    sessions_dir = get_sessions_dir(base_dir)
    return sorted(sessions_dir.glob(f"*{SESSION_EXTENSION}"))


def create_session_file(base_dir: Path, session_name: str) -> Path:
    """
    Create a new session file with default structure.

    Args:
        base_dir: Base directory containing the Sessions folder
        session_name: Human-readable name for the session

    Returns:
        Path to the created session file
    """
    sessions_dir = get_sessions_dir(base_dir)

    safe_name = "".join(
        c if c.isalnum() or c in SAFE_FILENAME_CHARS else FILENAME_REPLACEMENT_CHAR
        for c in session_name
    ).strip(FILENAME_REPLACEMENT_CHAR)

    if not safe_name:
        safe_name = "new_session"

    session_path = sessions_dir / f"{safe_name}{SESSION_EXTENSION}"
    counter = 1
    while session_path.exists():
        session_path = sessions_dir / f"{safe_name}_{counter}{SESSION_EXTENSION}"
        counter += 1

    payload: Dict[str, Any] = {
        FIELD_SCHEMA_VERSION: SCHEMA_VERSION,
        FIELD_SESSION_NAME: session_name,
        FIELD_CREATED_AT: datetime.now().isoformat(timespec="seconds"),
        FIELD_TEMPLATE: _empty_template(session_name),
        FIELD_FILTER_ID: None,
        FIELD_CUBE_TEXT: None,
        FIELD_SCALE: DEFAULT_PREVIEW_SCALE,
        FIELD_BACKEND: DEFAULT_BACKEND,
        FIELD_USE_THREADING: True,
        FIELD_MAX_WORKERS: None,
    }

    session_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return session_path


def load_session_name(session_path: Path) -> str:
    """Session name from a session file, or the filename stem if it cannot be read."""
    try:
        payload = json.loads(session_path.read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return session_path.stem

    if not isinstance(payload, dict):
        return session_path.stem
    return str(payload.get(FIELD_SESSION_NAME) or session_path.stem)


def load_session_data(session_path: Path) -> Dict[str, Any]:
    """
    Load raw session data, normalizing missing or malformed sections.

    An unreadable file yields a default payload so callers can always start
    a session from it.
    """
    try:
        payload = json.loads(session_path.read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not read session file {session_path}: {e}")
        payload = {}

    if not isinstance(payload, dict):
        payload = {}

    template = payload.get(FIELD_TEMPLATE)
    if not isinstance(template, dict):
        template = _empty_template(session_path.stem)

    frames = template.get(FIELD_FRAMES)
    if not isinstance(frames, list):
        template[FIELD_FRAMES] = []
    else:
        template[FIELD_FRAMES] = [
            _normalize_frame(frame, index)
            for index, frame in enumerate(frames)
            if isinstance(frame, dict)
        ]

    payload.setdefault(FIELD_SCHEMA_VERSION, SCHEMA_VERSION)
    payload.setdefault(FIELD_SESSION_NAME, session_path.stem)
    payload.setdefault(FIELD_CREATED_AT, datetime.now().isoformat(timespec="seconds"))
    payload.setdefault(FIELD_FILTER_ID, None)
    payload.setdefault(FIELD_CUBE_TEXT, None)
    payload.setdefault(FIELD_SCALE, DEFAULT_PREVIEW_SCALE)
    payload.setdefault(FIELD_BACKEND, DEFAULT_BACKEND)
    payload.setdefault(FIELD_USE_THREADING, True)
    payload.setdefault(FIELD_MAX_WORKERS, None)

    # Explicit nulls fall back to defaults like missing keys
    if payload[FIELD_SCALE] is None:
        payload[FIELD_SCALE] = DEFAULT_PREVIEW_SCALE
    if payload[FIELD_BACKEND] is None:
        payload[FIELD_BACKEND] = DEFAULT_BACKEND
    if payload[FIELD_USE_THREADING] is None:
        payload[FIELD_USE_THREADING] = True
    payload[FIELD_TEMPLATE] = template

    return payload


def save_session(session_path: Path, session: CompositeSession, name: Optional[str] = None) -> None:
    """Write a session to disk, keeping the existing name and creation time."""
    payload = load_session_data(session_path) if session_path.exists() else {}
    payload.update(session.to_dict())
    payload[FIELD_SCHEMA_VERSION] = SCHEMA_VERSION
    payload[FIELD_SESSION_NAME] = name or payload.get(FIELD_SESSION_NAME) or session_path.stem
    payload.setdefault(FIELD_CREATED_AT, datetime.now().isoformat(timespec="seconds"))
    session_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def _open_background(session_path: Path, background_path: Optional[str]) -> Optional[Any]:
    if not background_path:
        return None

    path = Path(background_path)
    if not path.is_absolute():
        path = session_path.parent / path

    try:
        with Image.open(path) as img:
            return img.convert("RGBA")
    except (FileNotFoundError, OSError) as e:
        logger.warning(f"Could not open template background {path}: {e}")
        return None


def load_session(session_path: Path) -> CompositeSession:
    """
    Load a CompositeSession from a session file.

    The template background is opened with Pillow; a relative
    background_path is resolved against the session file's directory.

    Raises:
        ValueError: If the stored options are invalid (e.g. scale <= 0)
    """
    payload = load_session_data(session_path)
    template_data = payload[FIELD_TEMPLATE]
    background = _open_background(session_path, template_data.get(FIELD_BACKGROUND_PATH))
    return CompositeSession.from_dict(payload, background_image=background)

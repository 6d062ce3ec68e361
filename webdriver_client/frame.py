"""Scoped frame switching."""

import logging
from typing import Any, TYPE_CHECKING

from .exceptions import WebDriverClientError

if TYPE_CHECKING:
    from .session import DriverSession

logger = logging.getLogger(__name__)

RESTORE_PARENT = "parent"
RESTORE_TOP = "top"


class FrameContext:
    """Switch the session into a frame and switch back on exit.

    The switch happens in the constructor, so no context exists if it fails.
    On exit the session returns to the parent frame (``restore="parent"``) or
    to the top-level document (``restore="top"``). Errors while switching back
    are logged and dropped.

    Usage:
        iframe = sess.find_element("iframe")
        with FrameContext(sess, iframe):
            sess.find_element("#inside-frame").click()
    """

    def __init__(self, session: "DriverSession", frame_ref: Any, restore: str = RESTORE_PARENT):
        if restore not in (RESTORE_PARENT, RESTORE_TOP):
            raise ValueError(f"restore must be 'parent' or 'top', got {restore!r}")
        self.session = session
        self.restore = restore
        self._released = False
        session.switch_to_frame(frame_ref)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Switch back. Only the first call has an effect."""
        if self._released:
            return
        self._released = True
        try:
            if self.restore == RESTORE_TOP:
                self.session.switch_to_frame(None)
            else:
                self.session.switch_to_parent_frame()
        except WebDriverClientError as e:
            logger.warning(f"Failed to leave frame ({self.restore}): {e}")

    def __enter__(self) -> "FrameContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

"""Cross-platform system notifications for notesync.

This module provides:
- Native OS notifications (Windows toast, macOS notification center, Linux notify-send)
- attach_notifications: Subscribe notification helpers to an EventBus
"""

from __future__ import annotations

import logging
import platform
import subprocess
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from notesync.client.events import NoteReceived, SyncFailed

if TYPE_CHECKING:
    from notesync.client.events import EventBus

logger = logging.getLogger(__name__)

APP_NAME = "NoteSync"


class NotificationType(Enum):
    """Type of notification."""

    INFO = auto()
    WARNING = auto()
    ERROR = auto()


@dataclass
class Notification:
    """Represents a notification to display."""

    title: str
    message: str
    type: NotificationType = NotificationType.INFO


def _notify_windows(notification: Notification) -> bool:
    """Send notification on Windows using PowerShell toast.

    Args:
        notification: The notification to send.

    Returns:
        True if notification was sent successfully.
    """
    try:
        ps_script = f'''
        [Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null
        [Windows.Data.Xml.Dom.XmlDocument, Windows.Data.Xml.Dom.XmlDocument, ContentType = WindowsRuntime] | Out-Null

        $template = @"
        <toast>
            <visual>
                <binding template="ToastText02">
                    <text id="1">{notification.title}</text>
                    <text id="2">{notification.message}</text>
                </binding>
            </visual>
        </toast>
"@

        $xml = New-Object Windows.Data.Xml.Dom.XmlDocument
        $xml.LoadXml($template)
        $toast = New-Object Windows.UI.Notifications.ToastNotification $xml
        [Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("{APP_NAME}").Show($toast)
        '''

        subprocess.run(
            ["powershell", "-ExecutionPolicy", "Bypass", "-Command", ps_script],
            capture_output=True,
            check=False,
            creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
        )
        return True
    except Exception as e:
        logger.debug(f"Windows notification failed: {e}")
        return False


def _notify_macos(notification: Notification) -> bool:
    """Send notification on macOS using osascript."""
    try:
        title = notification.title.replace('"', '\\"')
        message = notification.message.replace('"', '\\"')

        script = f'display notification "{message}" with title "{title}"'
        subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            check=True,
        )
        return True
    except Exception as e:
        logger.debug(f"macOS notification failed: {e}")
        return False


def _notify_linux(notification: Notification) -> bool:
    """Send notification on Linux using notify-send."""
    urgency = "critical" if notification.type == NotificationType.ERROR else "normal"
    try:
        subprocess.run(
            [
                "notify-send",
                "--urgency", urgency,
                "--app-name", APP_NAME,
                notification.title,
                notification.message,
            ],
            capture_output=True,
            check=True,
        )
        return True
    except FileNotFoundError:
        logger.debug("notify-send not found")
        return False
    except Exception as e:
        logger.debug(f"Linux notification failed: {e}")
        return False


def send_notification(notification: Notification) -> bool:
    """Send a system notification.

    Returns:
        True if notification was sent, False if failed or unavailable.
    """
    system = platform.system()

    if system == "Windows":
        return _notify_windows(notification)
    elif system == "Darwin":
        return _notify_macos(notification)
    elif system == "Linux":
        return _notify_linux(notification)
    else:
        logger.warning(f"Notifications not supported on {system}")
        return False


def notify_sync_failed(error: str) -> bool:
    """Send a sync failure notification."""
    return send_notification(Notification(
        title=f"{APP_NAME} - Sync Failed",
        message=error,
        type=NotificationType.ERROR,
    ))


def notify_note_received(title: str) -> bool:
    """Send a notification for a note received from the companion device."""
    return send_notification(Notification(
        title=f"{APP_NAME} - Note Received",
        message=f"'{title or 'Untitled Note'}' arrived from your watch.",
        type=NotificationType.INFO,
    ))


def notify_sync_complete(pushed: int, pulled: int) -> bool:
    """Send a sync complete notification.

    Args:
        pushed: Number of notes pushed.
        pulled: Number of notes added or updated by a pull.

    Returns:
        True if notification was sent.
    """
    if pushed == 0 and pulled == 0:
        return False  # Nothing happened

    parts = []
    if pushed > 0:
        parts.append(f"{pushed} pushed")
    if pulled > 0:
        parts.append(f"{pulled} pulled")

    return send_notification(Notification(
        title=f"{APP_NAME} - Sync Complete",
        message=", ".join(parts),
        type=NotificationType.INFO,
    ))


def attach_notifications(bus: EventBus) -> None:
    """Show desktop notifications for sync failures and received notes."""
    bus.on(SyncFailed, lambda event: notify_sync_failed(event.error))
    bus.on(NoteReceived, lambda event: notify_note_received(event.title))

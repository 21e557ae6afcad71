"""Tests for notification system."""

from unittest.mock import MagicMock, patch

from notesync.client.events import EventBus, NoteReceived, SyncFailed
from notesync.client.notifications import (
    Notification,
    NotificationType,
    attach_notifications,
    notify_note_received,
    notify_sync_complete,
    notify_sync_failed,
    send_notification,
)


class TestNotification:
    """Tests for Notification dataclass."""

    def test_notification_creation(self) -> None:
        """Should create notification with all fields."""
        notif = Notification(
            title="Test Title",
            message="Test message",
            type=NotificationType.WARNING,
        )
        assert notif.title == "Test Title"
        assert notif.message == "Test message"
        assert notif.type == NotificationType.WARNING

    def test_notification_default_type(self) -> None:
        """Should default to INFO type."""
        notif = Notification(title="Title", message="Message")
        assert notif.type == NotificationType.INFO


class TestNotificationHelpers:
    """Tests for notification helper functions."""

    @patch("notesync.client.notifications.send_notification")
    def test_notify_sync_failed(self, mock_send: MagicMock) -> None:
        """Should send an error notification with the failure text."""
        mock_send.return_value = True

        result = notify_sync_failed("remote store unavailable")

        assert result is True
        call_args = mock_send.call_args[0][0]
        assert "Sync Failed" in call_args.title
        assert call_args.message == "remote store unavailable"
        assert call_args.type == NotificationType.ERROR

    @patch("notesync.client.notifications.send_notification")
    def test_notify_note_received(self, mock_send: MagicMock) -> None:
        """Should name the received note."""
        mock_send.return_value = True

        notify_note_received("Groceries")

        call_args = mock_send.call_args[0][0]
        assert "Note Received" in call_args.title
        assert "Groceries" in call_args.message

    @patch("notesync.client.notifications.send_notification")
    def test_notify_note_received_untitled(self, mock_send: MagicMock) -> None:
        """An empty title should show the placeholder."""
        notify_note_received("")

        assert "Untitled Note" in mock_send.call_args[0][0].message

    @patch("notesync.client.notifications.send_notification")
    def test_notify_sync_complete_with_changes(self, mock_send: MagicMock) -> None:
        """Should send sync complete notification when changes occurred."""
        mock_send.return_value = True

        result = notify_sync_complete(pushed=3, pulled=2)

        assert result is True
        call_args = mock_send.call_args[0][0]
        assert "Sync Complete" in call_args.title
        assert "3 pushed" in call_args.message
        assert "2 pulled" in call_args.message

    @patch("notesync.client.notifications.send_notification")
    def test_notify_sync_complete_no_changes(self, mock_send: MagicMock) -> None:
        """Should not send notification when no changes."""
        result = notify_sync_complete(pushed=0, pulled=0)

        assert result is False
        mock_send.assert_not_called()


class TestSendNotification:
    """Tests for platform dispatch."""

    @patch("notesync.client.notifications.platform.system", return_value="Linux")
    @patch("notesync.client.notifications.subprocess.run")
    def test_linux_uses_notify_send(self, mock_run: MagicMock, _system: MagicMock) -> None:
        """Linux should call notify-send with critical urgency for errors."""
        result = send_notification(Notification("T", "M", NotificationType.ERROR))

        assert result is True
        args = mock_run.call_args[0][0]
        assert args[0] == "notify-send"
        assert "critical" in args

    @patch("notesync.client.notifications.platform.system", return_value="Linux")
    @patch("notesync.client.notifications.subprocess.run", side_effect=FileNotFoundError)
    def test_linux_without_notify_send(self, _run: MagicMock, _system: MagicMock) -> None:
        """A missing notify-send should return False."""
        assert send_notification(Notification("T", "M")) is False

    @patch("notesync.client.notifications.platform.system", return_value="Darwin")
    @patch("notesync.client.notifications.subprocess.run")
    def test_macos_uses_osascript(self, mock_run: MagicMock, _system: MagicMock) -> None:
        """macOS should call osascript."""
        assert send_notification(Notification('Say "hi"', "M")) is True
        args = mock_run.call_args[0][0]
        assert args[0] == "osascript"
        assert '\\"hi\\"' in args[2]

    @patch("notesync.client.notifications.platform.system", return_value="Plan9")
    def test_unsupported_platform(self, _system: MagicMock) -> None:
        """Unknown platforms should return False."""
        assert send_notification(Notification("T", "M")) is False


class TestAttachNotifications:
    """Tests for wiring notifications to the event bus."""

    @patch("notesync.client.notifications.notify_sync_failed")
    def test_sync_failed(self, mock_notify: MagicMock) -> None:
        """SyncFailed should raise a desktop notification."""
        bus = EventBus()
        attach_notifications(bus)

        bus.emit(SyncFailed(error="offline"))

        mock_notify.assert_called_once_with("offline")

    @patch("notesync.client.notifications.notify_note_received")
    def test_note_received(self, mock_notify: MagicMock) -> None:
        """NoteReceived should raise a desktop notification."""
        bus = EventBus()
        attach_notifications(bus)

        bus.emit(NoteReceived(title="Groceries", content="milk", timestamp=1.0))

        mock_notify.assert_called_once_with("Groceries")

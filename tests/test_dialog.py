"""Tests for the assistant dialog and mode arbitration."""

import pytest

from ecoagent.dialog import AgentDialog, DialogMode


class FakeVoice:
    def __init__(self, connect_result=True):
        self.connect_result = connect_result
        self.connected = False
        self.connects = 0
        self.disconnects = 0

    async def connect(self):
        self.connects += 1
        self.connected = self.connect_result
        return self.connect_result

    async def disconnect(self):
        self.disconnects += 1
        self.connected = False


class FakeText:
    def __init__(self):
        self.sent = []
        self.resets = 0

    async def send_message(self, text):
        self.sent.append(text)
        return True

    def reset(self):
        self.resets += 1


@pytest.fixture
def voice():
    return FakeVoice()


@pytest.fixture
def text():
    return FakeText()


@pytest.fixture
def dialog(voice, text, booking):
    return AgentDialog(voice, text, booking)


class TestAgentDialog:
    """Test the open/close lifecycle and mode switching."""

    async def test_open_starts_fresh_conversation(self, dialog, text, booking):
        booking.merge({"customer_name": "Sarah Jones"})
        booking.booking_id = "previous"

        await dialog.open()

        assert dialog.is_open
        assert dialog.mode == DialogMode.VOICE
        assert booking.draft.is_empty()
        assert booking.booking_id is None
        assert text.resets == 1

    async def test_open_twice_keeps_conversation(self, dialog, text, booking):
        await dialog.open()
        booking.merge({"email": "sarah@example.com"})

        await dialog.open()

        assert booking.draft.email == "sarah@example.com"
        assert text.resets == 1

    async def test_close_disconnects_voice(self, dialog, voice):
        await dialog.open()
        await dialog.toggle_call()

        await dialog.close()

        assert not dialog.is_open
        assert not voice.connected
        assert voice.disconnects == 1

    async def test_leaving_voice_mode_disconnects(self, dialog, voice):
        await dialog.open()
        await dialog.toggle_call()

        await dialog.set_mode(DialogMode.TEXT)

        assert dialog.mode == DialogMode.TEXT
        assert not voice.connected
        assert dialog.status == "Offline"

    async def test_same_mode_is_noop(self, dialog, voice):
        await dialog.open()
        await dialog.toggle_call()

        await dialog.set_mode(DialogMode.VOICE)

        assert voice.connected
        assert voice.disconnects == 0

    async def test_toggle_call(self, dialog, voice):
        await dialog.open()

        assert await dialog.toggle_call()
        assert dialog.status == "Live"
        assert not await dialog.toggle_call()
        assert dialog.status == "Offline"
        assert (voice.connects, voice.disconnects) == (1, 1)

    async def test_toggle_call_from_text_mode(self, dialog):
        await dialog.open()
        await dialog.set_mode(DialogMode.TEXT)

        assert await dialog.toggle_call()

        assert dialog.mode == DialogMode.VOICE

    async def test_failed_call(self, booking, text):
        dialog = AgentDialog(FakeVoice(connect_result=False), text, booking)
        await dialog.open()

        assert not await dialog.toggle_call()
        assert dialog.status == "Offline"

    async def test_messages_only_in_text_mode(self, dialog, text):
        await dialog.open()

        assert not await dialog.send_message("hello")
        await dialog.set_mode(DialogMode.TEXT)
        assert await dialog.send_message("hello")

        assert text.sent == ["hello"]

    def test_booking_details_in_display_order(self, dialog, booking):
        booking.merge({"bedrooms": 3, "customerName": "Sarah Jones", "email": "", "phoneNumber": "204-555-1234"})

        assert dialog.booking_details == [
            ("Name", "Sarah Jones"),
            ("Phone", "204-555-1234"),
            ("Bedrooms", "3"),
        ]

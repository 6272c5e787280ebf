"""Command-line interface for the Ecocleans booking assistant."""

import asyncio
import logging
import sys

from ecoagent.config import get_config, setup_logging
from ecoagent.dialog import AgentDialog, DialogMode, build_dialog
from ecoagent.models import BookingDraft, Speaker

logger = logging.getLogger(__name__)

COMMANDS = {
    "/voice": "switch to voice mode",
    "/text": "switch to text mode",
    "/call": "start or end the live voice call",
    "/details": "show the collected booking details",
    "/quit": "close the assistant",
}


class AssistantCLI:
    """Terminal host for the assistant dialog."""

    def __init__(self, dialog: AgentDialog | None = None) -> None:
        """Initialize the CLI."""
        self.config = get_config()
        setup_logging(self.config)
        self.dialog = dialog or build_dialog(self.config)
        self.dialog.booking.add_listener(self._on_booking_update)
        self._shown_transcript = 0

        logger.info("Booking assistant CLI initialized")
        self._display_config_status()

    def _display_config_status(self) -> None:
        """Display configuration status to the user."""
        print("\n" + "=" * 60)
        print("ECOCLEANS - Booking Assistant")
        print("Powered by OpenAI Agents SDK + Realtime API")
        print("\n" + "=" * 60)
        print(f"assistant API: {self.config.api_base_url}")
        print(f"chat model: {self.config.chat_model}")
        print(f"realtime model: {self.config.realtime_model}")
        print(f"realtime voice: {self.config.realtime_voice}")
        print(f"API token: {'configured' if self.config.api_token else 'NOT CONFIGURED'}")
        print("\n" + "=" * 60 + "\n")

    def _on_booking_update(self, draft: BookingDraft) -> None:
        fields = ", ".join(sorted(draft.provided_fields()))
        print(f"\n[booking details updated: {fields}]")

    def _print_help(self) -> None:
        for command, description in COMMANDS.items():
            print(f"  {command:<10} {description}")

    def _print_details(self) -> None:
        rows = self.dialog.booking_details
        if not rows:
            print("\nNo booking details collected yet.")
            return
        print("\nBooking details:")
        for label, value in rows:
            print(f"  {label}: {value}")

    def _print_voice_transcript(self) -> None:
        entries = self.dialog.voice.transcript[self._shown_transcript :]
        for entry in entries:
            print(f"  {entry.role.value}: {entry.text}")
        self._shown_transcript += len(entries)

    async def run(self) -> None:
        """Run the CLI application."""
        await self.dialog.open()
        print("Welcome! I can help you book a cleaning with Ecocleans.\n")
        print("Commands:")
        self._print_help()
        print("\nYou are in voice mode. Type /call to start talking or /text to chat.")

        try:
            while True:
                prompt = "\nYou: " if self.dialog.mode == DialogMode.TEXT else f"\n[{self.dialog.status}] > "
                user_input = (await asyncio.to_thread(input, prompt)).strip()
                if self.dialog.mode == DialogMode.VOICE:
                    self._print_voice_transcript()

                if not user_input:
                    continue
                if user_input.lower() in ("/quit", "quit", "exit"):
                    print("\nThank you for contacting Ecocleans. Goodbye!")
                    break

                await self._handle(user_input)
        except (KeyboardInterrupt, EOFError):
            print("\n\nExiting. Goodbye!")
        finally:
            await self.dialog.close()

    async def _handle(self, user_input: str) -> None:
        command = user_input.lower()
        if command == "/voice":
            await self.dialog.set_mode(DialogMode.VOICE)
            print("Voice mode. Type /call to start talking.")
        elif command == "/text":
            await self.dialog.set_mode(DialogMode.TEXT)
            print("Text mode. Type your message.")
        elif command == "/call":
            live = await self.dialog.toggle_call()
            if live:
                print("Call started. Speak into your microphone; type /call to hang up.")
            elif self.dialog.voice.error:
                print(f"\n⚠ {self.dialog.voice.error}")
            else:
                print("Call ended.")
        elif command == "/details":
            self._print_details()
        elif command.startswith("/"):
            print(f"Unknown command {user_input}")
            self._print_help()
        elif self.dialog.mode == DialogMode.TEXT:
            await self._send(user_input)
        else:
            print("Type /text to chat, or /call to talk.")

    async def _send(self, user_input: str) -> None:
        before = len(self.dialog.text.messages)
        await self.dialog.send_message(user_input)
        # The user's own entry is skipped
        for message in self.dialog.text.messages[before + 1 :]:
            print(f"\nAssistant: {message.text}" if message.role == Speaker.MODEL else f"\n⚠ {message.text}")


def main() -> None:
    """Main entry point for the CLI."""
    try:
        get_config()
    except Exception as e:
        print(f"Configuration error: {e}")
        print("\nPlease set the required environment variables.")
        print("Create a .env file with at minimum:")
        print("  API_BASE_URL=http://localhost:8080")
        print("  API_TOKEN=your_token_here")
        sys.exit(1)

    cli = AssistantCLI()
    asyncio.run(cli.run())


if __name__ == "__main__":
    main()

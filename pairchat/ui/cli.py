import asyncio
from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from pairchat.config import Settings
from pairchat.core.session_manager import SessionManager
from pairchat.core.state_machine import SessionStatus
from pairchat.network.transport import TransportLayer
from pairchat.utils.error_codes import PairChatError
from pairchat.utils.validators import validate_nickname

custom_theme = Theme({
    "info": "dim cyan",
    "warning": "magenta",
    "danger": "bold red",
    "success": "bold green",
    "chat_peer": "green",
    "chat_self": "cyan",
})

console = Console(theme=custom_theme)

STATUS_STYLES = {
    SessionStatus.DISCONNECTED: ("red", "Disconnected"),
    SessionStatus.CONNECTED: ("green", "Connected"),
    SessionStatus.WAITING: ("yellow", "Waiting for a partner"),
    SessionStatus.MATCHED: ("magenta", "Matched"),
    SessionStatus.IN_ROOM: ("blue", "In chat room"),
}

HELP_TEXT = "[dim]/join  enter the waiting pool   /status  show session   /quit  leave[/dim]"


def format_status(status: SessionStatus) -> str:
    color, label = STATUS_STYLES[status]
    return f"[bold {color}]{label}[/bold {color}]"


class PairChatCLI:
    def __init__(self, settings: Settings, transport=None):
        self.settings = settings
        if transport is None:
            transport = TransportLayer(settings.server_uri, open_timeout=settings.open_timeout)
        self.session_manager = SessionManager(
            transport, self.ui_callback, max_message_length=settings.max_message_length
        )
        self.session = None
        self.running = True

    def ui_callback(self, event_type, data=None):
        # Called from the drain task after each applied server event
        if event_type == "CONNECTED":
            console.print(f"[success]Connected to {self.settings.server_uri}[/success]")
            console.print(HELP_TEXT)
        elif event_type == "STATUS":
            console.print(f"[info]Status:[/info] {format_status(data)}")
        elif event_type == "WAITING_COUNT":
            console.print(f"[info]{data} waiting in the pool[/info]")
        elif event_type == "MATCHED":
            console.print("[success]Partner found! Waiting for the room...[/success]")
        elif event_type == "JOINED_ROOM":
            room_id, participants = data
            console.print(Panel(
                f"[bold]Room[/bold] {room_id}\n[bold]Participants[/bold] {', '.join(participants)}",
                title="Chat room", expand=False,
            ))
        elif event_type == "MESSAGE":
            if data.nickname == self.session_manager.session.nickname:
                console.print(f"[chat_self]{data.nickname}:[/chat_self] {data.message}")
            else:
                console.print(f"[chat_peer]{data.nickname}:[/chat_peer] {data.message}")
        elif event_type == "DISCONNECTED":
            console.print("[danger]Disconnected.[/danger]")
            self.running = False
        elif event_type == "ERROR":
            console.print(f"[danger]Error: {data}[/danger]")

    def print_status(self):
        snapshot = self.session_manager.session.snapshot()
        table = Table(show_header=False, box=None)
        table.add_row("Nickname", snapshot["nickname"])
        table.add_row("Status", format_status(self.session_manager.status))
        table.add_row("Waiting", str(snapshot["waitingCount"]))
        if snapshot["roomId"] is not None:
            table.add_row("Room", snapshot["roomId"])
            table.add_row("Participants", ", ".join(snapshot["participants"]))
        console.print(table)

    async def handle_input(self, text: str) -> bool:
        """Returns False once the user asked to leave."""
        command = text.strip().lower()
        if command == "/quit":
            await self.session_manager.disconnect()
            return False
        if command == "/join":
            await self.session_manager.join_queue()
        elif command == "/status":
            self.print_status()
        elif command.startswith("/"):
            console.print(HELP_TEXT)
        else:
            await self.session_manager.send_message(text)
        return True

    async def run(self):
        self.session = PromptSession()
        console.clear()
        console.print(Panel.fit("[bold white]PAIRCHAT[/bold white]\n[dim]Get matched. Say hi.[/dim]", style="blue"))

        # 1. Get nickname
        while True:
            nickname = await self.session.prompt_async("Nickname: ", default=self.settings.nickname)
            if validate_nickname(nickname):
                break
            console.print("[warning]Nickname cannot be empty.[/warning]")

        # 2. Connect
        try:
            await self.session_manager.connect(nickname.strip())
        except PairChatError as e:
            console.print(f"[danger]Failed to connect: {e.message}[/danger]")
            return

        # 3. Chat loop
        async with self.session_manager:
            with patch_stdout():
                while self.running:
                    try:
                        input_task = asyncio.create_task(self.session.prompt_async("> "))
                        done, _ = await asyncio.wait([input_task], timeout=0.5)
                        while input_task not in done and self.running:
                            done, _ = await asyncio.wait([input_task], timeout=0.5)

                        if input_task not in done:
                            # The server hung up while the user was typing
                            input_task.cancel()
                            break

                        if not await self.handle_input(input_task.result()):
                            break

                    except (EOFError, KeyboardInterrupt):
                        break

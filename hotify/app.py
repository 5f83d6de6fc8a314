"""Command coordinator for the hotify CLI."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .core.client import SignedApiClient
from .core.config_manager import ConfigManager
from .core.exceptions import HotifyError
from .core.store import SyncedStore
from .ui.prompts import prompt, prompt_service_config
from .ui.table import bold, services_table

logger = logging.getLogger(__name__)

# Mutating commands and the message printed once they succeed
ACTIONS = {
    "start": ("start_service", "Service started"),
    "stop": ("stop_service", "Service stopped"),
    "restart": ("restart_service", "Service restarted"),
    "update": ("update_service", "Service updated"),
    "delete": ("delete_service", "Service deleted"),
}


class HotifyApp:
    """Runs CLI commands against the configured hotify server.

    Each command opens one client, runs, and closes it again. Failures of
    the API are printed as ``Error: <message>`` and turned into exit code 1.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        input_func: Callable[[str], str] = input,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the application.

        Args:
            config_manager: Loaded settings
            input_func: Function reading one line of user input
            sleep: Coroutine function used to wait between log polls
        """
        self.config_manager = config_manager
        self.input_func = input_func
        self.sleep = sleep

    def create_client(self) -> SignedApiClient:
        """Create a client for the configured address and secret."""
        return SignedApiClient(
            self.config_manager.address,
            self.config_manager.secret,
            timeout=self.config_manager.get_setting("timeout"),
        )

    def configure(self) -> int:
        """Ask for the server address and API secret and save them."""
        address = prompt("Server address", self.input_func, allow_empty=False)
        secret = prompt("API secret", self.input_func, allow_empty=False)
        if not self.config_manager.set_server(address, secret):
            logger.error(f"Could not save settings to {self.config_manager.config_file}")
            print(f"\nError: Could not save settings to {self.config_manager.config_file}")
            return 1

        print("\nConfiguration saved")
        return 0

    async def run(self, command: str, name: Optional[str] = None, live: bool = False) -> int:
        """Run one command.

        Args:
            command: CLI command name
            name: Service name for commands acting on one service
            live: Keep following new log lines (logs command)

        Returns:
            Process exit code
        """
        if command == "configure":
            return self.configure()

        if not self.config_manager.is_configured():
            print(bold("You must configure the CLI before using it.\n"))
            if self.configure() != 0:
                return 1

        async with self.create_client() as client:
            try:
                return await self._dispatch(client, command, name, live)
            except HotifyError as e:
                logger.error(f"{command} failed: {e}")
                print(f"Error: {e}")
                return 1

    async def _dispatch(self, client: SignedApiClient, command: str, name: Optional[str], live: bool) -> int:
        if command == "list":
            store = SyncedStore(client)
            await store.refresh()
            print(services_table(store.current_snapshot()))
        elif command == "logs":
            await self.show_logs(client, name, live)
        elif command == "create":
            config = prompt_service_config(self.input_func)
            await client.create_service(config)
            print("Service created")
        elif command == "config":
            await self.show_config(client)
        elif command in ACTIONS:
            method, message = ACTIONS[command]
            await getattr(client, method)(name)
            print(message)
        else:
            raise ValueError(f"Unknown command: {command}")
        return 0

    async def show_config(self, client: SignedApiClient):
        config = await client.get_config()
        print(f"{bold('Address:')} {config.address}")
        print(f"{bold('Services path:')} {config.services_path}")
        print(bold("Services:"))
        for key in sorted(config.services):
            service = config.services[key]
            print(f"  {service.name}: {service.repo}")

    async def show_logs(self, client: SignedApiClient, name: str, live: bool = False):
        """Print the logs of a service.

        With ``live`` the service is polled until interrupted and only lines
        that were not printed yet are written.
        """
        service = await client.service(name)
        for line in service.logs:
            print(line, end="")

        if not live:
            return

        interval = self.config_manager.get_setting("log_poll_interval")
        printed = len(service.logs)
        while True:
            await self.sleep(interval)
            service = await client.service(name)
            # The server trims old lines, start over when the list shrank
            if len(service.logs) < printed:
                printed = 0
            for line in service.logs[printed:]:
                print(line, end="", flush=True)
            printed = len(service.logs)

"""Interactive prompts used by the configure and create commands."""

import logging
from typing import Callable, Optional

from ..models.service import ProxyConfig, ServiceConfig
from .table import bold

logger = logging.getLogger(__name__)

InputFunc = Callable[[str], str]


def prompt(question: str, input_func: InputFunc = input, allow_empty: bool = True) -> str:
    """Ask for a line of text.

    Args:
        question: Question printed in bold above the answer
        input_func: Function reading one line, defaults to input()
        allow_empty: Keep asking until the answer is non-empty when False

    Returns:
        The stripped answer
    """
    while True:
        print(bold(question))
        answer = input_func("").strip()
        if answer or allow_empty:
            return answer
        print("A value is required")


def prompt_bool(question: str, input_func: InputFunc = input) -> bool:
    """Ask a yes/no question, anything but 'y' or 'yes' counts as no."""
    print(bold(f"{question} (y/n)"))
    return input_func("").strip().lower() in ("y", "yes")


def prompt_int(question: str, input_func: InputFunc = input, minimum: Optional[int] = None) -> int:
    """Ask for an integer until a valid one is entered."""
    while True:
        print(bold(question))
        answer = input_func("").strip()
        try:
            value = int(answer)
        except ValueError:
            print("Invalid input")
            continue

        if minimum is not None and value < minimum:
            print(f"Must be at least {minimum}")
            continue
        return value


def prompt_service_config(input_func: InputFunc = input) -> ServiceConfig:
    """Ask for everything needed to create a service.

    Args:
        input_func: Function reading one line, defaults to input()

    Returns:
        ServiceConfig built from the answers
    """
    name = prompt("Service name", input_func, allow_empty=False)
    repo = prompt("Repository", input_func)
    exec_command = prompt("Exec command", input_func)
    build = prompt("Build command", input_func)
    secret = prompt("Webhook secret", input_func)

    restart = prompt_bool("Restart on failure", input_func)
    max_restarts = prompt_int("Max restarts", input_func, minimum=0) if restart else 0

    proxy = ProxyConfig()
    if prompt_bool("Use proxy", input_func):
        proxy = ProxyConfig(
            match=prompt("Match", input_func),
            upstream=prompt("Upstream", input_func),
        )

    config = ServiceConfig(
        name=name,
        repo=repo,
        exec=exec_command,
        build=build,
        restart=restart,
        max_restarts=max_restarts,
        secret=secret,
        proxy=proxy,
    )
    logger.info(f"Created service config for {name}")
    return config

"""Questions put to the operator during a run."""

import asyncio
import threading
from abc import ABC, abstractmethod

import click

from book_spreads.utils.logger import Logger


class Prompter(ABC):
    """Operator interaction, awaited by the pipeline.

    Waits have no timeout: the login step takes as long as the person at
    the browser needs. Wrap calls in ``asyncio.wait_for`` to bound them.
    """

    @abstractmethod
    async def wait_for_login(self, book_id: str) -> None:
        """Return once the operator has logged in."""

    @abstractmethod
    async def ask_page_count(self, book_id: str) -> str:
        """Return the operator's answer, unvalidated."""


def _settle(future: asyncio.Future, answer, error) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(answer)


async def prompt_in_background(text: str) -> str:
    """Await ``click.prompt`` without blocking the event loop.

    The prompt runs on a daemon thread rather than the default executor:
    ``asyncio.run`` joins executor threads on shutdown, so Ctrl-C during a
    prompt would otherwise hang until Enter is pressed.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def read():
        try:
            answer = click.prompt(text, default='', show_default=False)
        except Exception as e:
            loop.call_soon_threadsafe(_settle, future, None, e)
        else:
            loop.call_soon_threadsafe(_settle, future, answer, None)

    threading.Thread(target=read, name='prompt', daemon=True).start()
    return await future


class ConsolePrompter(Prompter):
    """Prompts on the terminal.

    Other books keep downloading while one waits for input.
    """

    def __init__(self, logger: Logger):
        self.logger = logger

    async def wait_for_login(self, book_id: str) -> None:
        self.logger.info("")
        self.logger.info("=" * 58)
        self.logger.info(f"Please log in to the website in the browser window for book {book_id}.")
        self.logger.info("Once logged in and you can see the book, press ENTER here...")
        self.logger.info("=" * 58)
        await prompt_in_background("Press ENTER when ready")
        self.logger.info("Continuing with download...")

    async def ask_page_count(self, book_id: str) -> str:
        return await prompt_in_background(
            f"Please enter the total number of pages for {book_id} manually")

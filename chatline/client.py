"""Interactive chat client."""

from __future__ import annotations

import argparse
import socket
import sys
import threading
from contextlib import suppress
from typing import TextIO

from chatline.protocol import PORT, ConnectionClosed, recv_str, send_str


class ChatClient:
    """Logs in over ``sock`` and then chats using the given text streams."""

    def __init__(
        self,
        sock: socket.socket,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.sock = sock
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self._stopping = threading.Event()

    def _write(self, text: str) -> None:
        self.stdout.write(text)
        self.stdout.flush()

    def _read_line(self, what: str) -> str:
        line = self.stdin.readline()
        if not line:
            raise EOFError(f"Can't read {what}")
        return line[:-1] if line.endswith("\n") else line

    def _exchange(self, what: str) -> bool:
        """Prompt for ``what``, send it and report whether the server accepted it."""
        self._write(f"{what.capitalize()}: ")
        text = self._read_line(what)
        try:
            send_str(self.sock, text)
        except OSError as exc:
            raise OSError(f"Can't send {what} info to server") from exc
        self._write("Waiting for response...\n")
        code = recv_str(self.sock)
        response = recv_str(self.sock)
        self._write(f"{code}\n")
        if code == "BAD":
            self.stderr.write(response)
            self.stderr.flush()
            return False
        return True

    def login(self) -> None:
        """Repeat the username/password exchange until the server accepts.

        Raises EOFError when input ends, ConnectionClosed when the server
        goes away and OSError when sending fails.
        """
        while True:
            if not self._exchange("username"):
                continue
            if not self._exchange("password"):
                continue
            return

    def receive_messages(self) -> None:
        """Print incoming messages until the connection ends."""
        while True:
            try:
                username = recv_str(self.sock)
                message = recv_str(self.sock)
            except OSError:
                if not self._stopping.is_set():
                    self._write("Disconnected from server\n")
                return
            self._write(f"[{username}]: {message}")

    def send_loop(self) -> None:
        """Send every input line until input ends, then shut the socket down."""
        try:
            for line in iter(self.stdin.readline, ""):
                self._write(f"You: {line}")
                try:
                    send_str(self.sock, line)
                except OSError:
                    self.stderr.write("ERROR: Can't send to server\n")
                    self.stderr.flush()
        finally:
            self._stopping.set()
            with suppress(OSError):
                self.sock.shutdown(socket.SHUT_RDWR)

    def run(self) -> int:
        """Log in, then chat until either side stops; return an exit status."""
        try:
            self.login()
        except ConnectionClosed:
            self._write("Disconnected from server\n")
            return 1
        except (EOFError, OSError) as exc:
            self.stderr.write(f"ERROR: {exc}\n")
            self.stderr.flush()
            return 1
        sender = threading.Thread(target=self.send_loop, daemon=True)
        sender.start()
        self.receive_messages()
        return 0


def main(argv: list[str] | None = None) -> int:
    """Connect to a chat server and start chatting."""
    parser = argparse.ArgumentParser(prog="chatline")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)
    try:
        sock = socket.create_connection((args.host, args.port))
    except OSError:
        print("ERROR: Can't connect to server", file=sys.stderr)
        return 1
    with sock:
        print("Connected to server")
        return ChatClient(sock).run()


if __name__ == "__main__":
    sys.exit(main())
"""Multi-client chat server: logs users in and relays their messages."""

from __future__ import annotations

import argparse
import socket
import sys
import threading

from chatline.db import ChatDatabase, DatabaseError, InvalidPassword, UsernameTaken
from chatline.protocol import PORT, ConnectionClosed, recv_str, send_str

MAX_CLIENTS = 2
SYSTEM_NAMES = ("GOOD", "BAD")
_ACCEPT_POLL = 0.2


class ChatServer:
    """Accepts up to ``max_clients`` connections, each served by its own thread."""

    def __init__(
        self,
        database: ChatDatabase,
        host: str = "0.0.0.0",
        port: int = PORT,
        max_clients: int = MAX_CLIENTS,
    ) -> None:
        self.database = database
        self.host = host
        self.port = port
        self.max_clients = max_clients
        self._clients: list[socket.socket | None] = [None] * max_clients
        self._lock = threading.Lock()
        self._closed = threading.Event()
        self._listener: socket.socket | None = None
        self._fatal: BaseException | None = None

    def bind(self) -> tuple[str, int]:
        """Bind and listen; return the address actually bound."""
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind((self.host, self.port))
            listener.listen(5)
        except OSError:
            listener.close()
            raise
        listener.settimeout(_ACCEPT_POLL)
        self._listener = listener
        host, port = listener.getsockname()[:2]
        return host, port

    def _claim_slot(self, sock: socket.socket) -> int | None:
        with self._lock:
            for slot, current in enumerate(self._clients):
                if current is None:
                    self._clients[slot] = sock
                    return slot
        return None

    def _release_slot(self, slot: int, sock: socket.socket) -> None:
        with self._lock:
            if self._clients[slot] is sock:
                self._clients[slot] = None
        sock.close()

    def serve_forever(self) -> None:
        """Accept clients until closed; re-raise a fatal database error."""
        if self._listener is None:
            self.bind()
        listener = self._listener
        while not self._closed.is_set():
            try:
                sock, _ = listener.accept()
            except socket.timeout:
                continue
            except OSError:
                if self._closed.is_set():
                    break
                print("ERROR: Can't accept client", file=sys.stderr)
                continue
            slot = self._claim_slot(sock)
            if slot is None:
                print("ERROR: Can't accept more clients", file=sys.stderr)
                sock.close()
                continue
            worker = threading.Thread(
                target=self.handle_client, args=(slot, sock), daemon=True
            )
            try:
                worker.start()
            except RuntimeError:
                print("ERROR: Can't create thread", file=sys.stderr)
                self._release_slot(slot, sock)
        if self._fatal is not None:
            raise self._fatal

    @staticmethod
    def _send_code(sock: socket.socket, code: str, message: str) -> None:
        print(f"Code: {code}")
        print(f"Message: {message}", end="")
        send_str(sock, code)
        send_str(sock, message)

    def _login(self, sock: socket.socket) -> str:
        while True:
            print("Get Username and Password")
            username = recv_str(sock)
            print(f"Username: {username}")
            if username in SYSTEM_NAMES:
                self._send_code(sock, "BAD", "Can't use system name\n")
                continue
            self._send_code(sock, "GOOD", "\n")
            password = recv_str(sock)
            self._send_code(sock, "GOOD", "\n")
            try:
                self.database.user_login(username, password)
            except InvalidPassword:
                self._send_code(sock, "BAD", "Invalid Password\n")
                continue
            return username

    def handle_client(self, slot: int, sock: socket.socket) -> None:
        """Run the login exchange and then relay the client's messages."""
        try:
            username = self._login(sock)
            while True:
                print("Handle messaging")
                try:
                    message = recv_str(sock)
                except OSError:
                    break
                print(f"[{username}]: {message}", end="")
                self.database.insert_new_message(username, message)
                self.broadcast(slot, username, message)
        except ConnectionClosed:
            print("Client disconnected")
        except OSError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
        except (DatabaseError, UsernameTaken) as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            self._fatal = exc
            self.close()
        finally:
            self._release_slot(slot, sock)

    def broadcast(self, sender_slot: int, username: str, message: str) -> None:
        """Send ``username`` and ``message`` to every client but the sender."""
        with self._lock:
            for slot, sock in enumerate(self._clients):
                if slot == sender_slot or sock is None:
                    continue
                try:
                    send_str(sock, username)
                    send_str(sock, message)
                except OSError:
                    print("ERROR: Can't send to client", file=sys.stderr)

    def close(self) -> None:
        """Stop accepting and disconnect every client."""
        self._closed.set()
        if self._listener is not None:
            self._listener.close()
        with self._lock:
            connected = [sock for sock in self._clients if sock is not None]
        for sock in connected:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass


def main(argv: list[str] | None = None) -> int:
    """Start the chat server."""
    parser = argparse.ArgumentParser(prog="chatline-server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--env", default=".env", help="environment file")
    parser.add_argument("--max-clients", type=int, default=MAX_CLIENTS)
    args = parser.parse_args(argv)

    print("Initializing Database...")
    try:
        database = ChatDatabase.from_env(args.env)
    except (DatabaseError, OSError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    with database:
        try:
            database.start_chat()
        except DatabaseError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
        server = ChatServer(database, args.host, args.port, args.max_clients)
        try:
            server.bind()
        except OSError as exc:
            print(f"ERROR: Bind failed: {exc}", file=sys.stderr)
            return 1
        try:
            server.serve_forever()
        except DatabaseError:
            return 1
        except KeyboardInterrupt:
            pass
        finally:
            server.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
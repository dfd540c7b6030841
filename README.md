# chatline

A small chat room for the terminal. One process runs the server; each user
runs the client, logs in with a username and password, and then every line
they type is relayed to the other connected users and recorded in the
server's SQLite database.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Running the server

The server reads the path of its SQLite database from the `DB_NAME` entry of
a `.env` file (one `KEY=value` pair per line; other keys are ignored):

```
DB_NAME=chat.sqlite3
```

Then start it:

```
chatline-server
```

Options:

- `--host` – address to listen on (default `0.0.0.0`)
- `--port` – TCP port (default `9001`)
- `--env` – environment file to read (default `.env`)
- `--max-clients` – number of clients served at once (default `2`)

On start the server creates the `users` and `chat` tables if they are
missing. A connection that arrives while every client slot is taken is
closed straight away. If a database operation fails while a client is being
served, the server disconnects everyone and exits with status 1.

## Running the client

```
chatline
```

Options: `--host` (default `127.0.0.1`) and `--port` (default `9001`).

The client asks for a username and then a password. The first login under a
new name registers that name with the given password; later logins must give
the same password, otherwise the server answers `Invalid Password` and the
client asks again. The names `GOOD` and `BAD` are reserved by the protocol
and refused.

Once logged in, type a line and press Enter to send it; it is echoed as
`You: ...`. Messages from other users appear as `[name]: text`. End input
(Ctrl-D) to leave.

## Wire format

Every string sent in either direction is a 4-byte big-endian length followed
by that many bytes of UTF-8 text. Login runs as:

1. client sends the username; server answers with a code (`GOOD` or `BAD`)
   and a message string;
2. after `GOOD`, client sends the password; server answers `GOOD` and then,
   if the password is wrong, a further `BAD` with `Invalid Password\n`.

A relayed chat message is two strings: the sender's name, then the text
(including its trailing newline).

## Using it as a library

```python
import socket

from chatline.protocol import ConnectionClosed, recv_str, send_str
from chatline.db import ChatDatabase, InvalidPassword, djb2_hash

password = "password"
wrong_password = "secret"

with ChatDatabase("chat.sqlite3") as db:
    db.start_chat()
    db.user_login("alice", password)        # registers alice
    try:
        db.user_login("alice", wrong_password)
    except InvalidPassword:
        print("wrong password")
    db.insert_new_message("alice", "hello\n")
    print(db.messages())                     # [('alice', 'hello\n')]

print(djb2_hash("abc"))

left, right = socket.socketpair()
send_str(left, "hi")
print(recv_str(right))                      # "hi"
left.close()
try:
    recv_str(right)
except ConnectionClosed:
    print("peer went away")
```

Other pieces:

- `chatline.envfile.dotenv_get(key, path=".env")` returns the value of the
  first `key=...` line in a file, or `None`.
- `chatline.db.ChatDatabase.from_env(env_path)` opens the database named by
  `DB_NAME`; `insert_new_user` raises `UsernameTaken` for an existing name,
  and failures surface as `DatabaseError`.
- `chatline.server.ChatServer(database, host, port, max_clients)` with
  `bind()`, `serve_forever()`, `broadcast()` and `close()`.
- `chatline.client.ChatClient(sock, stdin, stdout, stderr)` with `login()`,
  `receive_messages()`, `send_loop()` and `run()`.

## What it does not do

Storage is a local SQLite file only; there is no support for a separate
database server. Stored messages are never sent back to clients, so a user
who joins late sees only messages sent after logging in. Passwords are kept
as a plain djb2 hash, which is not a secure password hash, and traffic is not
encrypted.
import pytest

from chatline.db import (
    ChatDatabase,
    DatabaseError,
    InvalidPassword,
    UsernameTaken,
    djb2_hash,
)


@pytest.fixture
def db(tmp_path):
    database = ChatDatabase(tmp_path / "chat.db")
    yield database
    database.close()


def test_djb2_empty_is_seed():
    assert djb2_hash("") == 5381


def test_djb2_single_char():
    assert djb2_hash("a") == 177670


def test_djb2_fits_in_64_bits():
    value = djb2_hash("x" * 500)
    assert 0 <= value < 2**64


def test_djb2_deterministic_and_distinguishing():
    assert djb2_hash("password") == djb2_hash("password")
    assert djb2_hash("password") != djb2_hash("secret")


def test_djb2_non_ascii_in_range():
    value = djb2_hash("é")
    assert 0 <= value < 2**64
    assert value != djb2_hash("e")


def test_login_registers_new_user(db):
    password = "password"
    db.user_login("alice", password)
    assert db.get_password("alice") == djb2_hash(password)


def test_login_with_correct_password(db):
    password = "password"
    db.user_login("alice", password)
    db.user_login("alice", password)
    assert db.get_password("alice") == djb2_hash(password)


def test_login_with_wrong_password(db):
    db.user_login("alice", "password")
    with pytest.raises(InvalidPassword):
        db.user_login("alice", "secret")


def test_get_password_unknown_user(db):
    assert db.get_password("nobody") is None


def test_insert_new_user_taken(db):
    db.insert_new_user("bob", "password")
    with pytest.raises(UsernameTaken):
        db.insert_new_user("bob", "secret")


def test_messages_in_order(db):
    db.start_chat()
    db.insert_new_message("alice", "hi\n")
    db.insert_new_message("bob", "hello\n")
    assert db.messages() == [("alice", "hi\n"), ("bob", "hello\n")]


def test_start_chat_is_idempotent(db):
    db.start_chat()
    db.insert_new_message("alice", "one\n")
    db.start_chat()
    assert db.messages() == [("alice", "one\n")]


def test_message_without_chat_table(db):
    with pytest.raises(DatabaseError):
        db.insert_new_message("alice", "hi\n")


def test_data_persists_across_connections(tmp_path):
    path = tmp_path / "chat.db"
    with ChatDatabase(path) as first:
        first.start_chat()
        first.user_login("carol", "token")
        first.insert_new_message("carol", "saved\n")
    with ChatDatabase(path) as second:
        assert second.get_password("carol") == djb2_hash("token")
        assert second.messages() == [("carol", "saved\n")]


def test_use_after_close_raises(tmp_path):
    with ChatDatabase(tmp_path / "chat.db") as database:
        pass
    with pytest.raises(DatabaseError):
        database.get_password("alice")


def test_from_env(tmp_path):
    db_path = tmp_path / "env.db"
    env = tmp_path / ".env"
    env.write_text(f"DB_HOST=localhost\nDB_NAME={db_path}\n", encoding="utf-8")
    with ChatDatabase.from_env(env) as database:
        database.user_login("dave", "placeholder")
    assert db_path.exists()


def test_from_env_without_name(tmp_path):
    env = tmp_path / ".env"
    env.write_text("DB_HOST=localhost\n", encoding="utf-8")
    with pytest.raises(DatabaseError):
        ChatDatabase.from_env(env)
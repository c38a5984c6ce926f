import logging
import os
import random
import socket
import sys
import pytest

# Ensure the repository root (containing the game modules) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
REPO_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from linenet import TransportError


WORDS = ["carpool", "ballboy", "primark", "footman", "vanhire", "yellow", "red"]


class ScriptedConnection:
    """
    Stands in for a LineConnection. Replies are handed
    out one per receive_line call; running out of replies
    behaves like the terminal hanging up.
    """
    def __init__(self, replies=(), fail_on_send=None):
        self.replies = list(replies)
        self.sent = []
        self.fail_on_send = fail_on_send
        self.closed = False

    def send(self, text):
        if self.fail_on_send is not None and self.fail_on_send in text:
            raise TransportError("Write failed: broken pipe")
        self.sent.append(text)

    def receive_line(self):
        if not self.replies:
            raise TransportError("Sender closed the connection")
        return self.replies.pop(0) + "\r\n"

    def close(self):
        self.closed = True

    @property
    def output(self):
        return "".join(self.sent)


@pytest.fixture()
def words():
    return list(WORDS)


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def scripted():
    return ScriptedConnection


@pytest.fixture(autouse=True)
def reset_termalink_logger():
    """server.main() attaches handlers; don't let them leak between tests."""
    logger = logging.getLogger("termalink")
    yield
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture()
def pair():
    server_side, client_side = socket.socketpair()
    server_side.settimeout(2)
    client_side.settimeout(2)
    yield server_side, client_side
    server_side.close()
    client_side.close()

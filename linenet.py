"""
Linenet Server/Client Library

The linenet library contains server
and client code needed to talk plain,
newline delimited text over TCP.

Every accepted connection is handed to
its own thread. Nothing is shared between
connections except what the caller passes in.
"""
from contextlib import contextmanager
from threading import Thread
import logging
import socket
import sys

__all__ = [
    'run_simple_server', 'run_simple_client',
    'LineConnection', 'TransportError'
]

ENCODING = "utf-8"
MESSAGE_BUFFER_LEN = 1024
MAX_LINE_LEN = 512
TIMEOUT = 5 * 60 # 5 minutes

logger = logging.getLogger("termalink")

class TransportError(Exception):
    pass

class LineConnection:
    """
    Line oriented wrapper around a connected socket.
    Any failure on the socket surfaces as a TransportError.
    """
    def __init__(self, connection: socket.socket):
        self.connection = connection
        self.reader = connection.makefile("rb")
        self.closed = False

    def send(self, text: str):
        try:
            self.connection.sendall(text.encode(ENCODING))
        except OSError as e:
            raise TransportError(f"Write failed: {e}") from e

    def receive_line(self) -> str:
        """
        Block until the peer sends a full line and
        return it. Only the first MAX_LINE_LEN bytes
        are kept, the rest of the line is thrown away.
        Undecodable bytes are replaced.
        """
        try:
            line = self.reader.readline(MAX_LINE_LEN)
            if len(line) == MAX_LINE_LEN and not line.endswith(b"\n"):
                self.discard_rest_of_line()
        except OSError as e:
            raise TransportError(f"Read failed: {e}") from e

        if len(line) == 0:
            raise TransportError("Sender closed the connection")

        return line.decode(ENCODING, errors="replace")

    def discard_rest_of_line(self):
        while True:
            rest = self.reader.readline(MAX_LINE_LEN)
            if len(rest) == 0 or rest.endswith(b"\n"):
                return

    def receive(self) -> str:
        """
        Return whatever text has arrived, which
        may be a prompt without a trailing newline.
        """
        try:
            data = self.reader.read1(MESSAGE_BUFFER_LEN)
        except OSError as e:
            raise TransportError(f"Read failed: {e}") from e

        if len(data) == 0:
            raise TransportError("Sender closed the connection")

        return data.decode(ENCODING, errors="replace")

    def close(self):
        if self.closed:
            return
        self.closed = True
        try:
            self.reader.close()
        finally:
            self.connection.close()

###
# Server
###

def run_simple_server(address, fn, timeout=TIMEOUT):
    """
    This function can act as the main entrypoint
    for the server. It takes a function that interacts
    with a connected peer through a LineConnection.

    Example
    =======
    if __name__ == "__main__":
      run_simple_server(
        ("0.0.0.0", 2160),
        lambda connection, peer: connection.send(f"Hello {peer[0]}\\n")
      )
    """
    with start_server(address) as sock:
        logger.info("Started server at %s:%s", *sock.getsockname()[:2])
        try:
            serve_forever(sock, fn, timeout)
        except KeyboardInterrupt:
            logger.info("Stopping server...")

def serve_forever(sock, fn, timeout=TIMEOUT):
    while True:
        try:
            connection, peer = sock.accept()
        except OSError as e:
            if sock.fileno() == -1:
                # Listener was closed underneath us
                return
            logger.warning("Failed to accept connection: %s", e)
            continue
        connection.settimeout(timeout)
        t = Thread(target=thread_connection, args=[connection, peer, fn])
        t.daemon = True
        t.start()

def thread_connection(connection, peer, fn):
    line_connection = LineConnection(connection)
    try:
        fn(line_connection, peer)
    except TransportError as e:
        # Ignore as client can reconnect
        logger.info("Connection with %s dropped: %s", format_peer(peer), e)
    except Exception:
        # Keep one broken session from taking down the listener
        logger.exception("Session with %s failed", format_peer(peer))
    finally: # clean up the connection
        line_connection.close()

@contextmanager
def start_server(address, backlog=socket.SOMAXCONN):
    """
    Opens up a TCP socket at the specified (host, port)
    address and listens for connections.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(address)
        sock.listen(backlog)
    except OSError as e:
        sock.close()
        logger.error("Unable to listen on %s:%s -- %s", address[0], address[1], e)
        sys.exit(1)

    try:
        yield sock
    finally:
        sock.close()

def format_peer(peer) -> str:
    if isinstance(peer, tuple) and len(peer) >= 2:
        return f"{peer[0]}:{peer[1]}"
    return str(peer)

###
# Client
###

def run_simple_client(address, fn, timeout=None):
    """
    This function can act as the main entrypoint
    for the client. It takes a function that interacts
    with the server through a LineConnection.

    Example
    =======
    if __name__ == "__main__":
      run_simple_client(
        ("localhost", 2160),
        lambda connection: print(connection.receive_line())
      )
    """
    with start_client(address, timeout) as client:
        fn(client)

@contextmanager
def start_client(address, timeout=None):
    try:
        sock = socket.create_connection(address, timeout=timeout)
    except OSError as e:
        print(f"Server is not running at {address[0]}:{address[1]} ({e})")
        sys.exit(1)

    client = LineConnection(sock)
    try:
        yield client
    finally:
        client.close()

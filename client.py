"""
Client for the Termalink game server.

Anything the server sends is echoed to the
terminal and every line typed is sent back.
A plain `nc host 2160` works just as well.
"""
from threading import Event, Thread
import argparse
import sys

from config import Config
from linenet import TransportError, run_simple_client

## Messages

STARTUP_MESSAGE = lambda host, port: f"""
Connecting to RobCo Termalink at {host}:{port}.

Guess the password from the list on screen.
A wrong guess tells you how many letters
are in the correct position.

To quit, press CTRL-C.
"""

DISCONNECTED_TEXT = "\nConnection closed by the terminal."

## Game Client

class TermalinkClient:
    def __init__(self, stdin=sys.stdin, stdout=sys.stdout):
        self.stdin = stdin
        self.stdout = stdout
        self.disconnected = Event()

    def echo_server(self, connection):
        """
        Copy server output to the terminal until
        the server hangs up.
        """
        try:
            while True:
                self.stdout.write(connection.receive())
                self.stdout.flush()
        except TransportError:
            pass
        finally:
            self.disconnected.set()

    def start_game(self, connection):
        reader = Thread(target=self.echo_server, args=[connection])
        reader.daemon = True
        reader.start()

        try:
            for line in self.stdin:
                if self.disconnected.is_set():
                    break
                connection.send(line if line.endswith("\n") else line + "\n")
        except (KeyboardInterrupt, TransportError):
            pass

        # Let the last of the server output through
        reader.join(timeout=1)
        if self.disconnected.is_set():
            self.stdout.write(DISCONNECTED_TEXT + "\n")
            self.stdout.flush()

if __name__ == "__main__":
    config = Config.from_env()
    parser = argparse.ArgumentParser(description="Client for the RobCo Termalink game")
    parser.add_argument("--host", type=str, default="localhost", help="Server to connect to.")
    parser.add_argument("--port", type=int, default=config.port, help="Server TCP port.")
    args = parser.parse_args()

    print(STARTUP_MESSAGE(args.host, args.port))
    c = TermalinkClient()
    try:
        run_simple_client((args.host, args.port), c.start_game)
    except KeyboardInterrupt:
        pass

"""
Termalink Game Server

Serves the RobCo password hacking game
over plain TCP, one thread per terminal.
"""
from dataclasses import dataclass
from enum import Enum
import argparse
import random
import sys

from config import ATTEMPTS_PER_ROUND, NUMBER_OF_PASSWORDS, PASSWORD_LENGTH, Config
from game import (
    Evaluation,
    InsufficientCandidatesError,
    LoadError,
    Round,
    WordCatalog,
    build_round,
    evaluate,
    normalize,
)
from game_logger import log_game_event, logger, setup_logger
from linenet import LineConnection, format_peer, run_simple_server
import robco


class SessionState(Enum):
    AWAITING_ROUND = "awaiting_round"
    IN_ROUND = "in_round"
    ROUND_RESOLVED = "round_resolved"
    AWAITING_REPLAY = "awaiting_replay"
    ENDED = "ended"


@dataclass
class PlayerState:
    score: int = 0


def decorate(word: str, rng: random.Random) -> str:
    """
    Bury a password in a line of junk characters
    so the screen looks like a memory dump.
    Ex: "CARPOOL" -> "$<]CARPOOL+#(_!@/"
    """
    prefix_len = rng.randint(0, robco.JUNK_PER_LINE)
    suffix_len = robco.JUNK_PER_LINE - prefix_len
    prefix = "".join(rng.choice(robco.JUNK_CHARACTERS) for _ in range(prefix_len))
    suffix = "".join(rng.choice(robco.JUNK_CHARACTERS) for _ in range(suffix_len))
    return prefix + word + suffix


class GameSession:
    """
    Plays rounds with one connected terminal
    until it declines another round or drops.

    Any TransportError is left to propagate so the
    hosting thread can close the connection; the
    session sends nothing further once one happens.
    """
    def __init__(self, connection: LineConnection, words, rng: random.Random,
                 attempts_per_round=ATTEMPTS_PER_ROUND, password_length=PASSWORD_LENGTH,
                 number_of_passwords=NUMBER_OF_PASSWORDS,
                 peer="unknown"):
        self.connection = connection
        self.words = words
        self.rng = rng
        self.attempts_per_round = attempts_per_round
        self.password_length = password_length
        self.number_of_passwords = number_of_passwords
        self.peer = peer

        self.player = PlayerState()
        self.state = SessionState.AWAITING_ROUND
        self.round = None
        self.rounds_played = 0

    def run(self) -> PlayerState:
        handlers = {
            SessionState.AWAITING_ROUND: self.new_round,
            SessionState.IN_ROUND: self.play_round,
            SessionState.ROUND_RESOLVED: self.report_score,
            SessionState.AWAITING_REPLAY: self.ask_replay,
        }
        log_game_event(self.peer, "session_started")
        while self.state is not SessionState.ENDED:
            self.state = handlers[self.state]()
        log_game_event(
            self.peer, "session_ended",
            score=self.player.score, rounds=self.rounds_played
        )
        return self.player

    def new_round(self) -> SessionState:
        self.round = build_round(
            self.attempts_per_round,
            self.password_length,
            self.number_of_passwords,
            self.words,
            self.rng
        )
        return SessionState.IN_ROUND

    def play_round(self) -> SessionState:
        current_round = self.round
        self.show_passwords(current_round)

        won = False
        for attempts_left in range(current_round.attempts, 0, -1):
            self.connection.send(robco.ATTEMPTS_LEFT(attempts_left))
            self.connection.send(robco.PASSWORD_PROMPT)
            guess = normalize(self.connection.receive_line())

            result = evaluate(guess, current_round)
            if result.granted:
                self.player.score += 1
                self.connection.send(robco.ACCESS_GRANTED)
                won = True
                break

            self.deny(result)

        self.rounds_played += 1
        log_game_event(
            self.peer, "round_won" if won else "round_lost",
            round=self.rounds_played, score=self.player.score
        )
        return SessionState.ROUND_RESOLVED

    def show_passwords(self, current_round: Round):
        self.connection.send(robco.ROUND_HEADER)
        for password in current_round.candidates:
            self.connection.send(decorate(password, self.rng) + "\n")
        self.connection.send(robco.ROUND_FOOTER)

    def deny(self, result: Evaluation):
        # Invalid guesses come back as 0 matches
        self.connection.send(robco.ENTRY_DENIED(result.matches, result.length))

    def report_score(self) -> SessionState:
        self.connection.send(robco.SCORE_REPORT(self.player.score))
        return SessionState.AWAITING_REPLAY

    def ask_replay(self) -> SessionState:
        self.connection.send(robco.REPLAY_PROMPT)
        answer = normalize(self.connection.receive_line())
        if answer == robco.REPLAY_ANSWER:
            return SessionState.AWAITING_ROUND

        self.connection.send(robco.FAREWELL)
        self.connection.send(robco.SCORE_REPORT(self.player.score))
        return SessionState.ENDED


class TermalinkServer:
    def __init__(self, catalog: WordCatalog, rng: random.Random, config: Config):
        self.catalog = catalog
        self.rng = rng
        self.config = config

    def check_catalog(self):
        """
        Fail up front if the dictionary can never
        fill a round with the configured settings.
        """
        available = self.catalog.distinct_count(self.config.password_length)
        if available < self.config.number_of_passwords:
            raise InsufficientCandidatesError(
                self.config.number_of_passwords,
                available,
                self.config.password_length
            )

    def game(self, connection, peer):
        """
        Start a game of Termalink for
        a given terminal with a specific connection.
        """
        GameSession(
            connection,
            self.catalog,
            self.rng,
            attempts_per_round=self.config.attempts_per_round,
            password_length=self.config.password_length,
            number_of_passwords=self.config.number_of_passwords,
            peer=format_peer(peer)
        ).run()


def parse_args(argv=None) -> Config:
    config = Config.from_env()
    parser = argparse.ArgumentParser(description="RobCo Termalink game server")
    parser.add_argument("--host", type=str, default=config.host, help="Address to listen on.")
    parser.add_argument("--port", type=int, default=config.port, help="TCP port to listen on.")
    parser.add_argument("--dictionary", type=str, default=config.dictionary, help="Newline separated word list.")
    parser.add_argument("--attempts", type=int, default=config.attempts_per_round, help="Attempts per round.")
    parser.add_argument("--length", type=int, default=config.password_length, help="Password length in characters.")
    parser.add_argument("--passwords", type=int, default=config.number_of_passwords, help="Passwords shown per round.")
    parser.add_argument("--timeout", type=float, default=config.timeout, help="Seconds to wait on an idle terminal.")
    parser.add_argument("--seed", type=int, default=config.seed, help="Random seed, for reproducible runs only.")
    parser.add_argument("--log-level", type=str, default=config.log_level, help="Logging level.")
    parser.add_argument("--log-dir", type=str, default=config.log_dir, help="Also write logs into this folder.")
    args = parser.parse_args(argv)

    try:
        return Config(
            host=args.host,
            port=args.port,
            dictionary=args.dictionary,
            attempts_per_round=args.attempts,
            password_length=args.length,
            number_of_passwords=args.passwords,
            timeout=args.timeout,
            seed=args.seed,
            log_level=args.log_level,
            log_dir=args.log_dir
        )
    except ValueError as e:
        parser.error(str(e))


def main(argv=None):
    config = parse_args(argv)
    setup_logger(config.log_level, config.log_dir)

    try:
        catalog = WordCatalog.from_file(config.dictionary)
    except LoadError as e:
        logger.error("%s", e)
        sys.exit(1)
    logger.info("Loaded %d words from %s", len(catalog), config.dictionary)

    # One generator for the whole process, seeded once
    seed = config.seed
    if seed is None:
        seed = random.SystemRandom().randrange(2 ** 32)
    rng = random.Random(seed)
    # NOTE: The seed must be kept secret otherwise
    # players can predict the passwords!
    logger.debug("Seed: %d", seed)

    w = TermalinkServer(catalog, rng, config)
    try:
        w.check_catalog()
    except InsufficientCandidatesError as e:
        logger.error("Dictionary can't support a round: %s", e)
        sys.exit(1)

    run_simple_server(config.address, w.game, timeout=config.timeout)


if __name__ == "__main__":
    main()

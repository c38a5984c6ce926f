import random

import pytest

import server
from config import Config
from game import InsufficientCandidatesError, Round, WordCatalog
from linenet import TransportError
from server import GameSession, SessionState, TermalinkServer, decorate


ROUND = Round(4, ("CARPOOL", "BALLBOY", "PRIMARK", "FOOTMAN"), "BALLBOY")


@pytest.fixture()
def fixed_round(monkeypatch):
    """Make every new round the same known puzzle."""
    def install(r=ROUND):
        monkeypatch.setattr(server, "build_round", lambda *args, **kwargs: r)
        return r
    return install


def make_session(connection, words, attempts=4, passwords=4):
    return GameSession(
        connection, words, random.Random(42),
        attempts_per_round=attempts, password_length=7,
        number_of_passwords=passwords, peer="test"
    )


def test_correct_guess_wins_and_scores(scripted, words, fixed_round):
    fixed_round()
    conn = scripted(["ballboy", "n"])
    player = make_session(conn, words).run()

    assert player.score == 1
    out = conn.output
    assert "ACCESS GRANTED." in out
    assert "ENTRY DENIED" not in out
    assert out.endswith("\nTHANKS FOR PLAYING!\nSCORE:1\n\n")


def test_round_header_lists_every_candidate(scripted, words, fixed_round):
    fixed_round()
    conn = scripted(["ballboy", "n"])
    make_session(conn, words).run()

    out = conn.output
    assert out.startswith("\n" + "-" * 40 + "\n\nROBCO INDUSTRIES (TM) TERMALINK PROTOCOL\n\nENTER PASSWORD NOW\n\n")
    # Shown in build order, one per line
    positions = [out.index(word) for word in ROUND.candidates]
    assert positions == sorted(positions)
    # Header is shown once per round, not once per attempt
    assert out.count("TERMALINK PROTOCOL") == 1


def test_wrong_guesses_get_positional_hints(scripted, words, fixed_round):
    fixed_round()
    conn = scripted(["carpool", "footman", "ballboy", "n"])
    player = make_session(conn, words).run()

    out = conn.output
    # CARPOOL vs BALLBOY share A at index 1 and O at index 5
    assert "ENTRY DENIED. 2/7 CORRECT.\n" in out
    # FOOTMAN vs BALLBOY share nothing
    assert "ENTRY DENIED. 0/7 CORRECT.\n" in out
    assert "\n4 ATTEMPT(S) LEFT\nENTER PASSWORD: " in out
    assert "\n3 ATTEMPT(S) LEFT" in out
    assert "\n2 ATTEMPT(S) LEFT" in out
    assert "\n1 ATTEMPT(S) LEFT" not in out
    assert player.score == 1


def test_invalid_guess_costs_an_attempt(scripted, words, fixed_round):
    fixed_round()
    conn = scripted(["ballbox", "", "ballboy", "n"])
    player = make_session(conn, words).run()

    assert conn.output.count("ENTRY DENIED. 0/7 CORRECT.\n") == 2
    assert "\n2 ATTEMPT(S) LEFT" in conn.output
    assert player.score == 1


def test_single_wrong_attempt_loses_round(scripted, words, fixed_round):
    fixed_round(Round(1, ROUND.candidates, ROUND.correct_word))
    conn = scripted(["primark", "n"])
    session = make_session(conn, words, attempts=1)
    player = session.run()

    assert player.score == 0
    assert session.rounds_played == 1
    out = conn.output
    assert "ACCESS GRANTED." not in out
    assert "ENTRY DENIED. 0/7 CORRECT.\n\nSCORE:0\n\nPLAY AGAIN? (Y/N): " in out


def test_exhausting_attempts_asks_to_replay(scripted, words, fixed_round):
    fixed_round()
    conn = scripted(["carpool"] * 4 + ["n"])
    player = make_session(conn, words).run()

    assert player.score == 0
    assert conn.output.count("ENTRY DENIED.") == 4
    assert "PLAY AGAIN? (Y/N): " in conn.output


def test_lowercase_y_starts_another_round(scripted, words, fixed_round):
    fixed_round()
    conn = scripted(["ballboy", "y", "ballboy", " Y ", "carpool", "carpool", "carpool", "carpool", "no"])
    session = make_session(conn, words)
    player = session.run()

    assert session.rounds_played == 3
    assert player.score == 2
    out = conn.output
    assert out.count("TERMALINK PROTOCOL") == 3
    assert "\nSCORE:1\n\n" in out
    assert out.endswith("\nTHANKS FOR PLAYING!\nSCORE:2\n\n")


def test_anything_but_y_ends_session(scripted, words, fixed_round):
    fixed_round()
    conn = scripted(["ballboy", "yes"])
    session = make_session(conn, words)
    session.run()

    assert session.state is SessionState.ENDED
    assert session.rounds_played == 1
    assert "THANKS FOR PLAYING!" in conn.output


def test_disconnect_mid_round_stops_session(scripted, words, fixed_round):
    fixed_round()
    conn = scripted(["carpool"])
    session = make_session(conn, words)

    with pytest.raises(TransportError):
        session.run()

    assert session.player.score == 0
    assert session.state is SessionState.IN_ROUND
    # Nothing is written after the failed read
    assert conn.output.endswith("ENTER PASSWORD: ")


def test_disconnect_at_replay_prompt_keeps_score(scripted, words, fixed_round):
    fixed_round()
    conn = scripted(["ballboy"])
    session = make_session(conn, words)

    with pytest.raises(TransportError):
        session.run()

    assert session.player.score == 1
    assert session.state is SessionState.AWAITING_REPLAY
    assert "THANKS FOR PLAYING!" not in conn.output


def test_write_failure_stops_session(scripted, words, fixed_round):
    fixed_round()
    conn = scripted(["ballboy", "n"], fail_on_send="ACCESS GRANTED")
    session = make_session(conn, words)

    with pytest.raises(TransportError):
        session.run()
    assert "SCORE:" not in conn.output


def test_session_builds_real_rounds(scripted, words):
    # Guess every candidate in turn; one of them has to be right
    conn = scripted(["n"])
    session = make_session(conn, words, attempts=4, passwords=4)
    session.new_round()
    candidates = session.round.candidates
    conn.replies = list(candidates) + ["n"]

    session.state = SessionState.IN_ROUND
    session.run()

    assert session.player.score == 1
    assert all(len(c) == 7 for c in candidates)


def test_decorate_buries_word_in_junk():
    rng = random.Random(3)
    for _ in range(50):
        line = decorate("CARPOOL", rng)
        assert len(line) == len("CARPOOL") + 10
        prefix, _, suffix = line.partition("CARPOOL")
        assert all(c in ";()[]*&^$.-=<>+#_!?@'/|" for c in prefix + suffix)


def test_server_check_catalog(words):
    config = Config(password_length=7, number_of_passwords=10)
    w = TermalinkServer(WordCatalog(words), random.Random(1), config)
    with pytest.raises(InsufficientCandidatesError):
        w.check_catalog()

    w.config = Config(password_length=7, number_of_passwords=5)
    w.check_catalog()


def test_server_game_runs_session(scripted, words, fixed_round):
    fixed_round()
    config = Config(attempts_per_round=4, password_length=7, number_of_passwords=4)
    w = TermalinkServer(WordCatalog(words), random.Random(1), config)
    conn = scripted(["ballboy", "n"])

    w.game(conn, ("127.0.0.1", 50000))
    assert "SCORE:1" in conn.output

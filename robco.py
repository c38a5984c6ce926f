"""
RobCo Termalink Protocol

Contains the text shared between the
Termalink client and server. Clients that
talk to the server with a plain telnet or
netcat session see exactly these strings.
"""

DIVIDER = "-" * 40
TITLE = "ROBCO INDUSTRIES (TM) TERMALINK PROTOCOL"
INSTRUCTION = "ENTER PASSWORD NOW"

# Characters the passwords are buried in
JUNK_CHARACTERS = ";()[]*&^$.-=<>+#_!?@'/|"
JUNK_PER_LINE = 10

REPLAY_ANSWER = "Y"

## Messages

ROUND_HEADER = f"""
{DIVIDER}

{TITLE}

{INSTRUCTION}

"""

ROUND_FOOTER = f"\n{DIVIDER}\n"

ATTEMPTS_LEFT = lambda n: f"\n{n} ATTEMPT(S) LEFT"

PASSWORD_PROMPT = "\nENTER PASSWORD: "

ACCESS_GRANTED = "ACCESS GRANTED.\n"

ENTRY_DENIED = lambda matches, length: f"ENTRY DENIED. {matches}/{length} CORRECT.\n"

SCORE_REPORT = lambda score: f"\nSCORE:{score}\n\n"

REPLAY_PROMPT = "PLAY AGAIN? (Y/N): "

FAREWELL = "\nTHANKS FOR PLAYING!"

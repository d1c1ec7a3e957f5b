"""GraphQL documents sent to the ledger. Values always travel as variables, never spliced into the text."""

SESSION_FIELDS = """
    sessionId
    kind
    mode
    status
    players
    winner
    reason
    seed
    timeControl
    drawOfferedBy
    actions { seq player move }
"""

LOBBY_FIELDS = """
    lobbyId
    creator
    kind
    mode
    isPublic
    status
    timeControl
    players
    sessionId
"""

FETCH_SESSION = f"""
query Session($sessionId: String!) {{
  session(sessionId: $sessionId) {{ {SESSION_FIELDS} }}
}}
"""

FETCH_LOBBY = f"""
query Lobby($lobbyId: String!) {{
  lobby(lobbyId: $lobbyId) {{ {LOBBY_FIELDS} }}
}}
"""

CREATE_SESSION = """
mutation CreateSession($input: CreateSessionInput!) {
  createSession(input: $input)
}
"""

CREATE_LOBBY = """
mutation CreateLobby($input: CreateLobbyInput!) {
  createLobby(input: $input)
}
"""

JOIN_LOBBY = """
mutation JoinLobby($lobbyId: String!, $player: String!, $password: String) {
  joinLobby(lobbyId: $lobbyId, player: $player, password: $password)
}
"""

CANCEL_LOBBY = """
mutation CancelLobby($lobbyId: String!, $player: String!) {
  cancelLobby(lobbyId: $lobbyId, player: $player)
}
"""

SUBMIT_ACTION = """
mutation SubmitAction($input: SubmitActionInput!) {
  submitAction(input: $input)
}
"""

REGISTER_PROFILE = """
mutation RegisterProfile($input: ProfileInput!) {
  registerProfile(input: $input)
}
"""

RECORD_RESULT = """
mutation RecordResult($input: StatsReportInput!) {
  recordResult(input: $input)
}
"""

# resign / offerDraw / acceptDraw / claimTimeout share one signature
SESSION_CONTROL = """
mutation {name}($sessionId: String!, $player: String!) {{
  {field}(sessionId: $sessionId, player: $player)
}}
"""


def session_control(field: str) -> str:
    return SESSION_CONTROL.format(name=field[0].upper() + field[1:], field=field)

import pytest


class DummyResult:
    def __init__(self, rows):
        self._rows = rows

    def data(self):
        return [dict(row) for row in self._rows]


class DummySession:
    def __init__(self, driver):
        self.driver = driver

    def run(self, query, params=None):
        # Accept plain strings and neo4j.Query objects.
        text = getattr(query, "text", query)
        params = params or {}
        self.driver.calls.append((query, params))
        return DummyResult(self.driver.responder(text, params))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False


class DummyDriver:
    def __init__(self, responder=None):
        self.responder = responder or (lambda query, params: [])
        self.calls = []
        self.session_kwargs = []

    def session(self, **kwargs):
        self.session_kwargs.append(kwargs)
        return DummySession(self)


PLAYERS = ["Luke Bangs", "Oli Goddard", "Kieran Mackrell"]

GOALS = {"Luke Bangs": 12, "Oli Goddard": 7, "Kieran Mackrell": 3}
TEAM_GOALS = {("Luke Bangs", "3rd XI"): 5}


def club_graph(query, params):
    """Tiny stand-in for the club graph: goals per player, overall and by team."""
    if "$limit" in query:
        return [{"player": name, "value": goals, "appearances": 20} for name, goals in GOALS.items()]
    name = params.get("player_name")
    if name not in GOALS:
        return []
    if "team" in params:
        return [{"player": name, "value": TEAM_GOALS.get((name, params["team"]), 0), "appearances": 10}]
    return [{"player": name, "value": GOALS[name], "appearances": 20}]


@pytest.fixture
def make_driver():
    return DummyDriver


@pytest.fixture
def club_driver():
    return DummyDriver(club_graph)

import pytest

from backend import BackendClient
from utils.auth_state import AuthChannel, AuthEvent, GateState, SessionContext, gate


@pytest.mark.parametrize(
    "state,view,action,target",
    [
        (GateState.LOADING, "/dashboard", "wait", None),
        (GateState.UNAUTHENTICATED, "/dashboard", "redirect", "/login"),
        (GateState.AUTHENTICATED, "/dashboard", "admit", None),
        (GateState.AUTHENTICATED, "/login", "redirect", "/dashboard"),
        (GateState.AUTHENTICATED, "/signup", "redirect", "/dashboard"),
        (GateState.UNAUTHENTICATED, "/login", "admit", None),
        (GateState.LOADING, "/signup", "admit", None),
    ],
)
def test_gate_decisions(state, view, action, target):
    decision = gate(state, view)
    assert decision.action == action
    assert decision.target == target


def test_context_starts_loading_and_follows_events(backend, user):
    client = BackendClient(backend)
    ctx = SessionContext(client.channel)
    assert ctx.loading
    assert ctx.user is None

    client.get_session()
    assert ctx.state is GateState.UNAUTHENTICATED

    client.sign_in(user["email"], "secret123")
    assert ctx.state is GateState.AUTHENTICATED
    assert ctx.user.id == user["id"]

    client.sign_out()
    assert ctx.state is GateState.UNAUTHENTICATED
    assert ctx.session is None


def test_initial_session_from_token(backend, user):
    client = BackendClient(backend, user["token"])
    ctx = SessionContext(client.channel)
    client.get_session()
    assert ctx.state is GateState.AUTHENTICATED


def test_closed_context_stops_listening():
    channel = AuthChannel()
    ctx = SessionContext(channel)
    ctx.close()
    channel.publish(AuthEvent.SIGNED_OUT, None)
    assert ctx.state is GateState.LOADING


def test_channels_are_per_client(backend, user):
    a, b = BackendClient(backend), BackendClient(backend)
    ctx_b = SessionContext(b.channel)
    a.sign_in(user["email"], "secret123")
    assert ctx_b.loading


def test_auth_listeners_receive_events_until_unsubscribed(backend, user):
    client = BackendClient(backend)
    seen = []
    unsubscribe = client.on_auth_state_change(lambda event, session: seen.append(event))

    client.sign_in(user["email"], "secret123")
    client.get_session()
    unsubscribe()
    client.sign_out()

    assert seen == [AuthEvent.SIGNED_IN, AuthEvent.INITIAL_SESSION]


def test_client_publishes_every_auth_event(backend, user):
    client = BackendClient(backend)
    seen = set()
    client.on_auth_state_change(lambda event, session: seen.add(event))

    client.sign_in(user["email"], "secret123")
    client.get_session()
    client.sign_out()

    assert seen == set(AuthEvent)

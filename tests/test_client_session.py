import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from client.session import ClientState, FrameSession, Outcome, inject_html
from core.types import GenerationResult
from server.app import create_app
from server.controller import PAID_DISABLED, SessionController


def _session(controller: SessionController) -> FrameSession:
    transport = httpx.ASGITransport(app=create_app(controller))
    return FrameSession(httpx.AsyncClient(transport=transport, base_url="http://loop"))


@pytest.fixture
def session(controller):
    return _session(controller)


def test_inject_html_appends_to_body():
    html = "<html><body><p>a</p></body></html>"
    assert inject_html(html, "<b>x</b>") == "<html><body><p>a</p><b>x</b></body></html>"


def test_inject_html_keeps_existing_markup():
    html = "<html><body><p class='a'>x&nbsp;y<br/></p>\n</body></html>"
    assert inject_html(html, "<b>z</b>") == html.replace("</body>", "<b>z</b></body>")


def test_inject_html_without_body():
    assert inject_html("<p>a</p>", "<b>x</b>") == "<p>a</p>"


@pytest.mark.asyncio
async def test_generate_installs_interface(session, free_model):
    states = []
    session.on_state_change = states.append
    result = await session.generate("  A simple calculator ", free_model)
    assert result.outcome == Outcome.SUCCESS
    assert states == [ClientState.BUSY, ClientState.IDLE]
    assert session.description == "A simple calculator"
    assert {t.element_id for t in session.capturer.click_targets} >= {"add", "divide"}
    assert session.can_regenerate


@pytest.mark.asyncio
async def test_generate_validates_locally(session, free_model):
    messages = []
    session.on_status = lambda outcome, text: messages.append((outcome, text))
    result = await session.generate("   ", free_model)
    assert result.outcome == Outcome.FAILED
    assert messages == [(Outcome.FAILED, "Enter a program description")]
    assert (await session.generate("calc", "")).error == "Select a model"


@pytest.mark.asyncio
async def test_generate_surfaces_server_error(session, paid_model):
    result = await session.generate("calc", paid_model)
    assert result.outcome == Outcome.FAILED
    assert result.error == PAID_DISABLED
    assert session.state == ClientState.IDLE
    assert not session.can_regenerate
    assert session.html == ""


@pytest.mark.asyncio
async def test_click_and_change_round_trip(session, free_model):
    """Typed values travel in the document the server computes from."""
    await session.generate("calculator", free_model)
    await session.change("num1", "6")
    await session.change("num2", "3")
    result = await session.click("multiply")
    assert result.outcome == Outcome.SUCCESS
    assert "Result: 18" in session.html

    history = await session.load_history()
    assert [a["action"]["type"] for a in history["actions"]] == ["change", "change", "click"]


@pytest.mark.asyncio
async def test_action_ignored_while_busy(session, free_model):
    await session.generate("calculator", free_model)
    session.state = ClientState.BUSY
    result = await session.click("add")
    assert result.outcome == Outcome.IGNORED


@pytest.mark.asyncio
async def test_regenerate_repeats_last_request(session, free_model):
    assert (await session.regenerate()).outcome == Outcome.IGNORED
    await session.generate("todo list", free_model)
    result = await session.regenerate()
    assert result.outcome == Outcome.SUCCESS
    assert 'id="task-list"' in session.html


@pytest.mark.asyncio
async def test_send_message_injects_fragment(session, free_model):
    await session.generate("calculator", free_model)
    result = await session.send_message("add a button for clear")
    assert result.outcome == Outcome.SUCCESS
    assert 'id="new-button"' in session.html
    assert [t["role"] for t in session.transcript] == ["user", "assistant"]
    assert any(t.element_id == "new-button" for t in session.capturer.click_targets)


@pytest.mark.asyncio
async def test_send_message_requires_interface(session):
    result = await session.send_message("hello")
    assert result.outcome == Outcome.FAILED
    assert result.error == "Generate an interface first"


@pytest.mark.asyncio
async def test_stop_cancels_without_replacing_document(config, free_model):
    started = asyncio.Event()

    async def slow_interact(*args):
        started.set()
        await asyncio.sleep(10)
        return GenerationResult(html="<p>late</p>")

    backend = AsyncMock()
    backend.name = "stub"
    backend.generate = AsyncMock(return_value=GenerationResult(html="<button id='go'>Go</button>"))
    backend.interact = slow_interact
    controller = SessionController(config, backend)
    session = _session(controller)

    await session.generate("anything", free_model)
    before = session.html
    task = asyncio.create_task(session.click("go"))
    await started.wait()
    session.stop()
    result = await task

    assert result.outcome == Outcome.CANCELLED
    assert session.state == ClientState.IDLE
    assert session.html == before
    assert controller.history("127.0.0.1")["actions"] == []


@pytest.mark.asyncio
async def test_comment_and_reset(session):
    assert (await session.add_comment("wider")).outcome == Outcome.SUCCESS
    failed = await session.add_comment("")
    assert failed.outcome == Outcome.FAILED
    assert failed.error == "Field 'comment' is required"
    result = await session.reset_history()
    assert result.data == {"success": True, "message": "History reset"}
    assert session.transcript == []


@pytest.mark.asyncio
async def test_load_models_over_mock_transport():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/models"
        return httpx.Response(200, json=[{"id": "m", "name": "M", "isPaid": False, "disabled": False}])

    session = FrameSession(httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://loop"))
    models = await session.load_models()
    assert models[0]["id"] == "m"


@pytest.mark.asyncio
async def test_non_json_error_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    session = FrameSession(httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://loop"))
    result = await session.generate("calc", "m")
    assert result.outcome == Outcome.FAILED
    assert result.error == "Request to /api/generate failed with status 502"

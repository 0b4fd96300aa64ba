import asyncio
import logging
import sys

import httpx
import uvicorn

from client.capture import CaptureError
from client.session import FrameSession, RequestResult
from core.backend import create_backend
from core.config import Config, load_config
from server.app import create_app
from server.controller import SessionController

HELP = "Commands: click <id> | set <id> <value> | say <message> | html | history | reset | quit"


def setup_logging(config: Config) -> None:
    logging.basicConfig(
        level=config.logging.level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def run_command(session: FrameSession, command: str, rest: str) -> RequestResult | None:
    if command == "click":
        return await session.click(rest)
    if command == "set":
        element_id, _, value = rest.partition(" ")
        return await session.change(element_id, value)
    if command == "say":
        result = await session.send_message(rest)
        if session.transcript:
            print(session.transcript[-1]["content"])
        return result
    if command == "reset":
        return await session.reset_history()
    if command == "html":
        print(session.html)
    elif command == "history":
        print(await session.load_history())
    else:
        print(HELP)
    return None


async def text_repl() -> None:
    """Terminal loop over the same HTTP surface the browser uses, without a browser."""
    config = load_config()
    setup_logging(config)
    print(f"Interface loop starting with {config.llm.backend} backend")

    app = create_app(SessionController(config, create_backend(config)))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://interface-loop", timeout=None) as http:
        session = FrameSession(http)
        models = [m for m in await session.load_models() if not m["disabled"]]
        if not models:
            print("No enabled models configured")
            return
        model_id = models[0]["id"]
        print(f"Model: {model_id}")

        description = input("Describe the program: ").strip()
        result = await session.generate(description, model_id)
        print(f"[{result.outcome}] {result.error or ''}")
        print(HELP)

        while True:
            line = input("\n> ").strip()
            command, _, rest = line.partition(" ")
            if command in ("quit", "exit", "q"):
                break
            try:
                result = await run_command(session, command, rest.strip())
            except CaptureError as e:
                print(e)
                continue
            if result is None:
                continue
            print(f"[{result.outcome}] {result.error or ''}")
            for target in session.capturer.targets:
                print(f"  {target.event}: {target.element.name}#{target.element_id}")


def server() -> None:
    """Start FastAPI server."""
    config = load_config()
    setup_logging(config)
    print(f"Interface loop starting with {config.llm.backend} backend")
    print(f"Server: http://{config.server.host}:{config.server.port}")
    uvicorn.run(
        "server.app:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
    )


if __name__ == "__main__":
    if "--text" in sys.argv:
        asyncio.run(text_repl())
    else:
        server()

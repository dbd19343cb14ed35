#!/usr/bin/env python3
"""
Mock server for trying out the example monitor definitions.

This server implements the small API exercised by monitors.example.json:
- POST /login returns a token in the X-Token header and a session id in the body
- GET /data requires the token in the 'auth' query parameter
- DELETE /sessions/{id} removes a session

Responses are delayed randomly; a small share of them is slow enough to trip
the request timeouts of the example file.
"""

import asyncio
import random
import secrets

from aiohttp import web

# Constants
PORT = 8080
HOST = "localhost"
FAST_RESPONSE_PROBABILITY = 0.95
FAST_RESPONSE_MIN_MS = 5
FAST_RESPONSE_MAX_MS = 200
SLOW_RESPONSE_MIN_S = 3
SLOW_RESPONSE_MAX_S = 8

SESSIONS_KEY = web.AppKey("sessions", dict)


async def _simulate_latency() -> None:
    """Sleeps for a random duration, 95% fast and 5% slow."""
    if random.random() < FAST_RESPONSE_PROBABILITY:
        delay_s = random.uniform(FAST_RESPONSE_MIN_MS, FAST_RESPONSE_MAX_MS) / 1000
    else:
        delay_s = random.uniform(SLOW_RESPONSE_MIN_S, SLOW_RESPONSE_MAX_S)
    await asyncio.sleep(delay_s)


async def handle_login(request: web.Request) -> web.Response:
    await _simulate_latency()
    token = secrets.token_hex(8)
    session_id = secrets.token_hex(4)
    request.app[SESSIONS_KEY][session_id] = token
    return web.json_response({"session": {"id": session_id}}, headers={"X-Token": token})


async def handle_data(request: web.Request) -> web.Response:
    await _simulate_latency()
    session_id = request.query.get("session", "")
    if request.app[SESSIONS_KEY].get(session_id) != request.query.get("auth"):
        return web.json_response({"error": "unauthorized"}, status=401)
    return web.json_response({"items": [random.randint(0, 100) for _ in range(5)]})


async def handle_logout(request: web.Request) -> web.Response:
    await _simulate_latency()
    if request.app[SESSIONS_KEY].pop(request.match_info["session_id"], None) is None:
        return web.Response(status=404)
    return web.Response(status=204)


async def init_app() -> web.Application:
    """
    Initialize the web application.

    Returns:
        Configured aiohttp web Application
    """
    app = web.Application()
    app[SESSIONS_KEY] = {}
    app.add_routes(
        [
            web.post("/login", handle_login),
            web.get("/data", handle_data),
            web.delete("/sessions/{session_id}", handle_logout),
        ]
    )
    return app


def run_server() -> None:
    """Run the mock server on HOST:PORT."""
    web.run_app(init_app(), host=HOST, port=PORT)


if __name__ == "__main__":
    print(f"Starting mock server at http://{HOST}:{PORT}")
    run_server()

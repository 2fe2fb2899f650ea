import asyncio
import json
import logging
import typing
import weakref

import websockets.asyncio.server
import websockets.exceptions

import steproll.midi_export

logger = logging.getLogger(__name__)

class WebUI:

    """
    WebSocket bridge between an editor session and a browser front end.

    The browser draws the grid cells and the notation staves; this server
    turns its clicks into editor calls and pushes the editor state back.

    Incoming messages are JSON objects with a ``type``:

    - ``{"type": "toggle", "row": 3, "col": 5}``
    - ``{"type": "grow"}`` - sent when the view scrolls near its right edge
    - ``{"type": "bpm", "value": 140}``
    - ``{"type": "play"}`` / ``{"type": "stop"}``
    - ``{"type": "export"}`` - answered with ``{"type": "midi", "data_uri": ...}``

    State is broadcast ten times a second while clients are connected.
    """

    def __init__ (self, editor: typing.Any, ws_port: int = 8765, host: str = "0.0.0.0") -> None:

        self.editor_ref = weakref.ref(editor)
        self.ws_port = ws_port
        self.host = host
        self._ws_server: typing.Optional[websockets.asyncio.server.Server] = None
        self._broadcast_task: typing.Optional[asyncio.Task] = None
        self._clients: typing.Set[websockets.asyncio.server.ServerConnection] = set()

    def start (self) -> None:

        asyncio.create_task(self._start_ws_server())

    async def _handle_client (self, websocket: websockets.asyncio.server.ServerConnection) -> None:

        self._clients.add(websocket)
        try:
            await websocket.send(json.dumps(self._state_message()))
            async for message in websocket:
                reply = await self.handle_message(message)
                if reply is not None:
                    await websocket.send(json.dumps(reply))
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            self._clients.discard(websocket)

    async def handle_message (self, raw: typing.Union[str, bytes]) -> typing.Optional[typing.Dict[str, typing.Any]]:

        """Decode one client message and apply it. Returns the reply, if any."""

        try:
            command = json.loads(raw)
        except (TypeError, ValueError):
            return {"type": "error", "message": "Invalid JSON"}

        if not isinstance(command, dict):
            return {"type": "error", "message": "Command must be an object"}

        try:
            return await self.handle_command(command)
        except (KeyError, TypeError, ValueError, IndexError) as e:
            logger.warning(f"Rejected UI command {command!r}: {e}")
            return {"type": "error", "message": str(e)}

    async def handle_command (self, command: typing.Dict[str, typing.Any]) -> typing.Optional[typing.Dict[str, typing.Any]]:

        editor = self.editor_ref()
        if editor is None:
            return {"type": "error", "message": "Editor closed"}

        kind = command.get("type")

        if kind == "toggle":
            value = editor.toggle(int(command["row"]), int(command["col"]))
            return {"type": "cell", "row": int(command["row"]), "col": int(command["col"]), "active": value}

        if kind == "grow":
            grew = editor.request_grow()
            return {"type": "grow", "grew": grew, "num_steps": editor.grid.num_steps}

        if kind == "bpm":
            editor.set_bpm(float(command["value"]))
            return None

        if kind == "play":
            await editor.start_playback()
            return None

        if kind == "stop":
            await editor.stop_playback()
            return None

        if kind == "export":
            return {"type": "midi", "filename": "melody.mid", "data_uri": steproll.midi_export.data_uri(editor.midi_file())}

        raise ValueError(f"Unknown command type {kind!r}")

    async def _start_ws_server (self) -> None:

        try:
            self._ws_server = await websockets.asyncio.server.serve(self._handle_client, self.host, self.ws_port)
            self._broadcast_task = asyncio.create_task(self._broadcast_loop())
            logger.info(f"Web UI WebSocket listening on ws://{self.host}:{self.ws_port}")
        except Exception as e:
            logger.error(f"WebSocket server error: {e}")

    async def _broadcast_loop (self) -> None:

        while True:
            await asyncio.sleep(0.1)

            if not self._clients:
                continue

            if self.editor_ref() is None:
                break

            try:
                websockets.asyncio.server.broadcast(self._clients, json.dumps(self._state_message()))
            except Exception:
                logger.exception("Error broadcasting UI state")

    def _state_message (self) -> typing.Dict[str, typing.Any]:

        editor = self.editor_ref()
        if editor is None:
            return {"type": "state"}

        state = self._get_state(editor)
        state["type"] = "state"
        return state

    def _get_state (self, editor: typing.Any) -> typing.Dict[str, typing.Any]:

        grid = editor.grid

        return {
            "bpm": editor.bpm,
            "playing": editor.playing,
            "ready": editor.ready,
            "playhead": editor.playhead,
            "pitches": list(grid.pitches),
            "num_steps": grid.num_steps,
            "num_measures": grid.num_measures,
            "cells": [[row, col] for row, col in grid.active_cells()],
            "notation": editor.notation.to_dict()
        }

    def stop (self) -> None:

        if self._broadcast_task:
            self._broadcast_task.cancel()
        if self._ws_server:
            self._ws_server.close()
            try:
                loop = asyncio.get_running_loop()
                loop.create_task(self._ws_server.wait_closed())
            except RuntimeError:
                pass

import asyncio, json, math, queue, threading, traceback
import websockets
from websockets import ServerConnection, Request, Response, Headers

from . import log95, CommandDeliveryError, NowPlayingItem, PlaybackSession, PlayState, PlaystateCommandEvent
from .session_manager import SessionManager

_IDLE = object()

def _position_ticks(value: object) -> int | None:
    if value is None: return None
    if isinstance(value, bool): raise TypeError("position_ticks must be a number")
    if isinstance(value, float) and not math.isfinite(value): raise ValueError(f"position_ticks is not finite: {value}")
    return int(value)

def session_from_dict(data: dict) -> PlaybackSession:
    if not isinstance(data, dict): raise TypeError("session must be an object")
    if (path := data.get("path")) is not None and not isinstance(path, str): raise TypeError("path must be a string")
    return PlaybackSession(
        id=str(data["id"]),
        user_id=str(data.get("user_id", "")),
        now_playing_item=NowPlayingItem(path) if path else None,
        play_state=PlayState(_position_ticks(data.get("position_ticks"))),
    )

def session_to_dict(session: PlaybackSession) -> dict:
    return {
        "id": session.id,
        "user_id": session.user_id,
        "path": session.now_playing_item.path if session.now_playing_item else None,
        "position_ticks": session.play_state.position_ticks if session.play_state else None,
    }

class HostBridge:
    """
    Websocket endpoint for the media server side of things

    The host pushes {"action": "sessions", ...} snapshots and {"action": "session_ended", ...} notifications,
    we push {"event": "playstate", ...} commands back to every connected client
    The server runs on its own asyncio loop in a daemon thread
    """
    def __init__(self, session_manager: SessionManager, host: str, port: int, output: log95.TextIO) -> None:
        self.session_manager = session_manager
        self.host = host
        self.port = port
        self.logger = log95.log95("BRIDGE", output=output)
        self.ws_q: queue.Queue[dict | None] = queue.Queue()
        self.clients: set[ServerConnection] = set()
        self.ready = threading.Event()
        self.start_error: BaseException | None = None
        self.thread: threading.Thread | None = None

    def start(self, timeout: float = 5) -> None:
        """Returns once the socket is bound, port holds the real port afterwards"""
        self.thread = threading.Thread(target=self._server_thread, name="host-bridge", daemon=True)
        self.thread.start()
        if not self.ready.wait(timeout): raise TimeoutError("Host bridge did not start in time")
        if self.start_error: raise self.start_error
        self.session_manager.add_command_listener(self.on_command)
        self.logger.info(f"Listening on ws://{self.host}:{self.port}")

    def shutdown(self, timeout: float = 5) -> None:
        self.session_manager.remove_command_listener(self.on_command)
        if not self.thread: return
        self.ws_q.put(None)
        self.thread.join(timeout)
        self.thread = None

    def on_command(self, event: PlaystateCommandEvent) -> None:
        if not self.clients: raise CommandDeliveryError("No host connected to the bridge")
        self.ws_q.put({"event": "playstate", "data": event.to_dict()})

    def _state(self) -> dict: return {"sessions": [session_to_dict(s) for s in self.session_manager.sessions]}

    async def ws_handler(self, websocket: ServerConnection) -> None:
        await websocket.send(json.dumps({"event": "state", "data": self._state()}))

        async for raw in websocket:
            try: msg = json.loads(raw)
            except ValueError:
                await websocket.send(json.dumps({"error": "invalid json"}))
                continue
            if not isinstance(msg, dict):
                await websocket.send(json.dumps({"error": "message must be an object"}))
                continue

            action = msg.get("action")
            if action == "sessions":
                try: sessions = [session_from_dict(s) for s in msg["sessions"]]
                except (KeyError, TypeError, ValueError, OverflowError) as e:
                    await websocket.send(json.dumps({"error": f"invalid sessions: {e!r}"}))
                    continue
                self.session_manager.update_sessions(sessions)
                await websocket.send(json.dumps({"status": "ok", "action": "sessions", "count": len(sessions)}))
            elif action == "session_ended":
                if (session_id := msg.get("id")) is None:
                    await websocket.send(json.dumps({"error": "id is required"}))
                    continue
                ended = self.session_manager.end_session(str(session_id))
                await websocket.send(json.dumps({"status": "ok", "action": "session_ended", "known": ended}))
            elif action == "request_state": await websocket.send(json.dumps({"event": "state", "data": self._state()}))
            else: await websocket.send(json.dumps({"error": "unknown action"}))

    def _next_message(self) -> dict | None | object:
        try: return self.ws_q.get(timeout=0.5)
        except queue.Empty: return _IDLE

    async def broadcast_worker(self) -> None:
        """Forwards queued commands to every client until a None shows up in the queue"""
        loop = asyncio.get_running_loop()
        while True:
            msg = await loop.run_in_executor(None, self._next_message)
            if msg is _IDLE: continue
            if msg is None: break
            payload = json.dumps(msg)
            if self.clients: await asyncio.gather(*[self._safe_send(ws, payload) for ws in list(self.clients)], return_exceptions=True)

    async def _safe_send(self, ws: ServerConnection, payload: str) -> None:
        try: await ws.send(payload)
        except websockets.ConnectionClosed: self.clients.discard(ws)

    async def _runner(self) -> None:
        async def handler_wrapper(websocket: ServerConnection):
            self.clients.add(websocket)
            self.logger.info(f"Host connected from {websocket.remote_address}")
            try: await self.ws_handler(websocket)
            except websockets.ConnectionClosedError: pass
            finally:
                self.clients.discard(websocket)
                self.logger.info("Host disconnected")
        async def process_request(websocket: ServerConnection, request: Request):
            if not "upgrade" in request.headers.get("Connection", "").lower():
                data = b"WebSocket upgrade required\n"
                return Response(
                    426,
                    "Upgrade Required",
                    Headers([("Connection", "Upgrade"), ("Upgrade", "websocket"), ("Content-Length", f"{len(data)}")]),
                    data
                )

        try:
            server = await websockets.serve(handler_wrapper, self.host, self.port, server_header="mediaSkipper host bridge", process_request=process_request)
        except OSError as e:
            self.start_error = e
            self.ready.set()
            return
        self.port = server.sockets[0].getsockname()[1]
        self.ready.set()
        try: await self.broadcast_worker()
        finally:
            server.close()
            await server.wait_closed()

    def _server_thread(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try: loop.run_until_complete(self._runner())
        except Exception:
            self.logger.error("Host bridge crashed")
            traceback.print_exc(file=self.logger.output)
        finally:
            loop.run_until_complete(loop.shutdown_default_executor())
            loop.close()
            self.ready.set()

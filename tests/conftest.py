"""Shared fixtures: a simulated mpv on a real Unix socket, isolated XDG dirs."""

import json
import os
import shutil
import socketserver
import tempfile
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import pytest

from nightride.core.config import Config
from nightride.domain.playback import supervisor

FAKE_PID = 4242


class _Handler(socketserver.StreamRequestHandler):
    def handle(self) -> None:
        line = self.rfile.readline()
        if not line:
            return
        fake: FakeMpv = self.server.fake  # type: ignore[attr-defined]
        reply = fake.respond(json.loads(line))
        if reply is None:
            return
        if fake.send_events:
            self.wfile.write(b'{"event":"metadata-update"}\n')
        self.wfile.write(reply.encode("utf-8") + b"\n")


class FakeMpv:
    """Simulated mpv answering get_property/set_property like the real one."""

    def __init__(self, socket_path: str):
        self.socket_path = socket_path
        self.properties: dict[str, Any] = {
            "pid": FAKE_PID,
            "filename": "nightride.ogg",
            "pause": False,
            "volume": 100.0,
            "metadata": {
                "title": "Old Song;Neon Drive",
                "artist": "Old Artist;Kavinsky",
                "album": "Old Album;Outrun",
            },
        }
        self.failing: set[str] = set()
        self.raw_replies: dict[str, str] = {}
        self.silent: set[str] = set()
        self.slow: set[str] = set()
        self.send_events = False
        self.requests: list[list[Any]] = []
        self._server: Optional[socketserver.ThreadingUnixStreamServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._server is not None

    def respond(self, request: dict[str, Any]) -> Optional[str]:
        command, name, *args = request["command"]
        self.requests.append(request["command"])

        if name in self.silent:
            return None
        if name in self.slow:
            time.sleep(0.5)
        if name in self.raw_replies:
            return self.raw_replies[name]
        if name in self.failing:
            return json.dumps({"request_id": 0, "error": "property unavailable"})

        if command == "get_property":
            if name not in self.properties:
                return json.dumps({"request_id": 0, "error": "property not found"})
            return json.dumps(
                {"data": self.properties[name], "request_id": 0, "error": "success"}
            )
        if command == "set_property":
            self.properties[name] = args[0]
            return json.dumps({"data": None, "request_id": 0, "error": "success"})
        return json.dumps({"request_id": 0, "error": "invalid parameter"})

    def serve(self) -> None:
        """(Re)bind the socket and answer requests in a background thread."""
        self.stop()
        if os.path.exists(self.socket_path):
            os.unlink(self.socket_path)
        self._server = socketserver.ThreadingUnixStreamServer(self.socket_path, _Handler)
        self._server.daemon_threads = True
        self._server.fake = self  # type: ignore[attr-defined]
        self._thread = threading.Thread(
            target=self._server.serve_forever, kwargs={"poll_interval": 0.05}, daemon=True
        )
        self._thread.start()

    def load(self, url: str) -> None:
        """Play url like a freshly started mpv would."""
        self.properties["filename"] = url.rsplit("/", 1)[-1]
        self.properties["pause"] = False
        self.serve()

    def stop(self) -> None:
        """Exit like a terminated mpv: stop answering and remove the socket."""
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
            self._thread = None
        if os.path.exists(self.socket_path):
            os.unlink(self.socket_path)


class FakeProcess:
    """Stands in for subprocess.Popen when the supervisor spawns mpv."""

    def __init__(self, cmd: list[str], **kwargs: Any):
        self.cmd = cmd
        self.kwargs = kwargs
        self.pid = FAKE_PID
        self.returncode = None

    def poll(self) -> Optional[int]:
        return self.returncode


@pytest.fixture
def socket_path():
    """A short socket path (AF_UNIX paths are limited to ~108 bytes)."""
    directory = tempfile.mkdtemp(prefix="nr-")
    yield os.path.join(directory, "mpv.sock")
    shutil.rmtree(directory, ignore_errors=True)


@pytest.fixture
def config(socket_path: str) -> Config:
    """Default config pointed at the test socket with short timeouts."""
    cfg = Config()
    cfg.player.socket_path = socket_path
    cfg.player.request_timeout = 1.0
    cfg.player.startup_timeout = 1.0
    cfg.player.stop_timeout = 0.2
    return cfg


@pytest.fixture
def fake_mpv(socket_path: str):
    """A running simulated mpv on the test socket."""
    fake = FakeMpv(socket_path)
    fake.serve()
    yield fake
    fake.stop()


@pytest.fixture
def stopped_mpv(socket_path: str):
    """A simulated mpv that is not running yet (no socket)."""
    fake = FakeMpv(socket_path)
    yield fake
    fake.stop()


@dataclass
class Spawner:
    """Records what the supervisor spawned and terminated."""

    processes: list[FakeProcess] = field(default_factory=list)
    terminated: list[int] = field(default_factory=list)


def _install_fake_spawner(monkeypatch: pytest.MonkeyPatch, fake: FakeMpv) -> Spawner:
    spawner = Spawner()

    def fake_popen(cmd: list[str], **kwargs: Any) -> FakeProcess:
        process = FakeProcess(cmd, **kwargs)
        spawner.processes.append(process)
        fake.load(cmd[1])
        return process

    def fake_terminate(pid: int) -> None:
        spawner.terminated.append(pid)
        fake.stop()

    monkeypatch.setattr(supervisor.subprocess, "Popen", fake_popen)
    monkeypatch.setattr(supervisor, "_terminate", fake_terminate)
    monkeypatch.setattr(supervisor, "_process_alive", lambda pid: False)
    return spawner


@pytest.fixture
def spawner(monkeypatch: pytest.MonkeyPatch, fake_mpv: FakeMpv):
    """Make the supervisor 'spawn' the simulated mpv instead of a real one.

    Returns a Spawner recording spawned processes and terminated pids.
    """
    return _install_fake_spawner(monkeypatch, fake_mpv)


@pytest.fixture
def cold_spawner(monkeypatch: pytest.MonkeyPatch, stopped_mpv: FakeMpv):
    """Like spawner, but no player is running before the first spawn."""
    return _install_fake_spawner(monkeypatch, stopped_mpv)


@pytest.fixture
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point config/data dirs at tmp_path and clear NIGHTRIDE_* overrides."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for name in ("NIGHTRIDE_CONFIG", "NIGHTRIDE_SOCKET_PATH", "NIGHTRIDE_MPV_PATH"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path

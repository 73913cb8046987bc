"""TCP socket bridge to a running game server's world-query endpoint.

The server side is a small plugin that answers newline-free JSON commands of
the form {"type": ..., "params": {...}} with {"status": ..., "result": ...}.
"""

import json
import logging
import os
import socket
import time
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

from models import (
    Point3D,
    Quaternion,
    RayHit,
    WorldObject,
    dict_to_point3d,
    dict_to_quaternion,
)
from services.world import World, classify_surface

logger = logging.getLogger("outpost-quarries.remote_world")


class GameServerConnection:
    """Manages the TCP socket connection to the game server bridge."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        timeout: float = 30.0,
    ):
        self.host = host or os.environ.get("GAME_SERVER_HOST", "localhost")
        self.port = port or int(os.environ.get("GAME_SERVER_PORT", "28099"))
        self.timeout = timeout
        self._sock: Optional[socket.socket] = None

    def connect(self) -> bool:
        if self._sock:
            return True
        try:
            self._sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
            logger.info("Connected to game server at %s:%s", self.host, self.port)
            return True
        except OSError as e:
            logger.error("Failed to connect to game server: %s", e)
            self._sock = None
            return False

    def disconnect(self):
        if self._sock:
            try:
                self._sock.close()
            except OSError:
                pass
            finally:
                self._sock = None

    def _receive_full_response(self, buffer_size: int = 16384) -> bytes:
        """Receive a complete JSON response, potentially in multiple chunks."""
        chunks: list[bytes] = []
        self._sock.settimeout(self.timeout)
        deadline = time.monotonic() + self.timeout
        while time.monotonic() < deadline:
            try:
                chunk = self._sock.recv(buffer_size)
            except socket.timeout:
                break
            if not chunk:
                if not chunks:
                    raise ConnectionError("Connection closed before receiving data")
                break
            chunks.append(chunk)
            data = b"".join(chunks)
            try:
                json.loads(data.decode("utf-8"))
                return data
            except json.JSONDecodeError:
                continue

        if chunks:
            data = b"".join(chunks)
            json.loads(data.decode("utf-8"))  # will raise if incomplete
            return data
        raise ConnectionError("No data received from game server")

    def send_command(self, command_type: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Send a command to the game server and return the result payload."""
        if not self._sock and not self.connect():
            raise ConnectionError("Not connected to game server")

        command = {"type": command_type, "params": params or {}}
        try:
            self._sock.sendall(json.dumps(command).encode("utf-8"))
            response_data = self._receive_full_response()
            response = json.loads(response_data.decode("utf-8"))

            if response.get("status") == "error":
                raise RuntimeError(response.get("message", "Unknown game server error"))
            return response.get("result")
        except (socket.timeout, ConnectionError, BrokenPipeError, ConnectionResetError) as e:
            self._sock = None
            raise ConnectionError(f"Game server communication error: {e}") from e
        except json.JSONDecodeError as e:
            self._sock = None
            raise RuntimeError(f"Invalid JSON from game server: {e}") from e


def _dict_to_world_object(d: dict) -> WorldObject:
    return WorldObject(
        net_id=int(d["net_id"]),
        name=d.get("name", ""),
        category=d.get("category", ""),
        position=dict_to_point3d(d["position"]),
        rotation=dict_to_quaternion(d.get("rotation")),
        extents=dict_to_point3d(d.get("extents", [0.0, 0.0, 0.0])),
        prefab=d.get("prefab", ""),
    )


class RemoteWorld(World):
    """World whose queries are answered by a live game server."""

    def __init__(self, conn: GameServerConnection):
        self.conn = conn

    def enumerate_landmark_like_objects(self) -> List[WorldObject]:
        result = self.conn.send_command("list_monuments") or []
        return [_dict_to_world_object(d) for d in result]

    def height_at(self, x: float, z: float) -> float:
        return float(self.conn.send_command("terrain_height", {"x": x, "z": z}))

    def raycast(
        self,
        origin: Point3D,
        direction: Point3D,
        max_distance: float,
        layers: Sequence[str],
    ) -> Optional[RayHit]:
        result = self.conn.send_command("raycast", {
            "origin": asdict(origin),
            "direction": asdict(direction),
            "max_distance": max_distance,
            "layers": list(layers),
        })
        if not result:
            return None
        material = result.get("material", "")
        return RayHit(
            distance=float(result["distance"]),
            material=material,
            surface=classify_surface(material),
        )

    def spawn(self, prefab: str, position: Point3D, rotation: Quaternion) -> Optional[WorldObject]:
        try:
            result = self.conn.send_command("spawn", {
                "prefab": prefab,
                "position": asdict(position),
                "rotation": asdict(rotation),
            })
        except RuntimeError as e:
            logger.debug("Server refused spawn of %s: %s", prefab, e)
            return None
        if not result:
            return None
        return _dict_to_world_object(result)

    def enable_extraction(self, obj: WorldObject, liquid: bool, solid: bool) -> None:
        self.conn.send_command("enable_extraction", {
            "net_id": obj.net_id,
            "liquid": liquid,
            "solid": solid,
        })
        obj.can_extract_liquid = liquid
        obj.can_extract_solid = solid

    def find_by_id(self, net_id: int) -> Optional[WorldObject]:
        try:
            result = self.conn.send_command("find_entity", {"net_id": net_id})
        except RuntimeError as e:
            logger.debug("Lookup of entity %s failed: %s", net_id, e)
            return None
        return _dict_to_world_object(result) if result else None

    def find_near(
        self, position: Point3D, radius: float, category: Optional[str] = None
    ) -> List[WorldObject]:
        result = self.conn.send_command("find_near", {
            "position": asdict(position),
            "radius": radius,
            "category": category,
        }) or []
        return [_dict_to_world_object(d) for d in result]

    def destroy(self, obj: WorldObject) -> None:
        self.conn.send_command("destroy", {"net_id": obj.net_id})

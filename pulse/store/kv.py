"""
Residency Pulse — Remote KV REST Client

Minimal client for an Upstash-style Redis REST endpoint (what Vercel KV
exposes). Each command is POSTed as a JSON array, e.g. ["LPUSH", key, value],
with bearer auth; the reply is {"result": ...} or {"error": "..."}.
Transactions go to <url>/multi-exec as a list of command arrays.

Error messages never include the token or the request headers.
"""
import httpx

from pulse.config import KV_TIMEOUT_SECONDS
from pulse.errors import BackendIOError


class KVRestClient:
    """List primitives over the KV REST API."""

    def __init__(self, url: str, token: str, timeout: float = KV_TIMEOUT_SECONDS, transport=None):
        self.url = url.rstrip("/")
        self._client = httpx.Client(
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    # --- transport ---
    def _post(self, path: str, body) -> object:
        try:
            resp = self._client.post(self.url + path, json=body)
        except httpx.HTTPError as e:
            raise BackendIOError(f"KV request failed: {type(e).__name__}") from e
        try:
            data = resp.json()
        except ValueError:
            data = None
        if resp.status_code >= 400 or data is None:
            detail = data.get("error") if isinstance(data, dict) else None
            msg = f"KV returned HTTP {resp.status_code}"
            raise BackendIOError(f"{msg}: {detail}" if detail else msg)
        return data

    def command(self, *args):
        data = self._post("", list(args))
        if not isinstance(data, dict):
            raise BackendIOError("KV returned an unexpected payload")
        if data.get("error"):
            raise BackendIOError(f"KV {args[0]} failed: {data['error']}")
        return data.get("result")

    def multi_exec(self, commands: list) -> list:
        """Run commands as one MULTI/EXEC transaction."""
        data = self._post("/multi-exec", [list(c) for c in commands])
        if not isinstance(data, list):
            raise BackendIOError("KV transaction returned an unexpected payload")
        results = []
        for cmd, item in zip(commands, data):
            if isinstance(item, dict) and item.get("error"):
                raise BackendIOError(f"KV {cmd[0]} failed in transaction: {item['error']}")
            results.append(item.get("result") if isinstance(item, dict) else item)
        return results

    # --- list primitives ---
    def lpush(self, key: str, *values: str) -> int:
        return self.command("LPUSH", key, *values)

    def lrange(self, key: str, start: int = 0, stop: int = -1) -> list:
        return self.command("LRANGE", key, start, stop) or []

    def replace_list(self, key: str, values: list) -> None:
        """Atomically swap the list at key for values (head first)."""
        commands = [["DEL", key]]
        if values:
            commands.append(["RPUSH", key, *values])
        self.multi_exec(commands)

    def close(self):
        self._client.close()
